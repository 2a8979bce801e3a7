"""
Tool locations and timeouts.

A ToolConfig is built once (usually from the environment) and handed to the
services that run external processes. The parser never sees it.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


INDEX_FILE_NAME = ".mcp-class-index.json"
DECOMPILE_CACHE_DIR = ".mcp-decompile-cache"


@dataclass
class ToolConfig:
    """Paths to external tools and the time each may take."""
    java_home: Optional[str] = None
    maven_home: Optional[str] = None
    maven_repo: Optional[str] = None
    cfr_path: Optional[str] = None
    classpath: str = ""
    javap_timeout: float = 10.0
    cfr_timeout: float = 30.0
    maven_timeout: float = 60.0
    show_private: bool = True
    max_workers: int = 4
    extra_cfr_dirs: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ToolConfig":
        """Build a config from JAVA_HOME, MAVEN_HOME, MAVEN_REPO, CFR_PATH and CLASSPATH."""
        env = os.environ if environ is None else environ
        return cls(
            java_home=env.get("JAVA_HOME") or None,
            maven_home=env.get("MAVEN_HOME") or None,
            maven_repo=env.get("MAVEN_REPO") or None,
            cfr_path=env.get("CFR_PATH") or None,
            classpath=env.get("CLASSPATH", ""),
        )

    def maven_repository(self) -> Path:
        """Local Maven repository: MAVEN_REPO, else ~/.m2/repository."""
        if self.maven_repo:
            return Path(self.maven_repo)
        return Path.home() / ".m2" / "repository"
