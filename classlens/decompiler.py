"""
Decompiling indexed classes with CFR, with an on-disk source cache.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from .config import DECOMPILE_CACHE_DIR, ToolConfig
from .errors import ExternalToolFailure, LookupMiss
from .jars import extract_class
from .scanner import DependencyScanner
from .tools import find_cfr_jar, java_command, run_tool

logger = logging.getLogger(__name__)


class DecompilerService:
    """Looks a class up, extracts it from its jar and runs CFR on it."""

    def __init__(self, scanner: Optional[DependencyScanner] = None, config: Optional[ToolConfig] = None):
        self.config = config or ToolConfig.from_env()
        self.scanner = scanner or DependencyScanner(self.config)
        self._cfr_path: Optional[str] = None

    def cfr_jar(self, cfr_path: Optional[str] = None) -> str:
        """The CFR jar to use: an explicit path wins, otherwise the discovered one."""
        if cfr_path:
            logger.info("Using CFR jar given by caller: %s", cfr_path)
            return cfr_path
        if not self._cfr_path:
            self._cfr_path = find_cfr_jar(self.config)
            if not self._cfr_path:
                raise ExternalToolFailure(
                    "cfr",
                    "CFR decompiler not found; put a cfr-*.jar in ./lib or set CFR_PATH",
                )
            logger.info("CFR jar: %s", self._cfr_path)
        return self._cfr_path

    @staticmethod
    def cache_path(class_name: str, project_path: str | Path) -> Path:
        """<project>/.mcp-decompile-cache/<package dirs>/<Simple>.java"""
        package, _, simple = class_name.rpartition(".")
        cache_dir = Path(project_path) / DECOMPILE_CACHE_DIR
        if package:
            cache_dir = cache_dir.joinpath(*package.split("."))
        return cache_dir / f"{simple}.java"

    def decompile_class(
        self,
        class_name: str,
        project_path: str | Path,
        use_cache: bool = True,
        cfr_path: Optional[str] = None,
    ) -> str:
        """Java source for class_name, from the cache when allowed."""
        cache_file = self.cache_path(class_name, project_path)
        if use_cache and cache_file.exists():
            logger.info("Using cached decompilation %s", cache_file)
            return cache_file.read_text(encoding="utf-8")

        cfr = self.cfr_jar(cfr_path)

        logger.info("Looking up jar for %s", class_name)
        jar_path = self.scanner.find_jar_for_class(class_name, project_path)
        if not jar_path:
            raise LookupMiss(class_name)
        logger.info("Found %s in %s", class_name, jar_path)

        with tempfile.TemporaryDirectory(prefix="classlens-") as tmpdir:
            class_file = extract_class(jar_path, class_name, tmpdir)
            source = self.decompile_file(class_file, cfr)

        if use_cache:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            cache_file.write_text(source, encoding="utf-8")
            logger.info("Cached decompilation %s", cache_file)

        return source

    def decompile_file(self, class_file: str | Path, cfr: str) -> str:
        """Run CFR on a single .class file."""
        cmd = [java_command(self.config), "-jar", cfr, str(class_file), "--silent", "true"]
        source = run_tool(cmd, self.config.cfr_timeout)
        if not source.strip():
            raise ExternalToolFailure(
                "cfr",
                "no output; the class file may be damaged or the CFR version incompatible",
            )
        return source

    def decompile_classes(
        self,
        class_names: list[str],
        project_path: str | Path,
        use_cache: bool = True,
        cfr_path: Optional[str] = None,
    ) -> dict[str, str]:
        """Decompile several classes; a failure becomes a comment in place of the source."""
        results = {}
        for class_name in class_names:
            try:
                results[class_name] = self.decompile_class(class_name, project_path, use_cache, cfr_path)
            except Exception as e:
                logger.warning("Decompiling %s failed: %s", class_name, e)
                results[class_name] = f"// Decompilation failed: {e}"
        return results
