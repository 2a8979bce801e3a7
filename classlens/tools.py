"""
Running and locating the external JDK, Maven and CFR tools.
"""

import logging
import os
import re
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from .config import ToolConfig
from .errors import ExternalToolFailure

logger = logging.getLogger(__name__)


CFR_JAR_RE = re.compile(r"^cfr-.*\.jar$")


def run_tool(cmd: list[str], timeout: float, cwd: Optional[str] = None) -> str:
    """Run an external command and return its stdout.

    A non-zero exit, a timeout or a missing executable raises
    ExternalToolFailure carrying the tool's own message.
    """
    tool = Path(cmd[0]).name
    logger.debug("Exec: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise ExternalToolFailure(tool, f"timed out after {timeout:g}s")
    except OSError as e:
        raise ExternalToolFailure(tool, str(e))

    if result.returncode != 0:
        message = (result.stderr or result.stdout or "").strip()
        raise ExternalToolFailure(tool, message or f"exit status {result.returncode}")
    if result.stderr and result.stderr.strip():
        logger.warning("%s stderr: %s", tool, result.stderr.strip())
    return result.stdout


def _executable(name: str) -> str:
    return f"{name}.exe" if sys.platform == "win32" else name


def discover_java_home() -> Optional[str]:
    """Ask the java launcher on PATH for its java.home property."""
    try:
        result = subprocess.run(
            ["java", "-XshowSettings:properties", "-version"],
            capture_output=True, text=True, timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    # The settings dump goes to stderr
    for line in result.stderr.split("\n"):
        if "java.home" in line and "=" in line:
            return line.split("=", 1)[1].strip()
    return None


def java_command(config: ToolConfig) -> str:
    """The java launcher: JAVA_HOME/bin/java, else java on PATH."""
    if config.java_home:
        return str(Path(config.java_home) / "bin" / _executable("java"))
    return "java"


def javap_command(config: ToolConfig) -> str:
    """The javap disassembler: JAVA_HOME/bin/javap, PATH, or next to the running java."""
    if config.java_home:
        return str(Path(config.java_home) / "bin" / _executable("javap"))
    if shutil.which("javap"):
        return "javap"
    java_home = discover_java_home()
    if java_home:
        # A JRE home inside a JDK 8 keeps javap one level up
        for candidate in (Path(java_home) / "bin", Path(java_home).parent / "bin"):
            javap = candidate / _executable("javap")
            if javap.exists():
                return str(javap)
    return "javap"


def maven_command(config: ToolConfig) -> str:
    """The Maven launcher: MAVEN_HOME/bin/mvn (mvn.cmd on Windows), else mvn."""
    name = "mvn.cmd" if sys.platform == "win32" else "mvn"
    if config.maven_home:
        return str(Path(config.maven_home) / "bin" / name)
    return name


def find_cfr_jar(config: ToolConfig) -> Optional[str]:
    """Locate a CFR jar.

    Checks the configured path, then cfr-*.jar in ./lib, the working
    directory, the project root next to this package and any extra
    directories, then CLASSPATH entries.
    """
    if config.cfr_path:
        return config.cfr_path

    package_root = Path(__file__).resolve().parent.parent
    search_paths = [
        Path.cwd() / "lib",
        Path.cwd(),
        package_root / "lib",
        package_root,
    ] + [Path(d) for d in config.extra_cfr_dirs]

    for search_path in search_paths:
        if not search_path.is_dir():
            continue
        for entry in sorted(search_path.iterdir()):
            if CFR_JAR_RE.match(entry.name):
                return str(entry)

    for entry in config.classpath.split(os.pathsep):
        if "cfr" in entry and entry.endswith(".jar"):
            return entry

    return None
