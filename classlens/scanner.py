"""
Class index for a Maven project.

scan_project() asks Maven for the project's dependency tree, opens every
dependency jar and records which jar holds which top-level class. The index
is stored as JSON inside the project so later lookups do not need Maven.
"""

import json
import logging
import os
import re
import threading
import zipfile
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import INDEX_FILE_NAME, ToolConfig
from .errors import ClassLensError, ExternalToolFailure, IndexMissing
from .jars import list_jar_classes
from .tools import maven_command, run_tool

logger = logging.getLogger(__name__)


# [INFO] +- org.slf4j:slf4j-api:jar:1.7.36:compile
# [INFO] |  \- io.netty:netty-transport-native-epoll:jar:linux-x86_64:4.1.100.Final:runtime
DEPENDENCY_RE = re.compile(r"\[INFO\].*?([\w.\-]+(?::[\w.\-]+){4,5})")

SAMPLE_SIZE = 10


@dataclass
class ClassIndexEntry:
    class_name: str
    jar_path: str
    package_name: str
    simple_name: str

    @classmethod
    def create(cls, class_name: str, jar_path: str) -> "ClassIndexEntry":
        package, _, simple = class_name.rpartition(".")
        return cls(class_name=class_name, jar_path=jar_path, package_name=package, simple_name=simple)


@dataclass
class ScanResult:
    jar_count: int
    class_count: int
    index_path: str
    sample_entries: list[str] = field(default_factory=list)


def resolve_jar_path(coordinate: str, repository: Path) -> Optional[Path]:
    """Map a dependency:tree coordinate to its jar in the local repository.

    Accepts group:artifact:type:version:scope and
    group:artifact:type:classifier:version:scope; non-jar types give None.
    """
    parts = coordinate.split(":")
    if len(parts) == 5:
        group_id, artifact_id, packaging, version, _scope = parts
        classifier = None
    elif len(parts) == 6:
        group_id, artifact_id, packaging, classifier, version, _scope = parts
    else:
        return None

    if packaging != "jar":
        return None

    suffix = f"-{classifier}" if classifier else ""
    return repository.joinpath(*group_id.split(".")) / artifact_id / version / f"{artifact_id}-{version}{suffix}.jar"


class DependencyScanner:
    """Builds and queries the class-name -> jar index of a project."""

    def __init__(self, config: Optional[ToolConfig] = None):
        self.config = config or ToolConfig.from_env()
        self._cache: dict[str, tuple[float, dict[str, str]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def index_path(project_path: str | Path) -> Path:
        return Path(project_path) / INDEX_FILE_NAME

    def index_exists(self, project_path: str | Path) -> bool:
        return self.index_path(project_path).exists()

    def scan_project(self, project_path: str | Path, force_refresh: bool = False) -> ScanResult:
        """Index every class of every dependency jar, reusing an existing index unless forced."""
        index_path = self.index_path(project_path)

        if force_refresh and index_path.exists():
            logger.debug("Force refresh: removing old index %s", index_path)
            index_path.unlink()

        if index_path.exists():
            logger.debug("Using cached class index %s", index_path)
            data = self._read_index(index_path)
            return ScanResult(
                jar_count=data["jar_count"],
                class_count=data["class_count"],
                index_path=str(index_path),
                sample_entries=data.get("sample_entries", []),
            )

        logger.info("Scanning Maven dependencies of %s", project_path)
        jars = self.get_maven_dependencies(project_path)
        logger.info("Found %d dependency jars", len(jars))

        class_index: list[ClassIndexEntry] = []
        processed = 0
        for jar_path in jars:
            try:
                names = list_jar_classes(jar_path)
            except (OSError, zipfile.BadZipFile) as e:
                logger.warning("Skipping jar %s: %s", jar_path, e)
                continue
            class_index.extend(ClassIndexEntry.create(name, jar_path) for name in names)
            processed += 1
            if processed % 10 == 0:
                logger.info("Processed %d/%d jars", processed, len(jars))

        result = ScanResult(
            jar_count=processed,
            class_count=len(class_index),
            index_path=str(index_path),
            sample_entries=[
                f"{entry.class_name} -> {os.path.basename(entry.jar_path)}"
                for entry in class_index[:SAMPLE_SIZE]
            ],
        )

        payload = asdict(result)
        payload["class_index"] = [asdict(entry) for entry in class_index]
        payload["last_updated"] = datetime.now(timezone.utc).isoformat()
        index_path.parent.mkdir(parents=True, exist_ok=True)
        with open(index_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

        logger.info("Scan complete: %d jars, %d classes", processed, len(class_index))
        return result

    def get_maven_dependencies(self, project_path: str | Path) -> list[str]:
        """Jar paths from `mvn dependency:tree`, or every local repository jar if Maven fails."""
        cmd = [maven_command(self.config), "dependency:tree", "-DoutputType=text"]
        try:
            output = run_tool(cmd, self.config.maven_timeout, cwd=str(project_path))
        except ExternalToolFailure as e:
            logger.error("Reading Maven dependencies failed: %s", e)
            return self.scan_local_repository()

        repository = self.config.maven_repository()
        jars: list[str] = []
        for line in output.splitlines():
            match = DEPENDENCY_RE.search(line)
            if not match:
                continue
            jar_path = resolve_jar_path(match.group(1), repository)
            if jar_path is not None and jar_path.exists() and str(jar_path) not in jars:
                jars.append(str(jar_path))
        return jars

    def scan_local_repository(self) -> list[str]:
        """Every jar in the local Maven repository."""
        repository = self.config.maven_repository()
        if not repository.is_dir():
            raise ClassLensError(f"Local Maven repository {repository} does not exist")
        return sorted(str(p) for p in repository.rglob("*.jar") if p.is_file())

    def find_jar_for_class(self, class_name: str, project_path: str | Path) -> Optional[str]:
        """Jar holding class_name, or None. Raises IndexMissing if the project was never scanned."""
        return self._lookup_table(project_path).get(class_name)

    def get_all_class_names(self, project_path: str | Path) -> list[str]:
        """All indexed class names in index order; empty when there is no index."""
        if not self.index_exists(project_path):
            return []
        return list(self._lookup_table(project_path))

    def _lookup_table(self, project_path: str | Path) -> dict[str, str]:
        index_path = self.index_path(project_path)
        if not index_path.exists():
            raise IndexMissing(str(index_path))

        key = str(index_path)
        mtime = index_path.stat().st_mtime
        with self._lock:
            cached = self._cache.get(key)
            if cached and cached[0] == mtime:
                return cached[1]

        data = self._read_index(index_path)
        table: dict[str, str] = {}
        for entry in data.get("class_index", []):
            # First jar wins when several carry the same class
            table.setdefault(entry["class_name"], entry["jar_path"])

        with self._lock:
            self._cache[key] = (mtime, table)
        return table

    @staticmethod
    def _read_index(index_path: Path) -> dict:
        try:
            with open(index_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise ClassLensError(f"Cannot read class index {index_path}: {e}")
