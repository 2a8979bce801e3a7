"""
Class structure analysis on top of javap.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from .config import ToolConfig
from .errors import ClassLensError, ExternalToolFailure, LookupMiss
from .javap import JavapParser
from .model import ClassDescription
from .scanner import DependencyScanner
from .tools import javap_command, run_tool

logger = logging.getLogger(__name__)


class JavapDisassembler:
    """Produces `javap -v` text for a class inside a jar."""

    def __init__(self, config: Optional[ToolConfig] = None):
        self.config = config or ToolConfig.from_env()
        self._javap: Optional[str] = None

    def disassemble(self, class_name: str, jar_path: str) -> str:
        if self._javap is None:
            self._javap = javap_command(self.config)

        cmd = [self._javap, "-v"]
        if self.config.show_private:
            cmd.append("-p")
        cmd += ["-cp", str(jar_path), class_name]

        output = run_tool(cmd, self.config.javap_timeout)
        if not output.strip():
            raise ExternalToolFailure("javap", f"no output for {class_name}")
        return output


class ClassAnalyzer:
    """Resolves a class to its jar, disassembles it and parses the result."""

    def __init__(
        self,
        scanner: Optional[DependencyScanner] = None,
        disassembler: Optional[JavapDisassembler] = None,
        config: Optional[ToolConfig] = None,
    ):
        self.config = config or ToolConfig.from_env()
        self.scanner = scanner or DependencyScanner(self.config)
        self.disassembler = disassembler or JavapDisassembler(self.config)
        self.parser = JavapParser()

    def analyze_class(self, class_name: str, project_path: str | Path) -> ClassDescription:
        jar_path = self.scanner.find_jar_for_class(class_name, project_path)
        if not jar_path:
            raise LookupMiss(class_name)
        text = self.disassembler.disassemble(class_name, jar_path)
        return self.parser.parse(text, class_name)

    def get_inheritance_hierarchy(self, class_name: str, project_path: str | Path) -> list[str]:
        """Ancestors of class_name, root first, ending with the class itself.

        An ancestor that cannot be resolved or analyzed is still listed by
        name and ends the walk.
        """
        hierarchy = [class_name]
        current = self.analyze_class(class_name, project_path)

        while current.superclass_name and current.superclass_name not in hierarchy:
            superclass = current.superclass_name
            hierarchy.insert(0, superclass)
            try:
                current = self.analyze_class(superclass, project_path)
            except ClassLensError as e:
                logger.debug("Stopping hierarchy at %s: %s", superclass, e)
                break

        return hierarchy

    def find_subclasses(self, class_name: str, project_path: str | Path) -> list[str]:
        """Indexed classes whose direct superclass is class_name.

        Every indexed class is analyzed; one that fails is skipped without
        affecting the others.
        """
        candidates = [c for c in self.scanner.get_all_class_names(project_path) if c != class_name]
        matches = set()

        def extends_target(candidate: str) -> bool:
            return self.analyze_class(candidate, project_path).superclass_name == class_name

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {executor.submit(extends_target, c): c for c in candidates}
            for future in as_completed(futures):
                candidate = futures[future]
                try:
                    if future.result():
                        matches.add(candidate)
                except Exception as e:
                    logger.debug("Skipping %s: %s", candidate, e)

        return [c for c in candidates if c in matches]
