"""
Exceptions raised by classlens.
"""


class ClassLensError(Exception):
    """Base class for all classlens errors."""
    pass


class LookupMiss(ClassLensError):
    """A class name is not present in the project's class index."""

    def __init__(self, class_name: str):
        self.class_name = class_name
        super().__init__(
            f"Class {class_name} was not found in any indexed jar; "
            f"run scan_dependencies to (re)build the class index"
        )


class IndexMissing(ClassLensError):
    """The project has no class index yet."""

    def __init__(self, index_path: str):
        self.index_path = index_path
        super().__init__(
            f"Class index {index_path} does not exist; run scan_dependencies first"
        )


class ExternalToolFailure(ClassLensError):
    """An external tool (javap, java, mvn) failed, timed out or printed nothing."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"{tool} failed: {message}")


class MalformedInputError(ClassLensError):
    """Disassembly text is empty or unreadable."""
    pass
