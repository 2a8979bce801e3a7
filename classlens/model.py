"""
Structured description of a compiled class, as recovered from javap output.
"""

from dataclasses import dataclass, field
from typing import Optional


CONSTRUCTOR_NAME = "<init>"


@dataclass
class FieldDescription:
    """A field declared by the class."""
    name: str
    type: str
    modifiers: list[str] = field(default_factory=list)


@dataclass
class MethodDescription:
    """A method or constructor declared by the class.

    Parameters are plain strings. They start out as the bare type and are
    rewritten to "<type> <name>" once the variable table has been read.
    """
    name: str
    return_type: str
    modifiers: list[str] = field(default_factory=list)
    parameters: list[str] = field(default_factory=list)

    @property
    def is_constructor(self) -> bool:
        return self.name == CONSTRUCTOR_NAME


@dataclass
class ClassDescription:
    """Parse result for one class."""
    simple_name: str
    package_name: str = ""
    modifiers: list[str] = field(default_factory=list)
    superclass_name: Optional[str] = None
    interface_names: list[str] = field(default_factory=list)
    fields: list[FieldDescription] = field(default_factory=list)
    methods: list[MethodDescription] = field(default_factory=list)
    kind: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        if self.package_name:
            return f"{self.package_name}.{self.simple_name}"
        return self.simple_name
