"""
classlens - index, decompile and analyze the classes of Maven dependencies.
"""

from .errors import (
    ClassLensError,
    ExternalToolFailure,
    IndexMissing,
    LookupMiss,
    MalformedInputError,
)
from .javap import JavapParser, parse_method_signature, split_parameters
from .model import ClassDescription, FieldDescription, MethodDescription

__version__ = "0.1.0"
