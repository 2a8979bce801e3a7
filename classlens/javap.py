"""
Structural parser for `javap -v` output.

The text is read once, top to bottom. A small state machine tracks whether
the current line belongs to a method body or to a method's
LocalVariableTable, and every method is finalized ("flushed") exactly once,
on whichever boundary comes first: the end of its variable table, the next
member, the closing brace of the class, the SourceFile trailer or the end of
the input.

Parameter names are not part of a method's signature line; they are only
available in the LocalVariableTable debug attribute, which mixes parameters
with locals. Parameters always occupy the first slots (after the receiver,
for instance methods), so a row is attributed to a parameter only when its
slot falls inside that prefix.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from lark.exceptions import LarkError

from .errors import MalformedInputError
from .header import HeaderParser
from .model import (
    CONSTRUCTOR_NAME, ClassDescription, FieldDescription, MethodDescription,
)

logger = logging.getLogger(__name__)


METHOD_MODIFIERS = (
    "public", "private", "protected", "static",
    "final", "abstract", "synchronized", "native",
)
FIELD_MODIFIERS = (
    "public", "private", "protected", "static",
    "final", "transient", "volatile",
)
# Printed on some method lines but not part of the method vocabulary
SKIPPED_METHOD_KEYWORDS = ("default", "strictfp")

VARIABLE_TABLE_HEADER = "LocalVariableTable:"
SOURCE_FILE_TRAILER = "SourceFile:"
DESCRIPTOR_PREFIX = "descriptor:"
WIDE_TYPES = ("long", "double")

DECLARATION_RE = re.compile(
    r"^(?:(?:public|private|protected|static|final|abstract|strictfp|sealed|non-sealed)\s+)*"
    r"(?:class|interface|enum|record|@interface)\s+[A-Za-z_$]"
)
SWITCH_OPEN_RE = re.compile(r"^\d+:\s+(?:tableswitch|lookupswitch)\s*\{")
VARIABLE_ROW_RE = re.compile(r"^(\d+)\s+(\d+)\s+(\d+)\s+([\w$]+)\s+(.+)$")
ARGS_SIZE_RE = re.compile(r"\bargs_size=(\d+)")
IDENTIFIER_RE = re.compile(r"[A-Za-z_$][\w$]*")
QUALIFIED_NAME_RE = re.compile(r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*")


class ParserState(Enum):
    OUTSIDE_METHOD = auto()
    IN_METHOD_BODY = auto()
    IN_VARIABLE_TABLE = auto()


def split_parameters(raw: str) -> list[str]:
    """Split a parameter list on top-level commas.

    Commas nested inside <...> belong to a generic type and do not split, so
    "java.util.Map<K, V>, int" yields two parameters. Fragments are trimmed
    and empty ones dropped.
    """
    params = []
    current = []
    depth = 0

    for char in raw:
        if char == "<":
            depth += 1
        elif char == ">":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            params.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    params.append("".join(current).strip())
    return [p for p in params if p]


def split_declared_name(fragment: str) -> tuple[str, Optional[str]]:
    """Split "Type name" into (type, name); (fragment, None) when no name is present."""
    depth = 0
    split_at = -1
    for i, char in enumerate(fragment):
        if char == "<":
            depth += 1
        elif char == ">":
            depth = max(depth - 1, 0)
        elif char.isspace() and depth == 0:
            split_at = i

    if split_at < 0:
        return fragment, None
    type_text = fragment[:split_at].strip()
    name = fragment[split_at + 1:].strip()
    if not type_text or not IDENTIFIER_RE.fullmatch(name):
        return fragment, None
    return type_text, name


def _strip_modifiers(text: str, vocabulary: tuple, skipped: tuple = ()) -> tuple[list[str], str]:
    """Consume leading modifier words in order of appearance."""
    modifiers = []
    start = 0
    while True:
        for word in vocabulary + skipped:
            if text.startswith(word + " ", start):
                if word in vocabulary and word not in modifiers:
                    modifiers.append(word)
                start += len(word) + 1
                break
        else:
            break
    return modifiers, text[start:]


def parse_method_signature(line: str) -> Optional[MethodDescription]:
    """Parse a javap method line into a MethodDescription.

    Parameters are returned as the raw fragments of the parameter list.
    Returns None when the line is not a usable signature.
    """
    modifiers, rest = _strip_modifiers(line.strip(), METHOD_MODIFIERS, SKIPPED_METHOD_KEYWORDS)

    open_paren = rest.find("(")
    if open_paren == -1:
        return None
    close_paren = rest.find(")", open_paren)
    if close_paren == -1:
        return None

    head = rest[:open_paren].strip()
    if not head:
        return None

    return_type, _, name = head.rpartition(" ")
    return_type = return_type.strip()
    if not return_type:
        # javap prints constructors as "<modifiers> com.example.Foo(...)"
        if not QUALIFIED_NAME_RE.fullmatch(name):
            return None
        name, return_type = CONSTRUCTOR_NAME, "void"
    elif not IDENTIFIER_RE.fullmatch(name):
        return None

    return MethodDescription(
        name=name,
        return_type=return_type,
        modifiers=modifiers,
        parameters=split_parameters(rest[open_paren + 1:close_paren]),
    )


def parse_field_line(line: str) -> Optional[FieldDescription]:
    """Parse a javap field line such as "private final java.lang.String name;"."""
    text = line.strip()
    if not text.endswith(";") or any(c in text for c in "(){}=#"):
        return None

    modifiers, rest = _strip_modifiers(text[:-1].strip(), FIELD_MODIFIERS)
    type_text, _, name = rest.rpartition(" ")
    type_text = type_text.strip()
    if not type_text or not IDENTIFIER_RE.fullmatch(name):
        return None
    if not (type_text[0].isalpha() or type_text[0] in "_$"):
        return None
    return FieldDescription(name=name, type=type_text, modifiers=modifiers)


def _slot_width(type_text: str) -> int:
    return 2 if type_text in WIDE_TYPES else 1


@dataclass
class _MethodAccumulator:
    """The method currently being read and what is known about its parameters."""
    method: MethodDescription
    types: list[str]
    declared_names: list[Optional[str]]
    rows: list[tuple[int, str]] = field(default_factory=list)
    args_size: Optional[int] = None
    flushed: bool = False

    @classmethod
    def start(cls, method: MethodDescription) -> "_MethodAccumulator":
        types = []
        names = []
        for fragment in method.parameters:
            type_text, name = split_declared_name(fragment)
            types.append(type_text)
            names.append(name)
        # Bare types until the flush names them
        method.parameters = list(types)
        return cls(method=method, types=types, declared_names=names)

    def receiver_slots(self) -> int:
        """Slots taken ahead of the printed parameters.

        That is `this` for instance methods plus any synthetic leading
        parameters a generic signature leaves out, such as the outer
        instance of an inner-class constructor or the name and ordinal of
        an enum constructor. javap counts each of them once in args_size
        and each fills a single slot.
        """
        if "static" in self.method.modifiers:
            return 0
        if self.args_size is not None:
            return max(self.args_size - len(self.types), 0)
        return 1 if (0, "this") in self.rows else 0

    def record(self, slot: int, name: str):
        self.rows.append((slot, name))

    def flush(self):
        """Name every parameter from the table, its declaration or its position."""
        if self.flushed:
            return
        self.flushed = True

        count = len(self.types)
        pending: list[Optional[str]] = [None] * count
        positions = {}
        slot = self.receiver_slots()
        for j, type_text in enumerate(self.types):
            positions[slot] = j
            slot += _slot_width(type_text)

        for row_slot, name in self.rows:
            j = positions.get(row_slot)
            # Slots past the parameters belong to locals
            if j is not None and j < count:
                pending[j] = name

        for j, type_text in enumerate(self.types):
            name = pending[j] or self.declared_names[j] or f"param{j + 1}"
            self.method.parameters[j] = f"{type_text} {name}"
        self.rows.clear()


class _ParseRun:
    """State of one parse() call."""

    def __init__(self, header_parser: HeaderParser, class_name: str):
        self.headers = header_parser
        self.result = ClassDescription(simple_name=class_name.rsplit(".", 1)[-1])
        self.state = ParserState.OUTSIDE_METHOD
        self.current: Optional[_MethodAccumulator] = None
        self.body_opened = False
        self.open_switches = 0

    def end_method(self):
        if self.current is not None:
            self.current.flush()
        self.current = None
        self.open_switches = 0
        self.state = ParserState.OUTSIDE_METHOD

    def feed(self, line: str, next_line: Optional[str]) -> bool:
        """Consume one stripped line. Returns False once the class body has closed."""
        if self.state is ParserState.IN_VARIABLE_TABLE:
            if self._table_line(line):
                return True

        if DECLARATION_RE.match(line):
            self._declaration(line)
            if line.endswith("{"):
                self.body_opened = True
            return True

        if line == "{":
            self.body_opened = True
            return True

        if self._looks_like_method(line, next_line):
            method = parse_method_signature(line)
            if method is None:
                logger.debug("Skipping unparseable method line: %s", line)
                return True
            self.end_method()
            self.current = _MethodAccumulator.start(method)
            self.result.methods.append(method)
            self.state = ParserState.IN_METHOD_BODY
            return True

        if line == VARIABLE_TABLE_HEADER:
            if self.current is not None and not self.current.flushed:
                self.state = ParserState.IN_VARIABLE_TABLE
            return True

        if self.current is not None and line.startswith("stack="):
            match = ARGS_SIZE_RE.search(line)
            if match:
                self.current.args_size = int(match.group(1))
            return True

        if self.current is not None and SWITCH_OPEN_RE.match(line):
            self.open_switches += 1
            return True

        if line.startswith("static {"):
            self.end_method()
            return True

        if self._looks_like_field(line, next_line):
            field_desc = parse_field_line(line)
            if field_desc is not None:
                self.end_method()
                self.result.fields.append(field_desc)
            return True

        if line.startswith("}"):
            # Closes a tableswitch or lookupswitch inside Code:
            if self.open_switches:
                self.open_switches -= 1
                return True
            self.end_method()
            return not self.body_opened

        if line.startswith(SOURCE_FILE_TRAILER):
            self.end_method()
        return True

    def _table_line(self, line: str) -> bool:
        """Handle a line inside a LocalVariableTable. False means the table has ended."""
        if not line:
            self.current.flush()
            self.state = ParserState.IN_METHOD_BODY
            return True
        if line.startswith(("Start", "Slot")):
            return True
        match = VARIABLE_ROW_RE.match(line)
        if match:
            self.current.record(int(match.group(3)), match.group(4))
            return True
        # Next attribute header, e.g. LocalVariableTypeTable:
        self.state = ParserState.IN_METHOD_BODY
        return False

    def _declaration(self, line: str):
        try:
            header = self.headers.parse(line)
        except LarkError as e:
            logger.debug("Unparseable class declaration %r: %s", line, e)
            return

        result = self.result
        result.kind = header.kind
        result.modifiers = list(header.modifiers)
        package, _, simple = header.qualified_name.rpartition(".")
        if package:
            result.package_name = package
            result.simple_name = simple
        elif not result.simple_name:
            result.simple_name = simple
        result.superclass_name = header.superclass
        result.interface_names = header.interfaces

    @staticmethod
    def _looks_like_method(line: str, next_line: Optional[str]) -> bool:
        open_paren = line.find("(")
        if open_paren == -1 or line.find(")", open_paren) == -1:
            return False
        first_word = line.split(" ", 1)[0]
        if first_word in METHOD_MODIFIERS or first_word in SKIPPED_METHOD_KEYWORDS:
            return True
        # Package-private members carry no modifier; javap follows them with a descriptor
        return line.endswith(";") and next_line is not None and next_line.startswith(DESCRIPTOR_PREFIX)

    @staticmethod
    def _looks_like_field(line: str, next_line: Optional[str]) -> bool:
        if not line.endswith(";") or "(" in line:
            return False
        first_word = line.split(" ", 1)[0]
        if first_word in FIELD_MODIFIERS:
            return True
        return next_line is not None and next_line.startswith(DESCRIPTOR_PREFIX)


def _next_content_lines(lines: list[str]) -> list[Optional[str]]:
    """For each stripped line, the next non-blank line after it."""
    following: list[Optional[str]] = [None] * len(lines)
    upcoming = None
    for index in range(len(lines) - 1, -1, -1):
        following[index] = upcoming
        if lines[index]:
            upcoming = lines[index]
    return following


class JavapParser:
    """Builds a ClassDescription from `javap -v` text."""

    def __init__(self):
        self._headers = HeaderParser()

    def parse(self, text: str, class_name: str) -> ClassDescription:
        """Parse disassembly text for a single top-level class.

        A missing or unreadable declaration leaves the declaration fields at
        their defaults; only empty input is rejected.
        """
        if text is None or not text.strip():
            raise MalformedInputError(f"Empty disassembly text for {class_name}")

        lines = [line.strip() for line in text.splitlines()]
        following = _next_content_lines(lines)
        run = _ParseRun(self._headers, class_name or "")
        for line, next_line in zip(lines, following):
            if not run.feed(line, next_line):
                break
        run.end_method()

        if not run.result.simple_name:
            raise MalformedInputError("Disassembly text names no class and no class name was given")
        return run.result

    def parse_file(self, path: str, class_name: str) -> ClassDescription:
        """Parse saved javap output from a file."""
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
        return self.parse(text, class_name)
