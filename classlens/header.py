"""
Class declaration line parser using Lark.

javap prints the class header on a single line. The grammar in header.lark
understands modifiers, the declaration kind, the qualified name, type
parameters and the extends/implements/permits clauses, including nested
generic arguments, so bounds such as <T extends Number> never leak into
the superclass.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import NamedTuple, Optional

from lark import Lark, Transformer, v_args


GRAMMAR_FILE = Path(__file__).parent / "header.lark"

CLASS_MODIFIERS = ("public", "private", "protected", "static", "final", "abstract", "strictfp")

INTERFACE_KINDS = ("interface", "@interface")


class TypeRef(NamedTuple):
    """A type as written in the header: erased name plus full text."""
    name: str
    text: str


@dataclass
class ClassHeader:
    """Parsed class declaration line."""
    kind: str
    qualified_name: str
    modifiers: list[str] = field(default_factory=list)
    type_parameters: str = ""
    extends: list[TypeRef] = field(default_factory=list)
    implements: list[TypeRef] = field(default_factory=list)
    permits: list[TypeRef] = field(default_factory=list)

    @property
    def is_interface(self) -> bool:
        return self.kind in INTERFACE_KINDS

    @property
    def superclass(self) -> Optional[str]:
        """Direct superclass name without generic arguments; None for interfaces."""
        if self.is_interface or not self.extends:
            return None
        return self.extends[0].name

    @property
    def interfaces(self) -> list[str]:
        """Implemented interfaces, or extended ones when this is an interface."""
        refs = self.extends if self.is_interface else self.implements
        return [ref.text for ref in refs]


@v_args(inline=True)
class HeaderTransformer(Transformer):
    """Transforms the Lark parse tree into a ClassHeader."""

    def modifier(self, token):
        return ("modifier", str(token))

    def kind(self, token):
        return ("kind", str(token))

    def qualified_name(self, *idents):
        return ("name", ".".join(str(i) for i in idents))

    def type_parameter(self, ident, *bounds):
        if not bounds:
            return str(ident)
        return f"{ident} extends {' & '.join(b.text for b in bounds)}"

    def type_parameters(self, *params):
        return ("type_parameters", "<" + ", ".join(params) + ">")

    def segment(self, ident, arguments=""):
        return (str(ident), arguments)

    def type_ref(self, *parts):
        segments = [p for p in parts if isinstance(p, tuple)]
        arrays = "".join(str(p) for p in parts if not isinstance(p, tuple))
        name = ".".join(s[0] for s in segments)
        text = ".".join(s[0] + s[1] for s in segments) + arrays
        return TypeRef(name + arrays, text)

    def type_arguments(self, *arguments):
        texts = [a.text if isinstance(a, TypeRef) else a for a in arguments]
        return "<" + ", ".join(texts) + ">"

    def unbounded(self):
        return "?"

    def upper_bounded(self, bound):
        return f"? extends {bound.text}"

    def lower_bounded(self, bound):
        return f"? super {bound.text}"

    def type_list(self, *refs):
        return list(refs)

    def extends_clause(self, refs):
        return ("extends", refs)

    def implements_clause(self, refs):
        return ("implements", refs)

    def permits_clause(self, refs):
        return ("permits", refs)

    def start(self, *items):
        header = ClassHeader(kind="class", qualified_name="")
        for tag, value in items:
            if tag == "modifier":
                # Only the fixed class vocabulary is kept, each once
                if value in CLASS_MODIFIERS and value not in header.modifiers:
                    header.modifiers.append(value)
            elif tag == "kind":
                header.kind = value
            elif tag == "name":
                header.qualified_name = value
            elif tag == "type_parameters":
                header.type_parameters = value
            elif tag == "extends":
                header.extends = value
            elif tag == "implements":
                header.implements = value
            elif tag == "permits":
                header.permits = value
        return header


@lru_cache(maxsize=1)
def _build_lark() -> Lark:
    with open(GRAMMAR_FILE, "r") as f:
        grammar = f.read()
    return Lark(grammar, parser="earley", maybe_placeholders=False)


class HeaderParser:
    """Parses one javap class declaration line."""

    def __init__(self):
        self._parser = _build_lark()
        self._transformer = HeaderTransformer()

    def parse(self, line: str) -> ClassHeader:
        """Parse a declaration line. Raises lark.exceptions.LarkError if it does not fit."""
        tree = self._parser.parse(line.strip())
        return self._transformer.transform(tree)
