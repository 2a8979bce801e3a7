"""
Plain-text rendering of scan results, decompiled sources and class descriptions.
"""

from .model import ClassDescription, FieldDescription, MethodDescription
from .scanner import ScanResult

SAMPLE_LINES = 5

DEFAULT_SUGGESTIONS = (
    "Check that the tool arguments are correct",
    "Make sure the required preparation has been done",
    "See the server log for details",
)


def format_scan_result(result: ScanResult) -> str:
    lines = [
        "Dependency scan complete!",
        "",
        f"Jars scanned: {result.jar_count}",
        f"Classes indexed: {result.class_count}",
        f"Index file: {result.index_path}",
        "",
        "Sample index entries:",
    ]
    lines.extend(result.sample_entries[:SAMPLE_LINES])
    return "\n".join(lines)


def format_decompiled(class_name: str, source: str) -> str:
    if not source.strip():
        return (
            f"Warning: decompiling {class_name} produced no source; "
            f"the CFR tool or the class file may be at fault"
        )
    return f"Decompiled source of {class_name}:\n\n```java\n{source}\n```"


def _member_prefix(modifiers: list[str]) -> str:
    return " ".join(modifiers) + " " if modifiers else ""


def format_field(field: FieldDescription) -> str:
    return f"{_member_prefix(field.modifiers)}{field.type} {field.name}"


def format_method(method: MethodDescription, simple_name: str) -> str:
    params = ", ".join(method.parameters)
    if method.is_constructor:
        return f"{_member_prefix(method.modifiers)}{simple_name}({params})"
    return f"{_member_prefix(method.modifiers)}{method.return_type} {method.name}({params})"


def format_analysis(description: ClassDescription) -> str:
    """Summary of a class: header facts, then fields and methods in declaration order."""
    lines = [
        f"Analysis of {description.qualified_name}:",
        "",
        f"Package: {description.package_name}",
        f"Class: {description.simple_name}",
        f"Modifiers: {' '.join(description.modifiers)}",
        f"Superclass: {description.superclass_name or 'none'}",
        f"Interfaces: {', '.join(description.interface_names) or 'none'}",
        "",
    ]

    if description.fields:
        lines.append(f"Fields ({len(description.fields)}):")
        lines.extend(f"  - {format_field(f)}" for f in description.fields)
        lines.append("")

    if description.methods:
        lines.append(f"Methods ({len(description.methods)}):")
        lines.extend(f"  - {format_method(m, description.simple_name)}" for m in description.methods)
        lines.append("")

    return "\n".join(lines)


def format_tool_error(error: BaseException, suggestions=DEFAULT_SUGGESTIONS) -> str:
    lines = [f"Error: {error}", "", "Suggestions:"]
    lines.extend(f"{i}. {s}" for i, s in enumerate(suggestions, 1))
    return "\n".join(lines)
