"""Tests for class analysis, hierarchy walking and subclass search."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from classlens import analyzer as analyzer_module
from classlens.analyzer import ClassAnalyzer, JavapDisassembler
from classlens.config import ToolConfig
from classlens.errors import ExternalToolFailure, IndexMissing, LookupMiss


def javap_text(declaration, *methods):
    lines = [declaration, "{"]
    for method in methods:
        lines += [f"  {method}", "    descriptor: ()V", ""]
    lines += ["}", 'SourceFile: "X.java"']
    return "\n".join(lines)


CLASSES = {
    "com.example.Base": javap_text("public abstract class com.example.Base", "public abstract void run();"),
    "com.example.Middle": javap_text("public class com.example.Middle extends com.example.Base", "public void run();"),
    "com.example.Leaf": javap_text("public final class com.example.Leaf extends com.example.Middle"),
    "com.example.Other": javap_text("public class com.example.Other extends com.example.Middle"),
    "com.example.Orphan": javap_text("public class com.example.Orphan extends org.gone.Missing"),
    "com.example.Broken": "",
}


class FakeScanner:
    def __init__(self, classes):
        self.classes = classes

    def find_jar_for_class(self, class_name, project_path):
        return "/repo/demo.jar" if class_name in self.classes else None

    def get_all_class_names(self, project_path):
        return list(self.classes)


class FakeDisassembler:
    def __init__(self, classes):
        self.classes = classes
        self.calls = []

    def disassemble(self, class_name, jar_path):
        self.calls.append((class_name, jar_path))
        text = self.classes[class_name]
        if not text:
            raise ExternalToolFailure("javap", f"no output for {class_name}")
        return text


@pytest.fixture
def analyzer():
    return ClassAnalyzer(FakeScanner(CLASSES), FakeDisassembler(CLASSES), ToolConfig(max_workers=3))


class TestAnalyzeClass:
    def test_analyze(self, analyzer):
        description = analyzer.analyze_class("com.example.Middle", "/project")
        assert description.package_name == "com.example"
        assert description.simple_name == "Middle"
        assert description.superclass_name == "com.example.Base"
        assert [m.name for m in description.methods] == ["run"]
        assert analyzer.disassembler.calls == [("com.example.Middle", "/repo/demo.jar")]

    def test_not_indexed(self, analyzer):
        with pytest.raises(LookupMiss):
            analyzer.analyze_class("com.example.Nope", "/project")

    def test_tool_failure_propagates(self, analyzer):
        with pytest.raises(ExternalToolFailure):
            analyzer.analyze_class("com.example.Broken", "/project")

    def test_missing_index_propagates(self):
        class NoIndex(FakeScanner):
            def find_jar_for_class(self, class_name, project_path):
                raise IndexMissing("/project/.mcp-class-index.json")

        analyzer = ClassAnalyzer(NoIndex({}), FakeDisassembler({}), ToolConfig())
        with pytest.raises(IndexMissing):
            analyzer.analyze_class("com.example.Base", "/project")


class TestHierarchy:
    def test_root_first(self, analyzer):
        assert analyzer.get_inheritance_hierarchy("com.example.Leaf", "/project") == [
            "com.example.Base",
            "com.example.Middle",
            "com.example.Leaf",
        ]

    def test_unresolvable_ancestor_recorded(self, analyzer):
        assert analyzer.get_inheritance_hierarchy("com.example.Orphan", "/project") == [
            "org.gone.Missing",
            "com.example.Orphan",
        ]

    def test_cycle_stops(self):
        classes = {
            "a.A": javap_text("public class a.A extends a.B"),
            "a.B": javap_text("public class a.B extends a.A"),
        }
        analyzer = ClassAnalyzer(FakeScanner(classes), FakeDisassembler(classes), ToolConfig())
        assert analyzer.get_inheritance_hierarchy("a.A", "/project") == ["a.B", "a.A"]

    def test_start_class_must_resolve(self, analyzer):
        with pytest.raises(LookupMiss):
            analyzer.get_inheritance_hierarchy("com.example.Nope", "/project")


class TestSubclasses:
    def test_direct_subclasses_in_index_order(self, analyzer):
        assert analyzer.find_subclasses("com.example.Middle", "/project") == [
            "com.example.Leaf",
            "com.example.Other",
        ]

    def test_broken_class_does_not_stop_batch(self, analyzer):
        assert analyzer.find_subclasses("com.example.Base", "/project") == ["com.example.Middle"]
        assert ("com.example.Broken", "/repo/demo.jar") in analyzer.disassembler.calls

    def test_no_subclasses(self, analyzer):
        assert analyzer.find_subclasses("com.example.Leaf", "/project") == []


class TestJavapDisassembler:
    def test_command_line(self, monkeypatch):
        recorded = []

        def fake_run_tool(cmd, timeout, cwd=None):
            recorded.append((cmd, timeout))
            return "public class com.example.Foo\n"

        monkeypatch.setattr(analyzer_module, "run_tool", fake_run_tool)
        disassembler = JavapDisassembler(ToolConfig(java_home="/opt/jdk", javap_timeout=5.0))
        disassembler.disassemble("com.example.Foo", "/repo/demo.jar")

        cmd, timeout = recorded[0]
        assert cmd == [str(Path("/opt/jdk") / "bin" / "javap"), "-v", "-p", "-cp", "/repo/demo.jar", "com.example.Foo"]
        assert timeout == 5.0

    def test_public_only(self, monkeypatch):
        recorded = []
        monkeypatch.setattr(analyzer_module, "run_tool", lambda cmd, timeout, cwd=None: recorded.append(cmd) or "x")
        JavapDisassembler(ToolConfig(java_home="/opt/jdk", show_private=False)).disassemble("A", "a.jar")
        assert "-p" not in recorded[0]

    def test_empty_output(self, monkeypatch):
        monkeypatch.setattr(analyzer_module, "run_tool", lambda cmd, timeout, cwd=None: "\n")
        with pytest.raises(ExternalToolFailure):
            JavapDisassembler(ToolConfig(java_home="/opt/jdk")).disassemble("A", "a.jar")
