"""Tests for the class declaration grammar."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from lark.exceptions import LarkError

from classlens.header import HeaderParser


@pytest.fixture
def parser():
    return HeaderParser()


class TestHeaderParsing:
    def test_simple_class(self, parser):
        header = parser.parse("public class Foo extends Bar implements Baz, Qux {")
        assert header.kind == "class"
        assert header.qualified_name == "Foo"
        assert header.modifiers == ["public"]
        assert header.superclass == "Bar"
        assert header.interfaces == ["Baz", "Qux"]

    def test_no_extends(self, parser):
        header = parser.parse("final class com.example.Util")
        assert header.modifiers == ["final"]
        assert header.superclass is None
        assert header.interfaces == []

    def test_type_parameters_kept_apart(self, parser):
        header = parser.parse(
            "public class com.example.Cache<K extends java.lang.Comparable<K>, V> "
            "extends java.util.AbstractMap<K, V>"
        )
        assert header.type_parameters == "<K extends java.lang.Comparable<K>, V>"
        assert header.superclass == "java.util.AbstractMap"
        assert header.extends[0].text == "java.util.AbstractMap<K, V>"

    def test_wildcards(self, parser):
        header = parser.parse(
            "public interface com.example.Sink extends java.util.function.Consumer<? super java.lang.Number>"
        )
        assert header.superclass is None
        assert header.interfaces == ["java.util.function.Consumer<? super java.lang.Number>"]

    def test_sealed_modifier_outside_vocabulary(self, parser):
        header = parser.parse("public abstract sealed class com.example.Node permits com.example.Leaf, com.example.Branch")
        assert header.modifiers == ["public", "abstract"]
        assert [ref.name for ref in header.permits] == ["com.example.Leaf", "com.example.Branch"]

    def test_annotation_type(self, parser):
        header = parser.parse("public interface com.example.Marker extends java.lang.annotation.Annotation")
        assert header.is_interface
        assert header.interfaces == ["java.lang.annotation.Annotation"]

    def test_rejects_broken_line(self, parser):
        with pytest.raises(LarkError):
            parser.parse("public class Foo extends")
