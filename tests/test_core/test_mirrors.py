"""Tests for value, property and script mirrors."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from dbgmirror.bridge import Interceptor, PropertyKind, PropertyType, ScriptType
from dbgmirror.core import MirrorConfig, MirrorRegistry, MirrorType, PropertyMirror, UnresolvedFunctionMirror
from dbgmirror.core.mirrors import ERROR_PLACEHOLDER_TEXT, instance_name
from dbgmirror.core.types.config import ProtocolConfig


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Object", "an Object"),
        ("Array", "an Array"),
        ("Foo", "a Foo"),
        ("Date", "a Date"),
        ("HTML", "an HTML"),
        ("XMLDoc", "an XMLDoc"),
        ("BX", "a BX"),
        ("", ""),
    ],
)
def test_instance_name(name, expected):
    assert instance_name(name) == expected


class TestTags:
    def test_primitive_tags(self, registry):
        assert registry.make_mirror(None).type is MirrorType.NULL
        assert registry.make_mirror(True).is_boolean()
        assert registry.make_mirror(1.5).is_number()
        assert registry.make_mirror("s").is_primitive()
        assert registry.undefined_mirror().is_value()

    def test_object_tags(self, registry, heap):
        arr = registry.make_mirror(heap.array([1]))
        assert arr.type is MirrorType.OBJECT
        assert arr.is_array() and arr.is_object()
        assert not arr.is_primitive()
        assert registry.make_mirror(heap.function("f")).type is MirrorType.FUNCTION
        assert registry.make_mirror(heap.regexp("a")).is_regexp()
        assert registry.make_mirror(heap.error("e")).is_error()
        assert registry.make_mirror(heap.date(0)).is_date()

    def test_repr(self, registry):
        assert repr(registry.make_mirror(7)) == "<NumberMirror handle=0 type=number>"


class TestPrimitiveText:
    def test_literals(self, registry):
        assert registry.undefined_mirror().to_text() == "undefined"
        assert registry.make_mirror(None).to_text() == "null"
        assert registry.make_mirror(False).to_text() == "false"
        assert registry.make_mirror(1e21).to_text() == "1e+21"
        assert registry.make_mirror(float("nan")).to_text() == "NaN"

    def test_long_string_truncated(self, registry):
        mirror = registry.make_mirror("x" * 95)
        assert mirror.length() == 95
        assert mirror.to_text() == "x" * 80 + "... (length: 95)"

    def test_short_string_verbatim(self, registry):
        assert registry.make_mirror("x" * 80).to_text() == "x" * 80

    def test_truncation_follows_config(self, provider):
        registry = MirrorRegistry(provider, MirrorConfig(protocol=ProtocolConfig(max_string_length=3)))
        assert registry.make_mirror("abcdef").to_text() == "abc... (length: 6)"


class TestObjectMirror:
    def test_object_facts(self, registry, heap):
        mirror = registry.make_mirror(heap.new_object())
        assert mirror.class_name() == "Object"
        assert mirror.constructor_function().value() is heap.object_function
        assert mirror.proto_object().value() is heap.object_prototype
        assert mirror.prototype_object().is_undefined()
        assert mirror.to_text() == "#<an Object>"

    def test_user_constructor_text(self, registry, heap):
        foo = heap.function("Foo")
        assert registry.make_mirror(heap.new_object(foo)).to_text() == "#<a Foo>"

    def test_anonymous_constructor_uses_class_name(self, registry, heap):
        anon = heap.function("")
        assert registry.make_mirror(heap.new_object(anon)).to_text() == "#<an Object>"

    def test_interceptor_flags(self, registry, heap):
        obj = heap.new_object(named_interceptor=Interceptor(dict))
        mirror = registry.make_mirror(obj)
        assert mirror.has_named_interceptor()
        assert not mirror.has_indexed_interceptor()

    def test_referenced_by(self, registry, heap):
        target = heap.new_object()
        holder = heap.new_object(properties={"t": target})
        assert registry.make_mirror(target).referenced_by() == [registry.make_mirror(holder)]

    def test_referenced_by_limit(self, registry, heap):
        target = heap.new_object()
        for _ in range(3):
            heap.new_object(properties={"t": target})
        assert len(registry.make_mirror(target).referenced_by(max_objects=2)) == 2


class TestPropertyNames:
    @pytest.fixture()
    def mirror(self, registry, heap):
        obj = heap.new_object(
            properties={"b": 1, "a": 2},
            elements={1: "one", 0: "zero"},
            named_interceptor=Interceptor(lambda: {"dyn": 3}),
            indexed_interceptor=Interceptor(lambda: {5: "five"}),
        )
        return registry.make_mirror(obj)

    def test_order(self, mirror):
        assert mirror.property_names() == ["b", "a", "dyn", 0, 1, 5]

    def test_kind_filter(self, mirror):
        assert mirror.property_names(PropertyKind.NAMED) == ["b", "a", "dyn"]
        assert mirror.property_names(PropertyKind.INDEXED) == [0, 1, 5]
        assert mirror.property_names(PropertyKind(0)) == mirror.property_names()

    def test_limit(self, mirror):
        assert mirror.property_names(limit=2) == ["b", "a"]
        assert mirror.property_names(limit=0) == mirror.property_names()

    def test_properties(self, mirror):
        props = mirror.properties(PropertyKind.INDEXED)
        assert [p.value().value() for p in props] == ["zero", "one", "five"]

    def test_missing_property(self, mirror):
        assert mirror.property("nope").is_undefined()

    def test_interceptor_property(self, mirror):
        prop = mirror.property(5)
        assert prop.property_type == PropertyType.INTERCEPTOR
        assert prop.is_native()
        assert prop.is_indexed()


class TestPropertyMirror:
    def test_plain_property(self, registry, heap):
        prop = registry.make_mirror(heap.new_object(properties={"a": 1})).property("a")
        assert isinstance(prop, PropertyMirror)
        assert prop.type is MirrorType.PROPERTY
        assert prop.handle is None
        assert prop.value() is registry.make_mirror(1)
        assert prop.is_enum() and prop.can_delete() and not prop.is_read_only()
        assert not prop.is_indexed()
        assert not prop.is_native()
        assert not prop.is_exception()

    def test_array_length(self, registry, heap):
        prop = registry.make_mirror(heap.array([2, 3])).property("length")
        assert not prop.is_enum()
        assert not prop.can_delete()
        assert prop.property_type == PropertyType.CALLBACKS
        assert prop.is_native()
        assert prop.value().value() == 2

    def test_accessors(self, registry, heap):
        getter = heap.function("getZ")
        obj = heap.new_object()
        obj.define("z", getter=getter)
        prop = registry.make_mirror(obj).property("z")
        assert prop.has_getter() and not prop.has_setter()
        assert prop.getter() is registry.make_mirror(getter)
        assert prop.setter().is_undefined()
        assert not prop.is_native()

    def test_exception_property(self, registry, heap):
        err = heap.error("thrown")
        obj = heap.new_object()
        obj.define("bad", err, exception=True)
        prop = registry.make_mirror(obj).property("bad")
        assert prop.is_exception()
        assert prop.value().is_error()

    def test_insertion_index(self, registry, heap):
        mirror = registry.make_mirror(heap.new_object(properties={"a": 1, "b": 2}))
        assert mirror.property("b").insertion_index == 1


class TestLookupProperty:
    def test_finds_holder_name(self, registry, heap):
        func = heap.function("f")
        mirror = registry.make_mirror(heap.new_object(properties={"x": 1, "foo": func}))
        prop = mirror.lookup_property(registry.make_mirror(func))
        assert prop.name == "foo"

    def test_primitive_values_compare_by_value(self, registry, heap):
        mirror = registry.make_mirror(heap.new_object(properties={"n": 2}))
        assert mirror.lookup_property(registry.make_mirror(2.0)).name == "n"

    def test_skips_accessors(self, registry, heap):
        func = heap.function("f")
        obj = heap.new_object()
        obj.define("acc", func, getter=func)
        mirror = registry.make_mirror(obj)
        assert mirror.lookup_property(registry.make_mirror(func)).is_undefined()


class TestFunctionMirror:
    def test_resolved_function(self, registry, heap, sample_script):
        func = heap.function("f", "function f() {}", script=sample_script)
        mirror = registry.make_mirror(func)
        assert mirror.resolved
        assert mirror.name() == "f"
        assert mirror.source() == "function f() {}"
        assert mirror.to_text() == "function f() {}"
        assert mirror.script().value() is sample_script
        assert mirror.script() is mirror.script()
        assert mirror.class_name() == "Function"

    def test_constructed_by(self, registry, heap):
        foo = heap.function("Foo")
        first = heap.new_object(foo)
        heap.new_object(foo)
        mirror = registry.make_mirror(foo)
        assert len(mirror.constructed_by()) == 2
        assert mirror.constructed_by(max_instances=1) == [registry.make_mirror(first)]

    def test_unresolved_function(self, registry):
        mirror = UnresolvedFunctionMirror(registry, "lost")
        assert not mirror.resolved
        assert mirror.is_unresolved_function() and mirror.is_function()
        assert mirror.name() == "lost"
        assert mirror.to_text() == "lost"
        assert mirror.class_name() == "Function"
        assert mirror.source() is None
        assert mirror.script() is None
        assert mirror.property_names() == []
        assert mirror.property("x").is_undefined()
        assert mirror.constructor_function().is_undefined()
        assert mirror.constructed_by() == []


class TestArrayMirror:
    def test_length(self, registry, heap):
        assert registry.make_mirror(heap.array([2, 3])).length() == 2
        assert registry.make_mirror(heap.array()).length() == 0

    def test_range_with_holes(self, registry, heap):
        arr = heap.array([2, 3])
        arr.define(4, 9)
        props = registry.make_mirror(arr).indexed_properties_from_range()
        assert len(props) == 5
        assert [p.value().value() for p in props if p.is_property()] == [2, 3, 9]
        assert props[2].is_undefined() and props[3].is_undefined()

    def test_partial_range(self, registry, heap):
        props = registry.make_mirror(heap.array(["a", "b", "c"])).indexed_properties_from_range(1, 2)
        assert [p.name for p in props] == [1, 2]


class TestOtherObjects:
    def test_date(self, registry, heap):
        when = datetime(2023, 1, 2, 3, 4, 5, 6000, tzinfo=timezone.utc)
        mirror = registry.make_mirror(heap.date(when))
        assert mirror.date() == when
        assert mirror.to_text() == "2023-01-02T03:04:05.006Z"
        assert mirror.class_name() == "Date"

    def test_invalid_date(self, registry, heap):
        mirror = registry.make_mirror(heap.date(float("nan")))
        assert mirror.date() is None
        assert mirror.to_text() == "Invalid Date"

    def test_out_of_range_date(self, registry, heap):
        mirror = registry.make_mirror(heap.date(1e20))
        assert mirror.date() is None
        assert mirror.to_text() == "Invalid Date"

    def test_regexp(self, registry, heap):
        mirror = registry.make_mirror(heap.regexp("a+b", "gi"))
        assert mirror.source() == "a+b"
        assert mirror.global_() and mirror.ignore_case()
        assert not mirror.multiline()
        assert mirror.to_text() == "/a+b/"

    def test_error(self, registry, heap):
        mirror = registry.make_mirror(heap.error("boom"))
        assert mirror.message() == "boom"
        assert mirror.to_text() == "Error: boom"

    def test_error_inherits_message(self, registry, heap):
        mirror = registry.make_mirror(heap.error())
        assert mirror.message() == ""
        assert mirror.to_text() == "Error"

    def test_error_text_failure(self, registry, heap, provider, monkeypatch):
        monkeypatch.setattr(provider, "detail_string", MagicMock(side_effect=RuntimeError("x")))
        assert registry.make_mirror(heap.error("boom")).to_text() == ERROR_PLACEHOLDER_TEXT


class TestScriptMirror:
    def test_accessors(self, registry, sample_script):
        mirror = registry.make_mirror(sample_script)
        assert mirror.is_script() and not mirror.is_value()
        assert mirror.handle == 0
        assert mirror.name() == "app.js"
        assert mirror.id() == sample_script.id
        assert mirror.line_count() == 4
        assert mirror.script_type() == ScriptType.NORMAL
        assert mirror.source_slice(3, 4).source_text() == "obj.bar(1, 2);\n"
        assert mirror.location_from_position(20).line == 1

    def test_text(self, registry, heap, sample_script):
        assert registry.make_mirror(sample_script).to_text() == "app.js (lines: 4)"
        offset = heap.script("lib.js", "a\nb\n", line_offset=10)
        assert registry.make_mirror(offset).to_text() == "lib.js (lines: 10-11)"
        unnamed = heap.script(None, "a")
        assert registry.make_mirror(unnamed).to_text() == "[unnamed] (lines: 1)"
