"""Tests for the in-memory heap and HeapProvider."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from dbgmirror.bridge import (
    UNDEFINED,
    InspectionProvider,
    PropertyAttribute,
    PropertyKind,
    PropertyType,
    ValueKind,
)


def test_provider_satisfies_protocol(provider):
    assert isinstance(provider, InspectionProvider)


class TestClassify:
    @pytest.mark.parametrize(
        "value, kind",
        [
            (UNDEFINED, ValueKind.UNDEFINED),
            (None, ValueKind.NULL),
            (True, ValueKind.BOOLEAN),
            (1, ValueKind.NUMBER),
            (1.5, ValueKind.NUMBER),
            (float("nan"), ValueKind.NUMBER),
            ("text", ValueKind.STRING),
        ],
    )
    def test_primitives(self, provider, value, kind):
        assert provider.classify(value) is kind

    def test_objects(self, heap, provider, sample_script):
        assert provider.classify(heap.new_object()) is ValueKind.OBJECT
        assert provider.classify(heap.array([1])) is ValueKind.ARRAY
        assert provider.classify(heap.date(0)) is ValueKind.DATE
        assert provider.classify(heap.function("f")) is ValueKind.FUNCTION
        assert provider.classify(heap.regexp("a+")) is ValueKind.REGEXP
        assert provider.classify(heap.error("boom")) is ValueKind.ERROR
        assert provider.classify(sample_script) is ValueKind.SCRIPT
        assert provider.classify(heap.global_object) is ValueKind.OBJECT

    def test_foreign_value(self, provider):
        with pytest.raises(TypeError, match="Not a heap value"):
            provider.classify(object())


class TestObjectFacts:
    def test_constructor_and_prototypes(self, heap, provider, point):
        assert provider.constructor_of(point) is heap.object_function
        assert provider.proto_of(point) is heap.object_prototype
        assert provider.prototype_of(point) is UNDEFINED
        assert provider.prototype_of(heap.object_function) is heap.object_prototype

    def test_user_constructor(self, heap, provider):
        foo = heap.function("Foo", "function Foo() {}")
        instance = heap.new_object(foo)
        assert provider.constructor_of(instance) is foo
        assert provider.proto_of(instance) is foo.get("prototype")

    def test_class_names(self, heap, provider, point):
        assert provider.class_name_of(point) == "Object"
        assert provider.class_name_of(heap.array()) == "Array"
        assert provider.class_name_of(heap.global_object) == "global"

    def test_date_value(self, heap, provider):
        assert provider.date_value(heap.date(0)) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_date_from_datetime(self, heap, provider):
        when = datetime(2023, 1, 2, 3, 4, 5, 6000, tzinfo=timezone.utc)
        assert provider.date_value(heap.date(when)) == when

    def test_invalid_date_value(self, heap, provider):
        assert provider.date_value(heap.date(float("nan"))) is None
        assert provider.date_value(heap.date(float("inf"))) is None
        assert provider.date_value(heap.date(-1e18)) is None

    def test_detail_string(self, heap, provider):
        assert provider.detail_string(heap.error("boom")) == "Error: boom"
        assert provider.detail_string(heap.error()) == "Error"

    def test_native_function_source(self, heap, provider):
        func = heap.function("f")
        assert provider.function_name(func) == "f"
        assert provider.function_source(func) == "function f() { [native code] }"
        assert provider.function_script(func) is None
        assert func.get("prototype").get("constructor") is func


class TestProperties:
    def test_own_names_named_then_indexed(self, provider, intercepted):
        assert provider.own_property_names(intercepted, PropertyKind.ALL) == ["b", "a", 0, 1]
        assert provider.own_property_names(intercepted, PropertyKind.INDEXED) == [0, 1]

    def test_interceptor_names(self, provider, intercepted, point):
        assert provider.interceptor_property_names(intercepted, PropertyKind.NAMED) == ["dyn"]
        assert provider.interceptor_property_names(intercepted, PropertyKind.INDEXED) == [5]
        flags = provider.interceptor_flags(intercepted)
        assert flags.named and flags.indexed
        assert not provider.interceptor_flags(point).named

    def test_stored_property(self, provider, point):
        details = provider.property_detail(point, "y")
        assert details.value == 2
        assert details.insertion_index == 1
        assert details.property_type == PropertyType.NORMAL

    def test_intercepted_property(self, provider, intercepted):
        assert provider.property_detail(intercepted, "dyn").property_type == PropertyType.INTERCEPTOR
        assert provider.property_detail(intercepted, "5").value == "five"
        assert provider.property_detail(intercepted, "missing") is None

    def test_array_length(self, heap, provider):
        arr = heap.array([2, 3])
        assert provider.own_property_names(arr, PropertyKind.NAMED) == ["length"]
        details = provider.property_detail(arr, "length")
        assert details.value == 2
        assert details.attributes == PropertyAttribute.DONT_ENUM | PropertyAttribute.DONT_DELETE
        assert details.property_type == PropertyType.CALLBACKS

    def test_accessor_property(self, heap, provider, point):
        getter = heap.function("getZ")
        point.define("z", getter=getter)
        details = provider.property_detail(point, "z")
        assert details.property_type == PropertyType.CALLBACKS
        assert details.getter is getter
        assert details.setter is None

    def test_regexp_flags(self, heap, provider):
        regexp = heap.regexp("a+b", "gi")
        assert provider.property_detail(regexp, "source").value == "a+b"
        assert provider.property_detail(regexp, "global").value is True
        assert provider.property_detail(regexp, "multiline").value is False


class TestHeapQueries:
    def test_references_to(self, heap, provider):
        target = heap.new_object()
        holder = heap.new_object(properties={"t": target})
        assert provider.references_to(target) == [holder]

    def test_references_include_accessors(self, heap, provider, point):
        getter = heap.function("getZ")
        point.define("z", getter=getter)
        assert point in provider.references_to(getter)

    def test_constructed_instances(self, heap, provider):
        foo = heap.function("Foo")
        first = heap.new_object(foo)
        second = heap.new_object(foo)
        assert provider.constructed_instances_of(foo) == [first, second]
        assert provider.constructed_instances_of(foo, max_count=1) == [first]


class TestExecutionState:
    def test_sessions(self, heap, provider):
        assert not provider.is_session_current(1)
        break_id = heap.suspend()
        assert provider.is_session_current(break_id)
        heap.resume()
        assert not provider.is_session_current(break_id)
        assert heap.suspend() != break_id

    def test_frame_details_innermost_first(self, heap, provider):
        outer = heap.function("outer")
        inner = heap.function("inner")
        heap.push_frame(outer, heap.global_object)
        heap.push_frame(inner, heap.global_object, arguments=[("a", 1)], position=3)
        break_id = heap.suspend()

        details = provider.frame_details(break_id, 0)
        assert details.function is inner
        assert details.argument_count == 1
        assert details.source_position == 3
        assert provider.frame_details(break_id, 1).function is outer

    def test_frame_details_errors(self, heap, provider):
        heap.push_frame(heap.function("f"))
        break_id = heap.suspend()
        with pytest.raises(IndexError):
            provider.frame_details(break_id, 1)
        heap.resume()
        with pytest.raises(RuntimeError):
            provider.frame_details(break_id, 0)

    def test_pop_frame(self, heap):
        frame = heap.push_frame(heap.function("f"))
        assert heap.pop_frame() is frame
        assert heap.frames == []

    def test_evaluate_by_name(self, heap, provider):
        frame = heap.push_frame(
            heap.function("f"), heap.global_object, arguments=[("a", 1)], locals=[("b", "two")]
        )
        break_id = heap.suspend()
        assert provider.evaluate_in_frame(break_id, frame.frame_id, "a", False) == 1
        assert provider.evaluate_in_frame(break_id, frame.frame_id, " b ", False) == "two"
        assert provider.evaluate_in_frame(break_id, frame.frame_id, "this", False) is heap.global_object
        with pytest.raises(NameError, match="nope is not defined"):
            provider.evaluate_in_frame(break_id, frame.frame_id, "nope", False)
        with pytest.raises(KeyError):
            provider.evaluate_in_frame(break_id, frame.frame_id + 100, "a", False)

    def test_custom_evaluator(self, heap):
        from dbgmirror.bridge import HeapProvider

        evaluator = MagicMock(return_value=42)
        provider = HeapProvider(heap, evaluator=evaluator)
        frame = heap.push_frame(heap.function("f"))
        break_id = heap.suspend()

        assert provider.evaluate_in_frame(break_id, frame.frame_id, "6 * 7", True) == 42
        evaluator.assert_called_once_with(frame, "6 * 7", True)
