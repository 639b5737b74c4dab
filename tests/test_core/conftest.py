"""Core test fixtures: a suspended target with a small call stack."""

from __future__ import annotations

import pytest


@pytest.fixture()
def foo(heap, sample_script):
    """A user constructor ``Foo`` defined in app.js."""
    return heap.function("Foo", "function Foo(x) {\n  this.x = x;\n}", script=sample_script)


@pytest.fixture()
def klass(heap, sample_script):
    """A constructor whose prototype carries a ``bar`` method."""
    ctor = heap.function("Klass", "function Klass() {}", script=sample_script)
    bar = heap.function("bar", "function bar(a, b) {}", script=sample_script)
    ctor.get("prototype").define("bar", bar)
    return ctor


@pytest.fixture()
def stopped(heap, foo, klass):
    """Suspend the target inside ``new Foo(42)`` called from ``obj.bar(1, 2)``.

    Returns the break id.  Frame 0 is the constructor call, frame 1 the
    method call.
    """
    obj = heap.new_object(klass)
    heap.push_frame(
        klass.get("prototype").get("bar"),
        obj,
        arguments=[("a", 1), ("b", 2)],
        locals=[("tmp", "hi")],
        position=40,
    )
    heap.push_frame(
        foo,
        heap.new_object(foo),
        arguments=[("x", 42)],
        position=20,
        construct_call=True,
    )
    return heap.suspend()
