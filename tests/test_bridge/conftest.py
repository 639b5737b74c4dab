"""Bridge test fixtures: small object graphs on the in-memory heap."""

from __future__ import annotations

import pytest

from dbgmirror.bridge import Interceptor


@pytest.fixture()
def point(heap):
    """An ``Object`` with two named properties."""
    return heap.new_object(properties={"x": 1, "y": 2})


@pytest.fixture()
def intercepted(heap):
    """An object with stored properties and both kinds of interceptor."""
    return heap.new_object(
        properties={"b": 1, "a": 2},
        elements={1: "one", 0: "zero"},
        named_interceptor=Interceptor(lambda: {"dyn": 3}),
        indexed_interceptor=Interceptor(lambda: {5: "five"}),
    )
