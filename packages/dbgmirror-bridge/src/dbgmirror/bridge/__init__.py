"""dbgmirror.bridge -- the target side of the mirror layer.

This package defines the :class:`InspectionProvider` protocol through which
the mirror layer reads a suspended target, the named-field records a
provider returns, and :class:`HeapProvider`, a provider over an in-memory
:class:`Heap` that models a small dynamically typed target.

Example::

    from dbgmirror.bridge import Heap, HeapProvider

    heap = Heap()
    obj = heap.new_object(properties={"a": 1})
    provider = HeapProvider(heap)
    provider.property_detail(obj, "a").value   # -> 1
"""

from __future__ import annotations

from .heap import (
    Heap,
    HeapArray,
    HeapDate,
    HeapError,
    HeapFrame,
    HeapFunction,
    HeapObject,
    HeapProvider,
    HeapRegExp,
    Interceptor,
    Slot,
)
from .provider import InspectionProvider
from .script import Script, SourceLocation, SourceSlice
from .types import (
    UNDEFINED,
    FrameDetails,
    FrameVariable,
    InterceptorInfo,
    PropertyAttribute,
    PropertyDetails,
    PropertyKind,
    PropertyType,
    ScriptType,
    ValueKind,
)

__all__ = [
    # Provider
    "InspectionProvider",
    "HeapProvider",
    # Heap model
    "Heap",
    "HeapObject",
    "HeapArray",
    "HeapDate",
    "HeapFunction",
    "HeapRegExp",
    "HeapError",
    "HeapFrame",
    "Interceptor",
    "Slot",
    # Scripts
    "Script",
    "SourceLocation",
    "SourceSlice",
    # Types
    "UNDEFINED",
    "ValueKind",
    "PropertyKind",
    "PropertyType",
    "PropertyAttribute",
    "ScriptType",
    "InterceptorInfo",
    "PropertyDetails",
    "FrameVariable",
    "FrameDetails",
]
