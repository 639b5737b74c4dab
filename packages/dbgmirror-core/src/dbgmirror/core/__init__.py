"""dbgmirror.core -- handle-addressed mirrors and their JSON wire protocol.

Example::

    from dbgmirror.bridge import Heap, HeapProvider
    from dbgmirror.core import MirrorRegistry

    heap = Heap()
    obj = heap.new_object(properties={"a": 1, "b": heap.array([2, 3])})
    registry = MirrorRegistry(HeapProvider(heap))

    serializer = registry.make_serializer(details=True)
    message = serializer.serialize_value(registry.make_mirror(obj))
    references = serializer.serialize_referenced_objects()
"""

from __future__ import annotations

from dbgmirror.core.errors import MirrorError, PropertySerializationError, StaleSessionError
from dbgmirror.core.frame import FrameMirror, backtrace
from dbgmirror.core.mirrors import (
    ArrayMirror,
    BooleanMirror,
    DateMirror,
    ErrorMirror,
    FunctionMirror,
    Mirror,
    MirrorType,
    NullMirror,
    NumberMirror,
    ObjectMirror,
    PropertyMirror,
    RegExpMirror,
    ScriptMirror,
    StringMirror,
    UndefinedMirror,
    UnresolvedFunctionMirror,
    ValueMirror,
)
from dbgmirror.core.registry import MirrorRegistry, same_value
from dbgmirror.core.serializer import JSONProtocolSerializer
from dbgmirror.core.types.config import MirrorConfig, configure_logging, load_config

__all__ = [
    # Registry and serializer
    "MirrorRegistry",
    "JSONProtocolSerializer",
    "same_value",
    # Mirrors
    "Mirror",
    "MirrorType",
    "ValueMirror",
    "UndefinedMirror",
    "NullMirror",
    "BooleanMirror",
    "NumberMirror",
    "StringMirror",
    "ObjectMirror",
    "FunctionMirror",
    "UnresolvedFunctionMirror",
    "ArrayMirror",
    "DateMirror",
    "RegExpMirror",
    "ErrorMirror",
    "PropertyMirror",
    "ScriptMirror",
    "FrameMirror",
    "backtrace",
    # Errors
    "MirrorError",
    "StaleSessionError",
    "PropertySerializationError",
    # Config
    "MirrorConfig",
    "load_config",
    "configure_logging",
]
