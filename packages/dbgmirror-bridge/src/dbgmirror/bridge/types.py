"""Bridge-level types for the inspection provider.

Provides enums and dataclasses that map target runtime concepts (value
kinds, property details, stack frame records) to clean Python types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Any, Optional, Tuple


class _Undefined:
    """The target's ``undefined`` value.

    A single instance exists (:data:`UNDEFINED`); ``None`` is the target's
    ``null``.
    """

    _instance: Optional[_Undefined] = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class ValueKind(Enum):
    """Dynamic kind of a target value, as reported by ``classify``."""

    UNDEFINED = "undefined"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    DATE = "date"
    FUNCTION = "function"
    REGEXP = "regexp"
    ERROR = "error"
    SCRIPT = "script"
    OBJECT = "object"


class PropertyKind(IntFlag):
    """Selects named and/or indexed properties when enumerating."""

    NAMED = 1
    INDEXED = 2
    ALL = NAMED | INDEXED


class PropertyType(IntEnum):
    """How a property is stored on its holder."""

    NORMAL = 0
    FIELD = 1
    CONSTANT_FUNCTION = 2
    CALLBACKS = 3
    INTERCEPTOR = 4
    MAP_TRANSITION = 5
    CONSTANT_TRANSITION = 6
    NULL_DESCRIPTOR = 7


class PropertyAttribute(IntFlag):
    """Attribute bits of a property."""

    NONE = 0
    READ_ONLY = 1
    DONT_ENUM = 2
    DONT_DELETE = 4


class ScriptType(IntEnum):
    """Origin of a script."""

    NATIVE = 0
    EXTENSION = 1
    NORMAL = 2


@dataclass(frozen=True)
class InterceptorInfo:
    """Which interceptors an object declares."""

    named: bool = False
    indexed: bool = False


@dataclass(frozen=True)
class PropertyDetails:
    """Everything the provider knows about one property of an object.

    ``getter`` and ``setter`` hold the raw accessor functions when the
    property was defined with accessors; ``exception`` is set when reading
    the property raised inside the target and ``value`` is the thrown value.
    """

    value: Any
    attributes: PropertyAttribute = PropertyAttribute.NONE
    property_type: PropertyType = PropertyType.NORMAL
    insertion_index: int = 0
    exception: bool = False
    getter: Any = None
    setter: Any = None


@dataclass(frozen=True)
class FrameVariable:
    """A named argument or local captured from a stack frame."""

    name: Optional[str]
    value: Any


@dataclass(frozen=True)
class FrameDetails:
    """Fixed-shape description of one stack frame.

    ``function`` is either the function value itself or, when the function
    could not be resolved, its name as a plain string.
    """

    frame_id: int
    receiver: Any
    function: Any
    source_position: Optional[int] = None
    construct_call: bool = False
    debugger_frame: bool = False
    arguments: Tuple[FrameVariable, ...] = field(default_factory=tuple)
    locals: Tuple[FrameVariable, ...] = field(default_factory=tuple)

    @property
    def argument_count(self) -> int:
        return len(self.arguments)

    @property
    def local_count(self) -> int:
        return len(self.locals)
