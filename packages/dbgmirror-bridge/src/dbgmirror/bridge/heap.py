"""An in-memory target heap and an inspection provider over it.

The heap models the value space of a small dynamically typed language:
``UNDEFINED``, ``None`` (null), booleans, numbers and strings are the
primitives; everything else is a :class:`HeapObject` with named properties,
indexed elements, an internal prototype link and optional interceptors.

Example::

    from dbgmirror.bridge import Heap, HeapProvider

    heap = Heap()
    point = heap.new_object(properties={"x": 1, "y": 2})
    heap.push_frame(heap.function("draw"), receiver=heap.global_object,
                    arguments=[("p", point)])
    break_id = heap.suspend()
    provider = HeapProvider(heap)
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .script import Script
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

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_HIDDEN = PropertyAttribute.DONT_ENUM
_FIXED = PropertyAttribute.READ_ONLY | PropertyAttribute.DONT_ENUM | PropertyAttribute.DONT_DELETE


def _as_index(name: Any) -> Optional[int]:
    """Return *name* as an element index, or ``None`` for a named property."""
    if isinstance(name, bool):
        return None
    if isinstance(name, int):
        return name if name >= 0 else None
    if isinstance(name, str) and name.isascii() and name.isdigit():
        return int(name)
    return None


@dataclass
class Slot:
    """Storage for a single property."""

    value: Any = UNDEFINED
    attributes: PropertyAttribute = PropertyAttribute.NONE
    property_type: PropertyType = PropertyType.NORMAL
    getter: Any = None
    setter: Any = None
    exception: bool = False


class Interceptor:
    """Supplies properties computed by the host instead of stored slots.

    *entries* is called every time the interceptor is consulted and returns
    a mapping of property name to value.
    """

    def __init__(self, entries: Callable[[], Mapping[Any, Any]]) -> None:
        self._entries = entries

    def names(self) -> List[Any]:
        return list(self._entries())

    def lookup(self, name: str) -> Tuple[bool, Any]:
        for key, value in self._entries().items():
            if str(key) == name:
                return True, value
        return False, UNDEFINED


class HeapObject:
    """A plain object in the target heap."""

    class_name = "Object"

    def __init__(
        self,
        proto: Any = None,
        properties: Optional[Mapping[str, Any]] = None,
        elements: Optional[Mapping[int, Any]] = None,
        named_interceptor: Optional[Interceptor] = None,
        indexed_interceptor: Optional[Interceptor] = None,
        class_name: Optional[str] = None,
    ) -> None:
        self.proto = proto
        self.properties: Dict[str, Slot] = {}
        self.elements: Dict[int, Slot] = {}
        self.named_interceptor = named_interceptor
        self.indexed_interceptor = indexed_interceptor
        self.constructed_by: Any = None
        if class_name is not None:
            self.class_name = class_name
        for name, value in (properties or {}).items():
            self.define(name, value)
        for index, value in (elements or {}).items():
            self.define(index, value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.class_name} at {id(self):#x}>"

    # -- slots -------------------------------------------------------------

    def define(
        self,
        name: Any,
        value: Any = UNDEFINED,
        attributes: PropertyAttribute = PropertyAttribute.NONE,
        property_type: PropertyType = PropertyType.NORMAL,
        getter: Any = None,
        setter: Any = None,
        exception: bool = False,
    ) -> HeapObject:
        """Define or replace an own property.  Returns ``self`` for chaining."""
        if (getter is not None or setter is not None) and property_type == PropertyType.NORMAL:
            property_type = PropertyType.CALLBACKS
        slot = Slot(value, attributes, property_type, getter, setter, exception)
        index = _as_index(name)
        if index is not None:
            self.elements[index] = slot
        else:
            self.properties[str(name)] = slot
        return self

    def own_slot(self, name: str) -> Optional[Slot]:
        index = _as_index(name)
        if index is not None:
            return self.elements.get(index)
        return self.properties.get(name)

    def own_named(self) -> List[str]:
        return list(self.properties)

    def own_indexes(self) -> List[int]:
        return sorted(self.elements)

    def insertion_index(self, name: str) -> int:
        for position, key in enumerate(self.properties):
            if key == name:
                return position
        return 0

    def get(self, name: str) -> Any:
        """Read a property through the prototype chain (no accessors run)."""
        holder: Any = self
        while isinstance(holder, HeapObject):
            slot = holder.own_slot(name)
            if slot is not None:
                return slot.value
            holder = holder.proto
        return UNDEFINED

    def referenced_values(self) -> Iterator[Any]:
        for slot in itertools.chain(self.properties.values(), self.elements.values()):
            yield slot.value
            if slot.getter is not None:
                yield slot.getter
            if slot.setter is not None:
                yield slot.setter


class HeapArray(HeapObject):
    class_name = "Array"

    def __init__(self, items: Sequence[Any] = (), proto: Any = None) -> None:
        super().__init__(proto=proto, elements=dict(enumerate(items)))

    def length(self) -> int:
        return max(self.elements) + 1 if self.elements else 0

    def own_slot(self, name: str) -> Optional[Slot]:
        if name == "length":
            return Slot(
                self.length(),
                PropertyAttribute.DONT_ENUM | PropertyAttribute.DONT_DELETE,
                PropertyType.CALLBACKS,
            )
        return super().own_slot(name)

    def own_named(self) -> List[str]:
        return ["length"] + super().own_named()


class HeapDate(HeapObject):
    class_name = "Date"

    def __init__(self, epoch_ms: float, proto: Any = None) -> None:
        super().__init__(proto=proto)
        self.epoch_ms = epoch_ms

    def as_datetime(self) -> Optional[datetime]:
        """Return the date as a UTC datetime, or ``None`` when it is invalid.

        NaN and epochs outside the range of :class:`datetime` are invalid.
        """
        if not math.isfinite(self.epoch_ms):
            return None
        try:
            return _EPOCH + timedelta(milliseconds=self.epoch_ms)
        except OverflowError:
            return None


class HeapFunction(HeapObject):
    class_name = "Function"

    def __init__(
        self,
        name: str = "",
        source: str = "",
        script: Optional[Script] = None,
        proto: Any = None,
    ) -> None:
        super().__init__(proto=proto)
        self.name = name
        self.source = source or f"function {name}() {{ [native code] }}"
        self.script = script


class HeapRegExp(HeapObject):
    class_name = "RegExp"

    def __init__(self, source: str, flags: str = "", proto: Any = None) -> None:
        super().__init__(proto=proto)
        self.define("source", source, _FIXED)
        self.define("global", "g" in flags, _FIXED)
        self.define("ignoreCase", "i" in flags, _FIXED)
        self.define("multiline", "m" in flags, _FIXED)
        self.define("lastIndex", 0, PropertyAttribute.DONT_ENUM | PropertyAttribute.DONT_DELETE)


class HeapError(HeapObject):
    class_name = "Error"

    def __init__(self, message: Any = UNDEFINED, proto: Any = None) -> None:
        super().__init__(proto=proto)
        if message is not UNDEFINED:
            self.define("message", message, _HIDDEN)


@dataclass
class HeapFrame:
    """One activation on the target's call stack."""

    function: Any
    receiver: Any = UNDEFINED
    arguments: Sequence[Tuple[Optional[str], Any]] = ()
    locals: Sequence[Tuple[str, Any]] = ()
    position: Optional[int] = None
    construct_call: bool = False
    debugger_frame: bool = False
    frame_id: int = 0

    def lookup(self, name: str) -> Tuple[bool, Any]:
        for local_name, value in self.locals:
            if local_name == name:
                return True, value
        for arg_name, value in self.arguments:
            if arg_name == name:
                return True, value
        if name == "this":
            return True, self.receiver
        return False, UNDEFINED


class Heap:
    """The state of a target: its objects, scripts, call stack and break session."""

    def __init__(self) -> None:
        self._objects: List[HeapObject] = []
        self._frames: List[HeapFrame] = []
        self._frame_ids = itertools.count(1)
        self._script_ids = itertools.count(1)
        self._break_counter = 0
        self._current_break: Optional[int] = None

        self.object_prototype = self._track(HeapObject())
        self.function_prototype = self._track(
            HeapFunction("", "function () {}", proto=self.object_prototype)
        )
        self.object_function = self.function(
            "Object", prototype=self.object_prototype, native=True
        )
        self.function_function = self.function(
            "Function", prototype=self.function_prototype, native=True
        )
        for func in (self.function_prototype, self.object_function, self.function_function):
            func.constructed_by = self.function_function
        self.array_prototype = self._track(HeapObject(proto=self.object_prototype, class_name="Array"))
        self.array_function = self.function("Array", prototype=self.array_prototype, native=True)
        self.date_prototype = self._track(HeapObject(proto=self.object_prototype, class_name="Date"))
        self.date_function = self.function("Date", prototype=self.date_prototype, native=True)
        self.regexp_prototype = self._track(HeapObject(proto=self.object_prototype, class_name="RegExp"))
        self.regexp_function = self.function("RegExp", prototype=self.regexp_prototype, native=True)
        self.error_prototype = self._track(HeapObject(proto=self.object_prototype, class_name="Error"))
        self.error_prototype.define("name", "Error", _HIDDEN)
        self.error_prototype.define("message", "", _HIDDEN)
        self.error_function = self.function("Error", prototype=self.error_prototype, native=True)
        self.global_object = self._track(HeapObject(proto=self.object_prototype, class_name="global"))

    def _track(self, obj: HeapObject) -> Any:
        self._objects.append(obj)
        return obj

    @property
    def objects(self) -> List[HeapObject]:
        return list(self._objects)

    # -- allocation --------------------------------------------------------

    def function(
        self,
        name: str = "",
        source: str = "",
        script: Optional[Script] = None,
        prototype: Optional[HeapObject] = None,
        native: bool = False,
    ) -> HeapFunction:
        """Allocate a function together with its ``prototype`` object."""
        func = self._track(
            HeapFunction(name, source, script, proto=getattr(self, "function_prototype", None))
        )
        func.constructed_by = getattr(self, "function_function", None)
        if prototype is None:
            prototype = self._track(HeapObject(proto=self.object_prototype))
        prototype.define("constructor", func, _HIDDEN)
        func.define("prototype", prototype, _FIXED if native else PropertyAttribute.DONT_DELETE)
        return func

    def new_object(
        self,
        ctor: Optional[HeapFunction] = None,
        properties: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> HeapObject:
        """Allocate an object as if by ``new ctor()`` (``Object`` by default)."""
        ctor = ctor or self.object_function
        proto = ctor.get("prototype")
        obj = self._track(HeapObject(proto=proto if isinstance(proto, HeapObject) else None,
                                     properties=properties, **kwargs))
        obj.constructed_by = ctor
        return obj

    def array(self, items: Sequence[Any] = ()) -> HeapArray:
        arr = self._track(HeapArray(items, proto=self.array_prototype))
        arr.constructed_by = self.array_function
        return arr

    def date(self, when: Any) -> HeapDate:
        """Allocate a date from epoch milliseconds or a :class:`datetime`."""
        if isinstance(when, datetime):
            if when.tzinfo is None:
                when = when.replace(tzinfo=timezone.utc)
            epoch_ms = (when - _EPOCH) / timedelta(milliseconds=1)
        else:
            epoch_ms = float(when)
        date = self._track(HeapDate(epoch_ms, proto=self.date_prototype))
        date.constructed_by = self.date_function
        return date

    def regexp(self, source: str, flags: str = "") -> HeapRegExp:
        regexp = self._track(HeapRegExp(source, flags, proto=self.regexp_prototype))
        regexp.constructed_by = self.regexp_function
        return regexp

    def error(self, message: Any = UNDEFINED, ctor: Optional[HeapFunction] = None) -> HeapError:
        ctor = ctor or self.error_function
        err = self._track(HeapError(message, proto=ctor.get("prototype")))
        err.constructed_by = ctor
        return err

    def script(
        self,
        name: Optional[str],
        source: str,
        line_offset: int = 0,
        column_offset: int = 0,
        script_type: ScriptType = ScriptType.NORMAL,
    ) -> Script:
        return Script(name, next(self._script_ids), source, line_offset, column_offset, script_type)

    # -- call stack --------------------------------------------------------

    @property
    def frames(self) -> List[HeapFrame]:
        """Return the call stack, innermost frame first."""
        return list(self._frames)

    def push_frame(
        self,
        function: Any,
        receiver: Any = UNDEFINED,
        arguments: Sequence[Tuple[Optional[str], Any]] = (),
        locals: Sequence[Tuple[str, Any]] = (),
        position: Optional[int] = None,
        construct_call: bool = False,
        debugger_frame: bool = False,
    ) -> HeapFrame:
        frame = HeapFrame(
            function,
            receiver,
            tuple(arguments),
            tuple(locals),
            position,
            construct_call,
            debugger_frame,
            next(self._frame_ids),
        )
        self._frames.insert(0, frame)
        return frame

    def pop_frame(self) -> HeapFrame:
        return self._frames.pop(0)

    # -- break sessions ----------------------------------------------------

    @property
    def current_break_id(self) -> Optional[int]:
        return self._current_break

    def suspend(self) -> int:
        """Stop the target and start a new break session.  Returns its id."""
        self._break_counter += 1
        self._current_break = self._break_counter
        return self._current_break

    def resume(self) -> None:
        self._current_break = None


Evaluator = Callable[[HeapFrame, str, bool], Any]


class HeapProvider:
    """:class:`~dbgmirror.bridge.provider.InspectionProvider` over a :class:`Heap`.

    Parameters
    ----------
    heap:
        The heap to inspect.
    evaluator:
        Called as ``evaluator(frame, source, disable_break)`` for in-frame
        evaluation.  Without one, *source* is looked up as a local, an
        argument or ``this``.
    """

    def __init__(self, heap: Heap, evaluator: Optional[Evaluator] = None) -> None:
        self.heap = heap
        self._evaluator = evaluator

    # -- values ------------------------------------------------------------

    def classify(self, value: Any) -> ValueKind:
        if value is UNDEFINED:
            return ValueKind.UNDEFINED
        if value is None:
            return ValueKind.NULL
        if isinstance(value, bool):
            return ValueKind.BOOLEAN
        if isinstance(value, (int, float)):
            return ValueKind.NUMBER
        if isinstance(value, str):
            return ValueKind.STRING
        if isinstance(value, HeapArray):
            return ValueKind.ARRAY
        if isinstance(value, HeapDate):
            return ValueKind.DATE
        if isinstance(value, HeapFunction):
            return ValueKind.FUNCTION
        if isinstance(value, HeapRegExp):
            return ValueKind.REGEXP
        if isinstance(value, HeapError):
            return ValueKind.ERROR
        if isinstance(value, Script):
            return ValueKind.SCRIPT
        if isinstance(value, HeapObject):
            return ValueKind.OBJECT
        raise TypeError(f"Not a heap value: {value!r}")

    def class_name_of(self, obj: HeapObject) -> str:
        return obj.class_name

    def constructor_of(self, obj: HeapObject) -> Any:
        return obj.get("constructor")

    def prototype_of(self, obj: HeapObject) -> Any:
        return obj.get("prototype")

    def proto_of(self, obj: HeapObject) -> Any:
        return obj.proto

    def date_value(self, obj: HeapDate) -> Optional[datetime]:
        return obj.as_datetime()

    def detail_string(self, value: Any) -> str:
        if isinstance(value, HeapObject):
            name = value.get("name")
            message = value.get("message")
            name = "Error" if name is UNDEFINED else str(name)
            if message is UNDEFINED or message == "":
                return name
            return f"{name}: {message}"
        return str(value)

    # -- properties --------------------------------------------------------

    def own_property_names(self, obj: HeapObject, kind: PropertyKind) -> List[Any]:
        names: List[Any] = []
        if kind & PropertyKind.NAMED:
            names.extend(obj.own_named())
        if kind & PropertyKind.INDEXED:
            names.extend(obj.own_indexes())
        return names

    def interceptor_flags(self, obj: HeapObject) -> InterceptorInfo:
        return InterceptorInfo(
            named=obj.named_interceptor is not None,
            indexed=obj.indexed_interceptor is not None,
        )

    def interceptor_property_names(self, obj: HeapObject, kind: PropertyKind) -> List[Any]:
        names: List[Any] = []
        if kind & PropertyKind.NAMED and obj.named_interceptor is not None:
            names.extend(obj.named_interceptor.names())
        if kind & PropertyKind.INDEXED and obj.indexed_interceptor is not None:
            names.extend(obj.indexed_interceptor.names())
        return names

    def property_detail(self, obj: HeapObject, name: str) -> Optional[PropertyDetails]:
        slot = obj.own_slot(name)
        if slot is not None:
            return PropertyDetails(
                value=slot.value,
                attributes=slot.attributes,
                property_type=slot.property_type,
                insertion_index=obj.insertion_index(name),
                exception=slot.exception,
                getter=slot.getter,
                setter=slot.setter,
            )

        if _as_index(name) is None:
            interceptor = obj.named_interceptor
        else:
            interceptor = obj.indexed_interceptor
        if interceptor is not None:
            found, value = interceptor.lookup(name)
            if found:
                return PropertyDetails(value=value, property_type=PropertyType.INTERCEPTOR)
        return None

    # -- functions ---------------------------------------------------------

    def function_name(self, func: HeapFunction) -> str:
        return func.name

    def function_source(self, func: HeapFunction) -> str:
        return func.source

    def function_script(self, func: HeapFunction) -> Optional[Script]:
        return func.script

    # -- heap queries ------------------------------------------------------

    def references_to(self, value: Any, max_count: int = 0) -> List[Any]:
        result: List[Any] = []
        for obj in self.heap.objects:
            if any(v is value for v in obj.referenced_values()):
                result.append(obj)
                if max_count and len(result) >= max_count:
                    break
        return result

    def constructed_instances_of(self, ctor: Any, max_count: int = 0) -> List[Any]:
        result: List[Any] = []
        for obj in self.heap.objects:
            if obj.constructed_by is ctor:
                result.append(obj)
                if max_count and len(result) >= max_count:
                    break
        return result

    # -- execution state ---------------------------------------------------

    def is_session_current(self, break_id: int) -> bool:
        current = self.heap.current_break_id
        return current is not None and current == break_id

    def frame_details(self, break_id: int, index: int) -> FrameDetails:
        if not self.is_session_current(break_id):
            raise RuntimeError(f"Break session {break_id} is not current")
        frames = self.heap.frames
        if not 0 <= index < len(frames):
            raise IndexError(f"Frame index {index} out of range (0..{len(frames) - 1})")
        frame = frames[index]
        return FrameDetails(
            frame_id=frame.frame_id,
            receiver=frame.receiver,
            function=frame.function,
            source_position=frame.position,
            construct_call=frame.construct_call,
            debugger_frame=frame.debugger_frame,
            arguments=tuple(FrameVariable(name, value) for name, value in frame.arguments),
            locals=tuple(FrameVariable(name, value) for name, value in frame.locals),
        )

    def evaluate_in_frame(
        self, break_id: int, frame_id: int, source: str, disable_break: bool
    ) -> Any:
        if not self.is_session_current(break_id):
            raise RuntimeError(f"Break session {break_id} is not current")
        for frame in self.heap.frames:
            if frame.frame_id == frame_id:
                break
        else:
            raise KeyError(f"No frame with id {frame_id}")

        if self._evaluator is not None:
            return self._evaluator(frame, source, disable_break)
        found, value = frame.lookup(source.strip())
        if not found:
            raise NameError(f"{source} is not defined")
        return value
