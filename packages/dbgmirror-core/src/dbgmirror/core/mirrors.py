"""Mirror variants for target values, properties and scripts.

A mirror is a read-only snapshot handle on something in the target.  Every
mirror carries a ``type`` tag (one of the twelve :class:`MirrorType` wire
discriminants); value mirrors additionally carry the provider's
:class:`~dbgmirror.bridge.types.ValueKind`, which separates arrays and dates
from plain objects.  The ``is_*`` predicates match on these tags.

Mirrors are never constructed directly by callers: use
:meth:`MirrorRegistry.make_mirror`, which deduplicates by value identity.
Property mirrors (and the frame mirrors in :mod:`dbgmirror.core.frame`) are
the exception: they are rebuilt on every request and have no handle.

Hierarchy::

    Mirror
      ValueMirror
        UndefinedMirror, NullMirror, BooleanMirror, NumberMirror, StringMirror
        ObjectMirror
          FunctionMirror
            UnresolvedFunctionMirror
          ArrayMirror, DateMirror, RegExpMirror, ErrorMirror
      PropertyMirror
      ScriptMirror
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from dbgmirror.bridge.script import SourceLocation, SourceSlice
from dbgmirror.bridge.types import (
    UNDEFINED,
    PropertyAttribute,
    PropertyDetails,
    PropertyKind,
    PropertyType,
    ScriptType,
    ValueKind,
)
from dbgmirror.core.json_format import date_to_iso8601, number_to_text

if TYPE_CHECKING:
    from dbgmirror.bridge.provider import InspectionProvider
    from dbgmirror.core.registry import MirrorRegistry

logger = logging.getLogger(__name__)


class MirrorType(str, Enum):
    """Wire discriminant of a mirror."""

    UNDEFINED = "undefined"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    FUNCTION = "function"
    REGEXP = "regexp"
    ERROR = "error"
    PROPERTY = "property"
    FRAME = "frame"
    SCRIPT = "script"


PRIMITIVE_TYPES = frozenset(
    {MirrorType.UNDEFINED, MirrorType.NULL, MirrorType.BOOLEAN, MirrorType.NUMBER, MirrorType.STRING}
)
OBJECT_TYPES = frozenset(
    {MirrorType.OBJECT, MirrorType.FUNCTION, MirrorType.REGEXP, MirrorType.ERROR}
)
VALUE_TYPES = PRIMITIVE_TYPES | OBJECT_TYPES

ERROR_PLACEHOLDER_TEXT = "#<an Error>"

_VOWEL_SOUNDS = frozenset("aeiou")
# Sounds for names starting with two capitals, which are read letter by letter.
_CAPITAL_VOWEL_SOUNDS = frozenset("aeiouhflmnrsxy")

_INDEX_NAME = re.compile(r"[0-9]+")


def instance_name(name: str) -> str:
    """Prefix *name* with its indefinite article: ``an Object``, ``a Foo``, ``an HTML``."""
    if not name:
        return ""
    first = name[0].lower()
    sounds = _VOWEL_SOUNDS
    if len(name) > 1 and first != name[0]:
        second = name[1].lower()
        if second != name[1]:
            sounds = _CAPITAL_VOWEL_SOUNDS
    return ("an " if first in sounds else "a ") + name


class Mirror:
    """Base class for all mirrors."""

    def __init__(
        self,
        registry: MirrorRegistry,
        mirror_type: MirrorType,
        kind: Optional[ValueKind] = None,
    ) -> None:
        self._registry = registry
        self._type = mirror_type
        self._kind = kind
        self._handle: Optional[int] = None

    def __repr__(self) -> str:
        handle = "-" if self._handle is None else self._handle
        return f"<{type(self).__name__} handle={handle} type={self._type.value}>"

    # -- tags --------------------------------------------------------------

    @property
    def type(self) -> MirrorType:
        return self._type

    @property
    def kind(self) -> Optional[ValueKind]:
        return self._kind

    @property
    def handle(self) -> Optional[int]:
        """Return the cache handle, or ``None`` for uncached mirrors."""
        return self._handle

    @property
    def registry(self) -> MirrorRegistry:
        return self._registry

    @property
    def _provider(self) -> InspectionProvider:
        return self._registry.provider

    # -- predicates --------------------------------------------------------

    def is_value(self) -> bool:
        return self._type in VALUE_TYPES

    def is_undefined(self) -> bool:
        return self._type is MirrorType.UNDEFINED

    def is_null(self) -> bool:
        return self._type is MirrorType.NULL

    def is_boolean(self) -> bool:
        return self._type is MirrorType.BOOLEAN

    def is_number(self) -> bool:
        return self._type is MirrorType.NUMBER

    def is_string(self) -> bool:
        return self._type is MirrorType.STRING

    def is_object(self) -> bool:
        return self._type in OBJECT_TYPES

    def is_function(self) -> bool:
        return self._type is MirrorType.FUNCTION

    def is_unresolved_function(self) -> bool:
        return False

    def is_array(self) -> bool:
        return self._kind is ValueKind.ARRAY

    def is_date(self) -> bool:
        return self._kind is ValueKind.DATE

    def is_regexp(self) -> bool:
        return self._type is MirrorType.REGEXP

    def is_error(self) -> bool:
        return self._type is MirrorType.ERROR

    def is_property(self) -> bool:
        return self._type is MirrorType.PROPERTY

    def is_frame(self) -> bool:
        return self._type is MirrorType.FRAME

    def is_script(self) -> bool:
        return self._type is MirrorType.SCRIPT

    # -- rendering ---------------------------------------------------------

    def to_text(self) -> str:
        return "#<" + instance_name(type(self).__name__) + ">"


class ValueMirror(Mirror):
    """A mirror over a target value.  Allocates its handle on construction."""

    def __init__(
        self,
        registry: MirrorRegistry,
        mirror_type: MirrorType,
        value: Any,
        kind: ValueKind,
    ) -> None:
        super().__init__(registry, mirror_type, kind)
        self._value = value
        self._handle = registry.allocate_handle()

    def value(self) -> Any:
        """Return the raw target value."""
        return self._value

    def is_primitive(self) -> bool:
        return self._type in PRIMITIVE_TYPES


class UndefinedMirror(ValueMirror):
    def __init__(self, registry: MirrorRegistry, value: Any = UNDEFINED) -> None:
        super().__init__(registry, MirrorType.UNDEFINED, value, ValueKind.UNDEFINED)

    def to_text(self) -> str:
        return "undefined"


class NullMirror(ValueMirror):
    def __init__(self, registry: MirrorRegistry, value: Any = None) -> None:
        super().__init__(registry, MirrorType.NULL, value, ValueKind.NULL)

    def to_text(self) -> str:
        return "null"


class BooleanMirror(ValueMirror):
    def __init__(self, registry: MirrorRegistry, value: bool) -> None:
        super().__init__(registry, MirrorType.BOOLEAN, value, ValueKind.BOOLEAN)

    def to_text(self) -> str:
        return "true" if self._value else "false"


class NumberMirror(ValueMirror):
    def __init__(self, registry: MirrorRegistry, value: Any) -> None:
        super().__init__(registry, MirrorType.NUMBER, value, ValueKind.NUMBER)

    def to_text(self) -> str:
        return number_to_text(self._value)


class StringMirror(ValueMirror):
    def __init__(self, registry: MirrorRegistry, value: str) -> None:
        super().__init__(registry, MirrorType.STRING, value, ValueKind.STRING)

    def length(self) -> int:
        return len(self._value)

    def to_text(self) -> str:
        limit = self._registry.config.protocol.max_string_length
        if self.length() > limit:
            return self._value[:limit] + "... (length: %d)" % self.length()
        return self._value


class ObjectMirror(ValueMirror):
    """Mirror over an object.  All accessors ask the provider on demand."""

    def __init__(
        self,
        registry: MirrorRegistry,
        value: Any,
        mirror_type: MirrorType = MirrorType.OBJECT,
        kind: ValueKind = ValueKind.OBJECT,
    ) -> None:
        super().__init__(registry, mirror_type, value, kind)

    # -- object facts ------------------------------------------------------

    def class_name(self) -> str:
        return self._provider.class_name_of(self._value)

    def constructor_function(self) -> Mirror:
        return self._registry.make_mirror(self._provider.constructor_of(self._value))

    def prototype_object(self) -> Mirror:
        return self._registry.make_mirror(self._provider.prototype_of(self._value))

    def proto_object(self) -> Mirror:
        return self._registry.make_mirror(self._provider.proto_of(self._value))

    def has_named_interceptor(self) -> bool:
        return self._provider.interceptor_flags(self._value).named

    def has_indexed_interceptor(self) -> bool:
        return self._provider.interceptor_flags(self._value).indexed

    def _get_value(self, name: str) -> Any:
        """Read *name* through the prototype chain without running accessors."""
        holder = self._value
        while holder is not None and holder is not UNDEFINED:
            details = self._provider.property_detail(holder, name)
            if details is not None:
                return details.value
            holder = self._provider.proto_of(holder)
        return UNDEFINED

    # -- properties --------------------------------------------------------

    def property_names(
        self, kind: PropertyKind = PropertyKind.ALL, limit: Optional[int] = None
    ) -> List[Any]:
        """Return property names: named, named-interceptor, indexed, indexed-interceptor.

        Args:
            kind: Which properties to include.  A zero kind means both.
            limit: Maximum number of names returned; ``None`` or 0 for all.
        """
        kind = PropertyKind(kind) or PropertyKind.ALL
        provider = self._provider
        names: List[Any] = []

        if kind & PropertyKind.NAMED:
            names.extend(provider.own_property_names(self._value, PropertyKind.NAMED))
            if self.has_named_interceptor():
                names.extend(provider.interceptor_property_names(self._value, PropertyKind.NAMED))

        if kind & PropertyKind.INDEXED:
            names.extend(provider.own_property_names(self._value, PropertyKind.INDEXED))
            if self.has_indexed_interceptor():
                names.extend(provider.interceptor_property_names(self._value, PropertyKind.INDEXED))

        if limit:
            names = names[:limit]
        return names

    def properties(
        self, kind: PropertyKind = PropertyKind.ALL, limit: Optional[int] = None
    ) -> List[Mirror]:
        return [self.property(name) for name in self.property_names(kind, limit)]

    def property(self, name: Any) -> Mirror:
        """Return the :class:`PropertyMirror` for *name*, or the undefined mirror."""
        details = self._provider.property_detail(self._value, str(name))
        if details is None:
            return self._registry.undefined_mirror()
        return PropertyMirror(self._registry, self, name, details)

    def lookup_property(self, value: Mirror) -> Mirror:
        """Find the first own property holding *value*.

        Accessor (callbacks) properties are skipped.  Raw values are compared,
        not mirrors.  Returns the undefined mirror when nothing matches.
        """
        from dbgmirror.core.registry import same_value

        target = value.value()
        for prop in self.properties():
            if not isinstance(prop, PropertyMirror):
                continue
            if prop.property_type == PropertyType.CALLBACKS:
                continue
            if same_value(prop.raw_value, target):
                return prop
        return self._registry.undefined_mirror()

    def referenced_by(self, max_objects: int = 0) -> List[Mirror]:
        """Return mirrors of the objects holding a direct reference to this one."""
        found = self._provider.references_to(self._value, max_objects)
        return [self._registry.make_mirror(obj) for obj in found]

    def to_text(self) -> str:
        name = None
        ctor = self.constructor_function()
        if ctor.is_function():
            name = ctor.name()
        if not name:
            name = self.class_name()
        return "#<" + instance_name(name) + ">"


class FunctionMirror(ObjectMirror):
    def __init__(self, registry: MirrorRegistry, value: Any) -> None:
        super().__init__(registry, value, MirrorType.FUNCTION, ValueKind.FUNCTION)

    @property
    def resolved(self) -> bool:
        """Whether the function object is known (unresolved ones come from frames)."""
        return True

    def name(self) -> str:
        return self._provider.function_name(self._value)

    def source(self) -> Optional[str]:
        return self._provider.function_source(self._value)

    def script(self) -> Optional[ScriptMirror]:
        script = self._provider.function_script(self._value)
        if script is None:
            return None
        return self._registry.make_mirror(script)

    def constructed_by(self, max_instances: int = 0) -> List[Mirror]:
        """Return mirrors of the objects this function constructed."""
        found = self._provider.constructed_instances_of(self._value, max_instances)
        return [self._registry.make_mirror(obj) for obj in found]

    def to_text(self) -> str:
        return self.source() or ""


class UnresolvedFunctionMirror(FunctionMirror):
    """A function known only by name.

    Gets a handle so it can be referenced from a serialized frame, but is
    never stored in the registry.
    """

    def __init__(self, registry: MirrorRegistry, name: str) -> None:
        super().__init__(registry, name)

    @property
    def resolved(self) -> bool:
        return False

    def is_unresolved_function(self) -> bool:
        return True

    def class_name(self) -> str:
        return "Function"

    def constructor_function(self) -> Mirror:
        return self._registry.undefined_mirror()

    def prototype_object(self) -> Mirror:
        return self._registry.undefined_mirror()

    def proto_object(self) -> Mirror:
        return self._registry.undefined_mirror()

    def has_named_interceptor(self) -> bool:
        return False

    def has_indexed_interceptor(self) -> bool:
        return False

    def property_names(
        self, kind: PropertyKind = PropertyKind.ALL, limit: Optional[int] = None
    ) -> List[Any]:
        return []

    def property(self, name: Any) -> Mirror:
        return self._registry.undefined_mirror()

    def referenced_by(self, max_objects: int = 0) -> List[Mirror]:
        return []

    def name(self) -> str:
        return self._value

    def source(self) -> Optional[str]:
        return None

    def script(self) -> Optional[ScriptMirror]:
        return None

    def constructed_by(self, max_instances: int = 0) -> List[Mirror]:
        return []

    def to_text(self) -> str:
        return self._value


class ArrayMirror(ObjectMirror):
    def __init__(self, registry: MirrorRegistry, value: Any) -> None:
        super().__init__(registry, value, MirrorType.OBJECT, ValueKind.ARRAY)

    def length(self) -> int:
        details = self._provider.property_detail(self._value, "length")
        return int(details.value) if details is not None else 0

    def indexed_properties_from_range(
        self, from_index: int = 0, to_index: Optional[int] = None
    ) -> List[Mirror]:
        """Return property mirrors for elements ``from_index..to_index`` inclusive.

        Holes come back as the undefined mirror.
        """
        if to_index is None:
            to_index = self.length() - 1
        result: List[Mirror] = []
        for index in range(from_index, to_index + 1):
            details = self._provider.property_detail(self._value, str(index))
            if details is None:
                result.append(self._registry.undefined_mirror())
            else:
                result.append(PropertyMirror(self._registry, self, index, details))
        return result


class DateMirror(ObjectMirror):
    def __init__(self, registry: MirrorRegistry, value: Any) -> None:
        super().__init__(registry, value, MirrorType.OBJECT, ValueKind.DATE)

    def date(self) -> Optional[datetime]:
        """Return the time held by the date, or ``None`` for an invalid date."""
        return self._provider.date_value(self._value)

    def to_text(self) -> str:
        return date_to_iso8601(self.date())


class RegExpMirror(ObjectMirror):
    def __init__(self, registry: MirrorRegistry, value: Any) -> None:
        super().__init__(registry, value, MirrorType.REGEXP, ValueKind.REGEXP)

    def source(self) -> Any:
        return self._get_value("source")

    def global_(self) -> bool:
        return bool(self._get_value("global"))

    def ignore_case(self) -> bool:
        return bool(self._get_value("ignoreCase"))

    def multiline(self) -> bool:
        return bool(self._get_value("multiline"))

    def to_text(self) -> str:
        return "/" + str(self.source()) + "/"


class ErrorMirror(ObjectMirror):
    def __init__(self, registry: MirrorRegistry, value: Any) -> None:
        super().__init__(registry, value, MirrorType.ERROR, ValueKind.ERROR)

    def message(self) -> Any:
        return self._get_value("message")

    def to_text(self) -> str:
        try:
            return self._provider.detail_string(self._value)
        except Exception:
            logger.debug("Could not render error object %d", self._handle, exc_info=True)
            return ERROR_PLACEHOLDER_TEXT


class PropertyMirror(Mirror):
    """One property of an object, built from the provider's details record."""

    def __init__(
        self,
        registry: MirrorRegistry,
        owner: ObjectMirror,
        name: Any,
        details: PropertyDetails,
    ) -> None:
        super().__init__(registry, MirrorType.PROPERTY)
        self._owner = owner
        self._name = name
        self._details = details

    @property
    def owner(self) -> ObjectMirror:
        return self._owner

    @property
    def name(self) -> Any:
        return self._name

    @property
    def raw_value(self) -> Any:
        return self._details.value

    @property
    def attributes(self) -> PropertyAttribute:
        return PropertyAttribute(self._details.attributes)

    @property
    def property_type(self) -> PropertyType:
        return PropertyType(self._details.property_type)

    @property
    def insertion_index(self) -> int:
        return self._details.insertion_index

    def value(self) -> Mirror:
        return self._registry.make_mirror(self._details.value)

    def is_read_only(self) -> bool:
        return bool(self.attributes & PropertyAttribute.READ_ONLY)

    def is_enum(self) -> bool:
        return not self.attributes & PropertyAttribute.DONT_ENUM

    def can_delete(self) -> bool:
        return not self.attributes & PropertyAttribute.DONT_DELETE

    def is_indexed(self) -> bool:
        return _INDEX_NAME.fullmatch(str(self._name)) is not None

    def is_exception(self) -> bool:
        return bool(self._details.exception)

    def has_getter(self) -> bool:
        return self._details.getter is not None

    def has_setter(self) -> bool:
        return self._details.setter is not None

    def getter(self) -> Mirror:
        if not self.has_getter():
            return self._registry.undefined_mirror()
        return self._registry.make_mirror(self._details.getter)

    def setter(self) -> Mirror:
        if not self.has_setter():
            return self._registry.undefined_mirror()
        return self._registry.make_mirror(self._details.setter)

    def is_native(self) -> bool:
        """Whether the property is implemented by the host rather than by script code."""
        if self.property_type == PropertyType.INTERCEPTOR:
            return True
        return (
            self.property_type == PropertyType.CALLBACKS
            and not self.has_getter()
            and not self.has_setter()
        )


class ScriptMirror(Mirror):
    """Mirror over a script descriptor.  Cached and handled like value mirrors."""

    def __init__(self, registry: MirrorRegistry, script: Any) -> None:
        super().__init__(registry, MirrorType.SCRIPT, ValueKind.SCRIPT)
        self._script = script
        self._handle = registry.allocate_handle()

    def value(self) -> Any:
        return self._script

    def name(self) -> Optional[str]:
        return self._script.name

    def id(self) -> int:
        return self._script.id

    def source(self) -> str:
        return self._script.source

    def line_offset(self) -> int:
        return self._script.line_offset

    def column_offset(self) -> int:
        return self._script.column_offset

    def script_type(self) -> ScriptType:
        return self._script.type

    def line_count(self) -> int:
        return self._script.line_count()

    def location_from_position(
        self, position: int, include_resource_offset: bool = False
    ) -> Optional[SourceLocation]:
        return self._script.location_from_position(position, include_resource_offset)

    def source_slice(
        self, from_line: Optional[int] = None, to_line: Optional[int] = None
    ) -> Optional[SourceSlice]:
        return self._script.source_slice(from_line, to_line)

    def to_text(self) -> str:
        if self.line_offset() > 0:
            first = self.line_offset()
            lines = "%d-%d" % (first, first + self.line_count() - 1)
        else:
            lines = str(self.line_count())
        return "%s (lines: %s)" % (self.name() or "[unnamed]", lines)
