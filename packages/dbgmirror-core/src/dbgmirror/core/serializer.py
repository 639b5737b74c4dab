"""Two-pass JSON protocol serialization of mirrors.

A response to the client is made of two messages.  The first is the
requested mirror, where every mirror it points at is written as a
``{"ref":<handle>}`` stub and queued.  The second,
:meth:`JSONProtocolSerializer.serialize_referenced_objects`, carries the full
bodies of the queued mirrors.  Graphs of any shape are therefore cut at one
level of reference per exchange; the client follows handles in later
requests.

Example::

    serializer = registry.make_serializer(details=True)
    body = serializer.serialize_value(registry.make_mirror(obj))
    refs = serializer.serialize_referenced_objects()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from dbgmirror.bridge.types import PropertyAttribute, PropertyKind, PropertyType
from dbgmirror.core.errors import PropertySerializationError
from dbgmirror.core.json_format import (
    array_to_json_array,
    array_to_json_object,
    boolean_to_json,
    date_to_json,
    make_json_pair,
    number_to_json,
    string_to_json,
)
from dbgmirror.core.mirrors import OBJECT_TYPES, Mirror, MirrorType, PropertyMirror

if TYPE_CHECKING:
    from dbgmirror.core.frame import FrameMirror
    from dbgmirror.core.mirrors import ObjectMirror
    from dbgmirror.core.registry import MirrorRegistry

logger = logging.getLogger(__name__)


class JSONProtocolSerializer:
    """Serializes mirrors and collects the mirrors they reference.

    Args:
        registry: The registry the serialized mirrors belong to.
        details: Whether the values of an object's properties are queued
            for the reference pass when the object body is written.
    """

    def __init__(self, registry: MirrorRegistry, details: bool = True):
        self._registry = registry
        self.details = details
        self._mirrors: List[Mirror] = []
        self._emitted = 0

    @property
    def referenced(self) -> List[Mirror]:
        """Every mirror queued so far, in queue order."""
        return list(self._mirrors)

    @property
    def pending(self) -> List[Mirror]:
        """Queued mirrors whose bodies have not been emitted yet."""
        return self._mirrors[self._emitted:]

    # -- public API --------------------------------------------------------

    def serialize_reference(self, mirror: Mirror) -> str:
        """Return a reference to *mirror*, queueing it for the reference pass.

        Only value and script mirrors can be referenced; frames are written
        in full.
        """
        return self._serialize(mirror, reference=True, details=self.details)

    def serialize_value(self, mirror: Mirror) -> str:
        """Return the full body of *mirror*; mirrors it points at are queued."""
        return self._serialize(mirror, reference=False, details=self.details)

    def serialize_referenced_objects(self) -> str:
        """Return a JSON array with the body of every mirror queued so far.

        Mirrors queued while these bodies are written are kept for the next
        call.  No mirror is ever emitted twice by one serializer.
        """
        count = len(self._mirrors)
        content = [
            self._serialize(mirror, reference=False, details=False)
            for mirror in self._mirrors[self._emitted:count]
        ]
        logger.debug("Emitting %d referenced mirrors", count - self._emitted)
        self._emitted = count
        return array_to_json_array(content)

    # -- internals ---------------------------------------------------------

    def _add(self, mirror: Mirror) -> None:
        for queued in self._mirrors:
            if queued is mirror:
                return
        logger.debug("Queueing mirror %d for the reference pass", mirror.handle)
        self._mirrors.append(mirror)

    def _serialize(self, mirror: Mirror, reference: bool, details: bool) -> str:
        has_handle = mirror.is_value() or mirror.is_script()
        if reference and has_handle:
            self._add(mirror)
            return '{"ref":' + number_to_json(mirror.handle) + "}"

        content: List[str] = []
        if has_handle:
            content.append(make_json_pair("handle", number_to_json(mirror.handle)))
        content.append(make_json_pair("type", string_to_json(mirror.type.value)))

        mirror_type = mirror.type
        if mirror_type is MirrorType.BOOLEAN:
            content.append(make_json_pair("value", boolean_to_json(mirror.value())))
        elif mirror_type is MirrorType.NUMBER:
            content.append(make_json_pair("value", number_to_json(mirror.value())))
        elif mirror_type is MirrorType.STRING:
            self._serialize_string(mirror, content)
        elif mirror_type in OBJECT_TYPES:
            self._serialize_object(mirror, content, details)
        elif mirror_type is MirrorType.PROPERTY:
            raise PropertySerializationError(
                "PropertyMirror cannot be serialized independently"
            )
        elif mirror_type is MirrorType.FRAME:
            self._serialize_frame(mirror, content)
        elif mirror_type is MirrorType.SCRIPT:
            self._serialize_script(mirror, content)

        content.append(make_json_pair("text", string_to_json(mirror.to_text())))
        return array_to_json_object(content)

    def _serialize_string(self, mirror: Mirror, content: List[str]) -> None:
        limit = self._registry.config.protocol.max_string_length
        value = mirror.value()
        if mirror.length() > limit:
            content.append(make_json_pair("value", string_to_json(value[:limit])))
            content.append(make_json_pair("fromIndex", number_to_json(0)))
            content.append(make_json_pair("toIndex", number_to_json(limit)))
        else:
            content.append(make_json_pair("value", string_to_json(value)))
        content.append(make_json_pair("length", number_to_json(mirror.length())))

    def _serialize_script(self, mirror: Mirror, content: List[str]) -> None:
        if mirror.name():
            content.append(make_json_pair("name", string_to_json(mirror.name())))
        content.append(make_json_pair("id", number_to_json(mirror.id())))
        content.append(make_json_pair("lineOffset", number_to_json(mirror.line_offset())))
        content.append(make_json_pair("columnOffset", number_to_json(mirror.column_offset())))
        content.append(make_json_pair("lineCount", number_to_json(mirror.line_count())))
        content.append(make_json_pair("scriptType", number_to_json(mirror.script_type())))

    def _serialize_object(self, mirror: ObjectMirror, content: List[str], details: bool) -> None:
        """Write the object body::

            "className":"<class name>",
            "constructorFunction":{"ref":<handle>},
            "protoObject":{"ref":<handle>},
            "prototypeObject":{"ref":<handle>},
            "namedInterceptor":true,       (only when set)
            "indexedInterceptor":true,     (only when set)
            "name":..., "resolved":..., "source":..., "script":{"ref":..}  (functions)
            "value":"<ISO-8601>"           (dates)
            "properties":[<properties>]
        """
        content.append(make_json_pair("className", string_to_json(mirror.class_name())))
        content.append(
            make_json_pair("constructorFunction", self.serialize_reference(mirror.constructor_function()))
        )
        content.append(make_json_pair("protoObject", self.serialize_reference(mirror.proto_object())))
        content.append(
            make_json_pair("prototypeObject", self.serialize_reference(mirror.prototype_object()))
        )

        if mirror.has_named_interceptor():
            content.append(make_json_pair("namedInterceptor", boolean_to_json(True)))
        if mirror.has_indexed_interceptor():
            content.append(make_json_pair("indexedInterceptor", boolean_to_json(True)))

        if mirror.is_function():
            content.append(make_json_pair("name", string_to_json(mirror.name() or "")))
            content.append(make_json_pair("resolved", boolean_to_json(mirror.resolved)))
            if mirror.resolved:
                content.append(make_json_pair("source", string_to_json(mirror.source() or "")))
            script = mirror.script()
            if script is not None:
                content.append(make_json_pair("script", self.serialize_reference(script)))

        if mirror.is_date():
            content.append(make_json_pair("value", date_to_json(mirror.date())))

        properties: List[str] = []
        for kind in (PropertyKind.NAMED, PropertyKind.INDEXED):
            for name in mirror.property_names(kind):
                prop = mirror.property(name)
                if not isinstance(prop, PropertyMirror):
                    logger.debug("Property %r vanished while serializing", name)
                    continue
                properties.append(self._serialize_property(prop))
                if details:
                    self._add(prop.value())
        content.append(make_json_pair("properties", array_to_json_array(properties)))

    def _serialize_property(self, prop: PropertyMirror) -> str:
        """Write one entry of an object's property list.

        Attributes are left out when there are none and the property type
        when it is ``NORMAL``::

            {"name":"hello","ref":1}
            {"name":"length","attributes":6,"propertyType":3,"ref":2}
        """
        content = [make_json_pair("name", string_to_json(str(prop.name)))]
        if prop.attributes != PropertyAttribute.NONE:
            content.append(make_json_pair("attributes", number_to_json(prop.attributes)))
        if prop.property_type != PropertyType.NORMAL:
            content.append(make_json_pair("propertyType", number_to_json(prop.property_type)))
        content.append(make_json_pair("ref", number_to_json(prop.value().handle)))
        return array_to_json_object(content)

    def _serialize_frame(self, mirror: FrameMirror, content: List[str]) -> None:
        content.append(make_json_pair("index", number_to_json(mirror.index)))
        content.append(make_json_pair("receiver", self.serialize_reference(mirror.receiver())))
        func = mirror.func()
        content.append(make_json_pair("func", self.serialize_reference(func)))
        script = func.script()
        if script is not None:
            content.append(make_json_pair("script", self.serialize_reference(script)))
        content.append(make_json_pair("constructCall", boolean_to_json(mirror.is_construct_call())))
        content.append(make_json_pair("debuggerFrame", boolean_to_json(mirror.is_debugger_frame())))

        arguments = []
        for i in range(mirror.argument_count()):
            arg = []
            name = mirror.argument_name(i)
            if name:
                arg.append(make_json_pair("name", string_to_json(name)))
            arg.append(make_json_pair("value", self.serialize_reference(mirror.argument_value(i))))
            arguments.append(array_to_json_object(arg))
        content.append(make_json_pair("arguments", array_to_json_array(arguments)))

        local_vars = []
        for i in range(mirror.local_count()):
            local_vars.append(
                array_to_json_object(
                    [
                        make_json_pair("name", string_to_json(mirror.local_name(i) or "")),
                        make_json_pair("value", self.serialize_reference(mirror.local_value(i))),
                    ]
                )
            )
        content.append(make_json_pair("locals", array_to_json_array(local_vars)))

        position = mirror.source_position()
        content.append(
            make_json_pair("position", "null" if position is None else number_to_json(position))
        )
        location = mirror.source_location()
        if location is not None:
            content.append(make_json_pair("line", number_to_json(location.line)))
            content.append(make_json_pair("column", number_to_json(location.column)))
            content.append(make_json_pair("sourceLineText", string_to_json(location.source_text())))
