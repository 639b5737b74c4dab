"""Mirror over a stack frame of the suspended target."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from dbgmirror.bridge.script import SourceLocation
from dbgmirror.bridge.types import FrameDetails, ValueKind
from dbgmirror.core.errors import StaleSessionError
from dbgmirror.core.mirrors import (
    FunctionMirror,
    Mirror,
    MirrorType,
    UnresolvedFunctionMirror,
)

if TYPE_CHECKING:
    from dbgmirror.core.registry import MirrorRegistry

logger = logging.getLogger(__name__)


class FrameMirror(Mirror):
    """Mirror of frame *index* (0 is the innermost) of break session *break_id*.

    The frame details are fetched once, on construction.  They only describe
    the target while it stays suspended, so every accessor checks that
    *break_id* is still the current break session and raises
    :class:`StaleSessionError` otherwise.

    Frame mirrors are not cached and have no handle.
    """

    def __init__(self, registry: MirrorRegistry, break_id: int, index: int) -> None:
        super().__init__(registry, MirrorType.FRAME)
        self._break_id = break_id
        self._index = index
        self._unresolved: Optional[UnresolvedFunctionMirror] = None
        self._check_session()
        self._details: FrameDetails = self._provider.frame_details(break_id, index)
        logger.debug(
            "Fetched details for frame %d of break %d (%d args, %d locals)",
            index,
            break_id,
            self._details.argument_count,
            self._details.local_count,
        )

    def _check_session(self) -> None:
        if not self._provider.is_session_current(self._break_id):
            logger.warning("Frame %d used after break %d ended", self._index, self._break_id)
            raise StaleSessionError(self._break_id)

    @property
    def details(self) -> FrameDetails:
        self._check_session()
        return self._details

    # -- scalar properties -------------------------------------------------

    @property
    def break_id(self) -> int:
        self._check_session()
        return self._break_id

    @property
    def index(self) -> int:
        self._check_session()
        return self._index

    @property
    def frame_id(self) -> int:
        return self.details.frame_id

    def func(self) -> FunctionMirror:
        """Return the function of this frame.

        The provider hands back a bare name when the function object is not
        known; that becomes an :class:`UnresolvedFunctionMirror`, which is
        never cached in the registry but is reused by this frame.
        """
        func = self.details.function
        if self._provider.classify(func) is ValueKind.FUNCTION:
            return self._registry.make_mirror(func)
        if self._unresolved is None:
            self._unresolved = UnresolvedFunctionMirror(self._registry, str(func))
        return self._unresolved

    def receiver(self) -> Mirror:
        return self._registry.make_mirror(self.details.receiver)

    def is_construct_call(self) -> bool:
        return self.details.construct_call

    def is_debugger_frame(self) -> bool:
        return self.details.debugger_frame

    # -- arguments and locals ----------------------------------------------

    def argument_count(self) -> int:
        return self.details.argument_count

    def argument_name(self, index: int) -> Optional[str]:
        arguments = self.details.arguments
        if 0 <= index < len(arguments):
            return arguments[index].name
        return None

    def argument_value(self, index: int) -> Mirror:
        arguments = self.details.arguments
        if 0 <= index < len(arguments):
            return self._registry.make_mirror(arguments[index].value)
        return self._registry.undefined_mirror()

    def local_count(self) -> int:
        return self.details.local_count

    def local_name(self, index: int) -> Optional[str]:
        local_vars = self.details.locals
        if 0 <= index < len(local_vars):
            return local_vars[index].name
        return None

    def local_value(self, index: int) -> Mirror:
        local_vars = self.details.locals
        if 0 <= index < len(local_vars):
            return self._registry.make_mirror(local_vars[index].value)
        return self._registry.undefined_mirror()

    # -- source position ---------------------------------------------------

    def source_position(self) -> Optional[int]:
        return self.details.source_position

    def source_location(self) -> Optional[SourceLocation]:
        """Return the location of the current position, resource offsets included."""
        position = self.source_position()
        func = self.func()
        if not func.resolved or position is None:
            return None
        script = func.script()
        if script is None:
            return None
        return script.location_from_position(position, True)

    def source_line(self) -> Optional[int]:
        location = self.source_location()
        return location.line if location is not None else None

    def source_column(self) -> Optional[int]:
        location = self.source_location()
        return location.column if location is not None else None

    def source_line_text(self) -> Optional[str]:
        location = self.source_location()
        return location.source_text() if location is not None else None

    # -- evaluation --------------------------------------------------------

    def evaluate(self, source: str, disable_break: bool = False) -> Mirror:
        """Evaluate *source* in this frame and return a mirror of the result.

        Exceptions raised by the provider propagate unchanged.
        """
        result = self._provider.evaluate_in_frame(
            self._break_id, self.frame_id, source, bool(disable_break)
        )
        return self._registry.make_mirror(result)

    # -- rendering ---------------------------------------------------------

    def invocation_text(self) -> str:
        """Render the call: receiver, function and arguments."""
        func = self.func()
        if self.is_construct_call():
            result = "new " + (func.name() or "[anonymous]")
        elif self.is_debugger_frame():
            result = "[debugger]"
        else:
            result = self._call_target_text(func)

        if not self.is_debugger_frame():
            result += "(" + ", ".join(self._argument_texts()) + ")"
        return result

    def _call_target_text(self, func: FunctionMirror) -> str:
        receiver = self.receiver()
        # The global object is left implicit.
        display_receiver = not (receiver.is_object() and receiver.class_name() == "global")
        result = receiver.to_text() if display_receiver else ""

        prop: Mirror = self._registry.undefined_mirror()
        holder = receiver
        while holder.is_object() and prop.is_undefined():
            prop = holder.lookup_property(func)
            holder = holder.proto_object()

        declared = func.name()
        if prop.is_undefined():
            if display_receiver:
                result += "."
            return result + (declared or "[anonymous]")

        if prop.is_indexed():
            result += "[" + str(prop.name) + "]"
        else:
            if display_receiver:
                result += "."
            result += str(prop.name)
        if declared and declared != str(prop.name):
            result += "(aka " + declared + ")"
        return result

    def _argument_texts(self) -> List[str]:
        texts = []
        for i in range(self.argument_count()):
            name = self.argument_name(i)
            value = self.argument_value(i).to_text()
            texts.append(f"{name}={value}" if name else value)
        return texts

    def source_and_position_text(self) -> str:
        func = self.func()
        if not func.resolved:
            return "[unresolved]"
        script = func.script()
        if script is None:
            return "[no source]"

        result = script.name() or "[unnamed]"
        if not self.is_debugger_frame():
            location = self.source_location()
            result += " line " + (str(location.line + 1) if location else "?")
            result += " column " + (str(location.column + 1) if location else "?")
            position = self.source_position()
            if position is not None:
                result += " (position %d)" % (position + 1)
        return result

    def locals_text(self) -> str:
        lines = []
        for i in range(self.local_count()):
            lines.append(
                "      var %s = %s" % (self.local_name(i), self.local_value(i).to_text())
            )
        return "\n".join(lines)

    def to_text(self, include_locals: Optional[bool] = None) -> str:
        """Render the frame as one backtrace line, optionally followed by its locals."""
        frame_config = self._registry.config.frame
        if include_locals is None:
            include_locals = frame_config.include_locals
        result = "#%0*d %s %s" % (
            frame_config.index_width,
            self._index,
            self.invocation_text(),
            self.source_and_position_text(),
        )
        if include_locals:
            result += "\n" + self.locals_text()
        return result


def backtrace(registry: MirrorRegistry, break_id: int, count: int) -> List[FrameMirror]:
    """Return mirrors for the innermost *count* frames of break session *break_id*."""
    return [FrameMirror(registry, break_id, index) for index in range(count)]
