"""Handle registry: the identity cache that owns every value mirror."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from dbgmirror.bridge.provider import InspectionProvider
from dbgmirror.bridge.types import UNDEFINED, ValueKind
from dbgmirror.core.mirrors import (
    ArrayMirror,
    BooleanMirror,
    DateMirror,
    ErrorMirror,
    FunctionMirror,
    Mirror,
    NullMirror,
    NumberMirror,
    ObjectMirror,
    RegExpMirror,
    ScriptMirror,
    StringMirror,
    UndefinedMirror,
)
from dbgmirror.core.types.config import MirrorConfig

if TYPE_CHECKING:
    from dbgmirror.core.serializer import JSONProtocolSerializer

logger = logging.getLogger(__name__)

_MIRROR_CLASSES = {
    ValueKind.UNDEFINED: UndefinedMirror,
    ValueKind.NULL: NullMirror,
    ValueKind.BOOLEAN: BooleanMirror,
    ValueKind.NUMBER: NumberMirror,
    ValueKind.STRING: StringMirror,
    ValueKind.ARRAY: ArrayMirror,
    ValueKind.DATE: DateMirror,
    ValueKind.FUNCTION: FunctionMirror,
    ValueKind.REGEXP: RegExpMirror,
    ValueKind.ERROR: ErrorMirror,
    ValueKind.SCRIPT: ScriptMirror,
    ValueKind.OBJECT: ObjectMirror,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def same_value(a: Any, b: Any) -> bool:
    """Return whether *a* and *b* are the same target value.

    Objects are the same only if they are the same Python object.  Primitives
    are the same when they have the same kind and value, so ``1`` and ``1.0``
    are one number while ``True`` and ``1`` are not.  Unlike ``==``, two NaNs
    are the same value.
    """
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        if a == b:
            return True
        return isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b)
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return False


class MirrorRegistry:
    """Process-wide cache of mirrors, addressed by handle.

    Every distinct value handed to :meth:`make_mirror` gets exactly one
    mirror and one handle for the lifetime of the cache epoch; the epoch ends
    with :meth:`clear`.  Lookup is a linear identity scan, which keeps the
    dedup rules of :func:`same_value` (NaN included) exact.

    Args:
        provider: Source of truth for the target being inspected.
        config: Optional configuration; defaults to :class:`MirrorConfig`.
    """

    def __init__(self, provider: InspectionProvider, config: Optional[MirrorConfig] = None):
        self.provider = provider
        self.config = config or MirrorConfig()
        self._mirrors: Dict[int, Mirror] = {}
        self._next_handle = 0

    def __len__(self) -> int:
        return len(self._mirrors)

    def __contains__(self, handle: object) -> bool:
        return handle in self._mirrors

    @property
    def handles(self) -> List[int]:
        return list(self._mirrors)

    def allocate_handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def make_mirror(self, value: Any) -> Mirror:
        """Return the mirror for *value*, creating and caching it on first sight."""
        for mirror in self._mirrors.values():
            if same_value(mirror.value(), value):
                logger.debug("Mirror cache hit: handle %d", mirror.handle)
                return mirror

        kind = self.provider.classify(value)
        mirror = _MIRROR_CLASSES[kind](self, value)
        self._mirrors[mirror.handle] = mirror
        logger.debug("New %s mirror with handle %d", kind.value, mirror.handle)
        return mirror

    def lookup_mirror(self, handle: int) -> Optional[Mirror]:
        """Return the mirror with *handle*, or ``None`` if there is none."""
        return self._mirrors.get(handle)

    def undefined_mirror(self) -> Mirror:
        return self.make_mirror(UNDEFINED)

    def clear(self) -> None:
        """Forget every mirror and restart handle numbering at 0."""
        logger.debug("Clearing mirror cache (%d mirrors)", len(self._mirrors))
        self._mirrors = {}
        self._next_handle = 0

    def make_serializer(self, details: Optional[bool] = None) -> JSONProtocolSerializer:
        """Return a protocol serializer bound to this registry.

        Args:
            details: Whether property values are queued for the reference
                pass; defaults to ``config.protocol.include_details``.
        """
        from dbgmirror.core.serializer import JSONProtocolSerializer

        if details is None:
            details = self.config.protocol.include_details
        return JSONProtocolSerializer(self, details)
