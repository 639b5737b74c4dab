"""Exceptions raised by the mirror layer.

A missing property or handle is not an error: lookups return the undefined
mirror (or ``None`` from :meth:`MirrorRegistry.lookup_mirror`) instead.
"""

from __future__ import annotations


class MirrorError(Exception):
    """Base class for mirror layer errors."""


class StaleSessionError(MirrorError):
    """A frame mirror was used after the target resumed execution."""

    def __init__(self, break_id: int) -> None:
        super().__init__(f"Break session {break_id} is no longer current")
        self.break_id = break_id


class PropertySerializationError(MirrorError, TypeError):
    """A property mirror was handed to the serializer on its own."""
