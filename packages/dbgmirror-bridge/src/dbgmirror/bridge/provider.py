"""The inspection provider protocol.

Everything the mirror layer knows about the target comes through an object
implementing :class:`InspectionProvider`.  A provider answers questions
about live values ("what kind is this", "what are its properties") and about
the suspended call stack.  Values handed back are opaque to the mirror
layer: it only stores them, compares them by identity and passes them back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from .script import Script
from .types import FrameDetails, InterceptorInfo, PropertyDetails, PropertyKind, ValueKind


@runtime_checkable
class InspectionProvider(Protocol):
    """Read access to a suspended target."""

    # -- values ------------------------------------------------------------

    def classify(self, value: Any) -> ValueKind:
        """Return the dynamic kind of *value*."""
        ...

    def class_name_of(self, obj: Any) -> str:
        ...

    def constructor_of(self, obj: Any) -> Any:
        """Return the ``constructor`` property of *obj*, prototype chain included."""
        ...

    def prototype_of(self, obj: Any) -> Any:
        """Return the ``prototype`` property of *obj*, prototype chain included."""
        ...

    def proto_of(self, obj: Any) -> Any:
        """Return the internal prototype link of *obj* (``None`` at the end)."""
        ...

    def date_value(self, obj: Any) -> Optional[datetime]:
        """Return the time held by a date, or ``None`` for an invalid date."""
        ...

    def detail_string(self, value: Any) -> str:
        """Return the target's own string rendering of *value*.

        May raise if the conversion runs target code that throws.
        """
        ...

    # -- properties --------------------------------------------------------

    def own_property_names(self, obj: Any, kind: PropertyKind) -> Sequence[Any]:
        ...

    def interceptor_flags(self, obj: Any) -> InterceptorInfo:
        ...

    def interceptor_property_names(self, obj: Any, kind: PropertyKind) -> Sequence[Any]:
        ...

    def property_detail(self, obj: Any, name: str) -> Optional[PropertyDetails]:
        """Return the details of property *name*, or ``None`` if there is none."""
        ...

    # -- functions ---------------------------------------------------------

    def function_name(self, func: Any) -> str:
        ...

    def function_source(self, func: Any) -> str:
        ...

    def function_script(self, func: Any) -> Optional[Script]:
        ...

    # -- heap queries ------------------------------------------------------

    def references_to(self, value: Any, max_count: int = 0) -> List[Any]:
        """Return objects holding a direct reference to *value* (0 = no limit)."""
        ...

    def constructed_instances_of(self, ctor: Any, max_count: int = 0) -> List[Any]:
        """Return objects constructed by *ctor* (0 = no limit)."""
        ...

    # -- execution state ---------------------------------------------------

    def is_session_current(self, break_id: int) -> bool:
        ...

    def frame_details(self, break_id: int, index: int) -> FrameDetails:
        ...

    def evaluate_in_frame(
        self, break_id: int, frame_id: int, source: str, disable_break: bool
    ) -> Any:
        ...
