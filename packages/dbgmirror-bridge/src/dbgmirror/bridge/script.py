"""Script descriptors and their source-locator capability."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import List, Optional

from .types import ScriptType


@dataclass(frozen=True)
class SourceLocation:
    """A resolved position inside a script.

    ``line`` and ``column`` are zero-based; ``start`` and ``end`` delimit the
    line containing the position (``end`` excludes the line terminator).
    """

    script: Script
    position: int
    line: int
    column: int
    start: int
    end: int

    def source_text(self) -> str:
        """Return the text of the line containing this location."""
        return self.script.source[self.start:self.end]


@dataclass(frozen=True)
class SourceSlice:
    """A range of whole lines of a script."""

    script: Script
    from_line: int
    to_line: int
    from_position: int
    to_position: int

    def source_text(self) -> str:
        return self.script.source[self.from_position:self.to_position]


@dataclass(eq=False)
class Script:
    """A script loaded into the target.

    Scripts compare by identity, like every other heap value.
    """

    name: Optional[str]
    id: int
    source: str
    line_offset: int = 0
    column_offset: int = 0
    type: ScriptType = ScriptType.NORMAL
    _line_ends: List[int] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self) -> None:
        ends = [i for i, ch in enumerate(self.source) if ch == "\n"]
        if not self.source or self.source[-1] != "\n":
            ends.append(len(self.source))
        self._line_ends = ends

    @property
    def line_ends(self) -> List[int]:
        """Return the position of the terminator of every line."""
        return list(self._line_ends)

    def line_count(self) -> int:
        return len(self._line_ends)

    def location_from_position(
        self, position: int, include_resource_offset: bool = False
    ) -> Optional[SourceLocation]:
        """Map a character position to a line/column location.

        Parameters
        ----------
        position:
            Zero-based character offset into :attr:`source`.
        include_resource_offset:
            If ``True``, shift the result by :attr:`line_offset`, and by
            :attr:`column_offset` when the position is on the first line.

        Returns
        -------
        SourceLocation or None
            ``None`` when the position lies past the end of the script.
        """
        if position < 0:
            return None
        line = bisect_left(self._line_ends, position)
        if line >= len(self._line_ends):
            return None

        start = 0 if line == 0 else self._line_ends[line - 1] + 1
        end = self._line_ends[line]
        if end > 0 and self.source[end - 1:end] == "\r":
            end -= 1

        column = position - start
        if include_resource_offset:
            if line == 0:
                column += self.column_offset
            line += self.line_offset
        return SourceLocation(self, position, line, column, start, end)

    def source_slice(
        self, from_line: Optional[int] = None, to_line: Optional[int] = None
    ) -> Optional[SourceSlice]:
        """Return the lines ``[from_line, to_line)`` of the script.

        Line numbers include :attr:`line_offset`.  Returns ``None`` when the
        requested range does not overlap the script.
        """
        count = self.line_count()
        first = (self.line_offset if from_line is None else from_line) - self.line_offset
        last = (self.line_offset + count if to_line is None else to_line) - self.line_offset
        first = max(first, 0)
        last = min(last, count)
        if first >= count or last < 0 or first > last:
            return None

        from_position = 0 if first == 0 else self._line_ends[first - 1] + 1
        to_position = 0 if last == 0 else self._line_ends[last - 1] + 1
        return SourceSlice(
            self,
            first + self.line_offset,
            last + self.line_offset,
            from_position,
            to_position,
        )
