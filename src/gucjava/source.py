"""Positions, ranges and locations within source text."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    """A point in the source text.

    All three coordinates are zero-based; ``offset`` indexes the source
    string directly.
    """

    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.line + 1}:{self.column + 1}"


@dataclass(frozen=True)
class Range:
    """Half-open span ``[start, end)`` of source text."""

    start: Position
    end: Position

    @classmethod
    def covering(cls, first: Range, last: Range) -> Range:
        """Build the range from the start of ``first`` to the end of ``last``."""
        return cls(first.start, last.end)

    def contains(self, other: Range) -> bool:
        return self.start <= other.start and other.end <= self.end

    def slice(self, text: str) -> str:
        """Extract the text covered by this range."""
        return text[self.start.offset:self.end.offset]


@dataclass(frozen=True)
class Location:
    """A range within a named source (file path, URI or ``<stdin>``)."""

    source_id: str
    range: Range

    def __str__(self) -> str:
        return f"{self.source_id}:{self.range.start}"
