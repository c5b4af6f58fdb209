"""Source text ownership and offset → line/column mapping for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass

from dali.tokens import Span


@dataclass(frozen=True, slots=True)
class Location:
    """Human-facing location: 1-based line and inclusive column range."""

    line: int
    first_column: int
    last_column: int

    @property
    def width(self) -> int:
        return self.last_column - self.first_column + 1


class SourceBuffer:
    """Immutable source text with lazy line/column queries.

    Offsets index Unicode scalars (Python string indices). A position that
    sits exactly on a newline belongs to the end of the line it terminates,
    not to the start of the next one.
    """

    def __init__(self, text: str, name: str = "<input>") -> None:
        self.text = text
        self.name = name

    def __len__(self) -> int:
        return len(self.text)

    def line_of(self, position: int) -> int:
        """Return the 1-based line containing position."""
        position = self._clamp(position)
        return self.text.count("\n", 0, position) + 1

    def columns_of(self, span: Span) -> tuple[int, int]:
        """Return the inclusive 1-based column range of span on its first line."""
        start = self._clamp(span.start)
        line_start = self.text.rfind("\n", 0, start) + 1
        first = start - line_start + 1
        length = max(1, self._clamp(span.end) - start)
        return first, first + length - 1

    def extract_line(self, span: Span) -> str:
        """Return the full text of the line span starts on, without its newline."""
        start = self._clamp(span.start)
        line_start = self.text.rfind("\n", 0, start) + 1
        line_end = self.text.find("\n", start)
        if line_end == -1:
            line_end = len(self.text)
        return self.text[line_start:line_end].rstrip("\r")

    def location(self, span: Span) -> Location:
        first, last = self.columns_of(span)
        return Location(self.line_of(span.start), first, last)

    def slice(self, span: Span) -> str:
        return self.text[span.start : span.end]

    def _clamp(self, position: int) -> int:
        return max(0, min(position, len(self.text)))
