"""Region of the field holding its planned straight lines."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator

from fieldplan.line import Line


class Subregion:
    """Ordered collection of lines belonging to one region id."""

    def __init__(self, region_id: int) -> None:
        self.region_id = region_id
        self._lines: list[Line] = []

    def insert_line(self, region_id: int, line: Line) -> None:
        """Append a copy of ``line``; the id must match this region's."""
        if region_id != self.region_id:
            raise ValueError(
                f"line belongs to region {region_id}, not {self.region_id}"
            )
        self._lines.append(copy.copy(line))

    @property
    def lines(self) -> list[Line]:
        """Copies of the stored lines, in insertion order."""
        return [copy.copy(line) for line in self._lines]

    def set_lines(self, lines: Iterable[Line]) -> None:
        """Replace all stored lines."""
        self._lines = [copy.copy(line) for line in lines]

    def describe(self) -> str:
        """Human-readable listing of the region and its lines."""
        return "\n".join([f"ID of the subregion{self.region_id}", *map(str, self._lines)])

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)