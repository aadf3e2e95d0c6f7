"""Straight line segment drawn across the field."""

from __future__ import annotations

import math
from dataclasses import dataclass

Point = tuple[float, float]


def _fmt(value: float) -> str:
    return format(value, "g")


@dataclass
class Line:
    """Segment whose ``one_end`` is normally the end with the smaller y."""

    optimal_direction: float = 0.0
    one_end: Point = (0.0, 0.0)
    other_end: Point = (0.0, 0.0)
    checked_once: bool = False
    bifurcation_point: bool = False

    def set_input(self, pt1: Point, pt2: Point) -> None:
        """Set both ends, putting the point with the smaller y first."""
        if pt1[1] <= pt2[1]:
            self.one_end, self.other_end = tuple(pt1), tuple(pt2)
        else:
            self.one_end, self.other_end = tuple(pt2), tuple(pt1)

    def theta(self) -> float:
        """Inclination of the segment, from ``other_end`` towards ``one_end``."""
        return math.atan2(
            self.one_end[1] - self.other_end[1], self.one_end[0] - self.other_end[0]
        )

    def length(self) -> float:
        """Length of the segment."""
        return math.dist(self.one_end, self.other_end)

    def is_explored(self) -> bool:
        """Whether the segment has already been visited while building a path."""
        return self.checked_once

    def __str__(self) -> str:
        return " ".join(_fmt(v) for v in (*self.one_end, *self.other_end))