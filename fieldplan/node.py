"""Planar pose used throughout the planner."""

from __future__ import annotations

import math
from dataclasses import dataclass

PI = 3.14
"""Approximation of pi used for turn detection and headings."""


@dataclass
class Node:
    """A point in the plane with a heading in radians."""

    x: float = 0.0
    y: float = 0.0
    orien: float = 0.0

    def distance_to(self, other: Node) -> float:
        """Euclidean distance between this node and ``other``."""
        return math.hypot(other.x - self.x, other.y - self.y)