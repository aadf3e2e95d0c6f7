"""Pixel to map frame conversion and turn smoothing of paths."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from fieldplan.bezier import bezier_curve_fit
from fieldplan.node import PI, Node


@dataclass
class MapTransform:
    """Converts image pixel coordinates to the metric map frame."""

    map_rows: float
    map_res: float = 0.05
    ox: float = -30.0
    oy: float = -2.0
    oorien: float = 0.0
    origin_x: float = field(init=False)
    origin_y: float = field(init=False)
    origin_o: float = field(init=False)

    def __post_init__(self) -> None:
        cos_o, sin_o = math.cos(self.oorien), math.sin(self.oorien)
        self.origin_x = -self.ox * cos_o - self.oy * sin_o
        self.origin_y = -self.ox * (-sin_o) - self.oy * cos_o
        self.origin_o = -self.oorien

    def transform_node(self, pt: Node) -> Node:
        """Return ``pt`` (pixel frame, y down) expressed in the map frame."""
        bx = pt.x * self.map_res
        by = (self.map_rows - pt.y) * self.map_res
        dx, dy = bx - self.origin_x, by - self.origin_y
        cos_o, sin_o = math.cos(self.origin_o), math.sin(self.origin_o)
        return Node(
            dx * cos_o + dy * sin_o,
            -dx * sin_o + dy * cos_o,
            -pt.orien - self.origin_o,
        )

    def update_path(
        self,
        path: Sequence[Node],
        turn_location: int,
        num_points_st: int,
        num_points_lt: int,
    ) -> list[Node]:
        """Replace the stretch around ``turn_location`` with its Bezier fit."""
        result = list(path)
        start = max(turn_location - num_points_st, 0)
        last = min(len(result) - 1, turn_location + num_points_lt)
        if start > last:
            return result
        result[start : last + 1] = bezier_curve_fit(result[start : last + 1])
        return result

    def find_turns(self, path: Sequence[Node]) -> list[int]:
        """Indices where the heading jumps by at least a quarter of pi."""
        return [
            i
            for i, (prev, cur) in enumerate(zip(path, path[1:]), start=1)
            if abs(cur.orien - prev.orien) >= PI / 4
        ]

    def smooth(self, path: Sequence[Node], st_pt: int, end_pt: int) -> list[Node]:
        """Smooth every turn of ``path`` and recompute headings from segments."""
        result = list(path)
        for turn in self.find_turns(result):
            result = self.update_path(result, turn, st_pt, end_pt)
        result = [Node(n.x, n.y, n.orien) for n in result]
        for prev, cur in zip(result, result[1:]):
            cur.orien = math.atan2(cur.y - prev.y, cur.x - prev.x)
        return result