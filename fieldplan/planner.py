"""Coverage path planning over a binary field image."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from itertools import groupby
from typing import TextIO

from PIL import Image

from fieldplan.line import Line
from fieldplan.node import Node
from fieldplan.subregion import Subregion

PixelPoint = tuple[int, int]

_BINARY_THRESHOLD = 127


def _fmt(value: float) -> str:
    return format(value, "g")


class DesignPattern(enum.Enum):
    """How neighbouring field lines are joined; the value is the skip key."""

    ONE_WAY_PATTERN = 0
    MULTI_WAY_ONE_SKIP = 1
    MULTI_WAY_TWO_SKIP = 2


class CeresPlanner:
    """Draws parallel lines over a field and joins them into one path."""

    def __init__(self) -> None:
        self.input_boundary: Image.Image | None = None
        self.planned_path: list[PixelPoint] = []

    def set_input(self, image: Image.Image | None) -> Image.Image:
        """Store ``image`` and return its binary (0 or 255) grayscale version."""
        if image is None or image.width == 0 or image.height == 0:
            raise ValueError("could not open image")
        self.input_boundary = image
        gray = image if image.mode == "L" else image.convert("L")
        return gray.point(lambda v: 255 if v > _BINARY_THRESHOLD else 0)

    def contour_mapping(self, binary: Image.Image) -> list[PixelPoint]:
        """Return ``(x, y)`` of every black pixel, row by row.

        The last row and the last column of the image are not scanned.
        """
        gray = binary if binary.mode == "L" else binary.convert("L")
        width, height = gray.size
        pixels = gray.load()
        return [
            (x, y)
            for y in range(height - 1)
            for x in range(width - 1)
            if pixels[x, y] == 0
        ]

    def gradient_break_in_y(
        self, y_vals: Sequence[int], gradient_threshold: float
    ) -> list[int]:
        """Keep the y values that jump by more than ``gradient_threshold``.

        The first value is always kept; the last is added when it lies more
        than the threshold beyond the last kept value.
        """
        if not y_vals:
            raise ValueError("y_vals must not be empty")
        kept = [y_vals[0]]
        for prev, cur in zip(y_vals, y_vals[1:]):
            if cur - prev > gradient_threshold:
                kept.append(cur)
        last = y_vals[-1]
        if kept[-1] != last and last - kept[-1] > gradient_threshold:
            kept.append(last)
        return kept

    def straight_path_draw(
        self,
        contour_points: Iterable[PixelPoint],
        parking_width: int,
        gradient_threshold: float,
    ) -> Subregion:
        """Draw vertical lines every ``parking_width`` pixels along x.

        The smallest x only sets the first mark. At each later x equal to the
        mark, boundary points with four or more y values are split at their
        gradient breaks and paired into lines; otherwise a single line spans
        the smallest to the largest y. A trailing unpaired break is dropped.
        """
        columns: dict[int, list[int]] = {}
        for x, y in contour_points:
            columns.setdefault(x, []).append(y)

        master = Subregion(0)
        x_mark = 0
        for x in sorted(columns):
            if x_mark == 0:
                x_mark = x + parking_width
                continue
            if x != x_mark:
                continue
            ys = sorted(columns[x])
            if len(ys) >= 4:
                breaks = self.gradient_break_in_y(ys, gradient_threshold)
                spans = list(zip(breaks[::2], breaks[1::2]))
            else:
                spans = [(ys[0], ys[-1])]
            for y_min, y_max in spans:
                line = Line(0.0)
                line.set_input((float(x), float(y_min)), (float(x), float(y_max)))
                master.insert_line(0, line)
            x_mark = x + parking_width
        return master

    def headland_creator(self, plan: Subregion, headland_space: float) -> Subregion:
        """Pull both ends of every line inwards by ``headland_space``."""
        trimmed = []
        for line in plan.lines:
            x1, y1 = line.one_end
            x2, y2 = line.other_end
            line.one_end = (x1, y1 + headland_space)
            line.other_end = (x2, y2 - headland_space)
            trimmed.append(line)
        plan.set_lines(trimmed)
        return plan

    def path_planning(self, region: Subregion, key: int) -> list[PixelPoint]:
        """Join the first line at each x into one boustrophedon path.

        Each next line is entered from whichever end lies closer in y to the
        current end of the path. ``key`` selects the skip pattern but every
        pattern currently visits the lines in order.
        """
        clusters = _cluster_lines(region.lines)
        if not clusters:
            raise ValueError("region holds no lines")

        first = clusters[0][0]
        path = [_as_pixel(first.one_end), _as_pixel(first.other_end)]
        for cluster in clusters[1:]:
            line = cluster[0]
            last_y = path[-1][1]
            one_diff = int(abs(last_y - line.one_end[1]))
            other_diff = int(abs(last_y - line.other_end[1]))
            if one_diff <= other_diff:
                ends = (line.one_end, line.other_end)
            else:
                ends = (line.other_end, line.one_end)
            path.extend(_as_pixel(end) for end in ends)
        self.planned_path = path
        return list(path)

    def skip_turn_designed_path(
        self, region: Subregion, design: DesignPattern
    ) -> list[PixelPoint]:
        """Plan the path for the requested ``design`` pattern."""
        if not isinstance(design, DesignPattern):
            raise ValueError(f"unknown design pattern: {design!r}")
        return self.path_planning(region, design.value)


def _as_pixel(point: tuple[float, float]) -> PixelPoint:
    return int(point[0]), int(point[1])


def _cluster_lines(lines: Iterable[Line]) -> list[list[Line]]:
    return [
        list(group) for _, group in groupby(lines, key=lambda ln: int(ln.one_end[0]))
    ]


def dump_points(stream: TextIO, points: Iterable[PixelPoint]) -> None:
    """Write each point as ``x y`` on its own line."""
    for x, y in points:
        stream.write(f"{x} {y}\n")


def dump_region(stream: TextIO, region: Subregion) -> None:
    """Write both ends of every line in ``region``, one end per line."""
    for line in region.lines:
        stream.write(f"{_fmt(line.one_end[0])} {_fmt(line.one_end[1])}\n")
        stream.write(f"{_fmt(line.other_end[0])} {_fmt(line.other_end[1])}\n")


def dump_pairs(stream: TextIO, pairs: Iterable[PixelPoint]) -> None:
    """Write each waypoint of a planned path as ``x y``."""
    for first, second in pairs:
        stream.write(f"{first} {second}\n")


def dump_clusters(stream: TextIO, clusters: Iterable[Iterable[Line]]) -> None:
    """Write each line as four coordinates, with a blank line after each cluster."""
    for cluster in clusters:
        for line in cluster:
            coords = (*line.one_end, *line.other_end)
            stream.write(" ".join(_fmt(v) for v in coords) + "\n")
        stream.write("\n")


def dump_nodes(stream: TextIO, nodes: Iterable[Node]) -> None:
    """Write each node as ``x, y, orien``."""
    for node in nodes:
        stream.write(f"{_fmt(node.x)}, {_fmt(node.y)}, {_fmt(node.orien)}\n")