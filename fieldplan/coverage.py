"""Coverage path generation from a field boundary image."""

from __future__ import annotations

import argparse
import math
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from itertools import groupby
from pathlib import Path
from typing import Any, TextIO

from PIL import Image

from fieldplan.line import Line
from fieldplan.node import Node
from fieldplan.planner import (
    CeresPlanner,
    DesignPattern,
    PixelPoint,
    dump_clusters,
    dump_nodes,
    dump_pairs,
    dump_points,
    dump_region,
)
from fieldplan.subregion import Subregion
from fieldplan.transform import MapTransform

DEFAULT_PARKING_WIDTH = 50
DEFAULT_GRADIENT_THRESHOLD = 5.0
DEFAULT_HEADLAND_SPACE = 50
DEFAULT_SPACING = 2.0
_SMOOTH_BEFORE = 2
_SMOOTH_AFTER = 2


def densify_path(
    waypoints: Sequence[PixelPoint],
    transform: MapTransform,
    spacing: float = DEFAULT_SPACING,
) -> list[Node]:
    """Convert pixel waypoints to the map frame and fill each leg with points.

    Every leg is split into ``int(length / spacing)`` equal steps and both of
    its ends are emitted, all carrying the heading of the leg. A leg shorter
    than ``spacing`` yields no usable point and is left out.
    """
    if spacing <= 0:
        raise ValueError("spacing must be positive")
    points = list(waypoints)
    path: list[Node] = []
    for (x1, y1), (x2, y2) in zip(points, points[1:]):
        start = transform.transform_node(Node(float(x1), float(y1), 0.0))
        end = transform.transform_node(Node(float(x2), float(y2), 0.0))
        dx, dy = end.x - start.x, end.y - start.y
        steps = int(math.hypot(dx, dy) / spacing)
        if steps == 0:
            continue
        heading = math.atan2(dy, dx)
        path.extend(
            Node(start.x + i * dx / steps, start.y + i * dy / steps, heading)
            for i in range(steps + 1)
        )
    return path


@dataclass
class _Stages:
    binary: Image.Image
    contour_points: list[PixelPoint]
    lines: Subregion
    headland: Subregion
    clusters: list[list[Line]]
    waypoints: list[PixelPoint]
    path: list[Node]


def _run_stages(
    image: Image.Image,
    parking_width: int,
    gradient_threshold: float,
    headland_space: float,
    design: DesignPattern,
) -> _Stages:
    planner = CeresPlanner()
    binary = planner.set_input(image)
    contour = planner.contour_mapping(binary)
    plan = planner.straight_path_draw(contour, parking_width, gradient_threshold)

    lines = Subregion(plan.region_id)
    lines.set_lines(plan.lines)
    headland = planner.headland_creator(plan, headland_space)
    clusters = [
        list(group)
        for _, group in groupby(headland.lines, key=lambda ln: int(ln.one_end[0]))
    ]
    waypoints = planner.skip_turn_designed_path(headland, design)

    transform = MapTransform(map_rows=float(image.height))
    dense = densify_path(waypoints, transform)
    smoothed = transform.smooth(dense, _SMOOTH_BEFORE, _SMOOTH_AFTER)
    path = [n for n in smoothed if math.isfinite(n.x) and math.isfinite(n.y)]
    return _Stages(binary, contour, lines, headland, clusters, waypoints, path)


def plan_coverage(
    image: Image.Image,
    parking_width: int = DEFAULT_PARKING_WIDTH,
    gradient_threshold: float = DEFAULT_GRADIENT_THRESHOLD,
    headland_space: float = DEFAULT_HEADLAND_SPACE,
    design: DesignPattern = DesignPattern.MULTI_WAY_TWO_SKIP,
) -> list[Node]:
    """Plan a smoothed coverage path, in the map frame, over a field image."""
    return _run_stages(
        image, parking_width, gradient_threshold, headland_space, design
    ).path


def _write(path: Path, dump: Callable[[TextIO, Any], None], data: Any) -> None:
    with path.open("w", encoding="utf-8") as stream:
        dump(stream, data)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fieldplan-coverage",
        description="Plan a coverage path over a field boundary image.",
    )
    parser.add_argument("image", help="image of the field boundary")
    parser.add_argument("--output-dir", default=".", help="directory for output files")
    parser.add_argument("--parking-width", type=int, default=DEFAULT_PARKING_WIDTH)
    parser.add_argument(
        "--gradient-threshold", type=float, default=DEFAULT_GRADIENT_THRESHOLD
    )
    parser.add_argument("--headland-space", type=float, default=DEFAULT_HEADLAND_SPACE)
    parser.add_argument(
        "--design",
        choices=[p.name.lower() for p in DesignPattern],
        default=DesignPattern.MULTI_WAY_TWO_SKIP.name.lower(),
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Plan a coverage path from an image and write every stage to text files."""
    args = _parse_args(argv)
    try:
        with Image.open(args.image) as raw:
            image = raw.convert("RGB")
    except OSError:
        print("Could not open file", file=sys.stderr)
        return 1

    try:
        stages = _run_stages(
            image,
            args.parking_width,
            args.gradient_threshold,
            args.headland_space,
            DesignPattern[args.design.upper()],
        )
    except ValueError as exc:
        print(f"planning failed: {exc}", file=sys.stderr)
        return 1

    out = Path(args.output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stages.binary.save(out / "setInputfile.png")
    _write(out / "contourPoints.txt", dump_points, stages.contour_points)
    _write(out / "contourPointsLines.txt", dump_region, stages.lines)
    _write(out / "contourPointsLinesHeadLand.txt", dump_region, stages.headland)
    _write(out / "workspace.txt", dump_clusters, stages.clusters)
    _write(out / "waypoints.txt", dump_pairs, stages.waypoints)
    _write(out / "finalPath.txt", dump_nodes, stages.path)
    print(f"path planned with {len(stages.path)} points")
    return 0


if __name__ == "__main__":
    sys.exit(main())