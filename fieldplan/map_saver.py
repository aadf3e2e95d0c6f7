"""Saving occupancy grids as PGM images with a YAML description."""

from __future__ import annotations

import math
import os
import re
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NamedTuple

from fieldplan.image_loader import MapLoadError, OccupancyGrid, load_map_from_file
from fieldplan.map_server import MapConfigError, load_map_config

USAGE = (
    "Usage: \n"
    "  map_saver -h\n"
    "  map_saver --map <map.yaml> [--occ <threshold_occupied>] "
    "[--free <threshold_free>] [-f <mapname>]"
)

DEFAULT_MAPNAME = "map"
DEFAULT_THRESHOLD_OCCUPIED = 65
DEFAULT_THRESHOLD_FREE = 25

_FREE_PIXEL = 254
_OCCUPIED_PIXEL = 0
_UNKNOWN_PIXEL = 205

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class _Options(NamedTuple):
    mapname: str
    threshold_occupied: int
    threshold_free: int
    source: str | None
    show_help: bool


def quaternion_to_yaw(x: float, y: float, z: float, w: float) -> float:
    """Yaw of the rotation given by a quaternion (need not be normalised)."""
    norm2 = x * x + y * y + z * z + w * w
    if norm2 == 0:
        raise ValueError("zero quaternion has no orientation")
    s = 2.0 / norm2
    m20 = s * (x * z - w * y)
    if abs(m20) >= 1:
        return 0.0
    m10 = s * (x * y + w * z)
    m00 = 1.0 - s * (y * y + z * z)
    return math.atan2(m10, m00)


def _pixel(value: int, threshold_occupied: int, threshold_free: int) -> int:
    if 0 <= value <= threshold_free:
        return _FREE_PIXEL
    if value >= threshold_occupied:
        return _OCCUPIED_PIXEL
    return _UNKNOWN_PIXEL


def save_map(
    grid: OccupancyGrid,
    mapname: str | os.PathLike[str] = DEFAULT_MAPNAME,
    threshold_occupied: int = DEFAULT_THRESHOLD_OCCUPIED,
    threshold_free: int = DEFAULT_THRESHOLD_FREE,
) -> tuple[Path, Path]:
    """Write ``<mapname>.pgm`` and ``<mapname>.yaml``; return both paths."""
    base = os.fspath(mapname)
    data_file = base + ".pgm"
    meta_file = base + ".yaml"
    if len(grid.data) < grid.width * grid.height:
        raise ValueError("grid data is shorter than width * height")

    header = (
        f"P5\n# CREATOR: map_saver {grid.resolution:.3f} m/pix\n"
        f"{grid.width} {grid.height}\n255\n"
    )
    rows = [
        grid.data[r * grid.width : (r + 1) * grid.width] for r in range(grid.height)
    ]
    body = bytes(
        _pixel(v, threshold_occupied, threshold_free)
        for row in reversed(rows)
        for v in row
    )
    with open(data_file, "wb") as out:
        out.write(header.encode("ascii"))
        out.write(body)

    yaw = quaternion_to_yaw(*grid.quaternion())
    ox, oy = grid.origin[0], grid.origin[1]
    with open(meta_file, "w", encoding="utf-8") as out:
        out.write(
            f"image: {data_file}\nresolution: {grid.resolution:f}\n"
            f"origin: [{ox:f}, {oy:f}, {yaw:f}]\nnegate: 0\n"
            "occupied_thresh: 0.65\nfree_thresh: 0.196\n\n"
        )
    return Path(data_file), Path(meta_file)


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_args(argv: Sequence[str]) -> _Options:
    """Parse saver options; raise ``ValueError`` on invalid use."""
    mapname = DEFAULT_MAPNAME
    occupied = DEFAULT_THRESHOLD_OCCUPIED
    free = DEFAULT_THRESHOLD_FREE
    source: str | None = None
    args = iter(argv)
    for arg in args:
        if arg == "-h":
            return _Options(mapname, occupied, free, source, True)
        if arg not in ("-f", "--occ", "--free", "--map"):
            raise ValueError(USAGE)
        value = next(args, None)
        if value is None:
            raise ValueError(USAGE)
        if arg == "-f":
            mapname = value
        elif arg == "--map":
            source = value
        elif arg == "--occ":
            occupied = _atoi(value)
            if not 1 <= occupied <= 100:
                raise ValueError("threshold_occupied must be between 1 and 100")
        else:
            free = _atoi(value)
            if not 0 <= free <= 100:
                raise ValueError("threshold_free must be between 0 and 100")
    if occupied <= free:
        raise ValueError("threshold_free must be smaller than threshold_occupied")
    return _Options(mapname, occupied, free, source, False)


def main(argv: Sequence[str] | None = None) -> int:
    """Load the map named by ``--map`` and save it under ``-f <mapname>``."""
    try:
        options = parse_args(sys.argv[1:] if argv is None else argv)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    if options.show_help:
        print(USAGE)
        return 0
    if options.source is None:
        print(USAGE, file=sys.stderr)
        return 1

    try:
        config = load_map_config(options.source)
        grid = load_map_from_file(
            config.image,
            config.resolution,
            config.negate,
            config.occupied_thresh,
            config.free_thresh,
            config.origin,
            config.mode,
        )
    except (MapConfigError, MapLoadError) as exc:
        print(exc, file=sys.stderr)
        return 1

    print(f"Received a {grid.width} X {grid.height} map @ {grid.resolution:.3f} m/pix")
    try:
        data_file, meta_file = save_map(
            grid, options.mapname, options.threshold_occupied, options.threshold_free
        )
    except OSError as exc:
        print(f"Couldn't save map file to {options.mapname}.pgm: {exc}", file=sys.stderr)
        return 1
    print(f"Writing map occupancy data to {data_file}")
    print(f"Writing map occupancy data to {meta_file}")
    print("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())