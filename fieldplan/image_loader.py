"""Loading images as occupancy grid maps."""

from __future__ import annotations

import enum
import math
import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from PIL import Image


class MapMode(enum.Enum):
    """How pixel intensities become occupancy values.

    TRINARY: occupied (100), free (0) or unknown (-1).
    SCALE: like trinary, but in-between values scale linearly to 0..99 and
    transparent pixels are unknown.
    RAW: the averaged intensity itself.
    """

    TRINARY = "trinary"
    SCALE = "scale"
    RAW = "raw"


class MapLoadError(RuntimeError):
    """Raised when an image cannot be loaded as a map."""


@dataclass
class OccupancyGrid:
    """Occupancy grid, row-major with cell (0, 0) at the lower-left corner."""

    width: int
    height: int
    resolution: float
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    data: list[int] = field(default_factory=list)

    def quaternion(self) -> tuple[float, float, float, float]:
        """Orientation of the origin as ``(x, y, z, w)`` from its yaw."""
        yaw = self.origin[2]
        return (0.0, 0.0, math.sin(yaw / 2), math.cos(yaw / 2))


_KEPT_MODES = {"L", "LA", "RGB", "RGBA"}
_ALPHA_MODES = {"LA", "RGBA"}


def _normalise(img: Image.Image) -> Image.Image:
    if img.mode in _KEPT_MODES:
        return img
    if img.mode in ("P", "PA"):
        has_alpha = img.mode == "PA" or "transparency" in img.info
        return img.convert("RGBA" if has_alpha else "RGB")
    if img.mode in ("1", "I", "I;16", "I;16B", "I;16L", "F"):
        return img.convert("L")
    return img.convert("RGBA" if "A" in img.getbands() else "RGB")


def _to_int8(value: int) -> int:
    value &= 0xFF
    return value - 256 if value > 127 else value


def load_map_from_file(
    fname: str | os.PathLike[str],
    resolution: float,
    negate: bool,
    occ_th: float,
    free_th: float,
    origin: Sequence[float] = (0.0, 0.0, 0.0),
    mode: MapMode = MapMode.TRINARY,
) -> OccupancyGrid:
    """Read an image and turn it into an occupancy grid.

    With ``negate`` darker pixels count as free and lighter ones as occupied.
    Raises ``MapLoadError`` if the image cannot be read.
    """
    try:
        with Image.open(fname) as raw:
            raw.load()
            img = _normalise(raw)
            img.load()
    except (OSError, ValueError) as exc:
        raise MapLoadError(f'failed to open image file "{fname}": {exc}') from exc

    width, height = img.size
    n_channels = len(img.getbands())
    if mode is MapMode.TRINARY or img.mode not in _ALPHA_MODES:
        avg_channels = n_channels
    else:
        avg_channels = n_channels - 1

    def classify(pixel: tuple[int, ...]) -> int:
        color_avg = sum(pixel[:avg_channels]) / avg_channels
        alpha = 1 if n_channels == 1 else pixel[-1]
        if negate:
            color_avg = 255 - color_avg
        if mode is MapMode.RAW:
            return _to_int8(int(color_avg))
        occ = (255 - color_avg) / 255.0
        if occ > occ_th:
            return 100
        if occ < free_th:
            return 0
        if mode is MapMode.TRINARY or alpha < 1.0:
            return -1
        ratio = (occ - free_th) / (occ_th - free_th)
        return _to_int8(int(99 * ratio))

    pixels = list(img.getdata())
    if n_channels == 1:
        pixels = [(p,) for p in pixels]
    rows = [pixels[start : start + width] for start in range(0, width * height, width)]
    data = [classify(px) for row in reversed(rows) for px in row]

    ox, oy, oyaw = (float(v) for v in origin)
    return OccupancyGrid(
        width=width,
        height=height,
        resolution=resolution,
        origin=(ox, oy, oyaw),
        data=data,
    )