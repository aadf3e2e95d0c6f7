"""Serving occupancy grid maps described by YAML map files."""

from __future__ import annotations

import copy
import logging
import os
import sys
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from fieldplan.image_loader import MapLoadError, MapMode, OccupancyGrid, load_map_from_file

logger = logging.getLogger(__name__)

USAGE = (
    "\nUSAGE: map_server <map.yaml>\n"
    "  map.yaml: map description file\n"
    "DEPRECATED USAGE: map_server <map> <resolution>\n"
    "  map: image file to load\n"
    "  resolution: map resolution [meters/pixel]"
)

DEFAULT_FRAME_ID = "map"
DEFAULT_OCCUPIED_THRESH = 0.65
DEFAULT_FREE_THRESH = 0.196


class MapConfigError(ValueError):
    """Raised when a map description file is missing or invalid."""


@dataclass
class MapConfig:
    """Contents of a map description file."""

    image: Path
    resolution: float
    negate: bool
    occupied_thresh: float
    free_thresh: float
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    mode: MapMode = MapMode.TRINARY


def _missing(article: str, tag: str) -> MapConfigError:
    return MapConfigError(f"The map does not contain {article} {tag} tag or it is invalid.")


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValueError("not a number")
    if isinstance(value, (int, float, str)):
        return float(value)
    raise ValueError("not a number")


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise ValueError("not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError("not an integer")


def _float_tag(doc: Mapping[str, Any], tag: str, article: str) -> float:
    try:
        return _as_float(doc[tag])
    except (KeyError, ValueError) as exc:
        raise _missing(article, tag) from exc


def _mode_tag(doc: Mapping[str, Any]) -> MapMode:
    raw = doc.get("mode")
    if raw is None or isinstance(raw, (dict, list)):
        logger.debug("The map does not contain a mode tag or it is invalid... assuming Trinary")
        return MapMode.TRINARY
    text = str(raw)
    try:
        return MapMode(text)
    except ValueError as exc:
        raise MapConfigError(f'Invalid mode tag "{text}".') from exc


def _origin_tag(doc: Mapping[str, Any]) -> tuple[float, float, float]:
    try:
        raw = doc["origin"]
        if not isinstance(raw, (list, tuple)) or len(raw) < 3:
            raise ValueError("origin needs three values")
        x, y, yaw = (_as_float(v) for v in raw[:3])
    except (KeyError, ValueError) as exc:
        raise _missing("an", "origin") from exc
    return (x, y, yaw)


def _image_tag(doc: Mapping[str, Any], config_path: Path) -> Path:
    raw = doc.get("image")
    if raw is None or isinstance(raw, (dict, list, bool)):
        raise _missing("an", "image")
    name = str(raw)
    if not name:
        raise MapConfigError("The image tag cannot be an empty string.")
    image = Path(name)
    if not image.is_absolute():
        image = config_path.parent / image
    return image


def load_map_config(path: str | os.PathLike[str]) -> MapConfig:
    """Read a map description file; a relative image path is taken from its directory."""
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MapConfigError(f"Map_server could not open {config_path}.") from exc
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MapConfigError(f"Map_server could not parse {config_path}: {exc}") from exc
    if not isinstance(doc, dict):
        raise MapConfigError(f"Map description {config_path} is not a mapping.")

    resolution = _float_tag(doc, "resolution", "a")
    try:
        negate = _as_int(doc["negate"])
    except (KeyError, ValueError) as exc:
        raise _missing("a", "negate") from exc
    occupied = _float_tag(doc, "occupied_thresh", "an")
    free = _float_tag(doc, "free_thresh", "a")
    mode = _mode_tag(doc)
    origin = _origin_tag(doc)
    image = _image_tag(doc, config_path)
    return MapConfig(
        image=image,
        resolution=resolution,
        negate=bool(negate),
        occupied_thresh=occupied,
        free_thresh=free,
        origin=origin,
        mode=mode,
    )


class MapServer:
    """Loads a map once and hands out copies of it and of its metadata.

    With a non-zero ``resolution`` ``fname`` is the image itself (the
    deprecated interface) and the thresholds given here are used; otherwise
    ``fname`` is a map description file.
    """

    def __init__(
        self,
        fname: str | os.PathLike[str],
        resolution: float = 0.0,
        *,
        frame_id: str = DEFAULT_FRAME_ID,
        negate: bool = False,
        occupied_thresh: float = DEFAULT_OCCUPIED_THRESH,
        free_thresh: float = DEFAULT_FREE_THRESH,
    ) -> None:
        self.deprecated = resolution != 0
        if self.deprecated:
            self.config = MapConfig(
                image=Path(fname),
                resolution=resolution,
                negate=bool(negate),
                occupied_thresh=occupied_thresh,
                free_thresh=free_thresh,
            )
        else:
            self.config = load_map_config(fname)

        cfg = self.config
        logger.info('Loading map from image "%s"', cfg.image)
        self._grid: OccupancyGrid = load_map_from_file(
            cfg.image,
            cfg.resolution,
            cfg.negate,
            cfg.occupied_thresh,
            cfg.free_thresh,
            cfg.origin,
            cfg.mode,
        )
        logger.info("occ_th %f, free_th %f", cfg.occupied_thresh, cfg.free_thresh)
        self.parameters: dict[str, Any] = {
            "/occu_th": cfg.occupied_thresh,
            "/free_th": cfg.free_thresh,
            "/map_address": str(cfg.image),
        }
        self.frame_id = frame_id
        self.map_load_time = time.time()
        logger.info(
            "Read a %d X %d map @ %.3f m/cell",
            self._grid.width,
            self._grid.height,
            self._grid.resolution,
        )

    def get_map(self) -> OccupancyGrid:
        """A deep copy of the loaded grid."""
        return copy.deepcopy(self._grid)

    def metadata(self) -> dict[str, Any]:
        """Load time, resolution, size and origin of the map."""
        return {
            "map_load_time": self.map_load_time,
            "resolution": self._grid.resolution,
            "width": self._grid.width,
            "height": self._grid.height,
            "origin": self._grid.origin,
        }


def main(argv: Sequence[str] | None = None) -> int:
    """Load a map from the command line and report its size."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) not in (1, 2):
        print(USAGE, file=sys.stderr)
        return 1
    if len(args) == 2:
        print(
            "Using deprecated map server interface. Please switch to new interface.",
            file=sys.stderr,
        )
        try:
            resolution = float(args[1])
        except ValueError:
            resolution = 0.0
    else:
        resolution = 0.0

    try:
        server = MapServer(args[0], resolution)
    except (MapConfigError, MapLoadError) as exc:
        print(f"map_server exception: {exc}", file=sys.stderr)
        return 1

    grid = server.get_map()
    print(f"Read a {grid.width} X {grid.height} map @ {grid.resolution:.3f} m/cell")
    return 0


if __name__ == "__main__":
    sys.exit(main())