# fieldplan

`fieldplan` plans coverage paths across a field and handles the occupancy-grid
maps such planning works with.

It does three jobs:

- **Coverage planning.** A field boundary image is thresholded to binary.
  Vertical passes are drawn across the field at a fixed pixel spacing, trimmed
  back from the boundary to leave a headland for turning, and joined end to
  end into one route. The route is moved into map coordinates, densified and
  smoothed at its sharp turns with Bezier curves.
- **Map loading.** An image (PNG, BMP, PGM, ...) becomes an occupancy grid in
  trinary, scale or raw mode, with occupied and free thresholds, optional
  negation and a map origin.
- **Map saving.** An occupancy grid is written out as a PGM image and a YAML
  description file.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Commands

### `fieldplan-coverage`

Runs the whole coverage pipeline on a field boundary image:

```
fieldplan-coverage field.png --output-dir out
```

- `--output-dir`: directory for the output files (default: current directory)
- `--parking-width`: pixel spacing between passes (default 50)
- `--gradient-threshold`: smallest jump in y, in pixels, that separates two
  boundary crossings on one column (default 5)
- `--headland-space`: pixels trimmed from each end of every pass (default 50)
- `--design`: `one_way_pattern`, `multi_way_one_skip` or `multi_way_two_skip`
  (default `multi_way_two_skip`)

Every stage is written to the output directory: `setInputfile.png` (binary
image), `contourPoints.txt`, `contourPointsLines.txt`,
`contourPointsLinesHeadLand.txt`, `workspace.txt` (passes grouped by x),
`waypoints.txt` (pixel waypoints) and `finalPath.txt` (`x, y, orien` per
point in map coordinates). The command exits with 1 if the image cannot be
read or planning fails.

### `fieldplan-map-server`

Loads a map described by a YAML file and reports its size:

```
fieldplan-map-server map.yaml
```

The YAML file gives `image`, `resolution`, `negate`, `occupied_thresh`,
`free_thresh`, `origin` (three numbers) and, optionally, `mode` (`trinary`,
`scale` or `raw`; `trinary` when missing). A relative `image` path is resolved
against the directory of the YAML file.

The older form, an image and a resolution in metres per pixel, is still
accepted but deprecated; it uses `negate` false, occupied threshold 0.65 and
free threshold 0.196:

```
fieldplan-map-server map.png 0.05
```

### `fieldplan-map-saver`

Loads the map named by a YAML description and writes it to `<mapname>.pgm`
and `<mapname>.yaml`:

```
fieldplan-map-saver --map map.yaml -f mymap --occ 65 --free 25
```

- `--map <map.yaml>`: map description to read (required)
- `-f <mapname>`: base name of the output files (default `map`)
- `--occ <threshold>`: cells at or above this value are occupied, 1–100
  (default 65)
- `--free <threshold>`: cells from 0 up to this value are free, 0–100
  (default 25)
- `-h`: print usage

The occupied threshold must be greater than the free threshold. Free cells are
written as 254, occupied cells as 0 and all others (unknown included) as 205.
The YAML file records the image name, resolution, origin (with the yaw taken
from the grid's orientation), `negate: 0`, `occupied_thresh: 0.65` and
`free_thresh: 0.196`.

## Library use

### Loading a map

```python
from fieldplan.image_loader import MapMode, load_map_from_file

grid = load_map_from_file(
    "testmap.png",
    resolution=0.1,
    negate=False,
    occ_th=0.65,
    free_th=0.1,
    origin=(0.0, 0.0, 0.0),
    mode=MapMode.TRINARY,
)
print(grid.width, grid.height, grid.quaternion())
```

`OccupancyGrid.data` is row-major with the bottom row of the image first, so
cell (0, 0) is the lower-left corner. In trinary mode cells are 100
(occupied), 0 (free) or -1 (unknown); scale mode maps in-between values
linearly onto 0–99 and makes transparent pixels unknown; raw mode keeps the
averaged intensity. A file that cannot be read raises `MapLoadError`.

### Map configuration

```python
from fieldplan.map_server import MapServer, load_map_config

config = load_map_config("map.yaml")
server = MapServer("map.yaml")
grid = server.get_map()
info = server.metadata()
```

`load_map_config` raises `MapConfigError` when the file cannot be read or a
required tag is missing or invalid. `MapServer` loads the map once;
`get_map()` returns a copy of the grid, `metadata()` returns its load time,
resolution, width, height and origin, and `parameters` holds the thresholds
and image path that were used.

### Saving a map

```python
from fieldplan.map_saver import save_map

pgm_path, yaml_path = save_map(grid, "mymap", threshold_occupied=65, threshold_free=25)
```

### Coverage planning

```python
from PIL import Image
from fieldplan.coverage import plan_coverage
from fieldplan.planner import DesignPattern

path = plan_coverage(Image.open("field.png").convert("RGB"),
                     design=DesignPattern.MULTI_WAY_TWO_SKIP)
```

`plan_coverage` returns a list of `Node` (`x`, `y`, `orien`) in map
coordinates. The steps are also available one at a time on `CeresPlanner`:

- `set_input` thresholds the image to binary.
- `contour_mapping` collects the black pixels.
- `straight_path_draw` draws the passes as `Line` objects in a `Subregion`.
- `headland_creator` trims the passes back from the boundary.
- `skip_turn_designed_path` joins the passes for a `DesignPattern`.

`fieldplan.coverage.densify_path` turns pixel waypoints into evenly spaced map
points, and the `dump_*` functions in `fieldplan.planner` write each stage as
text.

### Curves and transforms

`fieldplan.bezier` provides `bezier_curve_fit` for 2-D points and
`one_d_bezier_curve_fit` for scalar profiles. `MapTransform` moves pixel
coordinates into map coordinates (0.05 m per pixel, map origin at (-30, -2)
by default) and `smooth` replaces the stretch around each sharp heading change
with a Bezier fit.

## Limits

- Every `DesignPattern` currently produces the same route: the first pass at
  each x, visited in order from left to right. Skip patterns are not yet
  distinct, and extra passes at the same x are not used.
- `fieldplan-map-server` loads and checks a map but does not serve it over a
  network or publish it anywhere; it reports the size and exits.
- `fieldplan-map-saver` reads its map from a YAML description and image on
  disk; it does not receive a map from a running system.