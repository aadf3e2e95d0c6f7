import math

import pytest
from PIL import Image

from fieldplan.image_loader import (
    MapLoadError,
    MapMode,
    OccupancyGrid,
    load_map_from_file,
)

VALID_IMAGE_WIDTH = 10
VALID_IMAGE_HEIGHT = 10
VALID_IMAGE_RES = 0.1
# Row-major, lower-left pixel first.
VALID_IMAGE_CONTENT = [
    0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    100, 100, 100, 100, 0, 0, 100, 100, 100, 0,
    100, 100, 100, 100, 0, 0, 100, 100, 100, 0,
    100, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    100, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    100, 0, 0, 0, 0, 0, 100, 100, 0, 0,
    100, 0, 0, 0, 0, 0, 100, 100, 0, 0,
    100, 0, 0, 0, 0, 0, 100, 100, 0, 0,
    100, 0, 0, 0, 0, 0, 100, 100, 0, 0,
    100, 0, 0, 0, 0, 0, 0, 0, 0, 0,
]


def _test_map_image(mode):
    image = Image.new("L", (VALID_IMAGE_WIDTH, VALID_IMAGE_HEIGHT), 255)
    for index, cell in enumerate(VALID_IMAGE_CONTENT):
        col = index % VALID_IMAGE_WIDTH
        row_from_bottom = index // VALID_IMAGE_WIDTH
        image.putpixel((col, VALID_IMAGE_HEIGHT - 1 - row_from_bottom), 0 if cell == 100 else 255)
    return image.convert(mode)


@pytest.fixture
def valid_png(tmp_path):
    path = tmp_path / "testmap.png"
    _test_map_image("L").save(path)
    return path


@pytest.fixture
def valid_bmp(tmp_path):
    path = tmp_path / "testmap.bmp"
    _test_map_image("RGB").save(path)
    return path


def _single_pixel(tmp_path, mode, value, name="px.png"):
    path = tmp_path / name
    Image.new(mode, (1, 1), value).save(path)
    return path


def test_load_valid_png(valid_png):
    grid = load_map_from_file(valid_png, VALID_IMAGE_RES, False, 0.65, 0.1, (0.0, 0.0, 0.0))
    assert grid.resolution == pytest.approx(VALID_IMAGE_RES)
    assert grid.width == VALID_IMAGE_WIDTH
    assert grid.height == VALID_IMAGE_HEIGHT
    assert grid.data == VALID_IMAGE_CONTENT


def test_load_valid_bmp(valid_bmp):
    grid = load_map_from_file(valid_bmp, VALID_IMAGE_RES, False, 0.65, 0.1, (0.0, 0.0, 0.0))
    assert grid.resolution == pytest.approx(VALID_IMAGE_RES)
    assert grid.width == VALID_IMAGE_WIDTH
    assert grid.height == VALID_IMAGE_HEIGHT
    assert grid.data == VALID_IMAGE_CONTENT


def test_load_invalid_file(tmp_path):
    with pytest.raises(MapLoadError):
        load_map_from_file(tmp_path / "foo", 0.1, False, 0.65, 0.1, (0.0, 0.0, 0.0))


def test_load_error_is_runtime_error(tmp_path):
    bogus = tmp_path / "foo.png"
    bogus.write_text("not an image")
    with pytest.raises(RuntimeError, match="failed to open image file"):
        load_map_from_file(bogus, 0.1, False, 0.65, 0.1)


def test_negate_swaps_free_and_occupied(valid_png):
    grid = load_map_from_file(valid_png, VALID_IMAGE_RES, True, 0.65, 0.1)
    expected = [0 if v == 100 else 100 for v in VALID_IMAGE_CONTENT]
    assert grid.data == expected


def test_trinary_mid_gray_is_unknown(tmp_path):
    path = _single_pixel(tmp_path, "L", 128)
    grid = load_map_from_file(path, 0.05, False, 0.65, 0.196, mode=MapMode.TRINARY)
    assert grid.data == [-1]


def test_scale_mid_gray_is_between_free_and_occupied(tmp_path):
    path = _single_pixel(tmp_path, "L", 128)
    grid = load_map_from_file(path, 0.05, False, 0.65, 0.196, mode=MapMode.SCALE)
    assert 0 < grid.data[0] < 100


def test_scale_grows_with_darkness(tmp_path):
    lighter = load_map_from_file(
        _single_pixel(tmp_path, "L", 150, "a.png"), 0.05, False, 0.65, 0.196, mode=MapMode.SCALE
    )
    darker = load_map_from_file(
        _single_pixel(tmp_path, "L", 110, "b.png"), 0.05, False, 0.65, 0.196, mode=MapMode.SCALE
    )
    assert darker.data[0] > lighter.data[0]


def test_scale_transparent_pixel_is_unknown(tmp_path):
    path = _single_pixel(tmp_path, "RGBA", (128, 128, 128, 0))
    grid = load_map_from_file(path, 0.05, False, 0.65, 0.196, mode=MapMode.SCALE)
    assert grid.data == [-1]


def test_scale_transparent_dark_pixel_still_occupied(tmp_path):
    path = _single_pixel(tmp_path, "RGBA", (0, 0, 0, 0))
    grid = load_map_from_file(path, 0.05, False, 0.65, 0.196, mode=MapMode.SCALE)
    assert grid.data == [100]


def test_raw_keeps_intensity(tmp_path):
    path = _single_pixel(tmp_path, "L", 77)
    grid = load_map_from_file(path, 0.05, False, 0.65, 0.196, mode=MapMode.RAW)
    assert grid.data == [77]


def test_raw_high_intensity_wraps_to_signed_byte(tmp_path):
    path = _single_pixel(tmp_path, "L", 200)
    grid = load_map_from_file(path, 0.05, False, 0.65, 0.196, mode=MapMode.RAW)
    assert grid.data == [-56]


def test_origin_is_stored(valid_png):
    grid = load_map_from_file(valid_png, 0.1, False, 0.65, 0.1, (1.5, -2.0, 0.3))
    assert grid.origin == (1.5, -2.0, 0.3)


def test_quaternion_of_zero_yaw():
    grid = OccupancyGrid(width=1, height=1, resolution=0.1, origin=(0.0, 0.0, 0.0))
    assert grid.quaternion() == (0.0, 0.0, 0.0, 1.0)


def test_quaternion_is_unit_and_matches_yaw():
    grid = OccupancyGrid(width=1, height=1, resolution=0.1, origin=(0.0, 0.0, math.pi))
    x, y, z, w = grid.quaternion()
    assert x == 0.0 and y == 0.0
    assert z == pytest.approx(1.0)
    assert w == pytest.approx(0.0, abs=1e-12)
    assert math.hypot(z, w) == pytest.approx(1.0)