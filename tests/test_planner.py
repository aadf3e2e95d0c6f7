import io

import pytest
from PIL import Image

from fieldplan.line import Line
from fieldplan.node import Node
from fieldplan.planner import (
    CeresPlanner,
    DesignPattern,
    dump_clusters,
    dump_nodes,
    dump_pairs,
    dump_points,
    dump_region,
)
from fieldplan.subregion import Subregion


def _region(*segments):
    region = Subregion(0)
    for (x1, y1), (x2, y2) in segments:
        line = Line(0.0)
        line.set_input((x1, y1), (x2, y2))
        region.insert_line(0, line)
    return region


@pytest.fixture
def planner():
    return CeresPlanner()


def test_set_input_thresholds_at_127(planner):
    img = Image.new("L", (2, 1))
    img.putpixel((0, 0), 127)
    img.putpixel((1, 0), 128)
    out = planner.set_input(img)
    assert out.getpixel((0, 0)) == 0
    assert out.getpixel((1, 0)) == 255


def test_set_input_converts_colour_to_binary(planner):
    img = Image.new("RGB", (3, 3), (255, 255, 255))
    img.putpixel((1, 1), (0, 0, 0))
    out = planner.set_input(img)
    assert out.mode == "L"
    assert set(out.getdata()) == {0, 255}
    assert out.getpixel((1, 1)) == 0
    assert planner.input_boundary is img


def test_set_input_none_raises(planner):
    with pytest.raises(ValueError):
        planner.set_input(None)


def test_contour_mapping_skips_last_row_and_column(planner):
    img = Image.new("L", (4, 3), 255)
    img.putpixel((1, 0), 0)
    img.putpixel((2, 1), 0)
    img.putpixel((3, 1), 0)  # last column
    img.putpixel((0, 2), 0)  # last row
    assert planner.contour_mapping(img) == [(1, 0), (2, 1)]


def test_gradient_break_keeps_jumps(planner):
    assert planner.gradient_break_in_y([0, 1, 2, 10, 11, 12, 20], 5) == [0, 10, 20]


def test_gradient_break_appends_distant_last(planner):
    ys = [0, 1, 2, 3, 4, 5, 6, 7]
    assert planner.gradient_break_in_y(ys, 5) == [0, 7]


def test_gradient_break_result_is_ordered_subset(planner):
    ys = [3, 4, 9, 20, 21, 22, 40]
    out = planner.gradient_break_in_y(ys, 2)
    assert out[0] == ys[0]
    assert all(v in ys for v in out)
    assert out == sorted(out)


def test_gradient_break_empty_raises(planner):
    with pytest.raises(ValueError):
        planner.gradient_break_in_y([], 5)


def test_straight_path_draw_lines(planner):
    points = [(0, 0), (0, 1)]
    points += [(10, 40), (10, 5)]
    points += [(15, 3), (15, 80)]
    points += [(20, y) for y in (0, 1, 30, 31, 60, 61, 90)]
    points += [(35, 0), (35, 50)]
    region = planner.straight_path_draw(points, 10, 5)
    ends = [(ln.one_end, ln.other_end) for ln in region.lines]
    assert ends == [
        ((10.0, 5.0), (10.0, 40.0)),
        ((20.0, 0.0), (20.0, 30.0)),
        ((20.0, 60.0), (20.0, 90.0)),
    ]
    assert region.region_id == 0


def test_headland_creator_trims_ends(planner):
    region = _region(((10, 5), (10, 100)), ((20, 0), (20, 80)))
    before = region.lines
    result = planner.headland_creator(region, 7)
    after = result.lines
    assert len(after) == len(before)
    for old, new in zip(before, after):
        assert new.one_end == (old.one_end[0], old.one_end[1] + 7)
        assert new.other_end == (old.other_end[0], old.other_end[1] - 7)
    assert region.lines[0].one_end == after[0].one_end


def test_path_planning_serpentine(planner):
    region = _region(((10, 0), (10, 100)), ((20, 0), (20, 100)), ((30, 0), (30, 100)))
    path = planner.path_planning(region, 0)
    assert path == [(10, 0), (10, 100), (20, 100), (20, 0), (30, 0), (30, 100)]
    assert planner.planned_path == path


def test_path_planning_uses_first_line_per_x(planner):
    region = _region(
        ((10, 0), (10, 40)),
        ((10, 60), (10, 100)),
        ((20, 0), (20, 100)),
    )
    path = planner.path_planning(region, 1)
    assert path == [(10, 0), (10, 40), (20, 0), (20, 100)]


def test_path_planning_empty_region_raises(planner):
    with pytest.raises(ValueError):
        planner.path_planning(Subregion(0), 0)


@pytest.mark.parametrize("design", list(DesignPattern))
def test_skip_turn_designed_path_matches_planning(design):
    region = _region(((10, 0), (10, 50)), ((20, 0), (20, 50)))
    expected = CeresPlanner().path_planning(region, design.value)
    assert CeresPlanner().skip_turn_designed_path(region, design) == expected


@pytest.mark.parametrize("key", [0, 1, 2])
def test_design_pattern_looked_up_by_key_plans_path(key):
    design = DesignPattern(key)
    assert design.value == key
    region = _region(((10, 0), (10, 50)), ((20, 0), (20, 50)))
    path = CeresPlanner().skip_turn_designed_path(region, design)
    assert path == [(10, 0), (10, 50), (20, 50), (20, 0)]


def test_design_pattern_first_key_is_one_way():
    assert DesignPattern(0) is DesignPattern.ONE_WAY_PATTERN
    with pytest.raises(ValueError):
        DesignPattern(3)


def test_skip_turn_invalid_design_raises(planner):
    region = _region(((10, 0), (10, 50)))
    with pytest.raises(ValueError):
        planner.skip_turn_designed_path(region, 2)


def test_pipeline_from_image(planner):
    img = Image.new("RGB", (60, 60), (255, 255, 255))
    for x in range(5, 55):
        img.putpixel((x, 5), (0, 0, 0))
        img.putpixel((x, 50), (0, 0, 0))
    binary = planner.set_input(img)
    points = planner.contour_mapping(binary)
    region = planner.straight_path_draw(points, 10, 5)
    xs = [ln.one_end[0] for ln in region.lines]
    assert xs and all((x - 5) % 10 == 0 for x in xs)
    trimmed = planner.headland_creator(region, 3)
    path = planner.skip_turn_designed_path(trimmed, DesignPattern.ONE_WAY_PATTERN)
    assert len(path) == 2 * len(xs)
    assert {p[1] for p in path} == {8, 47}


def test_dump_points():
    buf = io.StringIO()
    dump_points(buf, [(1, 2), (3, 4)])
    assert buf.getvalue() == "1 2\n3 4\n"


def test_dump_region():
    buf = io.StringIO()
    dump_region(buf, _region(((10.0, 40.0), (10.0, 5.0))))
    assert buf.getvalue() == "10 5\n10 40\n"


def test_dump_pairs():
    buf = io.StringIO()
    dump_pairs(buf, [(10, 0), (10, 100)])
    assert buf.getvalue() == "10 0\n10 100\n"


def test_dump_clusters():
    buf = io.StringIO()
    a = Line(0.0, (1.0, 2.0), (1.0, 3.5))
    b = Line(0.0, (4.0, 0.0), (4.0, 9.0))
    dump_clusters(buf, [[a], [b]])
    assert buf.getvalue() == "1 2 1 3.5\n\n4 0 4 9\n\n"


def test_dump_nodes():
    buf = io.StringIO()
    dump_nodes(buf, [Node(1.5, 2.0, 0.25)])
    assert buf.getvalue() == "1.5, 2, 0.25\n"