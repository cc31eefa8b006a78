"""
Tests for time parsing and grid construction.
"""

from datetime import time

from campgrid.models import Division
from campgrid.services import time_grid
from campgrid.services.time_grid import (
    build_division_grids, build_grid, minutes_to_label, parse_time
)


def test_parse_time_meridian():
    assert parse_time("9:00 am") == 540
    assert parse_time("12:30 pm") == 750
    assert parse_time("12:00 am") == 0
    assert parse_time("12:00pm") == 720
    assert parse_time("9 : 05 PM") == 1265
    assert parse_time("11:00AM") == 660


def test_parse_time_without_meridian():
    assert parse_time("14:30") == 870
    assert parse_time("9:15") == 555
    # Camp hours: 1-7 without a suffix are afternoon
    assert parse_time("2:30") == 870


def test_parse_time_never_raises():
    assert parse_time("garbage") is None
    assert parse_time("") is None
    assert parse_time(None) is None
    assert parse_time("25:00") is None
    assert parse_time("9:75 am") is None
    assert parse_time({"start": "9:00"}) is None
    assert parse_time(True) is None


def test_parse_time_passthrough():
    assert parse_time(600) == 600
    assert parse_time(time(13, 45)) == 825


def test_minutes_to_label():
    assert minutes_to_label(540) == "9:00 AM"
    assert minutes_to_label(810) == "1:30 PM"
    assert minutes_to_label(720) == "12:00 PM"
    assert minutes_to_label(0) == "12:00 AM"


def test_grid_spans_every_division():
    skeleton = [
        {"division": "X", "startTime": "8:00am", "endTime": "9:00am", "event": "Breakfast"},
        {"division": "Y", "startTime": "9:30am", "endTime": "4:00pm", "event": "Day"},
    ]
    grid = build_grid(skeleton)

    assert grid[0].start_min == 480
    assert grid[-1].end_min == 960
    assert len(grid) == 16
    assert all(slot.end_min - slot.start_min == 30 for slot in grid)
    assert grid[0].label == "8:00 AM"


def test_grid_defaults_without_any_times():
    grid = build_grid([])
    assert grid[0].start_min == 540
    assert grid[-1].end_min == 960
    assert len(grid) == 14


def test_narrow_skeleton_keeps_the_default_day():
    grid = build_grid([{"division": "X", "startTime": "10:00am", "endTime": "3:00pm"}])
    assert (grid[0].start_min, grid[-1].end_min) == (540, 960)
    assert len(grid) == 14


def test_grid_uses_division_bounds():
    grid = build_grid(None, {"Juniors": {"startTime": "8:00am", "endTime": "2:00pm"}})
    assert (grid[0].start_min, grid[-1].end_min) == (480, 960)

    grid = build_grid(None, [Division("Seniors", start_time="10:00am", end_time="5:00pm")])
    assert (grid[0].start_min, grid[-1].end_min) == (540, 1020)


def test_grid_degenerate_span(monkeypatch):
    monkeypatch.setattr(time_grid, "DEFAULT_DAY_END_MIN", 540)
    grid = build_grid([{"division": "X", "startTime": "10:00am", "endTime": "9:00am"}])
    assert [s.start_min for s in grid] == [540, 570]


def test_grid_custom_increment():
    grid = build_grid([{"division": "X", "startTime": "9:00am", "endTime": "10:00am"}], increment_minutes=15)
    assert len(grid) == 28
    assert grid[1].start_min == 555


def test_division_grids_strictly_increasing(skeleton, divisions):
    grids = build_division_grids(skeleton, {n: Division.from_raw(n, d) for n, d in divisions.items()})

    assert set(grids) == {"Juniors", "Seniors"}
    assert [s.start_min for s in grids["Juniors"]] == [660, 690, 720]
    assert [s.start_min for s in grids["Seniors"]] == [660, 720]
    for slots in grids.values():
        for slot in slots:
            assert slot.start_min < slot.end_min
        starts = [s.start_min for s in slots]
        assert starts == sorted(set(starts))


def test_division_grid_allows_gaps():
    skeleton = [
        {"division": "X", "startTime": "9:00am", "endTime": "10:00am"},
        {"division": "X", "startTime": "11:00am", "endTime": "12:00pm"},
    ]
    grid = build_division_grids(skeleton)["X"]
    assert [(s.start_min, s.end_min) for s in grid] == [(540, 600), (660, 720)]


def test_split_tile_becomes_two_halves():
    skeleton = [
        {"division": "X", "startTime": "11:00am", "endTime": "12:00pm", "event": "Swim / Art", "type": "split"},
    ]
    grid = build_division_grids(skeleton)["X"]

    assert [(s.start_min, s.end_min) for s in grid] == [(660, 690), (690, 720)]
    assert grid[0].event == "Swim"
    assert grid[1].event == "Art"
    assert grid[1].split_half == 2


def test_duplicate_and_unreadable_blocks_dropped():
    skeleton = [
        {"division": "X", "startTime": "9:00am", "endTime": "10:00am", "event": "First"},
        {"division": "X", "startTime": "9:00am", "endTime": "9:30am", "event": "Second"},
        {"division": "X", "startTime": "whenever", "endTime": "10:00am"},
        {"division": "X", "startTime": "11:00am", "endTime": "10:00am"},
        "not a block",
    ]
    grid = build_division_grids(skeleton)["X"]

    assert len(grid) == 1
    assert grid[0].event == "First"


def test_division_without_blocks_falls_back_to_bounds():
    divisions = {
        "Juniors": Division("Juniors", start_time="9:00am", end_time="10:15am"),
        "Unknown": Division("Unknown"),
    }
    grids = build_division_grids([], divisions)

    assert [(s.start_min, s.end_min) for s in grids["Juniors"]] == [(540, 570), (570, 600), (600, 615)]
    assert grids["Unknown"] == []
