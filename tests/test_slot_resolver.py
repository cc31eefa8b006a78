"""
Tests for division-aware slot lookup.
"""

import pytest

from campgrid.models import Division
from campgrid.services.slot_resolver import SlotResolver

JUNIOR_GRID = [
    {"startMin": 660, "endMin": 690},
    {"startMin": 690, "endMin": 720},
    {"startMin": 720, "endMin": 780},
]
SENIOR_GRID = [
    {"startMin": 660, "endMin": 720},
    {"startMin": 720, "endMin": 780},
]
LEGACY_GRID = [
    {"start": "2025-07-01T09:00:00", "end": "2025-07-01T10:00:00"},
    {"start": "2025-07-01T10:00:00", "end": "2025-07-01T11:00:00"},
]


@pytest.fixture
def resolver():
    divisions = {
        "Juniors": Division("Juniors", bunks=["1", "2", "Bunk A"]),
        "Seniors": Division("Seniors", bunks=["10", "11"]),
    }
    assignments = {
        "1": [{"_activity": "Art"}, None, {"_activity": "Lunch"}],
        "2": [{"field": "Soccer Field", "_activity": "Soccer"}, {"continuation": True}, {"_activity": "Lunch"}],
        "10": [{"field": "Gym", "sport": "Basketball"}, {"_activity": "Lunch"}],
        "99": [{"_activity": "Nature", "_blockStart": 900}],
        "98": [None, "Canteen"],
    }
    return SlotResolver(
        divisions,
        {"Juniors": JUNIOR_GRID, "Seniors": SENIOR_GRID},
        assignments,
        LEGACY_GRID,
    )


def test_resolve_division_is_tolerant(resolver):
    assert resolver.resolve_division("1") == "Juniors"
    assert resolver.resolve_division(1) == "Juniors"
    assert resolver.resolve_division(" 10 ") == "Seniors"
    assert resolver.resolve_division("bunk a") == "Juniors"
    assert resolver.resolve_division("Bunk Z") is None
    assert resolver.resolve_division(None) is None


def test_find_entry_uses_each_bunks_own_grid(resolver):
    # 12:00 is slot 2 for Juniors but slot 1 for Seniors
    junior = resolver.find_entry("1", 720, 780)
    senior = resolver.find_entry("10", 720, 780)

    assert junior.slot_index == 2
    assert junior.entry.activity_name == "Lunch"
    assert senior.slot_index == 1
    assert senior.entry.activity_name == "Lunch"


def test_find_entry_walks_back_from_continuation(resolver):
    lookup = resolver.find_entry("2", 690, 720)

    assert lookup.slot_index == 1
    assert lookup.owner_index == 0
    assert lookup.entry.activity_name == "Soccer"


def test_direct_hit_owns_its_slot(resolver):
    lookup = resolver.find_entry("2", 660, 690)

    assert lookup.slot_index == lookup.owner_index == 0


def test_find_entry_empty_slot_still_reports_index(resolver):
    lookup = resolver.find_entry("1", 690, 720)

    assert lookup.entry is None
    assert lookup.slot_index == 1
    assert lookup.found


def test_find_entry_override_start(resolver):
    lookup = resolver.find_entry("99", 900, 930)

    assert lookup.slot_index == 0
    assert lookup.entry.activity_name == "Nature"


def test_find_entry_legacy_grid(resolver):
    lookup = resolver.find_entry("98", 600, 660)

    assert lookup.slot_index == 1
    assert lookup.entry.activity_name == "Canteen"


def test_find_entry_no_match(resolver):
    lookup = resolver.find_entry("1", 1200, 1260)
    assert lookup.entry is None
    assert lookup.slot_index == -1
    assert not lookup.found

    assert resolver.find_entry("unknown", 660, 690).slot_index == -1


def test_find_entry_with_explicit_grid(resolver):
    lookup = resolver.find_entry("10", 660, 720, division_grid=JUNIOR_GRID)
    assert lookup.slot_index == 0
    assert lookup.entry.resource == "Gym"


def test_find_slots_for_range(resolver):
    assert resolver.find_slots_for_range(680, 730, "Juniors") == [0, 1, 2]
    assert resolver.find_slots_for_range(700, 720, "10") == [0]
    assert resolver.find_slots_for_range(690, 720, JUNIOR_GRID) == [1]
    # Touching at an edge is not an overlap
    assert resolver.find_slots_for_range(720, 780, "Seniors") == [1]


def test_find_slots_for_range_fallbacks(resolver):
    assert resolver.find_slots_for_range(None, 700, "Juniors") == []
    assert resolver.find_slots_for_range(600, None, "Juniors") == []
    # Unknown target uses the legacy grid
    assert resolver.find_slots_for_range(540, 600, "Nowhere") == [0]


def test_division_grid_for(resolver):
    assert len(resolver.division_grid_for("11")) == 2
    assert resolver.division_grid_for("nobody") == []
