"""
Tests for normalizing stored records at the persistence boundary.
"""

import json
from datetime import datetime, timezone

from campgrid.models import ScheduleVersion
from campgrid.services.payloads import (
    extract_payload, normalize_divisions, normalize_version, normalize_versions,
    resources_from_camp_state, sort_versions
)


def test_string_encoded_payload():
    record = {
        "id": 7,
        "created_at": "2025-07-01T09:00:00Z",
        "schedule_data": json.dumps({
            "scheduleAssignments": {"5": [{"field": "Gym"}, None]},
            "manualSkeleton": [{"division": "A", "startTime": "9:00am", "endTime": "10:00am"}],
            "leagueAssignments": {"A": {"0": {"matchups": [["5", "6"]]}}},
        }),
    }

    version = normalize_version(record)

    assert version.version_id == "7"
    assert version.created_at == datetime(2025, 7, 1, 9, 0, tzinfo=timezone.utc)
    assert version.assignments == {"5": [{"field": "Gym"}, None]}
    assert version.skeleton[0]["division"] == "A"
    assert version.league_assignments == {"A": {"0": {"matchups": [["5", "6"]]}}}


def test_alternate_field_names():
    version = normalize_version({
        "id": "v2",
        "payload": {"skeleton": [{"division": "B"}], "scheduleAssignments": {"6": ["Art"]}},
    })
    assert version.skeleton == [{"division": "B"}]
    assert version.assignments == {"6": ["Art"]}

    version = normalize_version({"id": "v3", "state": json.dumps({"scheduleAssignments": {}})})
    assert version.assignments == {}
    assert version.skeleton is None


def test_first_present_field_wins():
    payload = extract_payload({
        "schedule_data": {"scheduleAssignments": {"1": []}},
        "data": {"scheduleAssignments": {"2": []}},
    })
    assert "1" in payload["scheduleAssignments"]


def test_assignments_from_top_level_rows():
    version = normalize_version({
        "data": {
            "5": [{"field": "Gym"}],
            "6": [],
            "unifiedTimes": [{"startMin": 540, "endMin": 570}],
            "name": "draft",
        }
    })
    assert set(version.assignments) == {"5", "6"}


def test_unreadable_records_are_skipped():
    assert normalize_version({"id": 1, "schedule_data": "{not json"}) is None
    assert normalize_version({"id": 2}) is None
    assert normalize_version("junk") is None

    versions = normalize_versions([
        {"id": 1, "schedule_data": "{not json"},
        {"id": 2, "data": {"scheduleAssignments": {"5": []}}},
    ])
    assert [v.version_id for v in versions] == ["2"]


def test_sort_versions_oldest_first_and_stable():
    early = ScheduleVersion("early", datetime(2025, 7, 1, 8, 0, tzinfo=timezone.utc))
    late = ScheduleVersion("late", datetime(2025, 7, 1, 12, 0))
    undated_1 = ScheduleVersion("undated-1", None)
    undated_2 = ScheduleVersion("undated-2", None)

    ordered = sort_versions([late, undated_1, early, undated_2])

    assert [v.version_id for v in ordered] == ["undated-1", "undated-2", "early", "late"]


def test_normalize_divisions_shapes():
    from_dict = normalize_divisions({"Juniors": {"bunks": [1, "2 "], "startTime": "9:00am"}})
    assert from_dict["Juniors"].bunks == ["1", "2"]
    assert from_dict["Juniors"].start_min == 540

    from_list = normalize_divisions([{"name": "Seniors", "bunks": ["10"], "timeline": {"start": "10:00am"}}, "junk"])
    assert list(from_list) == ["Seniors"]
    assert from_list["Seniors"].start_min == 600


def test_resources_from_camp_state():
    state = {
        "activityProperties": {"Gym": {"sharableWith": {"type": "custom", "capacity": 3, "divisions": ["A"]}}},
        "app1": {
            "fields": [{"name": "Field A", "sharable": True}, {"name": "Gym", "sharable": True}],
            "specialActivities": [{"name": "Canteen", "available": False}],
        },
    }
    resources = resources_from_camp_state(state)

    assert set(resources) == {"Gym", "Field A", "Canteen"}
    assert resources["Gym"].capacity == 3
    assert resources["Gym"].allowed_divisions == ["A"]
    assert resources["Field A"].sharable
