"""
Tests for the Celery merge task, run eagerly in-process.
"""

from campgrid.core.exceptions import ConfigurationError
from campgrid.tasks import schedule_tasks
from campgrid.tasks.schedule_tasks import merge_and_validate

DAY = "2025-07-01"


def test_merge_and_validate_returns_summary(monkeypatch, store, skeleton):
    store.add_version(DAY, {
        "id": "v1",
        "created_at": "2025-07-01T08:00:00Z",
        "schedule_data": {
            "manualSkeleton": skeleton,
            "scheduleAssignments": {"1": [{"_activity": "Art"}, None, {"_activity": "Lunch"}]},
        },
    }, camp_id="camp-1")
    monkeypatch.setattr(schedule_tasks, "create_store", lambda camp_id: store)

    result = merge_and_validate(DAY, camp_id="camp-1")

    assert result["success"] is True
    assert result["date"] == DAY
    assert result["processedCount"] == 1
    assert result["bunkCount"] == 1
    assert result["errors"] == 0
    assert result["warnings"] > 0
    assert "duration" in result
    assert store.published[DAY]["assignments"]["1"][0] == {"_activity": "Art"}


def test_merge_and_validate_reports_failures(monkeypatch, store):
    store.add_version(DAY, {"id": "v1", "schedule_data": {"scheduleAssignments": {"1": []}}}, camp_id="camp-1")
    store.fail_on_publish = True
    monkeypatch.setattr(schedule_tasks, "create_store", lambda camp_id: store)

    result = merge_and_validate(DAY, camp_id="camp-1")

    assert result["success"] is False
    assert "publish" in result["error"]


def test_merge_and_validate_never_raises(monkeypatch):
    def broken_store(camp_id):
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")

    monkeypatch.setattr(schedule_tasks, "create_store", broken_store)

    result = merge_and_validate(DAY, camp_id="camp-1")

    assert result["success"] is False
    assert "SUPABASE_URL" in result["error"]
