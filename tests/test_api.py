"""
Tests for the HTTP routes.
"""

import pytest
from fastapi.testclient import TestClient

from campgrid.api.routes import get_orchestrator
from campgrid.main import app

DAY = "2025-07-01"


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def seeded(store, skeleton):
    store.add_version(DAY, {
        "id": "v1",
        "created_at": "2025-07-01T08:00:00Z",
        "schedule_data": {
            "manualSkeleton": skeleton,
            "scheduleAssignments": {
                "1": [{"field": "Gym", "_activity": "Basketball"}, {"_activity": "Art"}, {"_activity": "Lunch"}],
                "2": [{"_activity": "Nature"}, {"_activity": "Art"}, {"_activity": "Lunch"}],
                "10": [{"field": "Gym", "_activity": "Basketball"}, {"_activity": "Lunch"}],
                "11": [{"_activity": "Drama"}, {"_activity": "Lunch"}],
            },
        },
    })
    return store


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "merge" in response.json()["endpoints"]


def test_merge_returns_counts_and_report(client, seeded):
    response = client.post(f"/api/schedule/{DAY}/merge")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["processedCount"] == 1
    assert data["bunkCount"] == 4
    kinds = [f["kind"] for f in data["report"]["errors"]]
    assert kinds == ["cross_division_conflict"]


def test_merge_failure_maps_to_bad_gateway(client, seeded):
    seeded.fail_on_publish = True

    response = client.post(f"/api/schedule/{DAY}/merge")

    assert response.status_code == 502
    assert "Merge failed" in response.json()["detail"]


def test_validate_and_report_need_a_loaded_day(client):
    assert client.post(f"/api/schedule/{DAY}/validate").status_code == 404
    assert client.get(f"/api/schedule/{DAY}/report").status_code == 404


def test_validate_and_report_after_merge(client, seeded):
    client.post(f"/api/schedule/{DAY}/merge")

    validated = client.post(f"/api/schedule/{DAY}/validate")
    assert validated.status_code == 200
    assert validated.json()["date"] == DAY
    assert validated.json()["is_clean"] is False

    report = client.get(f"/api/schedule/{DAY}/report")
    assert report.status_code == 200
    assert report.json()["summary"] == validated.json()["summary"]


def test_invalid_date_is_rejected(client):
    assert client.post("/api/schedule/not-a-date/merge").status_code == 422


def test_entry_lookup(client, seeded):
    client.post(f"/api/schedule/{DAY}/merge")

    response = client.get(
        f"/api/schedule/{DAY}/entry",
        params={"bunk": "10", "start": "12:00pm", "end": "1:00pm"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["division"] == "Seniors"
    assert data["slot_index"] == data["owner_index"] == 1
    assert data["entry"] == {"activityName": "Lunch"}

    bad = client.get(
        f"/api/schedule/{DAY}/entry",
        params={"bunk": "10", "start": "later", "end": "1:00pm"},
    )
    assert bad.status_code == 400


def test_hydrated_schedules_a_pass(client, orchestrator):
    orchestrator.hydration_delay = 60

    response = client.post(f"/api/schedule/{DAY}/hydrated")

    assert response.status_code == 202
    assert response.json() == {"date": DAY, "scheduled": True}
    assert orchestrator.scheduler.pending(DAY)

    client.portal.call(orchestrator.shutdown)
    assert not orchestrator.scheduler.pending(DAY)
