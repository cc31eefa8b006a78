"""
Shared fixtures: a small two-division camp and an in-memory store.
"""

import pytest

from campgrid.services.memory_store import MemoryScheduleStore
from campgrid.services.orchestrator import ScheduleOrchestrator


@pytest.fixture
def divisions():
    return {
        "Juniors": {"bunks": ["1", "2"], "startTime": "11:00am", "endTime": "1:00pm"},
        "Seniors": {"bunks": ["10", "11"], "startTime": "11:00am", "endTime": "1:00pm"},
    }


@pytest.fixture
def skeleton():
    return [
        {"division": "Juniors", "startTime": "11:00am", "endTime": "11:30am", "event": "Activity", "type": "slot"},
        {"division": "Juniors", "startTime": "11:30am", "endTime": "12:00pm", "event": "Activity", "type": "slot"},
        {"division": "Juniors", "startTime": "12:00pm", "endTime": "1:00pm", "event": "Lunch", "type": "pinned"},
        {"division": "Seniors", "startTime": "11:00am", "endTime": "12:00pm", "event": "Activity", "type": "slot"},
        {"division": "Seniors", "startTime": "12:00pm", "endTime": "1:00pm", "event": "Lunch", "type": "pinned"},
    ]


@pytest.fixture
def resources():
    return {
        "Gym": {"sharableWith": {"type": "not_sharable"}},
        "Field A": {"sharableWith": {"type": "custom", "capacity": 2}},
    }


@pytest.fixture
def store(divisions, resources):
    return MemoryScheduleStore(divisions=divisions, resources=resources, camp_id="camp-1")


@pytest.fixture
def orchestrator(store):
    return ScheduleOrchestrator(
        store,
        "camp-1",
        date_change_delay=0.01,
        hydration_delay=0.01,
        hydration_timeout=0.05,
    )
