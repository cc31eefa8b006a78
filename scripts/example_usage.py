"""
Example usage of the campgrid core with the in-memory store.

Two editors saved drafts of the same day. The example merges them, prints
the resulting per-division grids and the validation report, then looks up
what one bunk is doing at noon.
"""

import asyncio

from campgrid.core.logging_config import setup_logging
from campgrid.services.memory_store import MemoryScheduleStore
from campgrid.services.orchestrator import ScheduleOrchestrator
from campgrid.utils.time_utils import parse_time

DAY = "2025-07-01"

DIVISIONS = {
    "Juniors": {"bunks": ["1", "2"], "startTime": "11:00am", "endTime": "1:00pm"},
    "Seniors": {"bunks": ["10", "11"], "startTime": "11:00am", "endTime": "1:00pm"},
}

RESOURCES = {
    "Gym": {"sharableWith": {"type": "not_sharable"}},
    "Field A": {"sharableWith": {"type": "custom", "capacity": 2}},
}

SKELETON = [
    {"division": "Juniors", "startTime": "11:00am", "endTime": "12:00pm", "event": "Swim / Art", "type": "split"},
    {"division": "Juniors", "startTime": "12:00pm", "endTime": "1:00pm", "event": "Lunch", "type": "pinned"},
    {"division": "Seniors", "startTime": "11:00am", "endTime": "12:00pm", "event": "Activity", "type": "slot"},
    {"division": "Seniors", "startTime": "12:00pm", "endTime": "1:00pm", "event": "Lunch", "type": "pinned"},
]


def example_store() -> MemoryScheduleStore:
    store = MemoryScheduleStore(divisions=DIVISIONS, resources=RESOURCES, camp_id="demo")

    # Morning draft: structure plus every bunk
    store.add_version(DAY, {
        "id": "morning",
        "created_at": "2025-07-01T08:00:00Z",
        "schedule_data": {
            "manualSkeleton": SKELETON,
            "scheduleAssignments": {
                "1": [{"field": "Gym", "_activity": "Basketball"}, {"_activity": "Art"}, {"_activity": "Lunch"}],
                "2": [{"_activity": "Swim"}, {"_activity": "Art"}, {"_activity": "Lunch"}],
                "10": [{"field": "Field A", "_activity": "Soccer"}, {"_activity": "Lunch"}],
                "11": [{"field": "Field A", "_activity": "Soccer"}, {"_activity": "Lunch"}],
            },
        },
    })

    # Afternoon draft, stored as JSON text by an older editor: bunk 10 moved to the gym
    store.add_version(DAY, {
        "id": "afternoon",
        "created_at": "2025-07-01T13:00:00Z",
        "data": '{"scheduleAssignments": {"10": [{"field": "Gym", "_activity": "Basketball"}, {"_activity": "Lunch"}]}}',
    })
    return store


async def example_merge():
    """Example: merge both drafts and validate the result."""
    orchestrator = ScheduleOrchestrator(example_store(), "demo")
    result, report = await orchestrator.run_pass(DAY)

    print(f"Merged {result.processed_count} versions covering {result.bunk_count} bunks")

    print("\nDivision grids:")
    for division, slots in orchestrator.snapshot(DAY).division_grids.items():
        print(f"  {division}: " + ", ".join(slot.label for slot in slots))

    print(f"\nReport: {report.get_summary()}")
    for finding in report.errors:
        print(f"  ERROR   {finding}")
    for finding in report.warnings:
        print(f"  WARNING {finding}")

    return orchestrator


def example_lookup(orchestrator: ScheduleOrchestrator):
    """Example: what is bunk 10 doing at noon?"""
    resolver = orchestrator.resolver(DAY)
    lookup = resolver.find_entry("10", parse_time("12:00pm"), parse_time("1:00pm"))
    print(f"\nBunk 10 at 12:00 PM: slot {lookup.slot_index}, {lookup.entry.to_dict() if lookup.entry else 'free'}")


if __name__ == "__main__":
    setup_logging()
    print("=" * 60)
    print("Campgrid example")
    print("=" * 60)

    orchestrator = asyncio.run(example_merge())
    example_lookup(orchestrator)
