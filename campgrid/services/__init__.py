"""
Services for grid building, slot resolution, validation, merging and persistence.
"""

from .time_grid import build_grid, build_division_grids, parse_time, minutes_to_label
from .slot_resolver import SlotResolver
from .validator import ConflictValidator
from .version_merger import VersionMerger
from .store import ScheduleStore
from .memory_store import MemoryScheduleStore
from .supabase_store import SupabaseScheduleStore
from .debounce import DebouncedScheduler, wait_for_signal
from .orchestrator import ScheduleOrchestrator

__all__ = [
    "build_grid",
    "build_division_grids",
    "parse_time",
    "minutes_to_label",
    "SlotResolver",
    "ConflictValidator",
    "VersionMerger",
    "ScheduleStore",
    "MemoryScheduleStore",
    "SupabaseScheduleStore",
    "DebouncedScheduler",
    "wait_for_signal",
    "ScheduleOrchestrator"
]
