"""
Data models for the scheduling core.
"""

from .models import (
    FindingKind,
    MergeState,
    TimeSlot,
    Division,
    SkeletonBlock,
    Entry,
    SharingRule,
    Resource,
    ScheduleVersion,
    EntryLookup,
    Finding,
    ConflictReport,
    MergeResult,
    DaySnapshot
)

__all__ = [
    "FindingKind",
    "MergeState",
    "TimeSlot",
    "Division",
    "SkeletonBlock",
    "Entry",
    "SharingRule",
    "Resource",
    "ScheduleVersion",
    "EntryLookup",
    "Finding",
    "ConflictReport",
    "MergeResult",
    "DaySnapshot"
]
