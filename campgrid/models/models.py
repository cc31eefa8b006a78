"""
Data models for the campgrid scheduling core.
Defines all data structures used throughout the application.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum

from campgrid.utils.time_utils import (
    format_range, minutes_from_instant, minutes_to_label, parse_time
)


class FindingKind(Enum):
    CROSS_DIVISION_CONFLICT = "cross_division_conflict"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    SAME_DAY_REPETITION = "same_day_repetition"
    FIELD_REUSE = "field_reuse"
    MISSING_REQUIRED_ACTIVITY = "missing_required_activity"
    EMPTY_SLOT = "empty_slot"
    UNASSIGNED_BUNK = "unassigned_bunk"
    EMPTY_BUNK = "empty_bunk"


class MergeState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    ANALYZING_STRUCTURE = "analyzing_structure"
    REGENERATING_GRID = "regenerating_grid"
    MERGING_ASSIGNMENTS = "merging_assignments"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


def _first_present(raw: Dict[str, Any], keys) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _name_of(value: Any) -> Optional[str]:
    """Resource/activity names arrive as strings or as {'name': ...} objects."""
    if isinstance(value, dict):
        value = value.get("name")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class TimeSlot:
    start_min: int
    end_min: int
    label: str = ""
    event: Optional[str] = None
    kind: str = "slot"
    split_half: Optional[int] = None

    def __post_init__(self):
        if not self.label:
            self.label = minutes_to_label(self.start_min)

    def __str__(self):
        return f"{format_range(self.start_min, self.end_min)}"

    @property
    def duration(self) -> int:
        return self.end_min - self.start_min

    def overlaps(self, start_min: int, end_min: int) -> bool:
        return not (self.end_min <= start_min or self.start_min >= end_min)

    def starts_within(self, start_min: int, end_min: int) -> bool:
        return start_min <= self.start_min < end_min

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "startMin": self.start_min,
            "endMin": self.end_min,
            "label": self.label,
            "type": self.kind,
        }
        if self.event:
            data["event"] = self.event
        if self.split_half:
            data["splitHalf"] = self.split_half
        return data

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["TimeSlot"]:
        if isinstance(raw, TimeSlot):
            return raw
        if not isinstance(raw, dict):
            return None

        start = _optional_int(_first_present(raw, ("startMin", "start_min")))
        end = _optional_int(_first_present(raw, ("endMin", "end_min")))
        if start is None:
            start = minutes_from_instant(raw.get("start"))
        if end is None:
            end = minutes_from_instant(raw.get("end"))
        if start is None or end is None or end <= start:
            return None

        return cls(
            start_min=start,
            end_min=end,
            label=str(raw.get("label") or ""),
            event=raw.get("event"),
            kind=str(raw.get("type") or raw.get("kind") or "slot"),
            split_half=_optional_int(_first_present(raw, ("splitHalf", "_splitHalf"))),
        )


@dataclass
class Division:
    name: str
    bunks: List[str] = field(default_factory=list)
    color: str = ""
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def __post_init__(self):
        self.bunks = [str(b).strip() for b in self.bunks if b is not None]

    @property
    def start_min(self) -> Optional[int]:
        return parse_time(self.start_time)

    @property
    def end_min(self) -> Optional[int]:
        return parse_time(self.end_time)

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "Division":
        if not isinstance(raw, dict):
            raw = {}
        timeline = raw.get("timeline") if isinstance(raw.get("timeline"), dict) else {}
        bunks = raw.get("bunks")
        return cls(
            name=str(name),
            bunks=list(bunks) if isinstance(bunks, (list, tuple)) else [],
            color=str(raw.get("color") or ""),
            start_time=_first_present(raw, ("startTime", "start_time")) or timeline.get("start"),
            end_time=_first_present(raw, ("endTime", "end_time")) or timeline.get("end"),
        )


@dataclass
class SkeletonBlock:
    division: Optional[str]
    start_time: Any
    end_time: Any
    event: str = ""
    kind: str = "slot"
    sub_events: List[str] = field(default_factory=list)
    block_id: Optional[str] = None

    @property
    def start_min(self) -> Optional[int]:
        return parse_time(self.start_time)

    @property
    def end_min(self) -> Optional[int]:
        return parse_time(self.end_time)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["SkeletonBlock"]:
        if isinstance(raw, SkeletonBlock):
            return raw
        if not isinstance(raw, dict):
            return None

        sub_events = []
        for sub in raw.get("subEvents") or []:
            name = _name_of(sub.get("event") if isinstance(sub, dict) else sub)
            if name:
                sub_events.append(name)

        division = raw.get("division")
        return cls(
            division=str(division) if division is not None else None,
            start_time=_first_present(raw, ("startTime", "start_time", "startMin")),
            end_time=_first_present(raw, ("endTime", "end_time", "endMin")),
            event=str(raw.get("event") or ""),
            kind=str(raw.get("type") or "slot"),
            sub_events=sub_events,
            block_id=str(raw["id"]) if raw.get("id") is not None else None,
        )


@dataclass
class Entry:
    resource: Optional[str] = None
    activity_name: Optional[str] = None
    sport: Optional[str] = None
    continuation: bool = False
    is_league: bool = False
    has_matchups: bool = False
    override_start_min: Optional[int] = None
    is_transition: bool = False

    @property
    def has_content(self) -> bool:
        return not self.continuation and bool(self.activity_name or self.resource or self.sport)

    @property
    def is_empty(self) -> bool:
        """Empty means nothing assigned and not occupied by a longer activity."""
        return not self.continuation and not (self.activity_name or self.resource or self.sport)

    @property
    def is_league_entry(self) -> bool:
        return self.is_league or self.has_matchups

    def mentions(self, term: str) -> bool:
        needle = term.lower()
        return any(
            value and needle in value.lower()
            for value in (self.activity_name, self.resource, self.sport)
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.resource:
            data["resource"] = self.resource
        if self.activity_name:
            data["activityName"] = self.activity_name
        if self.sport:
            data["sport"] = self.sport
        if self.continuation:
            data["continuation"] = True
        if self.is_league:
            data["isLeague"] = True
        if self.has_matchups:
            data["hasMatchups"] = True
        if self.override_start_min is not None:
            data["overrideStartMin"] = self.override_start_min
        if self.is_transition:
            data["isTransition"] = True
        return data

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Entry"]:
        """
        Read one stored schedule cell. Accepts every historical spelling of
        the cell fields; anything unrecognisable is treated as an empty cell.
        """
        if raw is None or isinstance(raw, Entry):
            return raw
        if isinstance(raw, str):
            name = raw.strip()
            return cls(activity_name=name) if name else None
        if not isinstance(raw, dict):
            return None

        resource = _name_of(_first_present(raw, ("resource", "field", "location")))
        activity = _name_of(_first_present(raw, ("activityName", "_activity", "activity")))
        sport = _name_of(raw.get("sport"))

        matchups = raw.get("_allMatchups") or raw.get("matchups")
        has_matchups = bool(raw.get("hasMatchups")) or (
            isinstance(matchups, (list, tuple)) and len(matchups) > 0
        )
        is_league = bool(
            raw.get("isLeague") or raw.get("_isLeague") or raw.get("_leagueGame")
        ) or bool(resource and " vs " in resource)

        is_transition = bool(raw.get("isTransition") or raw.get("_isTransition")) or (
            (resource or "").lower() == "transition" or (activity or "").lower() == "transition"
        )

        override = _optional_int(
            _first_present(raw, ("overrideStartMin", "_blockStart", "_startMin", "startMin"))
        )

        return cls(
            resource=resource,
            activity_name=activity,
            sport=sport,
            continuation=bool(raw.get("continuation")),
            is_league=is_league,
            has_matchups=has_matchups,
            override_start_min=override,
            is_transition=is_transition,
        )


@dataclass
class SharingRule:
    sharing_type: str
    max_capacity: int
    allowed_divisions: List[str] = field(default_factory=list)


@dataclass
class Resource:
    name: str
    sharing_type: Optional[str] = None
    capacity: Optional[int] = None
    allowed_divisions: List[str] = field(default_factory=list)
    sharable: bool = False
    legacy_capacity: Optional[int] = None

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "Resource":
        if isinstance(raw, Resource):
            return raw
        if not isinstance(raw, dict):
            raw = {}
        sharable_with = raw.get("sharableWith") if isinstance(raw.get("sharableWith"), dict) else {}
        divisions = sharable_with.get("divisions") or []
        return cls(
            name=str(raw.get("name") or name),
            sharing_type=sharable_with.get("type") or None,
            capacity=_optional_int(sharable_with.get("capacity")),
            allowed_divisions=[str(d) for d in divisions] if isinstance(divisions, list) else [],
            sharable=bool(raw.get("sharable")),
            legacy_capacity=_optional_int(raw.get("capacity")),
        )


@dataclass
class ScheduleVersion:
    version_id: Optional[str]
    created_at: Optional[datetime]
    assignments: Dict[str, list] = field(default_factory=dict)
    skeleton: Optional[list] = None
    league_assignments: Optional[dict] = None
    name: Optional[str] = None


@dataclass
class EntryLookup:
    entry: Optional[Entry]
    slot_index: int
    # Slot where the entry's activity starts; earlier than slot_index for a continuation
    owner_index: Optional[int] = None

    def __post_init__(self):
        if self.owner_index is None:
            self.owner_index = self.slot_index

    @property
    def found(self) -> bool:
        return self.slot_index >= 0


@dataclass
class Finding:
    kind: FindingKind
    severity: str
    message: str
    resource: Optional[str] = None
    activity: Optional[str] = None
    divisions: List[str] = field(default_factory=list)
    bunks: List[str] = field(default_factory=list)
    start_min: Optional[int] = None
    end_min: Optional[int] = None
    slot_indices: List[int] = field(default_factory=list)
    count: Optional[int] = None
    capacity: Optional[int] = None

    def __str__(self):
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
            "resource": self.resource,
            "activity": self.activity,
            "divisions": list(self.divisions),
            "bunks": list(self.bunks),
            "startMin": self.start_min,
            "endMin": self.end_min,
            "slotIndices": list(self.slot_indices),
            "count": self.count,
            "capacity": self.capacity,
        }


@dataclass
class ConflictReport:
    errors: List[Finding] = field(default_factory=list)
    warnings: List[Finding] = field(default_factory=list)

    def add(self, finding: Finding):
        if finding.severity == "error":
            self.errors.append(finding)
        else:
            self.warnings.append(finding)

    @property
    def is_clean(self) -> bool:
        return not self.errors and not self.warnings

    def by_kind(self, kind: FindingKind) -> List[Finding]:
        return [f for f in self.errors + self.warnings if f.kind == kind]

    def get_summary(self) -> str:
        if self.is_clean:
            return "No issues found"
        return f"{len(self.errors)} errors, {len(self.warnings)} warnings"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errors": [f.to_dict() for f in self.errors],
            "warnings": [f.to_dict() for f in self.warnings],
        }


@dataclass
class MergeResult:
    success: bool
    processed_count: int = 0
    bunk_count: int = 0
    error: Optional[str] = None
    state: MergeState = MergeState.IDLE
    assignments: Dict[str, list] = field(default_factory=dict)
    grid: List[TimeSlot] = field(default_factory=list)
    division_grids: Dict[str, List[TimeSlot]] = field(default_factory=dict)
    league_assignments: Optional[dict] = None
    skeleton: Optional[list] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "processedCount": self.processed_count,
            "bunkCount": self.bunk_count,
        }


@dataclass
class DaySnapshot:
    date: str
    divisions: Dict[str, Division] = field(default_factory=dict)
    resources: Dict[str, Resource] = field(default_factory=dict)
    assignments: Dict[str, list] = field(default_factory=dict)
    grid: List[TimeSlot] = field(default_factory=list)
    division_grids: Dict[str, List[TimeSlot]] = field(default_factory=dict)
    league_assignments: Dict[str, Any] = field(default_factory=dict)
    skeleton: Optional[list] = None
    report: Optional[ConflictReport] = None
