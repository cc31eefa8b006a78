"""
Schedule validation module for the campgrid scheduling core.
Checks a day's assignments for resource conflicts, repetitions and gaps.
"""

from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from campgrid.models import (
    ConflictReport, Entry, Finding, FindingKind, SharingRule
)
from campgrid.core.config import (
    IGNORED_RESOURCES, IGNORED_ACTIVITIES, REQUIRED_ACTIVITIES,
    SHARING_NOT_SHARABLE, SHARING_SAME_DIVISION, SHARING_CUSTOM, SHARING_ALL,
    DEFAULT_SHARED_CAPACITY, UNLIMITED_CAPACITY
)
from campgrid.core.logging_config import get_logger
from campgrid.services.payloads import normalize_divisions, normalize_resources
from campgrid.services.slot_resolver import SlotResolver
from campgrid.utils.time_utils import format_range, minutes_to_label, same_identifier

logger = get_logger(__name__)

# Spellings of the sharing types found in stored configuration
_SHARING_ALIASES = {
    "not_sharable": SHARING_NOT_SHARABLE,
    "not_shareable": SHARING_NOT_SHARABLE,
    "not-shareable": SHARING_NOT_SHARABLE,
    "not-sharable": SHARING_NOT_SHARABLE,
    "same_division": SHARING_SAME_DIVISION,
    "same-division": SHARING_SAME_DIVISION,
    "custom": SHARING_CUSTOM,
    "all": SHARING_ALL,
    "unrestricted": SHARING_ALL,
}


@dataclass
class ResourceUsage:
    bunk: str
    division: str
    slot_index: int
    start_min: int
    end_min: int
    activity: str


class ConflictValidator:
    """
    Validates one day's schedule against resource sharing rules and the
    daily activity rules. Errors must be fixed; warnings are for review.
    """

    def __init__(
        self,
        ignored_resources: Optional[Iterable[str]] = None,
        ignored_activities: Optional[Iterable[str]] = None,
        required_activities: Optional[Iterable[str]] = None
    ):
        self.ignored_resources = {
            name.lower().strip()
            for name in (IGNORED_RESOURCES if ignored_resources is None else ignored_resources)
        }
        self.ignored_activities = [
            name.lower().strip()
            for name in (IGNORED_ACTIVITIES if ignored_activities is None else ignored_activities)
        ]
        self.required_activities = list(
            REQUIRED_ACTIVITIES if required_activities is None else required_activities
        )

    def validate(
        self,
        assignments: Optional[Dict[Any, Any]],
        divisions: Any,
        division_grids: Optional[Dict[str, Any]],
        resources: Any = None,
        league_assignments: Optional[Dict[str, Any]] = None
    ) -> ConflictReport:
        """
        Validate a complete day against all checks.

        Args:
            assignments: Per-bunk entry sequences (raw dicts or Entry objects)
            divisions: Division configuration keyed by name
            division_grids: Per-division slot sequences
            resources: Resource sharing configuration keyed by name
            league_assignments: Per-division league tables {division: {slot: {"matchups": [...]}}}

        Returns:
            ConflictReport with every finding
        """
        report = ConflictReport()

        divisions = normalize_divisions(divisions)
        resources = normalize_resources(resources)
        league_assignments = league_assignments if isinstance(league_assignments, dict) else {}
        raw_assignments = assignments if isinstance(assignments, dict) else {}

        resolver = SlotResolver(divisions, division_grids if isinstance(division_grids, dict) else {})

        entries_by_bunk: Dict[str, List[Optional[Entry]]] = OrderedDict()
        for bunk, slots in raw_assignments.items():
            entries_by_bunk[str(bunk).strip()] = (
                [Entry.from_raw(raw) for raw in slots] if isinstance(slots, (list, tuple)) else []
            )

        bunk_divisions = {bunk: resolver.resolve_division(bunk) for bunk in entries_by_bunk}

        # Run all validation checks
        self._check_resource_conflicts(entries_by_bunk, bunk_divisions, resolver, resources, report)
        self._check_same_day_repetitions(entries_by_bunk, bunk_divisions, resolver, report)
        self._check_field_reuse(entries_by_bunk, bunk_divisions, resolver, report)
        self._check_missing_required(entries_by_bunk, bunk_divisions, report)
        self._check_empty_slots(entries_by_bunk, divisions, resolver, league_assignments, report)
        self._check_unassigned_bunks(entries_by_bunk, divisions, resolver, league_assignments, report)

        logger.info(
            "Validation complete: %d errors, %d warnings",
            len(report.errors), len(report.warnings)
        )
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_ignored_resource(self, name: Optional[str]) -> bool:
        return not name or name.lower().strip() in self.ignored_resources

    def _is_ignored_activity(self, name: str) -> bool:
        return any(ignored in name for ignored in self.ignored_activities)

    @staticmethod
    def _counts(entry: Optional[Entry]) -> bool:
        """A real, owned assignment: not empty, not a continuation, not league, not a transition."""
        return (
            entry is not None
            and entry.has_content
            and not entry.is_league_entry
            and not entry.is_transition
        )

    @staticmethod
    def _entries_for_member(entries_by_bunk: Dict[str, List[Optional[Entry]]], member: str):
        if member in entries_by_bunk:
            return entries_by_bunk[member]
        for bunk, entries in entries_by_bunk.items():
            if same_identifier(bunk, member):
                return entries
        return None

    @staticmethod
    def _slot_label(resolver: SlotResolver, division: Optional[str], index: int) -> str:
        grid = resolver.division_grids.get(division, []) if division else []
        if index < len(grid) and grid[index] is not None:
            return minutes_to_label(grid[index].start_min)
        return f"slot {index}"

    @staticmethod
    def _slot_has_matchups(table: Any, index: int) -> bool:
        record = None
        if isinstance(table, dict):
            record = table.get(index, table.get(str(index)))
        elif isinstance(table, list) and index < len(table):
            record = table[index]
        if isinstance(record, dict):
            matchups = record.get("matchups")
            return isinstance(matchups, (list, tuple)) and len(matchups) > 0
        return isinstance(record, (list, tuple)) and len(record) > 0

    def get_sharing_rule(self, resource_name: str, resources: Any) -> SharingRule:
        """
        Resolve the sharing rule for a resource by case-insensitive name.
        Unconfigured resources are not sharable, capacity 1.
        """
        resources = normalize_resources(resources)
        resource = resources.get(resource_name)
        if resource is None:
            wanted = resource_name.lower().strip()
            for name, candidate in resources.items():
                if name.lower().strip() == wanted:
                    resource = candidate
                    break
        if resource is None:
            return SharingRule(SHARING_NOT_SHARABLE, 1)

        sharing_type = _SHARING_ALIASES.get((resource.sharing_type or "").lower().strip())
        if sharing_type is None and resource.sharing_type:
            # Unknown type: an explicit capacity or the legacy flag decides
            if resource.capacity:
                return SharingRule(resource.sharing_type, resource.capacity, resource.allowed_divisions)
            sharing_type = SHARING_SAME_DIVISION if resource.sharable else SHARING_NOT_SHARABLE
        elif sharing_type is None:
            sharing_type = SHARING_SAME_DIVISION if resource.sharable else SHARING_NOT_SHARABLE

        if sharing_type == SHARING_ALL:
            capacity = resource.capacity or UNLIMITED_CAPACITY
        elif sharing_type == SHARING_NOT_SHARABLE:
            capacity = 1
        else:
            capacity = resource.capacity or DEFAULT_SHARED_CAPACITY

        # Legacy: a top-level capacity on the resource itself
        if capacity == 1 and resource.legacy_capacity:
            capacity = resource.legacy_capacity

        return SharingRule(sharing_type, capacity, list(resource.allowed_divisions))

    @staticmethod
    def cluster_usages(usages: List[ResourceUsage]) -> List[List[ResourceUsage]]:
        """
        Group usages whose times overlap, transitively: A-B and B-C overlapping
        puts A, B and C in one group even when A and C do not touch.
        """
        clusters: List[List[ResourceUsage]] = []
        current: List[ResourceUsage] = []
        current_end = None
        for usage in sorted(usages, key=lambda u: (u.start_min, u.end_min)):
            if current and usage.start_min < current_end:
                current.append(usage)
                current_end = max(current_end, usage.end_min)
            else:
                if current:
                    clusters.append(current)
                current = [usage]
                current_end = usage.end_min
        if current:
            clusters.append(current)
        return clusters

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _collect_usages(self, entries_by_bunk, bunk_divisions, resolver):
        usages: Dict[str, List[ResourceUsage]] = defaultdict(list)
        display_names: Dict[str, str] = {}

        for bunk, entries in entries_by_bunk.items():
            division = bunk_divisions.get(bunk)
            if division is None:
                continue
            grid = resolver.division_grids.get(division, [])

            for index, entry in enumerate(entries):
                if not self._counts(entry):
                    continue
                name = entry.resource or entry.activity_name
                if self._is_ignored_resource(name):
                    continue
                if index >= len(grid) or grid[index] is None:
                    continue

                # A multi-slot activity holds the resource through its continuation cells
                end_min = grid[index].end_min
                follow = index + 1
                while (
                    follow < len(entries) and follow < len(grid)
                    and entries[follow] is not None and entries[follow].continuation
                    and grid[follow] is not None
                ):
                    end_min = max(end_min, grid[follow].end_min)
                    follow += 1

                key = name.lower().strip()
                display_names.setdefault(key, name)
                usages[key].append(ResourceUsage(
                    bunk=bunk,
                    division=division,
                    slot_index=index,
                    start_min=grid[index].start_min,
                    end_min=end_min,
                    activity=entry.activity_name or entry.sport or name,
                ))
        return usages, display_names

    def _check_resource_conflicts(self, entries_by_bunk, bunk_divisions, resolver, resources, report):
        """Check cross-division sharing and capacity per overlapping group of usages."""
        usages, display_names = self._collect_usages(entries_by_bunk, bunk_divisions, resolver)

        for key, resource_usages in usages.items():
            if len(resource_usages) < 2:
                continue
            resource_name = display_names[key]
            rule = self.get_sharing_rule(resource_name, resources)

            for group in self.cluster_usages(resource_usages):
                if len(group) < 2:
                    continue

                group_divisions = list(OrderedDict.fromkeys(u.division for u in group))
                start_min = min(u.start_min for u in group)
                end_min = max(u.end_min for u in group)
                time_label = format_range(start_min, end_min)
                bunk_list = ", ".join(f"{u.bunk} (Div {u.division})" for u in group)

                if len(group_divisions) > 1:
                    reason = None
                    if rule.sharing_type == SHARING_NOT_SHARABLE:
                        reason = "is not sharable"
                    elif rule.sharing_type == SHARING_SAME_DIVISION:
                        reason = "can only be shared within the same division"
                    elif rule.sharing_type == SHARING_CUSTOM and rule.allowed_divisions:
                        if any(d not in rule.allowed_divisions for d in group_divisions):
                            reason = (
                                "is shared by divisions outside its allowed list "
                                f"({', '.join(rule.allowed_divisions)})"
                            )

                    if reason:
                        report.add(Finding(
                            kind=FindingKind.CROSS_DIVISION_CONFLICT,
                            severity="error",
                            message=(
                                f"Cross-Division Conflict: {resource_name} {reason} but is used by "
                                f"{len(group)} bunks from divisions {', '.join(group_divisions)} "
                                f"during {time_label} (Bunks: {bunk_list})"
                            ),
                            resource=resource_name,
                            divisions=group_divisions,
                            bunks=[u.bunk for u in group],
                            start_min=start_min,
                            end_min=end_min,
                            slot_indices=[u.slot_index for u in group],
                            count=len(group),
                            capacity=rule.max_capacity,
                        ))
                        continue

                    if rule.sharing_type == SHARING_ALL and rule.max_capacity < UNLIMITED_CAPACITY:
                        if len(group) > rule.max_capacity:
                            report.add(Finding(
                                kind=FindingKind.CAPACITY_EXCEEDED,
                                severity="error",
                                message=(
                                    f"Capacity Exceeded: {resource_name} used by {len(group)} bunks "
                                    f"across divisions during {time_label} "
                                    f"(Max: {rule.max_capacity}) (Bunks: {bunk_list})"
                                ),
                                resource=resource_name,
                                divisions=group_divisions,
                                bunks=[u.bunk for u in group],
                                start_min=start_min,
                                end_min=end_min,
                                slot_indices=[u.slot_index for u in group],
                                count=len(group),
                                capacity=rule.max_capacity,
                            ))
                        continue

                for division in group_divisions:
                    division_usages = [u for u in group if u.division == division]
                    if len(division_usages) <= rule.max_capacity:
                        continue
                    div_start = min(u.start_min for u in division_usages)
                    div_end = max(u.end_min for u in division_usages)
                    report.add(Finding(
                        kind=FindingKind.CAPACITY_EXCEEDED,
                        severity="error",
                        message=(
                            f"Capacity Exceeded: {resource_name} used by {len(division_usages)} bunks "
                            f"in Division {division} at {format_range(div_start, div_end)} "
                            f"(Max Capacity: {rule.max_capacity}) "
                            f"(Bunks: {', '.join(u.bunk for u in division_usages)})"
                        ),
                        resource=resource_name,
                        divisions=[division],
                        bunks=[u.bunk for u in division_usages],
                        start_min=div_start,
                        end_min=div_end,
                        slot_indices=[u.slot_index for u in division_usages],
                        count=len(division_usages),
                        capacity=rule.max_capacity,
                    ))

    def _check_same_day_repetitions(self, entries_by_bunk, bunk_divisions, resolver, report):
        """Check for a bunk doing the same activity more than once in the day."""
        for bunk, entries in entries_by_bunk.items():
            division = bunk_divisions.get(bunk)
            occurrences: Dict[str, List[int]] = OrderedDict()

            for index, entry in enumerate(entries):
                if not self._counts(entry):
                    continue
                name = entry.activity_name or entry.sport
                if not name:
                    continue
                activity = name.lower().strip()
                if self._is_ignored_activity(activity):
                    continue
                occurrences.setdefault(activity, []).append(index)

            for activity, indices in occurrences.items():
                if len(indices) < 2:
                    continue
                times = ", ".join(self._slot_label(resolver, division, i) for i in indices)
                div_label = f" (Div {division})" if division else ""
                report.add(Finding(
                    kind=FindingKind.SAME_DAY_REPETITION,
                    severity="error",
                    message=(
                        f"Same-Day Repetition: {bunk}{div_label} has \"{activity}\" "
                        f"scheduled {len(indices)} times (at: {times})"
                    ),
                    activity=activity,
                    divisions=[division] if division else [],
                    bunks=[bunk],
                    slot_indices=indices,
                    count=len(indices),
                ))

    def _check_field_reuse(self, entries_by_bunk, bunk_divisions, resolver, report):
        """Check for a bunk returning to the same resource more than once (warning)."""
        for bunk, entries in entries_by_bunk.items():
            division = bunk_divisions.get(bunk)
            occurrences: Dict[str, List[int]] = OrderedDict()
            activities: Dict[str, List[str]] = defaultdict(list)
            names: Dict[str, str] = {}

            for index, entry in enumerate(entries):
                if not self._counts(entry) or not entry.resource:
                    continue
                if self._is_ignored_resource(entry.resource):
                    continue
                key = entry.resource.lower().strip()
                names.setdefault(key, entry.resource)
                occurrences.setdefault(key, []).append(index)
                activities[key].append((entry.activity_name or entry.sport or entry.resource).lower())

            for key, indices in occurrences.items():
                if len(indices) < 2:
                    continue
                different = " (different activities)" if len(set(activities[key])) > 1 else ""
                times = ", ".join(self._slot_label(resolver, division, i) for i in indices)
                div_label = f" (Div {division})" if division else ""
                report.add(Finding(
                    kind=FindingKind.FIELD_REUSE,
                    severity="warning",
                    message=(
                        f"Field Reuse: {bunk}{div_label} uses {names[key]} "
                        f"{len(indices)} times today{different} (at: {times})"
                    ),
                    resource=names[key],
                    divisions=[division] if division else [],
                    bunks=[bunk],
                    slot_indices=indices,
                    count=len(indices),
                ))

    def _check_missing_required(self, entries_by_bunk, bunk_divisions, report):
        """Check that every scheduled bunk has each required activity."""
        if not self.required_activities:
            return

        for bunk, entries in entries_by_bunk.items():
            assigned = [e for e in entries if e is not None and (not e.is_empty or e.is_league_entry)]
            if not assigned:
                continue
            division = bunk_divisions.get(bunk)

            for required in self.required_activities:
                if any(not e.continuation and e.mentions(required) for e in assigned):
                    continue
                div_label = f" (Div {division})" if division else ""
                report.add(Finding(
                    kind=FindingKind.MISSING_REQUIRED_ACTIVITY,
                    severity="warning",
                    message=f"Missing Activity: {bunk}{div_label} may be missing {required}",
                    activity=required,
                    divisions=[division] if division else [],
                    bunks=[bunk],
                ))

    def _check_empty_slots(self, entries_by_bunk, divisions, resolver, league_assignments, report):
        """Check for division slots where every bunk is empty and no league game is recorded."""
        for division_name, division in divisions.items():
            grid = resolver.division_grids.get(division_name, [])
            if not grid or not division.bunks:
                continue
            league_table = league_assignments.get(division_name) or {}
            member_entries = [
                self._entries_for_member(entries_by_bunk, member) or []
                for member in division.bunks
            ]

            for index, slot in enumerate(grid):
                if self._slot_has_matchups(league_table, index):
                    continue

                all_empty = True
                for entries in member_entries:
                    entry = entries[index] if index < len(entries) else None
                    if entry is not None and (not entry.is_empty or entry.is_league_entry):
                        all_empty = False
                        break
                if not all_empty:
                    continue

                if slot is not None:
                    start_min, end_min = slot.start_min, slot.end_min
                    time_label = format_range(start_min, end_min)
                else:
                    start_min = end_min = None
                    time_label = f"Slot {index}"
                report.add(Finding(
                    kind=FindingKind.EMPTY_SLOT,
                    severity="warning",
                    message=(
                        f"Empty Slot: Division {division_name} slot {index} ({time_label}) "
                        f"has all {len(division.bunks)} bunks empty"
                    ),
                    divisions=[division_name],
                    bunks=list(division.bunks),
                    start_min=start_min,
                    end_min=end_min,
                    slot_indices=[index],
                    count=len(division.bunks),
                ))

    def _check_unassigned_bunks(self, entries_by_bunk, divisions, resolver, league_assignments, report):
        """Check for member bunks with no schedule row, or with nothing in it."""
        for division_name, division in divisions.items():
            grid = resolver.division_grids.get(division_name, [])
            if not grid:
                continue
            league_table = league_assignments.get(division_name) or {}
            has_any_league = any(
                self._slot_has_matchups(league_table, index) for index in range(len(grid))
            )

            for member in division.bunks:
                entries = self._entries_for_member(entries_by_bunk, member)
                if entries is None:
                    report.add(Finding(
                        kind=FindingKind.UNASSIGNED_BUNK,
                        severity="warning",
                        message=f"Unassigned Bunk: {member} (Div {division_name}) has no schedule data at all",
                        divisions=[division_name],
                        bunks=[member],
                    ))
                    continue

                filled = [e for e in entries if e is not None and (not e.is_empty or e.is_league_entry)]
                if not filled and not has_any_league:
                    report.add(Finding(
                        kind=FindingKind.EMPTY_BUNK,
                        severity="warning",
                        message=(
                            f"Empty Bunk: {member} (Div {division_name}) "
                            f"has all {len(grid)} slots empty"
                        ),
                        divisions=[division_name],
                        bunks=[member],
                        count=len(grid),
                    ))
