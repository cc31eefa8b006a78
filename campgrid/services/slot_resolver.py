"""
Slot index resolution for the campgrid scheduling core.

Assignments are stored positionally against each bunk's OWN division grid.
This module answers "which slot of this bunk covers this time range" without
assuming that divisions share one grid, falling back to older data shapes
where needed.
"""

from typing import Any, Dict, List, Optional, Sequence

from campgrid.models import Division, Entry, EntryLookup, TimeSlot
from campgrid.core.logging_config import get_logger
from campgrid.utils.time_utils import same_identifier

logger = get_logger(__name__)


def _as_grid(slots: Optional[Sequence[Any]]) -> List[Optional[TimeSlot]]:
    """Keep positions intact: unreadable slot records become None, not removed."""
    if not slots or not isinstance(slots, (list, tuple)):
        return []
    return [TimeSlot.from_raw(slot) for slot in slots]


class SlotResolver:
    """
    Resolves bunks to divisions and time ranges to slot indices for one day.
    """

    def __init__(
        self,
        divisions: Optional[Dict[str, Division]] = None,
        division_grids: Optional[Dict[str, Sequence[Any]]] = None,
        assignments: Optional[Dict[str, Sequence[Any]]] = None,
        legacy_grid: Optional[Sequence[Any]] = None
    ):
        """
        Args:
            divisions: Division configuration keyed by name
            division_grids: Per-division slot sequences keyed by division name
            assignments: Per-bunk entry sequences
            legacy_grid: The old single grid shared by every division, if any
        """
        self.divisions = divisions or {}
        self.division_grids = {
            name: _as_grid(slots) for name, slots in (division_grids or {}).items()
        }
        self.assignments = assignments or {}
        self.legacy_grid = _as_grid(legacy_grid)

    def resolve_division(self, bunk_id: Any) -> Optional[str]:
        """Return the name of the division whose member list holds the bunk, or None."""
        if bunk_id is None or str(bunk_id).strip() == "":
            return None
        for division_name, division in self.divisions.items():
            if any(same_identifier(member, bunk_id) for member in division.bunks):
                return division_name
        return None

    def division_grid_for(self, bunk_id: Any) -> List[Optional[TimeSlot]]:
        division_name = self.resolve_division(bunk_id)
        if division_name is None:
            return []
        return self.division_grids.get(division_name, [])

    def _entries_for(self, bunk_id: Any) -> List[Optional[Entry]]:
        slots = self.assignments.get(bunk_id)
        if slots is None:
            for key, value in self.assignments.items():
                if same_identifier(key, bunk_id):
                    slots = value
                    break
        if not isinstance(slots, (list, tuple)):
            return []
        return [Entry.from_raw(raw) for raw in slots]

    @staticmethod
    def _owner_of(entries: List[Optional[Entry]], index: int) -> EntryLookup:
        """
        Walk back from a continuation cell to the slot that starts the activity.
        The queried index stays the slot_index; the start is reported as owner_index.
        """
        owner = index
        while owner > 0 and entries[owner] is not None and entries[owner].continuation:
            owner -= 1
        entry = entries[owner]
        if entry is None or entry.continuation:
            return EntryLookup(None, index)
        return EntryLookup(entry, index, owner_index=owner)

    def find_entry(
        self,
        bunk_id: Any,
        start_min: int,
        end_min: int,
        division_grid: Optional[Sequence[Any]] = None
    ) -> EntryLookup:
        """
        Find the entry a bunk has for a time range, and its slot index.

        Lookup order, first hit wins:
        1. a division slot starting inside the range that holds a real entry
        2. the first division slot starting inside the range, by index
        3. an entry whose own start-minute override falls inside the range
        4. the legacy single grid

        Returns:
            EntryLookup(entry, slot_index); slot_index is -1 when nothing matched
        """
        entries = self._entries_for(bunk_id)
        if not entries:
            return EntryLookup(None, -1)

        grid = _as_grid(division_grid) if division_grid is not None else self.division_grid_for(bunk_id)

        if grid:
            for index in range(min(len(entries), len(grid))):
                entry, slot = entries[index], grid[index]
                if entry is None or entry.continuation or slot is None:
                    continue
                if slot.starts_within(start_min, end_min):
                    return EntryLookup(entry, index)

            for index, slot in enumerate(grid):
                if slot is None or not slot.starts_within(start_min, end_min):
                    continue
                if index >= len(entries) or entries[index] is None:
                    return EntryLookup(None, index)
                return self._owner_of(entries, index)

        for index, entry in enumerate(entries):
            if entry is None or entry.continuation or entry.override_start_min is None:
                continue
            if start_min <= entry.override_start_min < end_min:
                return EntryLookup(entry, index)

        for index in range(min(len(entries), len(self.legacy_grid))):
            entry, slot = entries[index], self.legacy_grid[index]
            if entry is None or entry.continuation or slot is None:
                continue
            if slot.starts_within(start_min, end_min):
                logger.debug("Bunk %s resolved through the legacy grid at slot %d", bunk_id, index)
                return EntryLookup(entry, index)

        return EntryLookup(None, -1)

    def find_slots_for_range(
        self,
        start_min: Optional[int],
        end_min: Optional[int],
        target: Any = None
    ) -> List[int]:
        """
        Every slot index whose interval overlaps [start_min, end_min).

        Args:
            start_min: Range start in minutes
            end_min: Range end in minutes
            target: A division name, a bunk identifier, or an explicit grid.
                    Anything unresolvable falls back to the legacy grid.
        """
        if start_min is None or end_min is None:
            return []

        if isinstance(target, (list, tuple)):
            grid = _as_grid(target)
        elif target is not None and str(target) in self.division_grids:
            grid = self.division_grids[str(target)]
        elif target is not None and self.resolve_division(target) is not None:
            grid = self.division_grid_for(target)
        else:
            grid = self.legacy_grid

        return [
            index for index, slot in enumerate(grid)
            if slot is not None and slot.overlaps(start_min, end_min)
        ]
