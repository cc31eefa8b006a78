"""
In-memory schedule store for demo mode and tests.
"""

import copy
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

from campgrid.models import Division, Resource, ScheduleVersion, TimeSlot
from campgrid.core.exceptions import PersistenceError
from campgrid.core.logging_config import get_logger
from campgrid.services.payloads import (
    normalize_divisions, normalize_resources, normalize_version, sort_versions
)
from campgrid.services.store import ScheduleStore

logger = get_logger(__name__)


class MemoryScheduleStore(ScheduleStore):
    """
    Dict-backed store. Records are normalized when added, exactly as the
    Supabase store normalizes them when read.

    Setting fail_on_fetch / fail_on_publish makes the matching calls raise
    PersistenceError without touching stored data. fail_on_publish_of names
    single parts ("assignments", "time grid", "division grids",
    "league assignments") whose write fails.
    """

    def __init__(self, divisions: Any = None, resources: Any = None, camp_id: str = "demo"):
        self.camp_id = camp_id
        self.divisions: Dict[str, Division] = normalize_divisions(divisions or {})
        self.resources: Dict[str, Resource] = normalize_resources(resources or {})
        self.versions: Dict[tuple, List[ScheduleVersion]] = defaultdict(list)
        self.published: Dict[str, Dict[str, Any]] = {}
        self.fail_on_fetch = False
        self.fail_on_publish = False
        self.fail_on_publish_of: Set[str] = set()
        self.publish_calls = 0

    def add_version(self, date: str, record: Any, camp_id: Optional[str] = None) -> Optional[ScheduleVersion]:
        version = normalize_version(record)
        if version is None:
            logger.warning("Not storing version for %s: no recognisable schedule payload", date)
            return None
        self.versions[(camp_id or self.camp_id, date)].append(version)
        return version

    @staticmethod
    def _empty_day() -> Dict[str, Any]:
        return {
            "assignments": None,
            "grid": None,
            "division_grids": None,
            "league": {},
        }

    def _check_publish(self, what: str, date: str):
        if self.fail_on_publish or what in self.fail_on_publish_of:
            raise PersistenceError(f"Failed to publish {what} for {date}")

    async def get_versions_for_date(self, camp_id: str, date: str) -> List[ScheduleVersion]:
        if self.fail_on_fetch:
            raise PersistenceError(f"Failed to fetch versions for {date}")
        return sort_versions(self.versions.get((camp_id, date), []))

    async def get_divisions(self) -> Dict[str, Division]:
        if self.fail_on_fetch:
            raise PersistenceError("Failed to fetch divisions")
        return dict(self.divisions)

    async def get_resource_properties(self) -> Dict[str, Resource]:
        if self.fail_on_fetch:
            raise PersistenceError("Failed to fetch resource properties")
        return dict(self.resources)

    async def get_league_assignments(self, date: str, division: str) -> Optional[Any]:
        if self.fail_on_fetch:
            raise PersistenceError(f"Failed to fetch league assignments for {date}")
        return self.published.get(date, {}).get("league", {}).get(division)

    async def publish_day(
        self,
        date: str,
        assignments: Optional[Dict[str, list]] = None,
        grid: Optional[List[TimeSlot]] = None,
        division_grids: Optional[Dict[str, List[TimeSlot]]] = None,
        league: Optional[Dict[str, Any]] = None
    ) -> None:
        # Stage on a copy; the published record is replaced only once every part is written
        staged = copy.deepcopy(self.published.get(date) or self._empty_day())

        if assignments is not None:
            self._check_publish("assignments", date)
            staged["assignments"] = copy.deepcopy(assignments)
        if grid is not None:
            self._check_publish("time grid", date)
            staged["grid"] = [slot.to_dict() for slot in grid]
        if division_grids is not None:
            self._check_publish("division grids", date)
            staged["division_grids"] = {
                name: [slot.to_dict() for slot in slots] for name, slots in division_grids.items()
            }
        if league:
            self._check_publish("league assignments", date)
            for division, data in league.items():
                staged["league"][division] = copy.deepcopy(data)

        self.published[date] = staged
        self.publish_calls += 1
