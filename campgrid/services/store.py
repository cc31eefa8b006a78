"""
Persistence boundary for the campgrid scheduling core.

The merger and orchestrator talk to storage only through this interface.
Implementations return canonical models (see payloads.py) and raise
PersistenceError for any storage failure.

Publishing goes through publish_day, which must write everything it is
given or nothing at all. The single-part publish_* helpers are thin calls
into it.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from campgrid.models import Division, Resource, ScheduleVersion, TimeSlot


class ScheduleStore(ABC):

    @abstractmethod
    async def get_versions_for_date(self, camp_id: str, date: str) -> List[ScheduleVersion]:
        """All saved versions for the day, oldest first."""

    @abstractmethod
    async def get_divisions(self) -> Dict[str, Division]:
        ...

    @abstractmethod
    async def get_resource_properties(self) -> Dict[str, Resource]:
        ...

    @abstractmethod
    async def get_league_assignments(self, date: str, division: str) -> Optional[Any]:
        ...

    @abstractmethod
    async def publish_day(
        self,
        date: str,
        assignments: Optional[Dict[str, list]] = None,
        grid: Optional[List[TimeSlot]] = None,
        division_grids: Optional[Dict[str, List[TimeSlot]]] = None,
        league: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Publish the given parts of a day in one write.

        Parts left as None keep their published value. League data is keyed
        by division and replaces only the divisions it names.
        """

    async def publish_assignments(self, date: str, assignments: Dict[str, list]) -> None:
        await self.publish_day(date, assignments=assignments)

    async def publish_time_grid(self, date: str, grid: List[TimeSlot]) -> None:
        await self.publish_day(date, grid=grid)

    async def publish_division_grids(self, date: str, grids: Dict[str, List[TimeSlot]]) -> None:
        await self.publish_day(date, division_grids=grids)

    async def publish_league_assignments(self, date: str, division: str, data: Any) -> None:
        await self.publish_day(date, league={division: data})
