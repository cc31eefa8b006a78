"""
Supabase-backed schedule store for the campgrid scheduling core.

Tables:
    schedule_versions  (camp_id, date, created_at, schedule_data)  saved drafts
    camp_state         (camp_id, state)                            divisions and resources
    daily_schedules    (camp_id, date_key, schedule_data)          published day
"""

import json
from typing import Any, Dict, List, Optional

from supabase import acreate_client, AsyncClient

from campgrid.models import Division, Resource, ScheduleVersion, TimeSlot
from campgrid.core.config import (
    SUPABASE_URL, SUPABASE_KEY, CAMP_ID,
    VERSIONS_TABLE, CAMP_STATE_TABLE, DAILY_SCHEDULES_TABLE
)
from campgrid.core.exceptions import ConfigurationError, PersistenceError
from campgrid.core.logging_config import get_logger
from campgrid.services.payloads import (
    normalize_divisions, normalize_versions, resources_from_camp_state
)
from campgrid.services.store import ScheduleStore

logger = get_logger(__name__)


class SupabaseScheduleStore(ScheduleStore):

    def __init__(
        self,
        camp_id: Optional[str] = None,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None
    ):
        self.camp_id = camp_id or CAMP_ID
        self.supabase_url = supabase_url or SUPABASE_URL
        self.supabase_key = supabase_key or SUPABASE_KEY

        if not self.supabase_url or not self.supabase_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")
        if not self.camp_id:
            raise ConfigurationError("CAMP_ID must be set")

        self._client: Optional[AsyncClient] = None

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            try:
                self._client = await acreate_client(self.supabase_url, self.supabase_key)
            except Exception as e:
                raise PersistenceError(f"Could not connect to Supabase: {e}") from e
        return self._client

    async def _load_state(self) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await (
                client.table(CAMP_STATE_TABLE)
                .select("state")
                .eq("camp_id", self.camp_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Error loading camp state: {e}") from e

        state: Any = response.data[0].get("state") if response.data else {}
        if isinstance(state, str):
            try:
                state = json.loads(state)
            except ValueError:
                logger.warning("Camp state for %s is not valid JSON", self.camp_id)
                state = {}
        return state if isinstance(state, dict) else {}

    async def _load_daily(self, date: str) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await (
                client.table(DAILY_SCHEDULES_TABLE)
                .select("schedule_data")
                .eq("camp_id", self.camp_id)
                .eq("date_key", date)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Error loading daily schedule for {date}: {e}") from e

        data: Any = response.data[0].get("schedule_data") if response.data else {}
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                data = {}
        return data if isinstance(data, dict) else {}

    async def _write_daily(self, date: str, data: Dict[str, Any]):
        """Replace the day's published record in one upsert."""
        client = await self._get_client()
        try:
            await (
                client.table(DAILY_SCHEDULES_TABLE)
                .upsert(
                    {"camp_id": self.camp_id, "date_key": date, "schedule_data": data},
                    on_conflict="camp_id,date_key"
                )
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Error publishing daily schedule for {date}: {e}") from e

    async def get_versions_for_date(self, camp_id: str, date: str) -> List[ScheduleVersion]:
        client = await self._get_client()
        try:
            response = await (
                client.table(VERSIONS_TABLE)
                .select("*")
                .eq("camp_id", camp_id)
                .eq("date", date)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Error loading versions for {date}: {e}") from e

        versions = normalize_versions(response.data or [])
        logger.info("Loaded %d versions for %s", len(versions), date)
        return versions

    async def get_divisions(self) -> Dict[str, Division]:
        state = await self._load_state()
        return normalize_divisions(state.get("divisions") or {})

    async def get_resource_properties(self) -> Dict[str, Resource]:
        state = await self._load_state()
        return resources_from_camp_state(state)

    async def get_league_assignments(self, date: str, division: str) -> Optional[Any]:
        data = await self._load_daily(date)
        league = data.get("leagueAssignments") or {}
        return league.get(division) if isinstance(league, dict) else None

    async def publish_day(
        self,
        date: str,
        assignments: Optional[Dict[str, list]] = None,
        grid: Optional[List[TimeSlot]] = None,
        division_grids: Optional[Dict[str, List[TimeSlot]]] = None,
        league: Optional[Dict[str, Any]] = None
    ) -> None:
        updates: Dict[str, Any] = {}
        if assignments is not None:
            updates["scheduleAssignments"] = assignments
        if grid is not None:
            updates["unifiedTimes"] = [slot.to_dict() for slot in grid]
        if division_grids is not None:
            updates["divisionTimes"] = {
                name: [slot.to_dict() for slot in slots] for name, slots in division_grids.items()
            }

        current = await self._load_daily(date)
        if league:
            merged_league = current.get("leagueAssignments")
            merged_league = dict(merged_league) if isinstance(merged_league, dict) else {}
            merged_league.update(league)
            updates["leagueAssignments"] = merged_league

        if not updates:
            return
        current.update(updates)
        await self._write_daily(date, current)
        logger.info("Published %s for %s", ", ".join(sorted(updates)), date)
