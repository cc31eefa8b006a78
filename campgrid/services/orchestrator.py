"""
Orchestration of the per-day pipeline: merge, rebuild, validate.

The orchestrator owns the current DaySnapshot for every date it has seen and
replaces a snapshot only after a full successful pass. Host triggers (a date
change, a "validate now" request, a finished data load) arrive through the
on_* methods.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

from campgrid.models import ConflictReport, DaySnapshot, Division, MergeResult, MergeState, Resource
from campgrid.core.config import (
    GRID_INCREMENT_MINUTES, DATE_CHANGE_DEBOUNCE_SECONDS,
    HYDRATION_DEBOUNCE_SECONDS, HYDRATION_TIMEOUT_SECONDS
)
from campgrid.core.exceptions import ScheduleError
from campgrid.core.logging_config import get_logger
from campgrid.services.debounce import DebouncedScheduler, wait_for_signal
from campgrid.services.slot_resolver import SlotResolver
from campgrid.services.store import ScheduleStore
from campgrid.services.time_grid import build_division_grids
from campgrid.services.validator import ConflictValidator
from campgrid.services.version_merger import VersionMerger

logger = get_logger(__name__)


class ScheduleOrchestrator:

    def __init__(
        self,
        store: ScheduleStore,
        camp_id: str,
        validator: Optional[ConflictValidator] = None,
        increment_minutes: int = GRID_INCREMENT_MINUTES,
        date_change_delay: float = DATE_CHANGE_DEBOUNCE_SECONDS,
        hydration_delay: float = HYDRATION_DEBOUNCE_SECONDS,
        hydration_timeout: float = HYDRATION_TIMEOUT_SECONDS
    ):
        self.store = store
        self.camp_id = camp_id
        self.validator = validator or ConflictValidator()
        self.merger = VersionMerger(store, camp_id, increment_minutes)
        self.increment_minutes = increment_minutes
        self.date_change_delay = date_change_delay
        self.hydration_delay = hydration_delay
        self.hydration_timeout = hydration_timeout

        self.scheduler = DebouncedScheduler()
        self.snapshots: Dict[str, DaySnapshot] = {}
        self.divisions: Optional[Dict[str, Division]] = None
        self.resources: Dict[str, Resource] = {}

    async def load_configuration(self):
        """Read divisions and resource properties from the store."""
        self.divisions = await self.store.get_divisions()
        self.resources = await self.store.get_resource_properties()
        logger.info(
            "Loaded configuration: %d divisions, %d resources",
            len(self.divisions), len(self.resources)
        )

    def snapshot(self, date: str) -> Optional[DaySnapshot]:
        return self.snapshots.get(date)

    def _validate(self, snapshot: DaySnapshot) -> ConflictReport:
        return self.validator.validate(
            snapshot.assignments,
            snapshot.divisions,
            snapshot.division_grids,
            snapshot.resources,
            snapshot.league_assignments,
        )

    async def _refresh_configuration(self, date: str) -> Optional[str]:
        """Reload divisions and resources; returns an error message only when nothing is loaded yet."""
        try:
            await self.load_configuration()
        except ScheduleError as e:
            if self.divisions is None:
                logger.error("Could not load configuration for %s: %s", date, e)
                return str(e)
            logger.warning("Could not refresh configuration for %s, keeping the loaded one: %s", date, e)
        return None

    async def _stored_league(self, date: str, current: Optional[DaySnapshot]) -> Dict[str, Any]:
        """Division-level league tables already published for the day."""
        league: Dict[str, Any] = {}
        try:
            for division_name in self.divisions or {}:
                data = await self.store.get_league_assignments(date, division_name)
                if data:
                    league[division_name] = data
        except ScheduleError as e:
            logger.warning("Could not read league assignments for %s: %s", date, e)
            return current.league_assignments if current else {}
        return league

    async def run_pass(self, date: str) -> Tuple[MergeResult, Optional[ConflictReport]]:
        """
        Merge the day's versions, then validate the merged day.

        The stored snapshot is swapped only when the merge succeeded; on
        failure the previous snapshot and its report stay as they were.
        """
        current = self.snapshots.get(date)

        error = await self._refresh_configuration(date)
        if error is not None:
            return (
                MergeResult(success=False, error=error, state=MergeState.FAILED),
                current.report if current else None,
            )

        result = await self.merger.merge_and_publish(
            date,
            divisions=self.divisions,
            fallback_skeleton=current.skeleton if current else None,
        )
        if not result.success:
            logger.warning("Keeping the previous snapshot for %s: %s", date, result.error)
            return result, current.report if current else None

        if result.processed_count == 0 and current is not None:
            snapshot = current
        else:
            division_grids = result.division_grids
            grid = result.grid
            if not division_grids:
                if current is not None and current.division_grids:
                    division_grids, grid = current.division_grids, current.grid
                else:
                    division_grids = build_division_grids(None, self.divisions, self.increment_minutes)
            league = result.league_assignments
            if league is None:
                league = await self._stored_league(date, current)

            snapshot = DaySnapshot(
                date=date,
                divisions=dict(self.divisions),
                resources=dict(self.resources),
                assignments=result.assignments,
                grid=grid,
                division_grids=division_grids,
                league_assignments=league,
                skeleton=result.skeleton or (current.skeleton if current else None),
            )

        snapshot.report = self._validate(snapshot)
        self.snapshots[date] = snapshot
        return result, snapshot.report

    def validate_now(self, date: str) -> Optional[ConflictReport]:
        """Validate the current snapshot without merging. None when the date was never loaded."""
        snapshot = self.snapshots.get(date)
        if snapshot is None:
            return None
        snapshot.report = self._validate(snapshot)
        return snapshot.report

    def resolver(self, date: str) -> SlotResolver:
        snapshot = self.snapshots.get(date)
        if snapshot is None:
            return SlotResolver(self.divisions or {})
        return SlotResolver(
            snapshot.divisions,
            snapshot.division_grids,
            snapshot.assignments,
            snapshot.grid,
        )

    # ------------------------------------------------------------------
    # Host triggers
    # ------------------------------------------------------------------

    def on_date_change(self, date: str) -> asyncio.Task:
        logger.debug("Date changed to %s", date)
        return self.scheduler.schedule(date, self.date_change_delay, lambda: self.run_pass(date))

    def on_validate_requested(self, date: str) -> Optional[ConflictReport]:
        return self.validate_now(date)

    async def on_hydrated(self, date: str, ready: Optional[asyncio.Event] = None) -> asyncio.Task:
        """Wait (bounded) for the host's data to be ready, then schedule a debounced pass."""
        await wait_for_signal(ready, self.hydration_timeout)
        return self.scheduler.schedule(date, self.hydration_delay, lambda: self.run_pass(date))

    async def shutdown(self):
        self.scheduler.cancel_all()
        await self.scheduler.join()
