"""
Version merging for the campgrid scheduling core.

Several editors may save drafts of the same day independently. The merger
reconciles every saved version into one canonical day: the newest skeleton
decides the structure, and each bunk's row comes from the newest version
that has one.
"""

import copy
from typing import Any, Dict, List, Optional

from campgrid.models import Division, MergeResult, MergeState, ScheduleVersion
from campgrid.core.config import GRID_INCREMENT_MINUTES
from campgrid.core.exceptions import ScheduleError
from campgrid.core.logging_config import get_logger
from campgrid.services.payloads import normalize_divisions, normalize_versions
from campgrid.services.store import ScheduleStore
from campgrid.services.time_grid import build_division_grids, build_grid

logger = get_logger(__name__)


class VersionMerger:
    """
    Fetches, reconciles and publishes the saved versions of one day.
    """

    def __init__(self, store: ScheduleStore, camp_id: str, increment_minutes: int = GRID_INCREMENT_MINUTES):
        self.store = store
        self.camp_id = camp_id
        self.increment_minutes = increment_minutes
        self.state = MergeState.IDLE

    def _transition(self, state: MergeState, date: str):
        logger.debug("Merge %s: %s -> %s", date, self.state.value, state.value)
        self.state = state

    @staticmethod
    def find_structure(versions: List[ScheduleVersion]):
        """
        Scan newest to oldest for the latest skeleton and the latest league block.
        The scan stops at the first version carrying a skeleton.

        Returns:
            (skeleton, league_assignments), either may be None
        """
        skeleton = None
        league = None
        for version in reversed(versions):
            if league is None and version.league_assignments:
                league = version.league_assignments
            if version.skeleton:
                skeleton = version.skeleton
                break
        return skeleton, league

    @staticmethod
    def merge_assignments(versions: List[ScheduleVersion]) -> Dict[str, list]:
        """Oldest to newest, a bunk's whole row is replaced by each later version that has it."""
        merged: Dict[str, list] = {}
        for version in versions:
            for bunk, slots in version.assignments.items():
                merged[bunk] = copy.deepcopy(list(slots))
        return merged

    async def merge_and_publish(
        self,
        date: str,
        divisions: Optional[Dict[str, Division]] = None,
        fallback_skeleton: Optional[List[Any]] = None
    ) -> MergeResult:
        """
        Run one merge for a date and publish the result.

        Args:
            date: Day key, e.g. "2025-07-01"
            divisions: Division configuration; fetched from the store when omitted
            fallback_skeleton: Skeleton to use when no version carries one

        Returns:
            MergeResult; failures are reported in the result, never raised
        """
        self.state = MergeState.IDLE
        try:
            self._transition(MergeState.FETCHING, date)
            versions = normalize_versions(
                await self.store.get_versions_for_date(self.camp_id, date)
            )
            if not versions:
                self._transition(MergeState.DONE, date)
                logger.info("No saved versions for %s, nothing to merge", date)
                return MergeResult(success=True, state=self.state)

            self._transition(MergeState.ANALYZING_STRUCTURE, date)
            skeleton, league = self.find_structure(versions)
            if skeleton is None and fallback_skeleton:
                logger.info("No version for %s carries a skeleton, using the current one", date)
                skeleton = fallback_skeleton

            grid, division_grids = [], {}
            if skeleton:
                self._transition(MergeState.REGENERATING_GRID, date)
                if divisions is None:
                    divisions = await self.store.get_divisions()
                divisions = normalize_divisions(divisions)
                grid = build_grid(skeleton, divisions, self.increment_minutes)
                division_grids = build_division_grids(skeleton, divisions, self.increment_minutes)
            else:
                logger.warning("No skeleton for %s: merging rows without regenerating the grid", date)

            self._transition(MergeState.MERGING_ASSIGNMENTS, date)
            merged = self.merge_assignments(versions)

            self._transition(MergeState.PUBLISHING, date)
            # One write for the whole day so readers never see half of it
            await self.store.publish_day(
                date,
                assignments=merged,
                grid=grid or None,
                division_grids=division_grids if grid else None,
                league=league or None,
            )

            self._transition(MergeState.DONE, date)
            logger.info(
                "Merged %d versions for %s: %d bunks, %d slots",
                len(versions), date, len(merged), len(grid)
            )
            return MergeResult(
                success=True,
                processed_count=len(versions),
                bunk_count=len(merged),
                state=self.state,
                assignments=merged,
                grid=grid,
                division_grids=division_grids,
                league_assignments=league,
                skeleton=skeleton,
            )

        except ScheduleError as e:
            failed_in = self.state
            self._transition(MergeState.FAILED, date)
            logger.error("Merge for %s failed while %s: %s", date, failed_in.value, e)
            return MergeResult(success=False, error=str(e), state=self.state)
        except Exception as e:
            self._transition(MergeState.FAILED, date)
            logger.exception("Unexpected error merging %s", date)
            return MergeResult(success=False, error=str(e), state=self.state)
