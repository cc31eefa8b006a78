"""
Celery tasks for merging and validating a day off-request.
"""

import asyncio
import traceback
from datetime import datetime
from typing import Optional

from campgrid.core.celery_app import celery_app
from campgrid.core.config import CAMP_ID
from campgrid.core.logging_config import get_logger
from campgrid.services.orchestrator import ScheduleOrchestrator
from campgrid.services.store import ScheduleStore
from campgrid.services.supabase_store import SupabaseScheduleStore

logger = get_logger(__name__)


def create_store(camp_id: str) -> ScheduleStore:
    return SupabaseScheduleStore(camp_id)


async def _run_pass(date: str, camp_id: str) -> dict:
    orchestrator = ScheduleOrchestrator(create_store(camp_id), camp_id)
    result, report = await orchestrator.run_pass(date)

    summary = result.to_dict()
    summary["date"] = date
    if report is not None:
        summary["summary"] = report.get_summary()
        summary["errors"] = len(report.errors)
        summary["warnings"] = len(report.warnings)
        summary["report"] = report.to_dict()
    return summary


@celery_app.task(name="merge_and_validate")
def merge_and_validate(date: str, camp_id: Optional[str] = None):
    """
    Merge every saved version of a day, publish it, and validate the result.

    Returns:
        dict: Merge counts and the validation report, or the error
    """
    start_time = datetime.now()
    try:
        summary = asyncio.run(_run_pass(date, camp_id or CAMP_ID))
        summary["duration"] = (datetime.now() - start_time).total_seconds()
        return summary

    except Exception as e:
        error_trace = traceback.format_exc()
        logger.error("Error in merge_and_validate for %s: %s", date, error_trace)

        return {
            "success": False,
            "date": date,
            "error": str(e),
            "traceback": error_trace
        }
