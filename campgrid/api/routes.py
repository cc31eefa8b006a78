"""
API routes for merging, validating and inspecting a day's schedule.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from campgrid.models import ConflictReport
from campgrid.core.config import SUPABASE_URL, SUPABASE_KEY, CAMP_ID
from campgrid.core.exceptions import CUSTOM_ERRORS, PersistenceError
from campgrid.core.logging_config import get_logger
from campgrid.services.memory_store import MemoryScheduleStore
from campgrid.services.orchestrator import ScheduleOrchestrator
from campgrid.services.supabase_store import SupabaseScheduleStore
from campgrid.utils.time_utils import parse_time

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["schedule"])

_orchestrator: Optional[ScheduleOrchestrator] = None


def get_orchestrator() -> ScheduleOrchestrator:
    """Shared orchestrator; demo mode (in-memory store) when Supabase is not configured."""
    global _orchestrator
    if _orchestrator is None:
        if SUPABASE_URL and SUPABASE_KEY and CAMP_ID:
            store = SupabaseScheduleStore(CAMP_ID)
            _orchestrator = ScheduleOrchestrator(store, CAMP_ID)
        else:
            logger.warning("Supabase is not configured, running with an in-memory store")
            _orchestrator = ScheduleOrchestrator(MemoryScheduleStore(), "demo")
    return _orchestrator


class FindingResponse(BaseModel):
    """One error or warning."""
    kind: str
    severity: str
    message: str
    resource: Optional[str] = None
    activity: Optional[str] = None
    divisions: List[str] = []
    bunks: List[str] = []
    startMin: Optional[int] = None
    endMin: Optional[int] = None
    slotIndices: List[int] = []
    count: Optional[int] = None
    capacity: Optional[int] = None


class ReportResponse(BaseModel):
    """Validation report for a day."""
    date: str
    summary: str
    is_clean: bool
    errors: List[FindingResponse]
    warnings: List[FindingResponse]


class MergeResponse(BaseModel):
    """Outcome of one merge-then-validate pass."""
    success: bool
    processedCount: int
    bunkCount: int
    report: Optional[ReportResponse] = None


class TriggerResponse(BaseModel):
    date: str
    scheduled: bool


class EntryResponse(BaseModel):
    """The entry a bunk has for a time range."""
    bunk: str
    division: Optional[str]
    slot_index: int
    owner_index: int
    entry: Optional[Dict[str, Any]] = None


def _report_response(day: str, report: ConflictReport) -> ReportResponse:
    data = report.to_dict()
    return ReportResponse(
        date=day,
        summary=report.get_summary(),
        is_clean=report.is_clean,
        errors=[FindingResponse(**f) for f in data["errors"]],
        warnings=[FindingResponse(**f) for f in data["warnings"]],
    )


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.post("/schedule/{day}/merge", response_model=MergeResponse)
async def merge_schedule(day: date, orchestrator: ScheduleOrchestrator = Depends(get_orchestrator)):
    """
    Merge every saved version of the day, publish the result and validate it.
    """
    key = day.isoformat()
    result, report = await orchestrator.run_pass(key)
    if not result.success:
        raise HTTPException(
            status_code=CUSTOM_ERRORS[PersistenceError],
            detail=f"Merge failed: {result.error}"
        )
    return MergeResponse(
        success=True,
        processedCount=result.processed_count,
        bunkCount=result.bunk_count,
        report=_report_response(key, report) if report is not None else None,
    )


@router.post("/schedule/{day}/validate", response_model=ReportResponse)
async def validate_schedule(day: date, orchestrator: ScheduleOrchestrator = Depends(get_orchestrator)):
    """Validate the current state of the day without merging."""
    key = day.isoformat()
    report = orchestrator.on_validate_requested(key)
    if report is None:
        raise HTTPException(status_code=404, detail=f"No schedule loaded for {key}")
    return _report_response(key, report)


@router.get("/schedule/{day}/report", response_model=ReportResponse)
async def get_report(day: date, orchestrator: ScheduleOrchestrator = Depends(get_orchestrator)):
    """Return the last report produced for the day."""
    key = day.isoformat()
    snapshot = orchestrator.snapshot(key)
    if snapshot is None or snapshot.report is None:
        raise HTTPException(status_code=404, detail=f"No report for {key}")
    return _report_response(key, snapshot.report)


@router.post("/schedule/{day}/hydrated", response_model=TriggerResponse, status_code=202)
async def schedule_hydrated(day: date, orchestrator: ScheduleOrchestrator = Depends(get_orchestrator)):
    """
    The host finished loading the day's data: schedule a debounced reconciliation.
    """
    key = day.isoformat()
    await orchestrator.on_hydrated(key)
    return TriggerResponse(date=key, scheduled=True)


@router.get("/schedule/{day}/entry", response_model=EntryResponse)
async def find_entry(
    day: date,
    bunk: str = Query(...),
    start: str = Query(..., description="Range start, e.g. 11:00am"),
    end: str = Query(..., description="Range end, e.g. 11:30am"),
    orchestrator: ScheduleOrchestrator = Depends(get_orchestrator)
):
    """Look up which slot and entry a bunk has for a time range."""
    start_min, end_min = parse_time(start), parse_time(end)
    if start_min is None or end_min is None or end_min <= start_min:
        raise HTTPException(status_code=400, detail="Invalid time range")

    resolver = orchestrator.resolver(day.isoformat())
    lookup = resolver.find_entry(bunk, start_min, end_min)
    return EntryResponse(
        bunk=bunk,
        division=resolver.resolve_division(bunk),
        slot_index=lookup.slot_index,
        owner_index=lookup.owner_index,
        entry=lookup.entry.to_dict() if lookup.entry is not None else None,
    )
