from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.services.tracker_service import TrackerService
from ..domain.records import CycleUpdate, DailyEntryCreate, DailyEntryUpdate
from ..domain.user import User
from ..exceptions import create_success_response
from ..schemas.common import dump_model, parse_date_param
from ..schemas.cycles import CycleCreateRequest
from .deps import get_current_user, get_tracker_service

router = APIRouter(prefix="/api/cycles", tags=["Cycles"])


@router.get("")
async def list_cycles(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    cycles = tracker.list_cycles(current_user, include_deleted=include_deleted)
    return create_success_response({"cycles": [dump_model(c) for c in cycles], "total": len(cycles)})


@router.post("", status_code=201)
async def add_cycle(
    payload: CycleCreateRequest,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    cycle, stats = await tracker.add_cycle(
        current_user,
        start_date=payload.start_date,
        end_date=payload.end_date,
        cycle_length=payload.cycle_length,
        period_length=payload.period_length,
        predicted=payload.predicted,
        confidence=payload.confidence,
    )
    return create_success_response({"message": "Cycle added successfully", "cycle": dump_model(cycle), "stats": dump_model(stats)})


@router.get("/stats")
async def get_stats(
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    stats = await tracker.refresh_stats(current_user)
    return create_success_response({"stats": dump_model(stats)})


# Daily entries are registered before /{cycle_id} so "daily" is not taken for an id

@router.get("/daily")
async def list_daily_entries(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    entries = tracker.list_daily_entries(
        current_user,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate"),
        include_deleted=include_deleted,
    )
    return create_success_response({"entries": [dump_model(e) for e in entries], "total": len(entries)})


@router.post("/daily", status_code=201)
async def add_daily_entry(
    payload: DailyEntryCreate,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    entry = await tracker.add_daily_entry(current_user, payload)
    return create_success_response({"message": "Daily entry added successfully", "entry": dump_model(entry)})


@router.get("/daily/{entry_id}")
async def get_daily_entry(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    entry = tracker.get_daily_entry(current_user, entry_id)
    return create_success_response({"entry": dump_model(entry)})


@router.put("/daily/{entry_id}")
async def update_daily_entry(
    entry_id: str,
    payload: DailyEntryUpdate,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    entry = await tracker.update_daily_entry(current_user, entry_id, payload)
    return create_success_response({"message": "Daily entry updated successfully", "entry": dump_model(entry)})


@router.delete("/daily/{entry_id}")
async def delete_daily_entry(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    await tracker.delete_daily_entry(current_user, entry_id)
    return create_success_response({"message": "Daily entry deleted successfully"})


@router.get("/{cycle_id}")
async def get_cycle(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    cycle = tracker.get_cycle(current_user, cycle_id)
    return create_success_response({"cycle": dump_model(cycle)})


@router.put("/{cycle_id}")
async def update_cycle(
    cycle_id: str,
    payload: CycleUpdate,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    cycle, stats = await tracker.update_cycle(current_user, cycle_id, payload)
    return create_success_response({"message": "Cycle updated successfully", "cycle": dump_model(cycle), "stats": dump_model(stats)})


@router.delete("/{cycle_id}")
async def delete_cycle(
    cycle_id: str,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    cycle, stats = await tracker.delete_cycle(current_user, cycle_id)
    return create_success_response({"message": "Cycle deleted successfully", "cycle": dump_model(cycle), "stats": dump_model(stats)})
