"""Schedule router: preview, confirmation and reminder management."""
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from medcabinet.db.config import engine
from medcabinet.errors import ScheduleValidationError
from medcabinet.providers.base_provider import DaprReminderFacility
from medcabinet.schemas.schedule import ResolvedSchedule, ResolveRequest, Schedule, ScheduleCreate
from medcabinet.services.reminder_projector import ReminderProjector, events_by_day
from medcabinet.services.schedule_service import ScheduleService
from medcabinet.storage.blob_store import BlobStore, SqlBlobStore

router = APIRouter(tags=["Schedules"])  # No prefix since main.py adds /api prefix


def get_blob_store() -> BlobStore:
    """Dependency for getting the blob store."""
    return SqlBlobStore(engine)


@lru_cache()
def get_reminder_projector() -> ReminderProjector:
    """Dependency for the process-wide ReminderProjector; its table and locks are shared."""
    return ReminderProjector(DaprReminderFacility(), get_blob_store())


def get_schedule_service(
    store: BlobStore = Depends(get_blob_store),
    projector: ReminderProjector = Depends(get_reminder_projector),
) -> ScheduleService:
    """Dependency for getting ScheduleService instance."""
    return ScheduleService(store, projector)


def _unprocessable(e: ScheduleValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.to_dict())


@router.post("/schedules/resolve", response_model=ResolvedSchedule)
async def resolve_schedule(
    request: ResolveRequest,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Preview a schedule definition against a medicine's stock and expiry date."""
    try:
        return await service.preview(request.definition, request.medicine_id, request.dose)
    except ScheduleValidationError as e:
        raise _unprocessable(e)


@router.post("/medicines/{medicine_id}/schedules", response_model=Schedule, status_code=status.HTTP_201_CREATED)
async def confirm_schedule(
    medicine_id: str,
    payload: ScheduleCreate,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Confirm a schedule for a medicine and schedule its reminders."""
    try:
        schedule = await service.confirm(medicine_id, payload)
    except ScheduleValidationError as e:
        raise _unprocessable(e)

    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicine not found"
        )
    return schedule


@router.get("/schedules", response_model=Dict[str, Any])
async def list_schedules(
    medicine_id: Optional[str] = Query(None, description="Only schedules of this medicine"),
    service: ScheduleService = Depends(get_schedule_service),
):
    """List confirmed schedules."""
    schedules = await service.list_schedules(medicine_id)
    return {
        "schedules": [s.model_dump(mode="json") for s in schedules],
        "count": len(schedules)
    }


@router.get("/schedules/{schedule_id}", response_model=Schedule)
async def get_schedule(
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Get a specific schedule by ID."""
    schedule = await service.get_schedule(schedule_id)
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found"
        )
    return schedule


@router.get("/schedules/{schedule_id}/intakes", response_model=Dict[str, Any])
async def list_intakes(
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Intake events of a schedule grouped by day."""
    events = await service.intakes_for_schedule(schedule_id)
    if events is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found"
        )

    days = [
        {"day": day.isoformat(), "intakes": [e.model_dump(mode="json") for e in day_events]}
        for day, day_events in events_by_day(events).items()
    ]
    return {"days": days, "count": len(events)}


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Delete a schedule and cancel its reminders."""
    success = await service.delete_schedule(schedule_id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found"
        )


@router.delete("/medicines/{medicine_id}/schedules", response_model=Dict[str, Any])
async def delete_medicine_schedules(
    medicine_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Remove every schedule of a deleted medicine."""
    removed = await service.on_medicine_deleted(medicine_id)
    return {"medicine_id": medicine_id, "deleted": removed}


@router.get("/reminders", response_model=Dict[str, Any])
async def list_reminders(projector: ReminderProjector = Depends(get_reminder_projector)):
    """Current intake -> reminder id table."""
    return {"reminders": dict(projector.records), "count": len(projector.records)}


@router.delete("/reminders", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_reminders(projector: ReminderProjector = Depends(get_reminder_projector)):
    """Cancel every scheduled reminder."""
    await projector.cancel_all()
