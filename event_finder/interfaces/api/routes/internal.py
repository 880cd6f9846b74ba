"""Service-to-service endpoints that run the periodic jobs on demand."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from event_finder.interfaces.api.dependencies import get_services, require_service_key
from event_finder.interfaces.api.schemas import ReminderSweepRead, RetentionRead
from event_finder.services import Services

router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/reminders/run", response_model=ReminderSweepRead)
async def run_reminder_sweep(services: Services = Depends(get_services)) -> ReminderSweepRead:
    result = await services.run_reminder_sweep()
    return ReminderSweepRead(
        now=result.now,
        offsets=list(result.offsets),
        events_matched=result.events_matched,
        created=result.created,
        skipped=result.skipped,
        failures=result.failures,
    )


@router.post("/notifications/purge", response_model=RetentionRead)
async def purge_notifications(services: Services = Depends(get_services)) -> RetentionRead:
    result = await services.run_retention_purge()
    return RetentionRead(
        cutoff=result.cutoff,
        notifications_deleted=result.notifications_deleted,
        dispatches_deleted=result.dispatches_deleted,
    )
