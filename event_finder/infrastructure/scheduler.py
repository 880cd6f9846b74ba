"""APScheduler wiring for the periodic notification jobs."""

from __future__ import annotations

import logging
from datetime import timedelta, timezone
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from event_finder.utils import utc_now

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "reminder_sweep"
RETENTION_JOB_ID = "notification_retention"

Job = Callable[[], Awaitable[object]]


def create_job_scheduler(
    *,
    reminder_sweep: Job,
    retention_purge: Job,
    sweep_interval_minutes: int = 15,
    retention_hour: int = 3,
) -> AsyncIOScheduler:
    """Build an unstarted scheduler with the reminder sweep and the daily purge.

    Missed runs are coalesced and a job never overlaps itself; overlapping
    sweeps from other processes are still safe thanks to reminder claims.
    """

    scheduler = AsyncIOScheduler(
        timezone=timezone.utc,
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": sweep_interval_minutes * 60,
        },
    )
    scheduler.add_job(
        reminder_sweep,
        trigger=IntervalTrigger(minutes=sweep_interval_minutes, timezone=timezone.utc),
        id=REMINDER_JOB_ID,
        name="Send due event reminders",
        replace_existing=True,
        next_run_time=utc_now() + timedelta(seconds=5),
    )
    scheduler.add_job(
        retention_purge,
        trigger=CronTrigger(hour=retention_hour, minute=0, timezone=timezone.utc),
        id=RETENTION_JOB_ID,
        name="Purge expired notifications",
        replace_existing=True,
    )
    logger.info(
        "Scheduled reminder sweep every %s minute(s) and retention purge at %02d:00 UTC",
        sweep_interval_minutes,
        retention_hour,
    )
    return scheduler


__all__ = ["REMINDER_JOB_ID", "RETENTION_JOB_ID", "create_job_scheduler"]
