"""Age based clean-up of old notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from event_finder.domain.entities import Principal
from event_finder.infrastructure.repositories import NotificationRepository
from event_finder.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetentionResult:
    cutoff: datetime
    notifications_deleted: int
    dispatches_deleted: int


def purge_expired_notifications(
    session: Session, *, retention_days: int, now: datetime | None = None
) -> RetentionResult:
    """Delete notifications older than ``retention_days``, read or not.

    Reminder claims of the same age go too; by then their events are long
    past, so no reminder can be sent twice.
    """

    if retention_days <= 0:
        raise ValueError("retention_days must be positive")
    cutoff = (ensure_utc(now) or utc_now()) - timedelta(days=retention_days)
    repository = NotificationRepository(session, Principal.system())
    notifications_deleted = repository.purge_created_before(cutoff)
    dispatches_deleted = repository.purge_dispatches_before(cutoff)
    logger.info(
        "Purged %s notification(s) and %s reminder claim(s) created before %s",
        notifications_deleted,
        dispatches_deleted,
        cutoff.isoformat(),
    )
    return RetentionResult(
        cutoff=cutoff,
        notifications_deleted=notifications_deleted,
        dispatches_deleted=dispatches_deleted,
    )


__all__ = ["RetentionResult", "purge_expired_notifications"]
