"""Use cases behind a user's notification list."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from event_finder.domain.entities import Notification, NotificationType, Principal
from event_finder.infrastructure.repositories import NotificationRepository

MAX_PAGE_SIZE = 100


def list_notifications(
    session: Session,
    principal: Principal,
    *,
    notification_type: NotificationType | None = None,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Notification]:
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise ValueError("offset must not be negative")
    repository = NotificationRepository(session, principal)
    return repository.list_for_user(
        principal.user_id,
        notification_type=notification_type,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )


def count_unread_notifications(session: Session, principal: Principal) -> int:
    return NotificationRepository(session, principal).count_unread(principal.user_id)


def mark_notification_read(
    session: Session, principal: Principal, notification_id: int
) -> Notification:
    """Mark one notification read; repeating the call is a no-op."""

    return NotificationRepository(session, principal).mark_read(notification_id)


def mark_all_notifications_read(
    session: Session,
    principal: Principal,
    *,
    notification_type: NotificationType | None = None,
) -> int:
    repository = NotificationRepository(session, principal)
    return repository.mark_all_read(principal.user_id, notification_type=notification_type)


def delete_notification(session: Session, principal: Principal, notification_id: int) -> None:
    NotificationRepository(session, principal).delete(notification_id)


def clear_notifications(
    session: Session,
    principal: Principal,
    *,
    notification_type: NotificationType | None = None,
) -> int:
    """Remove the caller's notifications, optionally only those of one type."""

    repository = NotificationRepository(session, principal)
    return repository.delete_all(principal.user_id, notification_type=notification_type)


__all__ = [
    "MAX_PAGE_SIZE",
    "clear_notifications",
    "count_unread_notifications",
    "delete_notification",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
]
