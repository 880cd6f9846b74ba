"""Helper utilities shared across API route handlers."""

from __future__ import annotations

from fastapi import HTTPException, status

from event_finder.domain.entities import Event, Notification
from event_finder.domain.exceptions import (
    AuthorizationError,
    EventNotFoundError,
    NotificationNotFoundError,
    PreferenceResolutionError,
)
from event_finder.interfaces.api.schemas import EventRead, NotificationRead


def http_error_for(exc: Exception) -> HTTPException:
    """Translate a domain exception raised by a use case into an HTTP error."""

    if isinstance(exc, (NotificationNotFoundError, EventNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, PreferenceResolutionError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        metadata=notification.metadata.to_dict(),
        event_id=notification.event_id,
        is_read=notification.is_read,
        email_sent=notification.email_sent,
        created_at=notification.created_at,
        read_at=notification.read_at,
    )


def event_to_schema(event: Event) -> EventRead:
    return EventRead(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        time=event.time,
        location_name=event.location_name,
        latitude=event.latitude,
        longitude=event.longitude,
        category=event.category,
        organizer_id=event.organizer_id,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


__all__ = ["event_to_schema", "http_error_for", "notification_to_schema"]
