"""Event actions that notify attendees after their own write has committed.

Notification failures never undo the action: they surface as
``notification_warning`` on the returned result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Callable

import anyio
from sqlalchemy.orm import Session

from event_finder.domain.entities import (
    Event,
    FieldChange,
    NotificationType,
    Principal,
    RSVPAction,
)
from event_finder.domain.exceptions import NotificationPersistError
from event_finder.infrastructure.repositories import EventRepository

from .notifications.dispatcher import Dispatcher, NotifyManyResult
from .notifications.factory import (
    build_cancellation,
    build_confirmation,
    build_update,
    detect_schedule_changes,
)

logger = logging.getLogger(__name__)

NOTIFICATION_WARNING = "Couldn't update notifications"

EDITABLE_EVENT_FIELDS = frozenset(
    {
        "title",
        "description",
        "date",
        "time",
        "location_name",
        "latitude",
        "longitude",
        "category",
    }
)


@dataclass
class EventActionResult:
    event: Event
    changed: bool = True
    notified: int = 0
    changes: tuple[FieldChange, ...] = ()
    notification_warning: str | None = None
    failed_recipients: list[str] = field(default_factory=list)


def _apply_bulk_outcome(result: EventActionResult, outcome: NotifyManyResult) -> None:
    result.notified = len(outcome.created)
    if outcome.failures:
        result.notification_warning = NOTIFICATION_WARNING
        result.failed_recipients = [failure.user_id for failure in outcome.failures]


async def create_event(
    session_factory: Callable[[], Session], principal: Principal, event: Event
) -> EventActionResult:
    def _create() -> Event:
        with session_factory() as session:
            return EventRepository(session, principal).create(event)

    created = await anyio.to_thread.run_sync(_create)
    logger.info("Event %s created by %s", created.id, principal.user_id, extra={"event_id": created.id})
    return EventActionResult(event=created)


async def _notify_rsvp(
    dispatcher: Dispatcher, result: EventActionResult, user_id: str, action: RSVPAction
) -> None:
    try:
        notification = await dispatcher.notify(
            user_id,
            NotificationType.CONFIRMATION,
            build_confirmation(result.event, action),
        )
    except NotificationPersistError:
        result.notification_warning = NOTIFICATION_WARNING
        return
    result.notified = 1 if notification is not None else 0


async def join_event(
    session_factory: Callable[[], Session],
    dispatcher: Dispatcher,
    principal: Principal,
    event_id: str,
) -> EventActionResult:
    """RSVP the caller to ``event_id``. Joining twice sends a single confirmation."""

    def _join() -> tuple[Event, bool]:
        with session_factory() as session:
            repository = EventRepository(session, principal)
            added = repository.add_attendee(event_id, principal.user_id)
            return repository.get(event_id), added

    event, added = await anyio.to_thread.run_sync(_join)
    result = EventActionResult(event=event, changed=added)
    if added:
        await _notify_rsvp(dispatcher, result, principal.user_id, RSVPAction.JOINED)
    return result


async def leave_event(
    session_factory: Callable[[], Session],
    dispatcher: Dispatcher,
    principal: Principal,
    event_id: str,
) -> EventActionResult:
    def _leave() -> tuple[Event, bool]:
        with session_factory() as session:
            repository = EventRepository(session, principal)
            removed = repository.remove_attendee(event_id, principal.user_id)
            return repository.get(event_id), removed

    event, removed = await anyio.to_thread.run_sync(_leave)
    result = EventActionResult(event=event, changed=removed)
    if removed:
        await _notify_rsvp(dispatcher, result, principal.user_id, RSVPAction.LEFT)
    return result


async def update_event(
    session_factory: Callable[[], Session],
    dispatcher: Dispatcher,
    principal: Principal,
    event_id: str,
    changes: Mapping[str, Any],
) -> EventActionResult:
    """Apply an organizer's edit and tell attendees about schedule changes.

    Only date, time and venue moves notify; cosmetic edits stay silent.
    """

    unknown = set(changes) - EDITABLE_EVENT_FIELDS
    if unknown:
        raise ValueError(f"Unknown event fields: {', '.join(sorted(unknown))}")

    def _update() -> tuple[Event, tuple[FieldChange, ...], list[str]]:
        with session_factory() as session:
            repository = EventRepository(session, principal)
            before = repository.get(event_id)
            principal.ensure_can_access(before.organizer_id)
            after = repository.update(replace(before, **changes))
            return after, detect_schedule_changes(before, after), repository.list_attendees(event_id)

    event, schedule_changes, attendees = await anyio.to_thread.run_sync(_update)
    result = EventActionResult(event=event, changes=schedule_changes)
    if schedule_changes and attendees:
        outcome = await dispatcher.notify_many(
            attendees, NotificationType.UPDATE, build_update(event, schedule_changes)
        )
        _apply_bulk_outcome(result, outcome)
    return result


async def delete_event(
    session_factory: Callable[[], Session],
    dispatcher: Dispatcher,
    principal: Principal,
    event_id: str,
) -> EventActionResult:
    """Cancel and remove an event.

    Attendees are notified while the event still exists, then the record is
    deleted whatever the notification outcome.
    """

    def _load() -> tuple[Event, list[str]]:
        with session_factory() as session:
            repository = EventRepository(session, principal)
            event = repository.get(event_id)
            principal.ensure_can_access(event.organizer_id)
            return event, repository.list_attendees(event_id)

    event, attendees = await anyio.to_thread.run_sync(_load)
    result = EventActionResult(event=event)
    if attendees:
        outcome = await dispatcher.notify_many(
            attendees, NotificationType.CANCELLATION, build_cancellation(event)
        )
        _apply_bulk_outcome(result, outcome)

    def _delete() -> None:
        with session_factory() as session:
            EventRepository(session, principal).delete(event_id)

    await anyio.to_thread.run_sync(_delete)
    logger.info(
        "Event %s deleted; %s attendee(s) notified", event_id, result.notified, extra={"event_id": event_id}
    )
    return result


__all__ = [
    "EDITABLE_EVENT_FIELDS",
    "EventActionResult",
    "NOTIFICATION_WARNING",
    "create_event",
    "delete_event",
    "join_event",
    "leave_event",
    "update_event",
]
