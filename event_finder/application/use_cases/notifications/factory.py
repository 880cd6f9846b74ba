"""Builders that turn event data into notification titles, messages and metadata.

Every builder is pure: the same event yields the same payload. Optional event
fields (time, location) only drop their phrase from the message when missing.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from event_finder.domain.entities import (
    CancellationMetadata,
    ConfirmationMetadata,
    Event,
    FieldChange,
    NotificationPayload,
    ReminderMetadata,
    ReminderTier,
    RSVPAction,
    ScheduleField,
    UpdateMetadata,
)
from event_finder.utils import utc_now

UNSET_VALUE = "not set"
_CHANGE_ARROW = "\N{RIGHTWARDS ARROW}"


def _event_id(event: Event) -> str:
    if not event.id:
        raise ValueError("Notifications can only be built for persisted events")
    return str(event.id)


def _at(value: str | None) -> str:
    return f" at {value}" if value else ""


def reminder_tier(offset_hours: int) -> ReminderTier:
    """Return the wording tier for a reminder sent ``offset_hours`` before the start."""

    if offset_hours <= 1:
        return ReminderTier.STARTING_SOON
    if offset_hours < 24:
        return ReminderTier.LATER_TODAY
    if offset_hours < 48:
        return ReminderTier.TOMORROW
    return ReminderTier.UPCOMING


def build_reminder(event: Event, offset_hours: int) -> NotificationPayload:
    if offset_hours < 1:
        raise ValueError("Reminder offset must be at least one hour")
    tier = reminder_tier(offset_hours)
    title_text = event.title
    time_text = event.display_time
    location = event.location_name

    if tier is ReminderTier.STARTING_SOON:
        title = f"Event Starting Soon: {title_text}"
        message = f'Your event "{title_text}" starts in 1 hour{_at(location)}'
    elif tier is ReminderTier.LATER_TODAY:
        title = f"Event Later Today: {title_text}"
        message = (
            f'Your event "{title_text}" starts in {offset_hours} hours'
            f"{_at(time_text)}{_at(location)}"
        )
    elif tier is ReminderTier.TOMORROW:
        title = f"Event Tomorrow: {title_text}"
        message = f'Your event "{title_text}" is tomorrow{_at(time_text)}{_at(location)}'
    else:
        days = offset_hours // 24
        title = f"Upcoming Event: {title_text}"
        message = (
            f'Your event "{title_text}" is in {days} days on {event.display_date}'
            f"{_at(time_text)}{_at(location)}"
        )

    return NotificationPayload(
        title=title,
        message=message,
        metadata=ReminderMetadata(
            event_id=_event_id(event),
            offset_hours=offset_hours,
            tier=tier,
            event_title=title_text,
            event_date=event.display_date,
            event_time=time_text,
            location_name=location,
        ),
    )


def build_confirmation(event: Event, action: RSVPAction) -> NotificationPayload:
    action = RSVPAction(action)
    if action is RSVPAction.JOINED:
        title = f"RSVP Confirmed: {event.title}"
        message = f'You\'re going to "{event.title}" on {event.display_date}{_at(event.display_time)}'
        if event.location_name:
            message += f". Location: {event.location_name}"
    else:
        title = f"RSVP Cancelled: {event.title}"
        message = f'You\'ve cancelled your RSVP for "{event.title}"'

    return NotificationPayload(
        title=title,
        message=message,
        metadata=ConfirmationMetadata(
            event_id=_event_id(event),
            action=action,
            event_title=event.title,
            event_date=event.display_date,
            event_time=event.display_time,
            location_name=event.location_name,
        ),
    )


def build_cancellation(
    event: Event, *, cancelled_at: datetime | None = None
) -> NotificationPayload:
    moment = cancelled_at or utc_now()
    return NotificationPayload(
        title=f"Event Cancelled: {event.title}",
        message=(
            f'The event "{event.title}" scheduled for {event.display_date}'
            f"{_at(event.display_time)} has been cancelled by the organizer."
        ),
        metadata=CancellationMetadata(
            event_id=_event_id(event),
            event_title=event.title,
            cancelled_at=moment.isoformat(),
            event_date=event.display_date,
            event_time=event.display_time,
            location_name=event.location_name,
        ),
    )


def _describe_change(change: FieldChange) -> str:
    old = change.old or UNSET_VALUE
    new = change.new or UNSET_VALUE
    return f"{change.field.value}: {old} {_CHANGE_ARROW} {new}"


def build_update(event: Event, changes: Iterable[FieldChange]) -> NotificationPayload:
    """Build an update notice listing the old and new value of each changed field."""

    ordered = _ordered_changes(changes)
    if not ordered:
        raise ValueError("An update notification needs at least one schedule change")
    summary = ", ".join(_describe_change(change) for change in ordered)
    return NotificationPayload(
        title=f"Event Updated: {event.title}",
        message=f'The event "{event.title}" has been updated. Changes: {summary}',
        metadata=UpdateMetadata(
            event_id=_event_id(event),
            event_title=event.title,
            changes=ordered,
        ),
    )


_FIELD_ORDER = {ScheduleField.DATE: 0, ScheduleField.TIME: 1, ScheduleField.LOCATION: 2}


def _ordered_changes(changes: Iterable[FieldChange]) -> tuple[FieldChange, ...]:
    by_field = {change.field: change for change in changes}
    return tuple(sorted(by_field.values(), key=lambda change: _FIELD_ORDER[change.field]))


def _describe_location(event: Event) -> str | None:
    if event.location_name:
        return event.location_name
    coordinates = event.coordinates
    if coordinates is None:
        return None
    return f"{coordinates[0]:.5f}, {coordinates[1]:.5f}"


def detect_schedule_changes(before: Event, after: Event) -> tuple[FieldChange, ...]:
    """Return the schedule fields that differ between two versions of an event.

    The venue counts as moved only when its coordinates change; renaming the
    location text alone is cosmetic. Title, description and category edits are
    ignored.
    """

    changes: list[FieldChange] = []
    if before.date != after.date:
        changes.append(
            FieldChange(ScheduleField.DATE, before.display_date, after.display_date)
        )
    if before.time != after.time:
        changes.append(
            FieldChange(ScheduleField.TIME, before.display_time, after.display_time)
        )
    if before.coordinates != after.coordinates:
        old_location = _describe_location(before)
        new_location = _describe_location(after)
        if old_location == new_location and after.coordinates is not None:
            new_location = f"{after.coordinates[0]:.5f}, {after.coordinates[1]:.5f}"
            if before.coordinates is not None:
                old_location = f"{before.coordinates[0]:.5f}, {before.coordinates[1]:.5f}"
        changes.append(FieldChange(ScheduleField.LOCATION, old_location, new_location))
    return tuple(changes)


__all__ = [
    "build_cancellation",
    "build_confirmation",
    "build_reminder",
    "build_update",
    "detect_schedule_changes",
    "reminder_tier",
]
