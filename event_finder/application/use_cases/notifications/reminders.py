"""Periodic sweep that sends time based event reminders."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Callable

import anyio
from sqlalchemy.orm import Session

from event_finder.domain.entities import (
    DEFAULT_REMINDER_OFFSETS,
    MAX_REMINDER_OFFSET_HOURS,
    Event,
    NotificationPreference,
    NotificationType,
    Principal,
)
from event_finder.domain.exceptions import PreferenceResolutionError
from event_finder.infrastructure.repositories import (
    EventRepository,
    NotificationPreferenceRepository,
)
from event_finder.utils import ensure_utc, utc_now

from .dispatcher import Dispatcher
from .factory import build_reminder
from .preferences import resolve_preferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderTarget:
    """An event that falls in the window of one reminder offset."""

    event: Event
    offset_hours: int
    recipients: tuple[str, ...]


@dataclass
class ReminderSweepResult:
    now: datetime
    offsets: tuple[int, ...] = ()
    events_matched: int = 0
    created: int = 0
    skipped: int = 0
    failures: int = 0
    targets: list[ReminderTarget] = field(default_factory=list)


def collect_reminder_offsets(stored: list[list[int]]) -> tuple[int, ...]:
    """Union of the default offsets and every valid stored offset, largest first."""

    offsets = set(DEFAULT_REMINDER_OFFSETS)
    for row in stored:
        for value in row:
            if isinstance(value, int) and not isinstance(value, bool) and 0 < value <= MAX_REMINDER_OFFSET_HOURS:
                offsets.add(value)
    return tuple(sorted(offsets, reverse=True))


def reminder_window(now: datetime, offset_hours: int, tolerance: timedelta) -> tuple[datetime, datetime]:
    target = now + timedelta(hours=offset_hours)
    return target - tolerance, target + tolerance


class ReminderScheduler:
    """Find events entering a reminder window and notify their attendees.

    The sweep keeps no state between runs. Repeated or overlapping runs are
    safe because the notification store refuses a second reminder for the
    same event, user and offset.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        dispatcher: Dispatcher,
        *,
        event_timezone: tzinfo,
        tolerance: timedelta,
    ) -> None:
        if tolerance <= timedelta(0):
            raise ValueError("Reminder tolerance must be positive")
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._event_timezone = event_timezone
        self._tolerance = tolerance
        self._principal = Principal.system()

    async def run_once(self, now: datetime | None = None) -> ReminderSweepResult:
        current = ensure_utc(now) or utc_now()
        offsets, targets = await anyio.to_thread.run_sync(self._find_targets, current)
        result = ReminderSweepResult(now=current, offsets=offsets, targets=targets)
        result.events_matched = len({target.event.id for target in targets})

        for target in targets:
            if not target.recipients:
                continue
            outcome = await self._dispatcher.notify_many(
                target.recipients,
                NotificationType.REMINDER,
                build_reminder(target.event, target.offset_hours),
            )
            result.created += len(outcome.created)
            result.skipped += len(outcome.skipped)
            result.failures += outcome.failure_count

        logger.info(
            "Reminder sweep at %s: %s event(s) matched, %s created, %s skipped, %s failed",
            current.isoformat(),
            result.events_matched,
            result.created,
            result.skipped,
            result.failures,
        )
        return result

    def _find_targets(self, now: datetime) -> tuple[tuple[int, ...], list[ReminderTarget]]:
        with self._session_factory() as session:
            offsets = collect_reminder_offsets(
                NotificationPreferenceRepository(session, self._principal).list_reminder_offsets()
            )
            windows = {h: reminder_window(now, h, self._tolerance) for h in offsets}
            earliest = min(start for start, _ in windows.values())
            latest = max(end for _, end in windows.values())
            # Event dates are local; pad a day on both sides for timezone skew.
            first_day = earliest.astimezone(self._event_timezone).date() - timedelta(days=1)
            last_day = latest.astimezone(self._event_timezone).date() + timedelta(days=1)

            events = EventRepository(session, self._principal)
            matches: list[tuple[Event, int]] = []
            for event in events.list_between_dates(first_day, last_day):
                starts_at = event.starts_at(self._event_timezone)
                if starts_at is None:
                    continue
                for offset_hours in offsets:
                    start, end = windows[offset_hours]
                    if start <= starts_at <= end:
                        matches.append((event, offset_hours))

            if not matches:
                return offsets, []

            attendees = events.list_attendees_for_events(event.id for event, _ in matches)
            preferences: dict[str, NotificationPreference] = {}
            targets: list[ReminderTarget] = []
            for event, offset_hours in matches:
                recipients = []
                for user_id in attendees.get(event.id, []):
                    if user_id not in preferences:
                        preferences[user_id] = self._preference_for(session, user_id)
                    preference = preferences[user_id]
                    if preference.reminders_enabled and offset_hours in preference.reminder_offsets:
                        recipients.append(user_id)
                targets.append(
                    ReminderTarget(event=event, offset_hours=offset_hours, recipients=tuple(recipients))
                )
            return offsets, targets

    def _preference_for(self, session: Session, user_id: str) -> NotificationPreference:
        try:
            return resolve_preferences(session, user_id, principal=self._principal)
        except PreferenceResolutionError:
            logger.warning(
                "Using default reminder preferences for user %s",
                user_id,
                exc_info=True,
                extra={"user_id": user_id},
            )
            return NotificationPreference.defaults(user_id)


__all__ = [
    "ReminderScheduler",
    "ReminderSweepResult",
    "ReminderTarget",
    "collect_reminder_offsets",
    "reminder_window",
]
