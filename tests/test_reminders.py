"""Tests for the reminder sweep."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import anyio
import pytest

from event_finder.application.use_cases.notifications import (
    Dispatcher,
    ReminderScheduler,
    update_preferences,
)
from event_finder.application.use_cases.notifications.reminders import (
    collect_reminder_offsets,
    reminder_window,
)
from event_finder.domain.entities import NotificationType, Principal
from event_finder.infrastructure.models import NotificationModel
from event_finder.infrastructure.notifications import NotificationHub, NotificationPublisher


# Events created by ``make_event`` start at 2026-06-20 19:30 UTC.
EVENT_START = datetime(2026, 6, 20, 19, 30, tzinfo=timezone.utc)


@pytest.fixture
def scheduler(session_factory) -> ReminderScheduler:
    dispatcher = Dispatcher(session_factory, publisher=NotificationPublisher(NotificationHub()))
    return ReminderScheduler(
        session_factory,
        dispatcher,
        event_timezone=timezone.utc,
        tolerance=timedelta(minutes=10),
    )


def _reminders(session_factory) -> list[NotificationModel]:
    with session_factory() as db:
        return (
            db.query(NotificationModel)
            .filter(NotificationModel.type == NotificationType.REMINDER.value)
            .order_by(NotificationModel.id)
            .all()
        )


def test_collect_offsets_merges_defaults_and_ignores_garbage() -> None:
    assert collect_reminder_offsets([[72], [24, "x", 0, 500], []]) == (72, 24, 1)


def test_reminder_window_is_centered_on_the_offset() -> None:
    now = datetime(2026, 6, 19, 19, 30, tzinfo=timezone.utc)

    start, end = reminder_window(now, 24, timedelta(minutes=10))

    assert start == EVENT_START - timedelta(minutes=10)
    assert end == EVENT_START + timedelta(minutes=10)


@pytest.mark.anyio
async def test_consecutive_ticks_send_the_day_before_reminder_once(
    scheduler, make_event, session_factory
) -> None:
    """Two ticks that both see the event inside the 24h window produce one reminder."""

    make_event(attendees=("alice",))

    first = await scheduler.run_once(EVENT_START - timedelta(hours=24, minutes=5))
    second = await scheduler.run_once(EVENT_START - timedelta(hours=23, minutes=50))

    assert first.created == 1
    assert second.created == 0
    assert second.skipped == 1
    (reminder,) = _reminders(session_factory)
    assert reminder.user_id == "alice"
    assert reminder.metadata_json["offset_hours"] == 24
    assert reminder.title == "Event Tomorrow: Jazz in the Park"


@pytest.mark.anyio
async def test_rerunning_the_same_tick_is_deduplicated(scheduler, make_event, session_factory) -> None:
    make_event(attendees=("alice", "bob"))
    now = EVENT_START - timedelta(hours=1)

    await scheduler.run_once(now)
    again = await scheduler.run_once(now)

    assert again.created == 0
    assert len(_reminders(session_factory)) == 2


@pytest.mark.anyio
async def test_events_outside_every_window_are_ignored(scheduler, make_event, session_factory) -> None:
    make_event(attendees=("alice",))

    result = await scheduler.run_once(EVENT_START - timedelta(hours=12))

    assert result.events_matched == 0
    assert _reminders(session_factory) == []


@pytest.mark.anyio
async def test_event_without_time_gets_no_reminders(scheduler, make_event, session_factory) -> None:
    make_event(attendees=("alice",), time=None)

    result = await scheduler.run_once(EVENT_START - timedelta(hours=24))

    assert result.events_matched == 0
    assert _reminders(session_factory) == []


@pytest.mark.anyio
async def test_disabled_reminders_and_unselected_offsets_are_skipped(
    scheduler, make_event, session_factory
) -> None:
    make_event(attendees=("alice", "bob", "carol"))
    with session_factory() as db:
        update_preferences(db, "alice", {"reminders_enabled": False}, principal=Principal.system())
        update_preferences(db, "bob", {"reminder_offsets": [1]}, principal=Principal.system())

    result = await scheduler.run_once(EVENT_START - timedelta(hours=24))

    assert result.created == 1
    assert [row.user_id for row in _reminders(session_factory)] == ["carol"]


@pytest.mark.anyio
async def test_custom_offsets_are_swept(scheduler, make_event, session_factory) -> None:
    make_event(attendees=("alice", "bob"))
    with session_factory() as db:
        update_preferences(db, "alice", {"reminder_offsets": [72, 1]}, principal=Principal.system())

    result = await scheduler.run_once(EVENT_START - timedelta(hours=72))

    assert 72 in result.offsets
    (reminder,) = _reminders(session_factory)
    assert reminder.user_id == "alice"
    assert reminder.title == "Upcoming Event: Jazz in the Park"


@pytest.mark.anyio
async def test_event_times_are_read_in_the_event_timezone(session_factory, make_event) -> None:
    dispatcher = Dispatcher(session_factory, publisher=NotificationPublisher(NotificationHub()))
    scheduler = ReminderScheduler(
        session_factory,
        dispatcher,
        event_timezone=timezone(timedelta(hours=-5)),
        tolerance=timedelta(minutes=10),
    )
    make_event(attendees=("alice",), time=time(14, 30))

    # 14:30 at UTC-5 is 19:30 UTC.
    result = await scheduler.run_once(EVENT_START - timedelta(hours=1))

    assert result.created == 1


def test_tolerance_must_be_positive(session_factory) -> None:
    dispatcher = Dispatcher(session_factory, publisher=NotificationPublisher(NotificationHub()))

    with pytest.raises(ValueError):
        ReminderScheduler(
            session_factory, dispatcher, event_timezone=timezone.utc, tolerance=timedelta(0)
        )


@pytest.mark.anyio
async def test_overlapping_sweeps_send_one_reminder(scheduler, session_factory, make_event) -> None:
    """Two sweeps over the same window race on the claim row; only one reminder is stored."""

    make_event(attendees=("alice",))
    now = EVENT_START - timedelta(hours=1)
    results = []

    async def _sweep() -> None:
        results.append(await scheduler.run_once(now))

    async with anyio.create_task_group() as task_group:
        task_group.start_soon(_sweep)
        task_group.start_soon(_sweep)

    assert sum(result.created for result in results) == 1
    assert sum(result.failures for result in results) == 0
    (reminder,) = _reminders(session_factory)
    assert reminder.user_id == "alice"
