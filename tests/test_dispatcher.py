"""Tests for the notification dispatcher."""

from __future__ import annotations

import logging
import time

import anyio
import pytest
from sqlalchemy.exc import SQLAlchemyError

from event_finder.application.use_cases.notifications import (
    Dispatcher,
    build_cancellation,
    build_confirmation,
    update_preferences,
)
from event_finder.domain.entities import NotificationType, Principal, RSVPAction
from event_finder.domain.exceptions import NotificationPersistError
from event_finder.infrastructure.models import NotificationModel, NotificationPreferenceModel
from event_finder.infrastructure.notifications import NotificationHub, NotificationPublisher
from event_finder.infrastructure.repositories import NotificationRepository

pytestmark = pytest.mark.anyio


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def dispatcher(session_factory, hub) -> Dispatcher:
    return Dispatcher(session_factory, publisher=NotificationPublisher(hub))


def _count_rows(session_factory, user_id: str) -> int:
    with session_factory() as db:
        return db.query(NotificationModel).filter(NotificationModel.user_id == user_id).count()


def _corrupt_preferences(session_factory, user_id: str) -> None:
    with session_factory() as db:
        db.add(
            NotificationPreferenceModel(
                user_id=user_id,
                email_enabled=False,
                reminders_enabled=True,
                confirmations_enabled=True,
                updates_enabled=True,
                reminder_offsets=["soon"],
            )
        )
        db.commit()


async def test_notify_creates_and_publishes(dispatcher, hub, make_event, session_factory) -> None:
    """A delivered notification is stored and pushed to the live subscriber."""

    event = make_event()
    received: list[dict] = []
    hub.subscribe("alice", received.append)

    notification = await dispatcher.notify(
        "alice", NotificationType.CONFIRMATION, build_confirmation(event, RSVPAction.JOINED)
    )
    await dispatcher.drain()

    assert notification is not None and notification.id is not None
    assert _count_rows(session_factory, "alice") == 1
    assert len(received) == 1
    assert received[0]["type"] == "notification"
    assert received[0]["data"]["id"] == notification.id
    assert received[0]["data"]["type"] == "confirmation"


async def test_muted_category_creates_nothing(dispatcher, make_event, session_factory) -> None:
    event = make_event()
    with session_factory() as db:
        update_preferences(
            db, "alice", {"updates_enabled": False}, principal=Principal.for_user("alice")
        )

    notification = await dispatcher.notify(
        "alice", NotificationType.CANCELLATION, build_cancellation(event)
    )

    assert notification is None
    assert _count_rows(session_factory, "alice") == 0


async def test_type_mismatch_is_rejected(dispatcher, make_event) -> None:
    with pytest.raises(ValueError):
        await dispatcher.notify(
            "alice", NotificationType.UPDATE, build_cancellation(make_event())
        )


async def test_corrupted_preferences_fall_back_to_defaults(
    dispatcher, make_event, session_factory, caplog
) -> None:
    """Unreadable preferences must not block delivery."""

    _corrupt_preferences(session_factory, "alice")
    caplog.set_level(logging.WARNING)

    notification = await dispatcher.notify(
        "alice", NotificationType.CONFIRMATION, build_confirmation(make_event(), RSVPAction.JOINED)
    )

    assert notification is not None
    assert "Falling back to default notification preferences" in caplog.text


async def test_notify_many_isolates_failing_recipients(
    dispatcher, make_event, session_factory
) -> None:
    """One broken preference row never prevents the others from being notified."""

    event = make_event()
    recipients = [f"user-{index}" for index in range(5)]
    _corrupt_preferences(session_factory, "user-2")

    result = await dispatcher.notify_many(
        recipients, NotificationType.CANCELLATION, build_cancellation(event)
    )

    assert len(result.created) == 5
    assert result.failure_count == 0
    assert [n.id for n in result.created] == sorted(n.id for n in result.created)
    assert {n.user_id for n in result.created} == set(recipients)


async def test_notify_many_reports_persist_failures(
    dispatcher, make_event, monkeypatch
) -> None:
    event = make_event()
    original = dispatcher._persist

    def _persist(notification):
        if notification.user_id == "bob":
            raise SQLAlchemyError("database is locked")
        return original(notification)

    monkeypatch.setattr(dispatcher, "_persist", _persist)

    result = await dispatcher.notify_many(
        ["alice", "bob", "carol", "alice"],
        NotificationType.CANCELLATION,
        build_cancellation(event),
    )

    assert [n.user_id for n in result.created] == ["alice", "carol"]
    assert [failure.user_id for failure in result.failures] == ["bob"]
    assert result.skipped == []


async def test_notify_raises_when_the_record_cannot_be_written(
    dispatcher, make_event, monkeypatch
) -> None:
    def _persist(notification):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(dispatcher, "_persist", _persist)

    with pytest.raises(NotificationPersistError) as excinfo:
        await dispatcher.notify(
            "alice", NotificationType.CONFIRMATION, build_confirmation(make_event(), RSVPAction.JOINED)
        )
    assert excinfo.value.user_id == "alice"


async def test_failing_subscriber_does_not_fail_delivery(
    dispatcher, hub, make_event, session_factory
) -> None:
    def _broken(message):
        raise ConnectionError("socket closed")

    hub.subscribe("alice", _broken)

    notification = await dispatcher.notify(
        "alice", NotificationType.CONFIRMATION, build_confirmation(make_event(), RSVPAction.JOINED)
    )
    await dispatcher.drain()

    assert notification is not None
    assert hub.subscriber_count("alice") == 0


async def test_email_is_sent_in_the_background(
    session_factory, hub, email_adapter, fake_sendgrid, make_event, make_profile
) -> None:
    """Email goes out after notify returns and flips ``email_sent`` once delivered."""

    dispatcher = Dispatcher(
        session_factory, publisher=NotificationPublisher(hub), email_adapter=email_adapter
    )
    make_profile("alice", "alice@example.com", "Alice")
    with session_factory() as db:
        update_preferences(db, "alice", {"email_enabled": True}, principal=Principal.system())

    notification = await dispatcher.notify(
        "alice", NotificationType.CONFIRMATION, build_confirmation(make_event(), RSVPAction.JOINED)
    )
    await dispatcher.drain()

    assert dispatcher.pending_emails == 0
    assert len(fake_sendgrid.messages) == 1
    with session_factory() as db:
        stored = NotificationRepository(db, Principal.system()).get(notification.id)
    assert stored.email_sent is True


async def test_email_disabled_by_default(
    session_factory, hub, email_adapter, fake_sendgrid, make_event, make_profile
) -> None:
    dispatcher = Dispatcher(
        session_factory, publisher=NotificationPublisher(hub), email_adapter=email_adapter
    )
    make_profile("alice", "alice@example.com")

    await dispatcher.notify(
        "alice", NotificationType.CONFIRMATION, build_confirmation(make_event(), RSVPAction.JOINED)
    )
    await dispatcher.drain()

    assert fake_sendgrid.messages == []


async def test_slow_subscriber_does_not_delay_notify(session_factory, make_event) -> None:
    """The realtime push runs detached, so a stalled socket never holds up notify."""

    hub = NotificationHub(send_timeout=0.2)
    dispatcher = Dispatcher(session_factory, publisher=NotificationPublisher(hub))

    async def _stalled(message):
        await anyio.sleep(3)

    hub.subscribe("alice", _stalled)

    started = time.monotonic()
    notification = await dispatcher.notify(
        "alice", NotificationType.CONFIRMATION, build_confirmation(make_event(), RSVPAction.JOINED)
    )
    elapsed = time.monotonic() - started

    assert notification is not None
    assert elapsed < 1
    assert dispatcher.pending_publishes == 1

    await dispatcher.drain()

    assert dispatcher.pending_publishes == 0
    assert hub.subscriber_count("alice") == 0
