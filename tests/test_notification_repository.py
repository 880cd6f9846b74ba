"""Tests for the notification store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from event_finder.domain.entities import (
    ConfirmationMetadata,
    Notification,
    NotificationPayload,
    NotificationType,
    Principal,
    ReminderMetadata,
    ReminderTier,
    RSVPAction,
)
from event_finder.domain.exceptions import (
    AuthorizationError,
    DuplicateReminderAttempt,
    NotificationNotFoundError,
)
from event_finder.infrastructure.models import NotificationModel, ReminderDispatchModel
from event_finder.infrastructure.repositories import NotificationRepository

SYSTEM = Principal.system()


def _confirmation(user_id: str, event_id: str = "event-1", created_at=None) -> Notification:
    payload = NotificationPayload(
        title="RSVP Confirmed: Jazz",
        message='You\'re going to "Jazz"',
        metadata=ConfirmationMetadata(
            event_id=event_id, action=RSVPAction.JOINED, event_title="Jazz"
        ),
    )
    return Notification.from_payload(user_id, payload, created_at=created_at)


def _reminder(user_id: str, event_id: str = "event-1", offset_hours: int = 24) -> Notification:
    payload = NotificationPayload(
        title="Event Tomorrow: Jazz",
        message='Your event "Jazz" is tomorrow',
        metadata=ReminderMetadata(
            event_id=event_id,
            offset_hours=offset_hours,
            tier=ReminderTier.TOMORROW,
            event_title="Jazz",
        ),
    )
    return Notification.from_payload(user_id, payload)


def test_list_is_newest_first_with_id_tie_break(session) -> None:
    """Equal timestamps must fall back to creation order, newest first."""

    repository = NotificationRepository(session, SYSTEM)
    moment = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
    first = repository.create(_confirmation("alice", "event-1", created_at=moment))
    second = repository.create(_confirmation("alice", "event-2", created_at=moment))
    older = repository.create(
        _confirmation("alice", "event-3", created_at=moment - timedelta(hours=1))
    )

    listed = NotificationRepository(session, Principal.for_user("alice")).list_for_user("alice")

    assert [n.id for n in listed] == [second.id, first.id, older.id]
    assert listed[0].metadata.event_id == "event-2"


def test_list_filters_by_type_unread_and_pages(session) -> None:
    repository = NotificationRepository(session, SYSTEM)
    confirmation = repository.create(_confirmation("alice"))
    reminder = repository.create(_reminder("alice"))
    repository.mark_read(confirmation.id)

    reminders = repository.list_for_user("alice", notification_type=NotificationType.REMINDER)
    unread = repository.list_for_user("alice", unread_only=True)
    page = repository.list_for_user("alice", limit=1, offset=1)

    assert [n.id for n in reminders] == [reminder.id]
    assert [n.id for n in unread] == [reminder.id]
    assert [n.id for n in page] == [confirmation.id]


def test_mark_read_twice_is_idempotent(session) -> None:
    """Re-marking a read notification is a no-op and the unread count never goes negative."""

    repository = NotificationRepository(session, Principal.for_user("alice"))
    created = NotificationRepository(session, SYSTEM).create(_confirmation("alice"))

    first = repository.mark_read(created.id)
    second = repository.mark_read(created.id)

    assert first.is_read is True
    assert second.is_read is True
    assert second.read_at == first.read_at
    assert repository.count_unread("alice") == 0


def test_mark_all_read_returns_changed_rows(session) -> None:
    system = NotificationRepository(session, SYSTEM)
    system.create(_confirmation("alice"))
    system.create(_reminder("alice"))
    system.create(_confirmation("bob"))
    repository = NotificationRepository(session, Principal.for_user("alice"))

    assert repository.mark_all_read("alice", notification_type=NotificationType.REMINDER) == 1
    assert repository.mark_all_read("alice") == 1
    assert repository.mark_all_read("alice") == 0
    assert system.count_unread("bob") == 1


def test_user_principal_cannot_touch_other_users_rows(session) -> None:
    created = NotificationRepository(session, SYSTEM).create(_confirmation("alice"))
    mallory = NotificationRepository(session, Principal.for_user("mallory"))

    with pytest.raises(AuthorizationError):
        mallory.list_for_user("alice")
    with pytest.raises(AuthorizationError):
        mallory.mark_read(created.id)
    with pytest.raises(AuthorizationError):
        mallory.delete_all("alice")
    with pytest.raises(AuthorizationError):
        mallory.create(_confirmation("alice"))
    with pytest.raises(AuthorizationError):
        mallory.purge_created_before(datetime.now(timezone.utc))


def test_missing_notification_raises_not_found(session) -> None:
    with pytest.raises(NotificationNotFoundError):
        NotificationRepository(session, SYSTEM).mark_read(999)


def test_duplicate_reminder_claim_persists_nothing(session) -> None:
    repository = NotificationRepository(session, SYSTEM)
    repository.create(_reminder("alice"))

    with pytest.raises(DuplicateReminderAttempt) as excinfo:
        repository.create(_reminder("alice"))

    assert excinfo.value.offset_hours == 24
    assert session.query(NotificationModel).count() == 1
    assert session.query(ReminderDispatchModel).count() == 1
    # A different offset for the same event is a separate reminder.
    repository.create(_reminder("alice", offset_hours=1))
    assert session.query(NotificationModel).count() == 2


def test_clear_all_keeps_reminder_claims(session) -> None:
    """Clearing the inbox must not allow the same reminder to be sent again."""

    system = NotificationRepository(session, SYSTEM)
    system.create(_reminder("alice"))
    system.create(_confirmation("alice"))

    deleted = NotificationRepository(session, Principal.for_user("alice")).delete_all("alice")

    assert deleted == 2
    with pytest.raises(DuplicateReminderAttempt):
        system.create(_reminder("alice"))


def test_mark_email_sent_is_one_way(session) -> None:
    repository = NotificationRepository(session, SYSTEM)
    created = repository.create(_confirmation("alice"))

    repository.mark_email_sent(created.id)
    repository.mark_email_sent(created.id)

    assert repository.get(created.id).email_sent is True


def test_purge_removes_old_rows_regardless_of_read_state(session) -> None:
    repository = NotificationRepository(session, SYSTEM)
    now = datetime(2026, 5, 1, tzinfo=timezone.utc)
    old_read = repository.create(_confirmation("alice", created_at=now - timedelta(days=40)))
    repository.create(_confirmation("alice", "event-2", created_at=now - timedelta(days=31)))
    recent = repository.create(_confirmation("alice", "event-3", created_at=now - timedelta(days=2)))
    repository.mark_read(old_read.id)

    deleted = repository.purge_created_before(now - timedelta(days=30))

    assert deleted == 2
    assert [n.id for n in repository.list_for_user("alice")] == [recent.id]
