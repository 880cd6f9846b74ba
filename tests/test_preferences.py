"""Tests for preference resolution and channel gating."""

from __future__ import annotations

import anyio
import pytest

from event_finder.application.use_cases.notifications import (
    is_channel_enabled,
    resolve_preferences,
    update_preferences,
)
from event_finder.domain.entities import (
    NotificationChannel,
    NotificationPreference,
    NotificationType,
    Principal,
)
from event_finder.domain.exceptions import AuthorizationError, PreferenceResolutionError
from event_finder.infrastructure.models import NotificationPreferenceModel

SYSTEM = Principal.system()


@pytest.mark.parametrize(
    ("category", "flag"),
    [
        (NotificationType.REMINDER, "reminders_enabled"),
        (NotificationType.CONFIRMATION, "confirmations_enabled"),
        (NotificationType.UPDATE, "updates_enabled"),
        (NotificationType.CANCELLATION, "updates_enabled"),
    ],
)
def test_category_switch_gates_every_channel(category, flag) -> None:
    preference = NotificationPreference(user_id="alice", email_enabled=True, **{flag: False})

    assert is_channel_enabled(preference, category, NotificationChannel.IN_APP) is False
    assert is_channel_enabled(preference, category, NotificationChannel.EMAIL) is False


def test_email_requires_the_master_switch() -> None:
    preference = NotificationPreference.defaults("alice")

    assert preference.email_enabled is False
    assert is_channel_enabled(
        preference, NotificationType.CONFIRMATION, NotificationChannel.IN_APP
    )
    assert not is_channel_enabled(
        preference, NotificationType.CONFIRMATION, NotificationChannel.EMAIL
    )


def test_defaults_are_created_once(session) -> None:
    first = resolve_preferences(session, "alice", principal=SYSTEM)
    second = resolve_preferences(session, "alice", principal=Principal.for_user("alice"))

    assert first.reminder_offsets == frozenset({24, 1})
    assert second.created_at == first.created_at
    assert session.query(NotificationPreferenceModel).count() == 1


def test_update_preferences_persists_changes(session) -> None:
    owner = Principal.for_user("alice")

    updated = update_preferences(
        session,
        "alice",
        {"email_enabled": True, "reminder_offsets": [72, 24, 24]},
        principal=owner,
    )

    assert updated.email_enabled is True
    assert updated.reminder_offsets == frozenset({72, 24})
    stored = session.get(NotificationPreferenceModel, "alice")
    assert stored.reminder_offsets == [72, 24]


@pytest.mark.parametrize(
    "changes",
    [
        {"reminder_offsets": [0]},
        {"reminder_offsets": [169]},
        {"email_enabled": "yes"},
        {"digest_enabled": True},
    ],
)
def test_update_preferences_rejects_invalid_values(session, changes) -> None:
    with pytest.raises(ValueError):
        update_preferences(session, "alice", changes, principal=Principal.for_user("alice"))


def test_other_users_preferences_are_off_limits(session) -> None:
    with pytest.raises(AuthorizationError):
        resolve_preferences(session, "alice", principal=Principal.for_user("mallory"))


def test_corrupted_row_raises_resolution_error(session) -> None:
    resolve_preferences(session, "alice", principal=SYSTEM)
    model = session.get(NotificationPreferenceModel, "alice")
    model.reminder_offsets = ["x"]
    session.commit()

    with pytest.raises(PreferenceResolutionError):
        resolve_preferences(session, "alice", principal=SYSTEM)


@pytest.mark.anyio
async def test_concurrent_first_access_creates_one_row(session_factory) -> None:
    results: list[NotificationPreference] = []

    def _resolve() -> NotificationPreference:
        with session_factory() as db:
            return resolve_preferences(db, "alice", principal=SYSTEM)

    async def _worker() -> None:
        results.append(await anyio.to_thread.run_sync(_resolve))

    async with anyio.create_task_group() as task_group:
        for _ in range(4):
            task_group.start_soon(_worker)

    assert len(results) == 4
    assert {(p.user_id, p.reminder_offsets, p.email_enabled) for p in results} == {
        ("alice", frozenset({1, 24}), False)
    }
    with session_factory() as db:
        assert db.query(NotificationPreferenceModel).count() == 1
