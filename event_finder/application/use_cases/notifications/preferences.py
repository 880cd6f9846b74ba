"""Resolve and update per-user notification preferences."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_finder.domain.entities import (
    NotificationChannel,
    NotificationPreference,
    NotificationType,
    Principal,
    normalize_reminder_offsets,
)
from event_finder.domain.exceptions import PreferenceResolutionError
from event_finder.infrastructure.repositories import NotificationPreferenceRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "email_enabled",
        "reminders_enabled",
        "confirmations_enabled",
        "updates_enabled",
        "reminder_offsets",
    }
)


def is_channel_enabled(
    preference: NotificationPreference,
    category: NotificationType,
    channel: NotificationChannel,
) -> bool:
    """Return whether ``channel`` may carry a notification of ``category``.

    In-app delivery only depends on the category switch. Email additionally
    requires the ``email_enabled`` master switch.
    """

    category_on = preference.category_enabled(NotificationType(category))
    if NotificationChannel(channel) is NotificationChannel.EMAIL:
        return category_on and preference.email_enabled
    return category_on


def resolve_preferences(
    session: Session, user_id: str, *, principal: Principal
) -> NotificationPreference:
    """Return the preferences of ``user_id``, creating the defaults on first access."""

    repository = NotificationPreferenceRepository(session, principal)
    try:
        return repository.get_or_create(user_id)
    except (SQLAlchemyError, LookupError, TypeError, ValueError) as exc:
        session.rollback()
        raise PreferenceResolutionError(
            f"Could not resolve notification preferences for user {user_id}"
        ) from exc


def update_preferences(
    session: Session,
    user_id: str,
    changes: Mapping[str, Any],
    *,
    principal: Principal,
) -> NotificationPreference:
    """Apply ``changes`` to the stored preferences of ``user_id``."""

    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")

    principal.ensure_can_access(user_id)
    current = resolve_preferences(session, user_id, principal=principal)
    values = dict(changes)
    if "reminder_offsets" in values:
        values["reminder_offsets"] = normalize_reminder_offsets(values["reminder_offsets"])
    for flag in UPDATABLE_FIELDS - {"reminder_offsets"}:
        if flag in values and not isinstance(values[flag], bool):
            raise ValueError(f"{flag} must be a boolean")

    updated = replace(current, **values)
    repository = NotificationPreferenceRepository(session, principal)
    try:
        saved = repository.save(updated)
    except SQLAlchemyError as exc:
        session.rollback()
        raise PreferenceResolutionError(
            f"Could not store notification preferences for user {user_id}"
        ) from exc
    logger.info("Updated notification preferences for user %s", user_id, extra={"user_id": user_id})
    return saved


__all__ = [
    "UPDATABLE_FIELDS",
    "is_channel_enabled",
    "resolve_preferences",
    "update_preferences",
]
