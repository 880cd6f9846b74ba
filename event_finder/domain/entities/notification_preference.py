"""Domain entity describing per-user notification preferences."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .notification import NotificationType

DEFAULT_REMINDER_OFFSETS: frozenset[int] = frozenset({24, 1})
MAX_REMINDER_OFFSET_HOURS = 168


def normalize_reminder_offsets(values: Iterable[int]) -> frozenset[int]:
    """Validate reminder offsets and collapse duplicates."""

    offsets: set[int] = set()
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Reminder offset must be an integer number of hours: {value!r}")
        if not 0 < value <= MAX_REMINDER_OFFSET_HOURS:
            raise ValueError(
                f"Reminder offset must be between 1 and {MAX_REMINDER_OFFSET_HOURS} hours"
            )
        offsets.add(value)
    return frozenset(offsets)


@dataclass
class NotificationPreference:
    """Delivery settings owned by a single user."""

    user_id: str
    email_enabled: bool = False
    reminders_enabled: bool = True
    confirmations_enabled: bool = True
    updates_enabled: bool = True
    reminder_offsets: frozenset[int] = DEFAULT_REMINDER_OFFSETS
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.reminder_offsets = normalize_reminder_offsets(self.reminder_offsets)

    @classmethod
    def defaults(cls, user_id: str) -> "NotificationPreference":
        return cls(user_id=user_id)

    def category_enabled(self, notification_type: NotificationType) -> bool:
        """Return the master switch for ``notification_type``.

        Cancellations share the ``updates_enabled`` flag with updates.
        """

        if notification_type is NotificationType.REMINDER:
            return self.reminders_enabled
        if notification_type is NotificationType.CONFIRMATION:
            return self.confirmations_enabled
        return self.updates_enabled


__all__ = [
    "DEFAULT_REMINDER_OFFSETS",
    "MAX_REMINDER_OFFSET_HOURS",
    "NotificationPreference",
    "normalize_reminder_offsets",
]
