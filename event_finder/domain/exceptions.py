"""Exceptions raised by the notification engine."""

from __future__ import annotations


class AuthorizationError(PermissionError):
    """Raised when a principal touches data owned by another user."""


class NotificationNotFoundError(ValueError):
    """Raised when a notification does not exist."""


class EventNotFoundError(ValueError):
    """Raised when an event does not exist."""


class PreferenceResolutionError(RuntimeError):
    """Raised when notification preferences cannot be read or created."""


class NotificationPersistError(RuntimeError):
    """Raised when a notification record could not be written."""

    def __init__(self, message: str, *, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class EmailDeliveryError(RuntimeError):
    """Base class for failures reported by the email provider."""

    retryable = False

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientEmailError(EmailDeliveryError):
    """Provider failure worth retrying (timeouts, 429 and 5xx responses)."""

    retryable = True


class PermanentEmailError(EmailDeliveryError):
    """Provider rejection that will not succeed on retry (4xx responses)."""


class DuplicateReminderAttempt(Exception):
    """Raised when a reminder for the same event, user and offset already exists."""

    def __init__(self, *, event_id: str, user_id: str, offset_hours: int) -> None:
        super().__init__(
            f"Reminder already dispatched for event {event_id}, user {user_id}, "
            f"offset {offset_hours}h"
        )
        self.event_id = event_id
        self.user_id = user_id
        self.offset_hours = offset_hours


__all__ = [
    "AuthorizationError",
    "DuplicateReminderAttempt",
    "EmailDeliveryError",
    "EventNotFoundError",
    "NotificationNotFoundError",
    "NotificationPersistError",
    "PermanentEmailError",
    "PreferenceResolutionError",
    "TransientEmailError",
]
