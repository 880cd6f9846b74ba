"""Domain entities exposed by the application."""

from .event import Event
from .notification import (
    CancellationMetadata,
    ConfirmationMetadata,
    FieldChange,
    Notification,
    NotificationChannel,
    NotificationMetadata,
    NotificationPayload,
    NotificationType,
    ReminderMetadata,
    ReminderTier,
    RSVPAction,
    ScheduleField,
    UpdateMetadata,
    metadata_from_dict,
)
from .notification_preference import (
    DEFAULT_REMINDER_OFFSETS,
    MAX_REMINDER_OFFSET_HOURS,
    NotificationPreference,
    normalize_reminder_offsets,
)
from .principal import Principal
from .profile import Profile

__all__ = [
    "CancellationMetadata",
    "ConfirmationMetadata",
    "DEFAULT_REMINDER_OFFSETS",
    "Event",
    "FieldChange",
    "MAX_REMINDER_OFFSET_HOURS",
    "Notification",
    "NotificationChannel",
    "NotificationMetadata",
    "NotificationPayload",
    "NotificationPreference",
    "NotificationType",
    "Principal",
    "Profile",
    "RSVPAction",
    "ReminderMetadata",
    "ReminderTier",
    "ScheduleField",
    "UpdateMetadata",
    "metadata_from_dict",
    "normalize_reminder_offsets",
]
