"""ORM models used by the application infrastructure."""

from .event import AttendeeModel, EventModel
from .notification import NotificationModel, ReminderDispatchModel
from .notification_preference import NotificationPreferenceModel
from .profile import ProfileModel

__all__ = [
    "AttendeeModel",
    "EventModel",
    "NotificationModel",
    "NotificationPreferenceModel",
    "ProfileModel",
    "ReminderDispatchModel",
]
