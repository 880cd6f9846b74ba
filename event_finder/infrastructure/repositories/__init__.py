"""Repository implementations for persistence."""

from .event_repository import EventRepository
from .notification_preference_repository import NotificationPreferenceRepository
from .notification_repository import NotificationRepository
from .profile_repository import ProfileRepository

__all__ = [
    "EventRepository",
    "NotificationPreferenceRepository",
    "NotificationRepository",
    "ProfileRepository",
]
