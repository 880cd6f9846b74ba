from .event import EventActionResponse, EventCreate, EventRead, EventUpdate
from .internal import ReminderSweepRead, RetentionRead
from .notification import NotificationBulkResult, NotificationRead, UnreadCountRead
from .preference import NotificationPreferenceRead, NotificationPreferenceUpdate

__all__ = [
    "EventActionResponse",
    "EventCreate",
    "EventRead",
    "EventUpdate",
    "NotificationBulkResult",
    "NotificationPreferenceRead",
    "NotificationPreferenceUpdate",
    "NotificationRead",
    "ReminderSweepRead",
    "RetentionRead",
    "UnreadCountRead",
]
