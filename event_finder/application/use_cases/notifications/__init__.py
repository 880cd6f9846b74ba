"""Notification engine: factory, preferences, dispatcher, reminders and retention."""

from .dispatcher import Dispatcher, NotificationFailure, NotifyManyResult
from .factory import (
    build_cancellation,
    build_confirmation,
    build_reminder,
    build_update,
    detect_schedule_changes,
    reminder_tier,
)
from .inbox import (
    clear_notifications,
    count_unread_notifications,
    delete_notification,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
)
from .preferences import is_channel_enabled, resolve_preferences, update_preferences
from .reminders import ReminderScheduler, ReminderSweepResult
from .retention import RetentionResult, purge_expired_notifications

__all__ = [
    "Dispatcher",
    "NotificationFailure",
    "NotifyManyResult",
    "ReminderScheduler",
    "ReminderSweepResult",
    "RetentionResult",
    "build_cancellation",
    "build_confirmation",
    "build_reminder",
    "build_update",
    "clear_notifications",
    "count_unread_notifications",
    "delete_notification",
    "detect_schedule_changes",
    "is_channel_enabled",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "purge_expired_notifications",
    "reminder_tier",
    "resolve_preferences",
    "update_preferences",
]
