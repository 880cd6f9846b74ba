"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationHub, Subscription
from .publisher import NotificationPublisher, serialize_notification

__all__ = [
    "NotificationHub",
    "NotificationPublisher",
    "Subscription",
    "serialize_notification",
]
