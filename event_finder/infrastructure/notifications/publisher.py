"""Utility helpers to push notifications to realtime subscribers."""

from __future__ import annotations

from typing import Any

from event_finder.domain.entities import Notification

from .manager import NotificationHub


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the realtime payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "metadata": notification.metadata.to_dict(),
        "is_read": notification.is_read,
        "email_sent": notification.email_sent,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
    }


class NotificationPublisher:
    """Serialize notifications and deliver them to the recipient's subscribers."""

    def __init__(self, hub: NotificationHub) -> None:
        self._hub = hub

    @property
    def hub(self) -> NotificationHub:
        return self._hub

    async def publish(self, notification: Notification) -> int:
        """Push ``notification`` to connected subscribers and return the delivery count.

        Delivery is best effort: subscribers that are not connected right now
        catch up from the notification list.
        """

        message = {"type": "notification", "data": serialize_notification(notification)}
        return await self._hub.send_to_user(notification.user_id, message)


__all__ = ["NotificationPublisher", "serialize_notification"]
