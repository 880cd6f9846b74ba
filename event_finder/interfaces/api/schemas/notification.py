"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from event_finder.domain.entities import NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: str
    type: NotificationType
    title: str
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    event_id: str | None = None
    is_read: bool = False
    email_sent: bool = False
    created_at: datetime
    read_at: datetime | None = None


class UnreadCountRead(BaseModel):
    count: int = Field(..., ge=0)


class NotificationBulkResult(BaseModel):
    """Number of notifications touched by a bulk action."""

    count: int = Field(..., ge=0)


__all__ = ["NotificationBulkResult", "NotificationRead", "UnreadCountRead"]
