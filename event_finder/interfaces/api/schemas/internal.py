"""Pydantic models returned by the internal job endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReminderSweepRead(BaseModel):
    now: datetime
    offsets: list[int]
    events_matched: int
    created: int
    skipped: int
    failures: int


class RetentionRead(BaseModel):
    cutoff: datetime
    notifications_deleted: int
    dispatches_deleted: int


__all__ = ["ReminderSweepRead", "RetentionRead"]
