"""Pydantic models for notification preferences."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from event_finder.domain.entities import MAX_REMINDER_OFFSET_HOURS


class NotificationPreferenceRead(BaseModel):
    user_id: str
    email_enabled: bool
    reminders_enabled: bool
    confirmations_enabled: bool
    updates_enabled: bool
    reminder_offsets: list[int]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationPreferenceUpdate(BaseModel):
    """Partial update of the caller's preferences. Omitted fields stay as they are."""

    model_config = ConfigDict(extra="forbid")

    email_enabled: bool | None = None
    reminders_enabled: bool | None = None
    confirmations_enabled: bool | None = None
    updates_enabled: bool | None = None
    reminder_offsets: list[int] | None = Field(
        default=None,
        description="Hours before an event at which reminders are sent",
    )

    @field_validator("reminder_offsets")
    @classmethod
    def _validate_offsets(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return value
        for offset in value:
            if not 0 < offset <= MAX_REMINDER_OFFSET_HOURS:
                raise ValueError(
                    f"Reminder offsets must be between 1 and {MAX_REMINDER_OFFSET_HOURS} hours"
                )
        return sorted(set(value), reverse=True)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


__all__ = ["NotificationPreferenceRead", "NotificationPreferenceUpdate"]
