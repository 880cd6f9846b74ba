"""Pydantic models for event actions."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    date: dt.date
    time: dt.time | None = None
    location_name: str | None = Field(default=None, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    category: str = Field(default="other", max_length=50)


class EventUpdate(BaseModel):
    """Partial edit of an event; only the fields sent are changed."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    location_name: str | None = Field(default=None, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    category: str | None = Field(default=None, max_length=50)

    @model_validator(mode="after")
    def _require_title_and_date(self) -> "EventUpdate":
        if "title" in self.model_fields_set and self.title is None:
            raise ValueError("title cannot be cleared")
        if "date" in self.model_fields_set and self.date is None:
            raise ValueError("date cannot be cleared")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class EventRead(BaseModel):
    id: str
    title: str
    description: str | None = None
    date: dt.date
    time: dt.time | None = None
    location_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    category: str
    organizer_id: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class EventActionResponse(BaseModel):
    """Result of an event action together with its notification side effect."""

    event: EventRead
    changed: bool = True
    notified: int = 0
    notification_warning: str | None = None


__all__ = ["EventActionResponse", "EventCreate", "EventRead", "EventUpdate"]
