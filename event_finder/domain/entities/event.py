"""Domain entities for events and their attendees."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo

from event_finder.utils import combine_local


@dataclass
class Event:
    """Event as exposed by the event repository."""

    id: str | None
    title: str
    date: date
    time: time | None
    location_name: str | None
    organizer_id: str
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    category: str = "other"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def starts_at(self, tz: tzinfo) -> datetime | None:
        """Return the UTC start instant or ``None`` when no time is set."""

        return combine_local(self.date, self.time, tz)

    @property
    def display_date(self) -> str:
        return self.date.isoformat()

    @property
    def display_time(self) -> str | None:
        if self.time is None:
            return None
        return self.time.strftime("%H:%M")

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


__all__ = ["Event"]
