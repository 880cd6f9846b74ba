"""SQLAlchemy models for events and attendance."""

from uuid import uuid4

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from event_finder.infrastructure.database import Base

from .notification import _now_naive


class EventModel(Base):
    """Database representation of an organizer's event."""

    __tablename__ = "events"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=True)
    location_name = Column(String(200), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    category = Column(String(50), nullable=False, default="other")
    organizer_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(), nullable=False, default=_now_naive)
    updated_at = Column(DateTime(), nullable=False, default=_now_naive, onupdate=_now_naive)

    attendees = relationship(
        "AttendeeModel",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AttendeeModel(Base):
    """Attendance row linking a user to an event."""

    __tablename__ = "event_attendees"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        String(64), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(), nullable=False, default=_now_naive)

    event = relationship("EventModel", back_populates="attendees")


__all__ = ["AttendeeModel", "EventModel"]
