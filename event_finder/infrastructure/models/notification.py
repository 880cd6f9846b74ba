"""SQLAlchemy models for persisted notifications and reminder claims."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)

from event_finder.infrastructure.database import Base
from event_finder.utils import to_naive_utc, utc_now


def _now_naive():
    return to_naive_utc(utc_now())


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
        Index("ix_notifications_user_unread", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    # Factory prefixes make titles longer than the event title they embed.
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    # Weak reference: the event may be deleted while its notifications remain.
    event_id = Column(String(64), nullable=True, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    email_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False, default=_now_naive)
    read_at = Column(DateTime(), nullable=True)


class ReminderDispatchModel(Base):
    """Claim recording that a reminder offset was already sent to a user."""

    __tablename__ = "reminder_dispatches"
    __table_args__ = (
        UniqueConstraint(
            "event_id", "user_id", "offset_hours", name="uq_reminder_dispatch"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    offset_hours = Column(Integer, nullable=False)
    created_at = Column(DateTime(), nullable=False, default=_now_naive)


__all__ = ["NotificationModel", "ReminderDispatchModel"]
