"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, JSON, String

from event_finder.infrastructure.database import Base

from .notification import _now_naive


class NotificationPreferenceModel(Base):
    __tablename__ = "notification_preferences"

    user_id = Column(String(64), primary_key=True)
    email_enabled = Column(Boolean, nullable=False, default=False)
    reminders_enabled = Column(Boolean, nullable=False, default=True)
    confirmations_enabled = Column(Boolean, nullable=False, default=True)
    updates_enabled = Column(Boolean, nullable=False, default=True)
    reminder_offsets = Column(JSON, nullable=False, default=lambda: [24, 1])
    created_at = Column(DateTime(), nullable=False, default=_now_naive)
    updated_at = Column(DateTime(), nullable=False, default=_now_naive, onupdate=_now_naive)


__all__ = ["NotificationPreferenceModel"]
