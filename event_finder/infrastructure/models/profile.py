"""SQLAlchemy model for user profiles."""

from sqlalchemy import Column, String

from event_finder.infrastructure.database import Base


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True)
    full_name = Column(String(200), nullable=True)


__all__ = ["ProfileModel"]
