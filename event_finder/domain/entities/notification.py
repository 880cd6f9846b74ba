"""Domain entities describing user notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Mapping, Union


class NotificationType(str, Enum):
    """Category of a notification; preferences are toggled per category."""

    REMINDER = "reminder"
    CONFIRMATION = "confirmation"
    CANCELLATION = "cancellation"
    UPDATE = "update"


class NotificationChannel(str, Enum):
    """Delivery medium for a notification."""

    IN_APP = "in_app"
    EMAIL = "email"


class RSVPAction(str, Enum):
    JOINED = "joined"
    LEFT = "left"


class ReminderTier(str, Enum):
    """Human readable framing derived from the reminder offset."""

    STARTING_SOON = "starting_soon"
    LATER_TODAY = "later_today"
    TOMORROW = "tomorrow"
    UPCOMING = "upcoming"


class ScheduleField(str, Enum):
    """Event fields whose change notifies attendees."""

    DATE = "date"
    TIME = "time"
    LOCATION = "location"


@dataclass(frozen=True)
class FieldChange:
    """Old and new rendered values of a changed schedule field."""

    field: ScheduleField
    old: str | None
    new: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field.value, "old": self.old, "new": self.new}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldChange":
        return cls(
            field=ScheduleField(data["field"]),
            old=data.get("old"),
            new=data.get("new"),
        )


@dataclass(frozen=True)
class ReminderMetadata:
    kind: ClassVar[NotificationType] = NotificationType.REMINDER

    event_id: str
    offset_hours: int
    tier: ReminderTier
    event_title: str
    event_date: str | None = None
    event_time: str | None = None
    location_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "offset_hours": self.offset_hours,
            "reminder_type": f"{self.offset_hours}h",
            "tier": self.tier.value,
            "event_title": self.event_title,
            "event_date": self.event_date,
            "event_time": self.event_time,
            "location_name": self.location_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReminderMetadata":
        return cls(
            event_id=str(data["event_id"]),
            offset_hours=int(data["offset_hours"]),
            tier=ReminderTier(data["tier"]),
            event_title=str(data.get("event_title") or ""),
            event_date=data.get("event_date"),
            event_time=data.get("event_time"),
            location_name=data.get("location_name"),
        )


@dataclass(frozen=True)
class ConfirmationMetadata:
    kind: ClassVar[NotificationType] = NotificationType.CONFIRMATION

    event_id: str
    action: RSVPAction
    event_title: str
    event_date: str | None = None
    event_time: str | None = None
    location_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "action": self.action.value,
            "event_title": self.event_title,
            "event_date": self.event_date,
            "event_time": self.event_time,
            "location_name": self.location_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConfirmationMetadata":
        return cls(
            event_id=str(data["event_id"]),
            action=RSVPAction(data["action"]),
            event_title=str(data.get("event_title") or ""),
            event_date=data.get("event_date"),
            event_time=data.get("event_time"),
            location_name=data.get("location_name"),
        )


@dataclass(frozen=True)
class CancellationMetadata:
    kind: ClassVar[NotificationType] = NotificationType.CANCELLATION

    event_id: str
    event_title: str
    cancelled_at: str
    event_date: str | None = None
    event_time: str | None = None
    location_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_title": self.event_title,
            "cancelled_at": self.cancelled_at,
            "event_date": self.event_date,
            "event_time": self.event_time,
            "location_name": self.location_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CancellationMetadata":
        return cls(
            event_id=str(data["event_id"]),
            event_title=str(data.get("event_title") or ""),
            cancelled_at=str(data.get("cancelled_at") or ""),
            event_date=data.get("event_date"),
            event_time=data.get("event_time"),
            location_name=data.get("location_name"),
        )


@dataclass(frozen=True)
class UpdateMetadata:
    kind: ClassVar[NotificationType] = NotificationType.UPDATE

    event_id: str
    event_title: str
    changes: tuple[FieldChange, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_title": self.event_title,
            "changes": [change.to_dict() for change in self.changes],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UpdateMetadata":
        return cls(
            event_id=str(data["event_id"]),
            event_title=str(data.get("event_title") or ""),
            changes=tuple(FieldChange.from_dict(item) for item in data.get("changes") or ()),
        )


NotificationMetadata = Union[
    ReminderMetadata, ConfirmationMetadata, CancellationMetadata, UpdateMetadata
]

_METADATA_TYPES: dict[NotificationType, type] = {
    NotificationType.REMINDER: ReminderMetadata,
    NotificationType.CONFIRMATION: ConfirmationMetadata,
    NotificationType.CANCELLATION: CancellationMetadata,
    NotificationType.UPDATE: UpdateMetadata,
}


def metadata_from_dict(
    notification_type: NotificationType | str, data: Mapping[str, Any]
) -> NotificationMetadata:
    """Rebuild the typed metadata stored for a notification of ``notification_type``."""

    metadata_cls = _METADATA_TYPES[NotificationType(notification_type)]
    return metadata_cls.from_dict(data)


@dataclass(frozen=True)
class NotificationPayload:
    """Rendered content produced by the notification factory."""

    title: str
    message: str
    metadata: NotificationMetadata

    @property
    def notification_type(self) -> NotificationType:
        return self.metadata.kind


@dataclass
class Notification:
    """Message delivered to exactly one recipient."""

    id: int | None
    user_id: str
    type: NotificationType
    title: str
    message: str
    metadata: NotificationMetadata
    is_read: bool = False
    email_sent: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None

    @property
    def event_id(self) -> str:
        return self.metadata.event_id

    @classmethod
    def from_payload(
        cls, user_id: str, payload: NotificationPayload, *, created_at: datetime | None = None
    ) -> "Notification":
        return cls(
            id=None,
            user_id=user_id,
            type=payload.notification_type,
            title=payload.title,
            message=payload.message,
            metadata=payload.metadata,
            created_at=created_at,
        )


__all__ = [
    "CancellationMetadata",
    "ConfirmationMetadata",
    "FieldChange",
    "Notification",
    "NotificationChannel",
    "NotificationMetadata",
    "NotificationPayload",
    "NotificationType",
    "RSVPAction",
    "ReminderMetadata",
    "ReminderTier",
    "ScheduleField",
    "UpdateMetadata",
    "metadata_from_dict",
]
