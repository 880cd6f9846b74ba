"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from event_finder.domain.entities import (
    Notification,
    NotificationType,
    Principal,
    ReminderMetadata,
    metadata_from_dict,
)
from event_finder.domain.exceptions import (
    DuplicateReminderAttempt,
    NotificationNotFoundError,
)
from event_finder.infrastructure.models import NotificationModel, ReminderDispatchModel
from event_finder.utils import ensure_utc, to_naive_utc, utc_now


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Every query is scoped through ``principal``: a user principal can only see
    and mutate its own rows while the system principal acts for anyone.
    """

    def __init__(self, session: Session, principal: Principal) -> None:
        self.session = session
        self.principal = principal

    def create(self, notification: Notification) -> Notification:
        """Append ``notification``.

        Reminders first claim their ``(event_id, user_id, offset_hours)`` key
        in the same transaction; a taken key raises
        :class:`DuplicateReminderAttempt` and nothing is written.
        """

        self.principal.ensure_can_access(notification.user_id)
        metadata = notification.metadata
        if notification.type is NotificationType.REMINDER and isinstance(
            metadata, ReminderMetadata
        ):
            self._claim_reminder(notification.user_id, metadata)

        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, notification_id: int) -> Notification:
        return self._to_entity(self._get_model(notification_id))

    def list_for_user(
        self,
        user_id: str,
        *,
        notification_type: NotificationType | None = None,
        unread_only: bool = False,
        limit: int | None = 50,
        offset: int = 0,
    ) -> Sequence[Notification]:
        """Return notifications newest first; equal timestamps fall back to id order."""

        self.principal.ensure_can_access(user_id)
        query = self._user_query(user_id, notification_type=notification_type)
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_unread(self, user_id: str) -> int:
        self.principal.ensure_can_access(user_id)
        return (
            self.session.query(func.count(NotificationModel.id))
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.is_read.is_(False))
            .scalar()
            or 0
        )

    def mark_read(self, notification_id: int) -> Notification:
        """Mark one notification read. Already read rows are left untouched."""

        model = self._get_model(notification_id)
        if not model.is_read:
            model.is_read = True
            model.read_at = to_naive_utc(utc_now())
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_all_read(
        self, user_id: str, *, notification_type: NotificationType | None = None
    ) -> int:
        """Mark every unread notification of ``user_id`` read and return how many changed."""

        self.principal.ensure_can_access(user_id)
        query = self._user_query(user_id, notification_type=notification_type).filter(
            NotificationModel.is_read.is_(False)
        )
        count = query.update(
            {
                NotificationModel.is_read: True,
                NotificationModel.read_at: to_naive_utc(utc_now()),
            },
            synchronize_session=False,
        )
        self.session.commit()
        return count

    def mark_email_sent(self, notification_id: int) -> None:
        """Flip ``email_sent`` to true. The flag never goes back."""

        model = self._get_model(notification_id)
        if model.email_sent:
            return
        model.email_sent = True
        self.session.add(model)
        self.session.commit()

    def delete(self, notification_id: int) -> None:
        model = self._get_model(notification_id)
        self.session.delete(model)
        self.session.commit()

    def delete_all(
        self, user_id: str, *, notification_type: NotificationType | None = None
    ) -> int:
        """Remove the notifications of ``user_id``. Reminder claims are kept."""

        self.principal.ensure_can_access(user_id)
        count = self._user_query(user_id, notification_type=notification_type).delete(
            synchronize_session=False
        )
        self.session.commit()
        return count

    def purge_created_before(self, cutoff: datetime) -> int:
        """Delete notifications of every user created before ``cutoff``."""

        self.principal.ensure_system()
        count = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.created_at < to_naive_utc(cutoff))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return count

    def purge_dispatches_before(self, cutoff: datetime) -> int:
        self.principal.ensure_system()
        count = (
            self.session.query(ReminderDispatchModel)
            .filter(ReminderDispatchModel.created_at < to_naive_utc(cutoff))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return count

    def _claim_reminder(self, user_id: str, metadata: ReminderMetadata) -> None:
        claim = ReminderDispatchModel(
            event_id=metadata.event_id,
            user_id=user_id,
            offset_hours=metadata.offset_hours,
        )
        self.session.add(claim)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateReminderAttempt(
                event_id=metadata.event_id,
                user_id=user_id,
                offset_hours=metadata.offset_hours,
            ) from exc

    def _user_query(
        self, user_id: str, *, notification_type: NotificationType | None = None
    ) -> Query:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if notification_type is not None:
            query = query.filter(
                NotificationModel.type == NotificationType(notification_type).value
            )
        return query

    def _get_model(self, notification_id: int) -> NotificationModel:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            raise NotificationNotFoundError(
                f"Notification with id {notification_id} not found"
            )
        self.principal.ensure_can_access(model.user_id)
        return model

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        model.user_id = notification.user_id
        model.type = notification.type.value
        model.title = notification.title
        model.message = notification.message
        model.metadata_json = notification.metadata.to_dict()
        model.event_id = notification.metadata.event_id
        model.is_read = notification.is_read
        model.email_sent = notification.email_sent
        model.created_at = to_naive_utc(notification.created_at or utc_now())
        model.read_at = to_naive_utc(notification.read_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        notification_type = NotificationType(model.type)
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=notification_type,
            title=model.title,
            message=model.message,
            metadata=metadata_from_dict(notification_type, model.metadata_json or {}),
            is_read=bool(model.is_read),
            email_sent=bool(model.email_sent),
            created_at=ensure_utc(model.created_at),
            read_at=ensure_utc(model.read_at),
        )


__all__ = ["NotificationRepository"]
