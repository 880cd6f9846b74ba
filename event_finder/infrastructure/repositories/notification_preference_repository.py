"""Persistence helpers for notification preferences."""

from __future__ import annotations

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_finder.domain.entities import (
    DEFAULT_REMINDER_OFFSETS,
    NotificationPreference,
    Principal,
)
from event_finder.infrastructure.models import NotificationPreferenceModel
from event_finder.utils import ensure_utc, to_naive_utc, utc_now

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class NotificationPreferenceRepository:
    """Read and write :class:`NotificationPreference` rows scoped by ``principal``."""

    def __init__(self, session: Session, principal: Principal) -> None:
        self.session = session
        self.principal = principal

    def get(self, user_id: str) -> NotificationPreference | None:
        self.principal.ensure_can_access(user_id)
        model = self.session.get(NotificationPreferenceModel, user_id)
        if model is None:
            return None
        return self._to_entity(model)

    def get_or_create(self, user_id: str) -> NotificationPreference:
        """Return the stored preference, inserting the defaults on first access.

        Concurrent first accesses race on the primary key; the loser's insert is
        a no-op and both callers read back the same row.
        """

        self.principal.ensure_can_access(user_id)
        model = self.session.get(NotificationPreferenceModel, user_id)
        if model is None:
            self._insert_defaults(user_id)
            model = self.session.get(NotificationPreferenceModel, user_id, populate_existing=True)
            if model is None:  # pragma: no cover - only reachable if the row is deleted concurrently
                raise LookupError(f"Preferences for user {user_id} disappeared after insert")
        return self._to_entity(model)

    def list_reminder_offsets(self) -> list[list[int]]:
        """Return the raw offsets column of every row with reminders enabled."""

        self.principal.ensure_system()
        rows = (
            self.session.query(NotificationPreferenceModel.reminder_offsets)
            .filter(NotificationPreferenceModel.reminders_enabled.is_(True))
            .all()
        )
        return [list(row[0]) if isinstance(row[0], list) else [] for row in rows]

    def save(self, preference: NotificationPreference) -> NotificationPreference:
        self.principal.ensure_can_access(preference.user_id)
        model = self.session.get(NotificationPreferenceModel, preference.user_id)
        if model is None:
            model = NotificationPreferenceModel(user_id=preference.user_id)
            model.created_at = to_naive_utc(utc_now())
        self._apply_entity_to_model(model, preference)
        model.updated_at = to_naive_utc(utc_now())
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a first-write race; update the row the other writer created.
            self.session.rollback()
            model = self.session.get(NotificationPreferenceModel, preference.user_id)
            self._apply_entity_to_model(model, preference)
            self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _insert_defaults(self, user_id: str) -> None:
        now = to_naive_utc(utc_now())
        values = {
            "user_id": user_id,
            "email_enabled": False,
            "reminders_enabled": True,
            "confirmations_enabled": True,
            "updates_enabled": True,
            "reminder_offsets": sorted(DEFAULT_REMINDER_OFFSETS, reverse=True),
            "created_at": now,
            "updated_at": now,
        }
        dialect_name = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect_name)
        if insert is not None:
            statement = (
                insert(NotificationPreferenceModel)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["user_id"])
            )
            self.session.execute(statement)
            self.session.commit()
            return

        self.session.add(NotificationPreferenceModel(**values))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferenceModel, preference: NotificationPreference
    ) -> None:
        model.email_enabled = preference.email_enabled
        model.reminders_enabled = preference.reminders_enabled
        model.confirmations_enabled = preference.confirmations_enabled
        model.updates_enabled = preference.updates_enabled
        model.reminder_offsets = sorted(preference.reminder_offsets, reverse=True)

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            user_id=model.user_id,
            email_enabled=bool(model.email_enabled),
            reminders_enabled=bool(model.reminders_enabled),
            confirmations_enabled=bool(model.confirmations_enabled),
            updates_enabled=bool(model.updates_enabled),
            reminder_offsets=frozenset(model.reminder_offsets or ()),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["NotificationPreferenceRepository"]
