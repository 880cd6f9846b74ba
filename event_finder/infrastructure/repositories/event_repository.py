"""Persistence helpers for events and attendance."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_finder.domain.entities import Event, Principal
from event_finder.domain.exceptions import EventNotFoundError
from event_finder.infrastructure.models import AttendeeModel, EventModel
from event_finder.utils import ensure_utc, to_naive_utc, utc_now


class EventRepository:
    """Provide CRUD operations for :class:`Event` objects and their attendees.

    Events are readable by anyone; writes require the organizer (or the
    attendee, for RSVP rows) to match ``principal``.
    """

    def __init__(self, session: Session, principal: Principal) -> None:
        self.session = session
        self.principal = principal

    def get(self, event_id: str) -> Event:
        return self._to_entity(self._get_model(event_id))

    def list_between_dates(self, start: date, end: date) -> Sequence[Event]:
        """Return events whose date falls in ``[start, end]``."""

        query = (
            self.session.query(EventModel)
            .filter(EventModel.date >= start, EventModel.date <= end)
            .order_by(EventModel.date.asc(), EventModel.time.asc(), EventModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, event: Event) -> Event:
        self.principal.ensure_can_access(event.organizer_id)
        model = EventModel()
        if event.id:
            model.id = event.id
        self._apply_entity_to_model(model, event)
        now = to_naive_utc(utc_now())
        model.created_at = now
        model.updated_at = now
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, event: Event) -> Event:
        if event.id is None:
            raise ValueError("Event id is required for updates")
        model = self._get_model(event.id)
        self.principal.ensure_can_access(model.organizer_id)
        self._apply_entity_to_model(model, event)
        model.updated_at = to_naive_utc(utc_now())
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, event_id: str) -> None:
        model = self._get_model(event_id)
        self.principal.ensure_can_access(model.organizer_id)
        self.session.query(AttendeeModel).filter(AttendeeModel.event_id == event_id).delete(
            synchronize_session=False
        )
        self.session.delete(model)
        self.session.commit()

    def list_attendees(self, event_id: str) -> list[str]:
        rows = (
            self.session.query(AttendeeModel.user_id)
            .filter(AttendeeModel.event_id == event_id)
            .order_by(AttendeeModel.id.asc())
            .all()
        )
        return [row[0] for row in rows]

    def list_attendees_for_events(self, event_ids: Iterable[str]) -> dict[str, list[str]]:
        ids = sorted(set(event_ids))
        attendees: dict[str, list[str]] = {event_id: [] for event_id in ids}
        if not ids:
            return attendees
        rows = (
            self.session.query(AttendeeModel.event_id, AttendeeModel.user_id)
            .filter(AttendeeModel.event_id.in_(ids))
            .order_by(AttendeeModel.id.asc())
            .all()
        )
        for event_id, user_id in rows:
            attendees[event_id].append(user_id)
        return attendees

    def add_attendee(self, event_id: str, user_id: str) -> bool:
        """Register ``user_id`` for the event. Returns ``False`` if already attending."""

        self.principal.ensure_can_access(user_id)
        self._get_model(event_id)
        exists = (
            self.session.query(AttendeeModel.id)
            .filter(AttendeeModel.event_id == event_id, AttendeeModel.user_id == user_id)
            .first()
        )
        if exists is not None:
            return False
        self.session.add(AttendeeModel(event_id=event_id, user_id=user_id))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return False
        return True

    def remove_attendee(self, event_id: str, user_id: str) -> bool:
        """Drop the attendance row. Returns ``False`` if there was none."""

        self.principal.ensure_can_access(user_id)
        self._get_model(event_id)
        count = (
            self.session.query(AttendeeModel)
            .filter(AttendeeModel.event_id == event_id, AttendeeModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return count > 0

    def _get_model(self, event_id: str) -> EventModel:
        model = self.session.get(EventModel, event_id)
        if model is None:
            raise EventNotFoundError(f"Event with id {event_id} not found")
        return model

    @staticmethod
    def _apply_entity_to_model(model: EventModel, event: Event) -> None:
        model.title = event.title
        model.description = event.description
        model.date = event.date
        model.time = event.time
        model.location_name = event.location_name
        model.latitude = event.latitude
        model.longitude = event.longitude
        model.category = event.category
        if model.organizer_id is None:
            model.organizer_id = event.organizer_id

    @staticmethod
    def _to_entity(model: EventModel) -> Event:
        return Event(
            id=model.id,
            title=model.title,
            description=model.description,
            date=model.date,
            time=model.time,
            location_name=model.location_name,
            latitude=model.latitude,
            longitude=model.longitude,
            category=model.category,
            organizer_id=model.organizer_id,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["EventRepository"]
