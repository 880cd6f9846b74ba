"""Shared fixtures for the notification engine tests."""

from __future__ import annotations

import os
import types
from datetime import date, time
from typing import Any

import pytest

os.environ.setdefault("JWT_SECRET", "test-secret")

from event_finder.config import Settings
from event_finder.domain.entities import Event, Principal, Profile
from event_finder.infrastructure.database import (
    create_database_engine,
    create_session_factory,
    initialize_database,
)
from event_finder.infrastructure.email import EmailChannelAdapter
from event_finder.infrastructure.repositories import EventRepository, ProfileRepository
from event_finder.infrastructure.retry import RetryPolicy
from event_finder.services import Services, build_services

ORGANIZER_ID = "organizer-1"


class FakeSendGridClient:
    """Record sent messages and replay scripted responses or errors."""

    def __init__(self, outcomes: list[Any] | None = None) -> None:
        self.outcomes = list(outcomes or [])
        self.messages: list[Any] = []

    def send(self, message):
        self.messages.append(message)
        outcome = self.outcomes.pop(0) if self.outcomes else accepted_response()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeProviderError(Exception):
    """Mimic the HTTP errors raised by the SendGrid client."""

    def __init__(self, status_code: int, body: Any = None) -> None:
        super().__init__(f"HTTP Error {status_code}")
        self.status_code = status_code
        self.body = body


def accepted_response(message_id: str = "msg-1"):
    return types.SimpleNamespace(status_code=202, headers={"X-Message-Id": message_id}, body="")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'notifications.db'}",
        jwt_secret="test-secret",
        service_key="service-key",
        scheduler_enabled=False,
        reminder_sweep_interval_minutes=15,
        reminder_tolerance_minutes=10,
    )


@pytest.fixture
def engine(settings):
    engine = create_database_engine(settings)
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def session(session_factory):
    with session_factory() as db:
        yield db


@pytest.fixture
def fake_sendgrid() -> FakeSendGridClient:
    return FakeSendGridClient()


@pytest.fixture
def email_adapter(fake_sendgrid, session_factory) -> EmailChannelAdapter:
    return EmailChannelAdapter(
        fake_sendgrid,
        sender="notifications@example.com",
        sender_name="Local Event Finder",
        site_url="https://events.example.com",
        session_factory=session_factory,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0, max_delay=0),
        timeout=1.0,
    )


@pytest.fixture
def services(settings, engine) -> Services:
    return build_services(settings, engine=engine)


@pytest.fixture
def make_event(session_factory):
    """Persist an event, with optional attendees, and return it."""

    def _make_event(
        *,
        attendees: tuple[str, ...] = (),
        organizer_id: str = ORGANIZER_ID,
        **overrides: Any,
    ) -> Event:
        values = {
            "id": None,
            "title": "Jazz in the Park",
            "date": date(2026, 6, 20),
            "time": time(19, 30),
            "location_name": "Central Park",
            "latitude": 40.7812,
            "longitude": -73.9665,
            "organizer_id": organizer_id,
        }
        values.update(overrides)
        with session_factory() as db:
            repository = EventRepository(db, Principal.system())
            event = repository.create(Event(**values))
            for user_id in attendees:
                repository.add_attendee(event.id, user_id)
        return event

    return _make_event


@pytest.fixture
def make_profile(session_factory):
    def _make_profile(user_id: str, email: str | None, full_name: str | None = None) -> Profile:
        with session_factory() as db:
            return ProfileRepository(db, Principal.system()).save(
                Profile(id=user_id, email=email, full_name=full_name)
            )

    return _make_profile


@pytest.fixture
def provider():
    """Factories for scripted SendGrid outcomes."""

    return types.SimpleNamespace(error=FakeProviderError, accepted=accepted_response)


@pytest.fixture
def token_for(settings):
    from event_finder.infrastructure.security import create_access_token

    def _token_for(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(settings, user_id)}"}

    return _token_for
