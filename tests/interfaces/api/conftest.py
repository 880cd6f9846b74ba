"""Fixtures for the HTTP and websocket API tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from event_finder.domain.entities import Notification, Principal
from event_finder.infrastructure.repositories import NotificationRepository
from main import create_app


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client


@pytest.fixture
def add_notification(session_factory):
    """Store a notification built from a factory payload for ``user_id``."""

    def _add_notification(user_id: str, payload) -> Notification:
        with session_factory() as db:
            return NotificationRepository(db, Principal.system()).create(
                Notification.from_payload(user_id, payload)
            )

    return _add_notification
