"""Tests for the service key protected job endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from event_finder.services import build_services
from main import create_app

SERVICE_HEADERS = {"X-Service-Key": "service-key"}


def test_service_key_is_required(client) -> None:
    assert client.post("/internal/reminders/run").status_code == 403
    assert client.post(
        "/internal/reminders/run", headers={"X-Service-Key": "wrong"}
    ).status_code == 403


def test_internal_endpoints_are_disabled_without_a_key(settings, engine) -> None:
    services = build_services(settings.model_copy(update={"service_key": None}), engine=engine)

    with TestClient(create_app(services=services)) as client:
        response = client.post("/internal/reminders/run", headers={"X-Service-Key": "anything"})

    assert response.status_code == 503


def test_reminder_sweep_runs_on_demand(client) -> None:
    response = client.post("/internal/reminders/run", headers=SERVICE_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["offsets"] == [24, 1]
    assert body["created"] == 0


def test_retention_purge_runs_on_demand(client) -> None:
    response = client.post("/internal/notifications/purge", headers=SERVICE_HEADERS)

    assert response.status_code == 200
    assert response.json()["notifications_deleted"] == 0
