"""Tests for the notification preference endpoints."""

from __future__ import annotations


def test_first_read_returns_defaults(client, token_for) -> None:
    response = client.get("/notification-preferences/me", headers=token_for("alice"))

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == "alice"
    assert body["email_enabled"] is False
    assert body["reminders_enabled"] is True
    assert body["reminder_offsets"] == [24, 1]


def test_partial_update_keeps_other_fields(client, token_for) -> None:
    headers = token_for("alice")

    response = client.put(
        "/notification-preferences/me",
        json={"email_enabled": True, "reminder_offsets": [1, 72, 72]},
        headers=headers,
    )

    assert response.status_code == 200
    body = client.get("/notification-preferences/me", headers=headers).json()
    assert body["email_enabled"] is True
    assert body["updates_enabled"] is True
    assert body["reminder_offsets"] == [72, 1]


def test_invalid_updates_are_rejected(client, token_for) -> None:
    headers = token_for("alice")

    assert client.put(
        "/notification-preferences/me", json={"reminder_offsets": [0]}, headers=headers
    ).status_code == 422
    assert client.put(
        "/notification-preferences/me", json={"reminder_offsets": [200]}, headers=headers
    ).status_code == 422
    assert client.put(
        "/notification-preferences/me", json={"sms_enabled": True}, headers=headers
    ).status_code == 422


def test_preferences_require_authentication(client) -> None:
    assert client.get("/notification-preferences/me").status_code == 401
