"""Tests for the HTTP trigger that runs a dispatch cycle."""

from __future__ import annotations

import types
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import add_notification, add_users, notification_row
from main import create_app
from sproutify_dispatch.config import reset_settings_cache
from sproutify_dispatch.infrastructure import email as email_module


class _AcceptingClient:
    requests: list = []

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        _AcceptingClient.requests.append(message.get())
        return types.SimpleNamespace(status_code=202, body=None, headers={})


@pytest.fixture()
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def _due_now() -> datetime:
    return datetime.now(tz=timezone.utc) - timedelta(seconds=5)


def test_trigger_without_due_notifications(database, client):
    response = client.post("/")

    assert response.status_code == 200
    assert response.json() == {"processed": 0, "message": "No notifications to process"}


def test_trigger_ignores_path_and_body(database, client):
    response = client.post("/functions/v1/process-scheduled", json={"anything": True})

    assert response.status_code == 200
    assert response.json()["processed"] == 0


def test_trigger_delivers_due_notifications(database, session, client, monkeypatch):
    monkeypatch.setenv("SENDGRID_API_KEY", "SG.fake")
    reset_settings_cache()
    _AcceptingClient.requests = []
    monkeypatch.setattr(email_module, "SendGridAPIClient", _AcceptingClient)
    add_users(session, [("user-1", "ana@example.com"), ("user-2", "kim@example.com")])
    email_id = add_notification(
        session, description="Broadcast Email:\n\nPlant garlic", due=_due_now()
    )
    feed_id = add_notification(
        session, description="Broadcast: seed swap Saturday", due=_due_now()
    )

    response = client.post("/")

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["processed"] == 2
    assert payload["emailsSent"] == 2
    assert payload["inAppNotificationsCreated"] == 2
    assert payload["errors"] == []
    assert payload["timestamp"].endswith("Z")
    assert len(_AcceptingClient.requests[0]["personalizations"]) == 2
    assert notification_row(session, email_id).status is True
    assert notification_row(session, feed_id).status is True


def test_trigger_reports_missing_configuration(client):
    response = client.post("/")

    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "Missing database configuration (DATABASE_URL)"
    assert payload["timestamp"].endswith("Z")
