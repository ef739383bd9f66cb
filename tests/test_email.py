"""Unit tests for the SendGrid email sender."""

from __future__ import annotations

import json
import types

import pytest

from sproutify_dispatch.domain.exceptions import EmailDeliveryError
from sproutify_dispatch.infrastructure import email as email_module
from sproutify_dispatch.infrastructure.email import SendGridEmailSender


class _RecordingClient:
    """Stand-in for ``SendGridAPIClient`` that remembers what it was asked to send."""

    instances: list["_RecordingClient"] = []

    def __init__(self, api_key: str):
        self.api_key = api_key
        self.messages = []
        _RecordingClient.instances.append(self)

    def send(self, message):
        self.messages.append(message)
        return types.SimpleNamespace(
            status_code=202, body=None, headers={"X-Message-Id": "abc123"}
        )


@pytest.fixture()
def recording_client(monkeypatch: pytest.MonkeyPatch):
    _RecordingClient.instances = []
    monkeypatch.setattr(email_module, "SendGridAPIClient", _RecordingClient)
    return _RecordingClient


def _sender() -> SendGridEmailSender:
    return SendGridEmailSender("SG.fake", "noreply@sproutify.com")


def test_send_returns_receipt(recording_client) -> None:
    receipt = _sender().send(
        subject="Frost warning", html_content="<p>Cover beds</p>", recipients=["a@b.com"]
    )

    assert receipt.message_id == "abc123"
    assert receipt.accepted == 1
    client = recording_client.instances[0]
    assert client.api_key == "SG.fake"
    payload = client.messages[0].get()
    assert payload["subject"] == "Frost warning"
    assert payload["from"]["email"] == "noreply@sproutify.com"
    assert len(payload["personalizations"]) == 1


def test_send_gives_each_broadcast_recipient_a_personalization(recording_client) -> None:
    addresses = ["a@example.com", "b@example.com", "c@example.com"]

    receipt = _sender().send(subject="News", html_content="<p>Hi</p>", recipients=addresses)

    assert receipt.accepted == 3
    personalizations = recording_client.instances[0].messages[0].get()["personalizations"]
    assert [item["to"][0]["email"] for item in personalizations] == addresses


def test_send_without_api_key_is_an_error(recording_client) -> None:
    sender = SendGridEmailSender(None, "noreply@sproutify.com")

    with pytest.raises(EmailDeliveryError, match="SENDGRID_API_KEY is missing"):
        sender.send(subject="Hi", html_content="<p>Hi</p>", recipients=["a@b.com"])

    assert recording_client.instances == []


def test_send_without_recipients_is_an_error(recording_client) -> None:
    with pytest.raises(EmailDeliveryError, match="No recipient addresses"):
        _sender().send(subject="Hi", html_content="<p>Hi</p>", recipients=["", None])


def test_send_surfaces_provider_error_details(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    """Forbidden responses from SendGrid should surface meaningful details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "field": None,
                    }
                ]
            }
        ).encode()

    class FailingClient(_RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        with pytest.raises(EmailDeliveryError) as excinfo:
            _sender().send(subject="Hi", html_content="<p>Hi</p>", recipients=["a@b.com"])

    assert excinfo.value.status_code == 403
    assert str(excinfo.value) == (
        "SendGrid API error (status 403): The provided authorization grant is invalid."
    )
    assert "status 403" in caplog.text


def test_send_rejects_non_success_status(monkeypatch: pytest.MonkeyPatch) -> None:
    class RejectingClient(_RecordingClient):
        def send(self, message):
            return types.SimpleNamespace(
                status_code=400,
                body=b'{"errors": [{"message": "Bad address", "field": "personalizations"}]}',
                headers={},
            )

    monkeypatch.setattr(email_module, "SendGridAPIClient", RejectingClient)

    with pytest.raises(EmailDeliveryError, match=r"Bad address \(field: personalizations\)"):
        _sender().send(subject="Hi", html_content="<p>Hi</p>", recipients=["a@b.com"])
