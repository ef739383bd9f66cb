"""Email delivery for scheduled notifications via SendGrid."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from sproutify_dispatch.config import Settings
from sproutify_dispatch.domain.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailReceipt:
    """Provider acknowledgement for one send request."""

    message_id: str | None
    accepted: int


class EmailSender(Protocol):
    """Anything able to submit one HTML email to one or more recipients."""

    def send(
        self, *, subject: str, html_content: str, recipients: Sequence[str]
    ) -> EmailReceipt:
        ...


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                field = item.get("field")
                if message and field:
                    messages.append(f"{message} (field: {field})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_failure(status_code: Any, body: Any, fallback: str) -> str:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        return f"SendGrid API error (status {status_code}): {details}"
    if status_code:
        return f"SendGrid API error (status {status_code})"
    if details:
        return f"SendGrid API error: {details}"
    return f"SendGrid API error: {fallback}"


def _message_id(response: Any) -> str | None:
    headers = getattr(response, "headers", None)
    if headers is None:
        return None
    try:
        value = headers.get("X-Message-Id")
    except AttributeError:
        return None
    return str(value) if value else None


class SendGridEmailSender:
    """Submit scheduled notifications through the SendGrid v3 mail endpoint."""

    def __init__(self, api_key: str | None, sender: str) -> None:
        self.api_key = api_key
        self.sender = sender

    @classmethod
    def from_settings(cls, settings: Settings) -> "SendGridEmailSender":
        return cls(settings.sendgrid_api_key, settings.sendgrid_sender)

    def send(
        self, *, subject: str, html_content: str, recipients: Sequence[str]
    ) -> EmailReceipt:
        """Send ``html_content`` to ``recipients`` in one API request.

        Each address gets its own personalization so broadcast recipients do not
        see each other. Raises :class:`EmailDeliveryError` on any failure.
        """

        addresses = [address for address in recipients if address]
        if not addresses:
            raise EmailDeliveryError("No recipient addresses were provided")
        if not self.api_key:
            logger.info("SendGrid configuration incomplete; refusing to deliver email")
            raise EmailDeliveryError("Email delivery is not configured (SENDGRID_API_KEY is missing)")

        message = Mail(
            from_email=self.sender,
            to_emails=addresses if len(addresses) > 1 else addresses[0],
            subject=subject,
            html_content=html_content,
            is_multiple=len(addresses) > 1,
        )

        try:
            client = SendGridAPIClient(self.api_key)
            response = client.send(message)
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            description = _describe_failure(status_code, getattr(exc, "body", None), str(exc))
            logger.error("SendGrid request failed: %s", description)
            raise EmailDeliveryError(description, status_code=status_code) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            description = _describe_failure(
                status_code, getattr(response, "body", None), "unexpected response"
            )
            logger.error("SendGrid responded with an error: %s", description)
            raise EmailDeliveryError(
                description,
                status_code=status_code if isinstance(status_code, int) else None,
            )

        receipt = EmailReceipt(message_id=_message_id(response), accepted=len(addresses))
        logger.info(
            "SendGrid accepted message %s for %d recipient(s)",
            receipt.message_id or "<unknown>",
            receipt.accepted,
        )
        return receipt


__all__ = ["EmailReceipt", "EmailSender", "SendGridEmailSender"]
