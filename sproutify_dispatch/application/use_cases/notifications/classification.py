"""Routing of queued notifications to a delivery channel and audience.

Rows queued by the admin console before the structured ``channel`` / ``scope``
columns existed carry their routing inside ``description`` as free text:

* ``"Broadcast Email:\\n\\n<message>"`` for an email to every member,
* ``"Email to: <address>\\n\\n<message>"`` for an email to one member,
* the bare message for in-app notifications; the word ``Broadcast``
  anywhere in it marks a broadcast.

The ``*_legacy_*`` helpers below read and write that encoding. Rows with
structured routing never depend on it for their channel or scope.
"""

from __future__ import annotations

import re

from sproutify_dispatch.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNELS,
    PLAN_SOURCE_LEGACY,
    PLAN_SOURCE_STRUCTURED,
    SCOPE_BROADCAST,
    SCOPE_SINGLE,
    SCOPES,
    DeliveryPlan,
    ScheduledNotification,
)
from sproutify_dispatch.domain.exceptions import NotificationDeliveryError

BROADCAST_MARKER = "Broadcast"
BROADCAST_EMAIL_MARKER = "Broadcast Email"
SINGLE_EMAIL_MARKER = "Email to:"

EMAIL_ADDRESS_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_BROADCAST_EMAIL_PREFIX = re.compile(r"^\s*Broadcast Email:\s*", re.IGNORECASE)
_SINGLE_EMAIL_LINE = re.compile(r"Email to:\s*([^\r\n]+)", re.IGNORECASE)
_SINGLE_EMAIL_PREFIX = re.compile(r"^\s*Email to:\s*[^\r\n]*", re.IGNORECASE)


def classify_legacy_description(description: str | None) -> tuple[str, str]:
    """Return ``(channel, scope)`` sniffed from a legacy ``description``."""

    text = description or ""
    scope = SCOPE_BROADCAST if BROADCAST_MARKER in text else SCOPE_SINGLE
    is_email = SINGLE_EMAIL_MARKER in text or BROADCAST_EMAIL_MARKER in text
    return (CHANNEL_EMAIL if is_email else CHANNEL_IN_APP), scope


def extract_recipient_address(description: str | None) -> str | None:
    """Return the address following the first ``Email to:`` marker, if valid.

    The address may sit on the line after the marker.
    """

    match = _SINGLE_EMAIL_LINE.search(description or "")
    if not match:
        return None
    address = match.group(1).strip()
    if not EMAIL_ADDRESS_PATTERN.match(address):
        return None
    return address


def strip_broadcast_prefix(description: str | None) -> str:
    return _BROADCAST_EMAIL_PREFIX.sub("", description or "", count=1).strip()


def strip_recipient_prefix(description: str | None) -> str:
    return _SINGLE_EMAIL_PREFIX.sub("", description or "", count=1).strip()


def encode_legacy_description(
    *, channel: str, scope: str, message: str, recipient: str | None = None
) -> str:
    """Write ``message`` in the text encoding older dispatchers understand."""

    if channel == CHANNEL_EMAIL and scope == SCOPE_BROADCAST:
        return f"Broadcast Email:\n\n{message}"
    if channel == CHANNEL_EMAIL:
        return f"Email to: {recipient}\n\n{message}"
    return message


def classify_notification(notification: ScheduledNotification) -> DeliveryPlan:
    """Decide how ``notification`` is delivered.

    Structured routing wins when present; otherwise the legacy description
    encoding is parsed. Email bodies always have their prefix line removed.
    """

    if notification.has_structured_routing():
        channel = (notification.channel or "").strip().lower()
        scope = (notification.scope or "").strip().lower()
        if channel not in CHANNELS:
            raise NotificationDeliveryError(f"Unknown delivery channel '{notification.channel}'")
        if scope not in SCOPES:
            raise NotificationDeliveryError(f"Unknown delivery scope '{notification.scope}'")
        source = PLAN_SOURCE_STRUCTURED
    else:
        channel, scope = classify_legacy_description(notification.description)
        source = PLAN_SOURCE_LEGACY

    description = notification.description or ""
    recipient: str | None = None
    if channel == CHANNEL_EMAIL and scope == SCOPE_BROADCAST:
        body = strip_broadcast_prefix(description)
    elif channel == CHANNEL_EMAIL:
        recipient = (notification.recipient or "").strip() or extract_recipient_address(
            description
        )
        body = strip_recipient_prefix(description)
    else:
        body = description

    return DeliveryPlan(
        channel=channel,
        scope=scope,
        body=body,
        recipient=recipient,
        recipient_user_id=notification.recipient_user_id if channel == CHANNEL_IN_APP else None,
        source=source,
    )


__all__ = [
    "classify_notification",
    "classify_legacy_description",
    "encode_legacy_description",
    "extract_recipient_address",
    "strip_broadcast_prefix",
    "strip_recipient_prefix",
    "EMAIL_ADDRESS_PATTERN",
]
