"""Use case for queueing a notification to be dispatched later."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from sproutify_dispatch.config import get_settings
from sproutify_dispatch.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNELS,
    SCOPE_SINGLE,
    SCOPES,
    ScheduledNotification,
)
from sproutify_dispatch.domain.exceptions import InvalidRecipient, SchedulingError, UserNotFound
from sproutify_dispatch.infrastructure.repositories import (
    DirectoryUserRepository,
    ScheduledNotificationRepository,
)
from sproutify_dispatch.utils import ensure_utc, now_utc

from .classification import EMAIL_ADDRESS_PATTERN, encode_legacy_description


def schedule_notification(
    session: Session,
    *,
    title: str,
    message: str,
    channel: str,
    scope: str,
    recipient_email: str | None = None,
    scheduled_for: datetime | None = None,
) -> ScheduledNotification:
    """Queue a notification for the dispatcher.

    Single-recipient notifications are addressed by email and must match a
    directory member. An explicit ``scheduled_for`` must lie in the future
    unless catch-up dispatching is enabled; the due window never selects rows
    that are already overdue. Routing is stored in the structured columns and,
    for older readers, in the ``description`` text as well.
    """

    title = (title or "").strip()
    message = (message or "").strip()
    if not title:
        raise SchedulingError("A title is required", "INVALID_NOTIFICATION")
    if not message:
        raise SchedulingError("A message is required", "INVALID_NOTIFICATION")
    if channel not in CHANNELS:
        raise SchedulingError(f"Unsupported channel '{channel}'", "INVALID_NOTIFICATION")
    if scope not in SCOPES:
        raise SchedulingError(f"Unsupported scope '{scope}'", "INVALID_NOTIFICATION")

    due = ensure_utc(scheduled_for)
    if due is not None and due <= now_utc() and not get_settings().dispatch_catch_up:
        raise SchedulingError("Scheduled time must be in the future", "INVALID_NOTIFICATION")

    notifications = ScheduledNotificationRepository(session)
    if channel == CHANNEL_IN_APP and not notifications.supports_routing:
        raise SchedulingError(
            "In-app notifications need the routing columns on the notifications table; "
            "run scripts/migrate_notifications.py first",
            "SCHEMA_OUTDATED",
        )

    recipient: str | None = None
    recipient_user_id: str | None = None
    if scope == SCOPE_SINGLE:
        email = (recipient_email or "").strip().lower()
        if not EMAIL_ADDRESS_PATTERN.match(email):
            raise InvalidRecipient("Please enter a valid email address")
        user = DirectoryUserRepository(session).get_by_email(email)
        if user is None:
            raise UserNotFound(email)
        if channel == CHANNEL_EMAIL:
            if not user.email:
                raise InvalidRecipient("User found but has no email address")
            recipient = user.email
        else:
            recipient_user_id = user.id
    elif recipient_email:
        raise InvalidRecipient("Broadcast notifications cannot name a recipient")

    notification = ScheduledNotification(
        id=None,
        title=title,
        description=encode_legacy_description(
            channel=channel, scope=scope, message=message, recipient=recipient
        ),
        time_created=due or now_utc(),
        status=False,
        channel=channel,
        scope=scope,
        recipient=recipient,
        recipient_user_id=recipient_user_id,
    )
    return notifications.create(notification)


__all__ = ["schedule_notification"]
