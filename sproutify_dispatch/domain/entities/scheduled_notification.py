"""Domain entity representing a queued outbound notification."""

from dataclasses import dataclass
from datetime import datetime

CHANNEL_EMAIL = "email"
CHANNEL_IN_APP = "in_app"
SCOPE_BROADCAST = "broadcast"
SCOPE_SINGLE = "single"

CHANNELS = (CHANNEL_EMAIL, CHANNEL_IN_APP)
SCOPES = (SCOPE_BROADCAST, SCOPE_SINGLE)


@dataclass
class ScheduledNotification:
    """A row of the ``notifications`` queue.

    ``time_created`` doubles as the time the message is due. ``status`` is
    ``False`` while pending and becomes ``True`` once the row is dispatched.
    The structured routing fields are ``None`` for rows queued before they
    existed; those rows are routed from ``description`` instead.
    """

    id: int | None
    title: str | None
    description: str | None
    time_created: datetime | None
    status: bool = False
    channel: str | None = None
    scope: str | None = None
    recipient: str | None = None
    recipient_user_id: str | None = None

    def has_structured_routing(self) -> bool:
        """Return ``True`` when channel and scope were stored explicitly."""

        return bool(self.channel) and bool(self.scope)


__all__ = [
    "ScheduledNotification",
    "CHANNEL_EMAIL",
    "CHANNEL_IN_APP",
    "SCOPE_BROADCAST",
    "SCOPE_SINGLE",
    "CHANNELS",
    "SCOPES",
]
