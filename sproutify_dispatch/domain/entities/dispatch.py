"""Domain entities describing how a queued notification is delivered."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sproutify_dispatch.utils import isoformat_utc, now_utc

from .scheduled_notification import CHANNEL_EMAIL, SCOPE_BROADCAST

PLAN_SOURCE_STRUCTURED = "structured"
PLAN_SOURCE_LEGACY = "legacy"

OUTCOME_EMAIL_SENT = "email_sent"
OUTCOME_IN_APP_CREATED = "in_app_created"
OUTCOME_UNSUPPORTED = "unsupported"

NO_NOTIFICATIONS_MESSAGE = "No notifications to process"


@dataclass(frozen=True)
class DeliveryPlan:
    """Routing decision for a single queued notification."""

    channel: str
    scope: str
    body: str
    recipient: str | None = None
    recipient_user_id: str | None = None
    source: str = PLAN_SOURCE_LEGACY

    @property
    def is_email(self) -> bool:
        return self.channel == CHANNEL_EMAIL

    @property
    def is_broadcast(self) -> bool:
        return self.scope == SCOPE_BROADCAST


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of delivering one notification, before its status is flipped."""

    kind: str
    count: int = 0
    message: str | None = None

    @property
    def delivered(self) -> bool:
        return self.kind != OUTCOME_UNSUPPORTED


@dataclass
class DispatchReport:
    """Aggregated counters for a single dispatch run."""

    processed: int = 0
    emails_sent: int = 0
    in_app_notifications_created: int = 0
    errors: list[str] = field(default_factory=list)
    timestamp: datetime | None = None
    selected: int = 0

    def record(self, outcome: DeliveryOutcome) -> None:
        """Add a successfully finalized ``outcome`` to the counters."""

        self.processed += 1
        if outcome.kind == OUTCOME_EMAIL_SENT:
            self.emails_sent += outcome.count
        elif outcome.kind == OUTCOME_IN_APP_CREATED:
            self.in_app_notifications_created += outcome.count

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent back to the trigger."""

        if self.selected == 0:
            return {"processed": 0, "message": NO_NOTIFICATIONS_MESSAGE}
        return {
            "success": True,
            "processed": self.processed,
            "emailsSent": self.emails_sent,
            "inAppNotificationsCreated": self.in_app_notifications_created,
            "errors": list(self.errors),
            "timestamp": isoformat_utc(self.timestamp or now_utc()),
        }


__all__ = [
    "DeliveryPlan",
    "DeliveryOutcome",
    "DispatchReport",
    "PLAN_SOURCE_STRUCTURED",
    "PLAN_SOURCE_LEGACY",
    "OUTCOME_EMAIL_SENT",
    "OUTCOME_IN_APP_CREATED",
    "OUTCOME_UNSUPPORTED",
    "NO_NOTIFICATIONS_MESSAGE",
]
