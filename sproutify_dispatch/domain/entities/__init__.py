"""Domain entities exposed by the application."""

from .community_notification import (
    COMMUNITY_NOTIFICATION_TYPE_SYSTEM,
    CommunityNotification,
)
from .directory_user import DirectoryUser
from .dispatch import (
    NO_NOTIFICATIONS_MESSAGE,
    OUTCOME_EMAIL_SENT,
    OUTCOME_IN_APP_CREATED,
    OUTCOME_UNSUPPORTED,
    PLAN_SOURCE_LEGACY,
    PLAN_SOURCE_STRUCTURED,
    DeliveryOutcome,
    DeliveryPlan,
    DispatchReport,
)
from .scheduled_notification import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNELS,
    SCOPE_BROADCAST,
    SCOPE_SINGLE,
    SCOPES,
    ScheduledNotification,
)

__all__ = [
    "CommunityNotification",
    "COMMUNITY_NOTIFICATION_TYPE_SYSTEM",
    "DirectoryUser",
    "DeliveryOutcome",
    "DeliveryPlan",
    "DispatchReport",
    "NO_NOTIFICATIONS_MESSAGE",
    "OUTCOME_EMAIL_SENT",
    "OUTCOME_IN_APP_CREATED",
    "OUTCOME_UNSUPPORTED",
    "PLAN_SOURCE_LEGACY",
    "PLAN_SOURCE_STRUCTURED",
    "ScheduledNotification",
    "CHANNEL_EMAIL",
    "CHANNEL_IN_APP",
    "CHANNELS",
    "SCOPE_BROADCAST",
    "SCOPE_SINGLE",
    "SCOPES",
]
