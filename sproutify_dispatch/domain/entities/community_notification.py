"""Domain entity representing an in-app notification in a member's feed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

COMMUNITY_NOTIFICATION_TYPE_SYSTEM = "system"


@dataclass
class CommunityNotification:
    """Message shown in the mobile app's notification feed."""

    id: int | None
    user_id: str
    title: str
    message: str
    type: str = COMMUNITY_NOTIFICATION_TYPE_SYSTEM
    is_read: bool = False
    created_at: datetime | None = None


__all__ = ["CommunityNotification", "COMMUNITY_NOTIFICATION_TYPE_SYSTEM"]
