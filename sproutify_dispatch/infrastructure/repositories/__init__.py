"""Repository implementations for infrastructure layer."""

from .community_notification_repository import CommunityNotificationRepository
from .directory_user_repository import DirectoryUserRepository
from .scheduled_notification_repository import ScheduledNotificationRepository

__all__ = [
    "CommunityNotificationRepository",
    "DirectoryUserRepository",
    "ScheduledNotificationRepository",
]
