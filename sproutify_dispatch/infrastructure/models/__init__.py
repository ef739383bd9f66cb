"""ORM models used by the application infrastructure."""

from .community_notification import CommunityNotificationModel
from .directory_user import DirectoryUserModel
from .scheduled_notification import ScheduledNotificationModel

__all__ = [
    "CommunityNotificationModel",
    "DirectoryUserModel",
    "ScheduledNotificationModel",
]
