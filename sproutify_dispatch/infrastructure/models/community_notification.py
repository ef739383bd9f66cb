"""SQLAlchemy model for the in-app notification feed."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from sqlalchemy.sql import expression

from sproutify_dispatch.infrastructure.database import Base


class CommunityNotificationModel(Base):
    """Database representation of an in-app notification."""

    __tablename__ = "community_notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False, default="system")
    is_read = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


__all__ = ["CommunityNotificationModel"]
