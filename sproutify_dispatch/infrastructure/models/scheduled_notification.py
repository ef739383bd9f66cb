"""SQLAlchemy model for the scheduled notification queue."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import expression

from sproutify_dispatch.infrastructure.database import Base


class ScheduledNotificationModel(Base):
    """Database representation of a queued notification."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    time_created = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    channel = Column(String(20), nullable=True)
    scope = Column(String(20), nullable=True)
    recipient = Column(String(320), nullable=True)
    recipient_user_id = Column(String(64), nullable=True)
    claim_token = Column(String(64), nullable=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)


__all__ = ["ScheduledNotificationModel"]
