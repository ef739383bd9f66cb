"""SQLAlchemy mapping for the user-directory view."""

from sqlalchemy import Column, String

from sproutify_dispatch.infrastructure.database import Base


class DirectoryUserModel(Base):
    """Read-only projection of ``v_user_dashboard``."""

    __tablename__ = "v_user_dashboard"

    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True, index=True)


__all__ = ["DirectoryUserModel"]
