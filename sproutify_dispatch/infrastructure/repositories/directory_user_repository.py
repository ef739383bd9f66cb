"""Read access to the community user directory."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from sproutify_dispatch.domain.entities import DirectoryUser
from sproutify_dispatch.infrastructure.models import DirectoryUserModel


class DirectoryUserRepository:
    """Query members of the ``v_user_dashboard`` view."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_emails(self) -> list[str]:
        """Return every non-null email address in directory order."""

        query = (
            self.session.query(DirectoryUserModel.email)
            .filter(DirectoryUserModel.email.is_not(None))
            .order_by(DirectoryUserModel.id.asc())
        )
        return [email for (email,) in query.all() if email]

    def list_ids(self) -> list[str]:
        query = self.session.query(DirectoryUserModel.id).order_by(
            DirectoryUserModel.id.asc()
        )
        return [user_id for (user_id,) in query.all() if user_id is not None]

    def get_by_email(self, email: str) -> DirectoryUser | None:
        model = (
            self.session.query(DirectoryUserModel)
            .filter(func.lower(DirectoryUserModel.email) == email.strip().lower())
            .first()
        )
        return self._to_entity(model) if model else None

    def get(self, user_id: str) -> DirectoryUser | None:
        model = self.session.get(DirectoryUserModel, user_id)
        return self._to_entity(model) if model else None

    @staticmethod
    def _to_entity(model: DirectoryUserModel) -> DirectoryUser:
        return DirectoryUser(id=model.id, email=model.email)


__all__ = ["DirectoryUserRepository"]
