"""Persistence helpers for in-app community notifications."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy.orm import Session

from sproutify_dispatch.domain.entities import CommunityNotification
from sproutify_dispatch.infrastructure.models import CommunityNotificationModel
from sproutify_dispatch.utils import ensure_utc, from_database_datetime


class CommunityNotificationRepository:
    """Write in-app notifications into ``community_notifications``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def bulk_create(self, notifications: Iterable[CommunityNotification]) -> int:
        """Insert every notification in a single commit and return how many were written.

        Nothing is written when any row fails; the caller sees the database error.
        """

        models = [self._to_model(notification) for notification in notifications]
        if not models:
            return 0
        try:
            self.session.add_all(models)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return len(models)

    def list_for_user(self, user_id: str) -> Sequence[CommunityNotification]:
        query = (
            self.session.query(CommunityNotificationModel)
            .filter(CommunityNotificationModel.user_id == user_id)
            .order_by(CommunityNotificationModel.id.desc())
        )
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_model(notification: CommunityNotification) -> CommunityNotificationModel:
        model = CommunityNotificationModel(
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            is_read=notification.is_read,
        )
        if notification.created_at is not None:
            model.created_at = ensure_utc(notification.created_at)
        return model

    @staticmethod
    def _to_entity(model: CommunityNotificationModel) -> CommunityNotification:
        return CommunityNotification(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            message=model.message,
            type=model.type,
            is_read=bool(model.is_read),
            created_at=from_database_datetime(model.created_at),
        )


__all__ = ["CommunityNotificationRepository"]
