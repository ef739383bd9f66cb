"""Persistence helpers for the scheduled notification queue."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, insert, or_
from sqlalchemy.orm import Session, load_only

from sproutify_dispatch.domain.entities import ScheduledNotification
from sproutify_dispatch.infrastructure.models import ScheduledNotificationModel
from sproutify_dispatch.infrastructure.schema import (
    BASE_COLUMNS,
    CLAIM_COLUMNS,
    ROUTING_COLUMNS,
    notification_columns,
)
from sproutify_dispatch.utils import ensure_utc, from_database_datetime


class ScheduledNotificationRepository:
    """Read, claim and finalize rows of the ``notifications`` table.

    The table may predate the routing and claim columns. Only the columns that
    exist are read or written; without the claim columns :meth:`claim` is not
    available and callers must check :attr:`supports_claims` first.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._columns: frozenset[str] | None = None

    def available_columns(self) -> frozenset[str]:
        if self._columns is None:
            self._columns = notification_columns(self.session.get_bind())
        return self._columns

    @property
    def supports_claims(self) -> bool:
        return all(name in self.available_columns() for name in CLAIM_COLUMNS)

    @property
    def supports_routing(self) -> bool:
        return all(name in self.available_columns() for name in ROUTING_COLUMNS)

    def _readable_columns(self) -> list[str]:
        available = self.available_columns()
        return [*BASE_COLUMNS, *(name for name in ROUTING_COLUMNS if name in available)]

    def list_due(
        self,
        *,
        now: datetime,
        window_start: datetime | None,
    ) -> Sequence[ScheduledNotification]:
        """Return pending rows due at or before ``now``.

        When ``window_start`` is given only rows due at or after it are returned;
        both bounds are inclusive.
        """

        columns = self._readable_columns()
        query = (
            self.session.query(ScheduledNotificationModel)
            .options(load_only(*(getattr(ScheduledNotificationModel, name) for name in columns)))
            .filter(ScheduledNotificationModel.status.is_(False))
            .filter(ScheduledNotificationModel.time_created <= ensure_utc(now))
        )
        if window_start is not None:
            query = query.filter(
                ScheduledNotificationModel.time_created >= ensure_utc(window_start)
            )
        query = query.order_by(
            ScheduledNotificationModel.time_created.asc(),
            ScheduledNotificationModel.id.asc(),
        )
        return [self._to_entity(model, columns) for model in query.all()]

    def count_stale(self, *, before: datetime) -> int:
        """Count pending rows whose due time is earlier than ``before``."""

        return (
            self.session.query(func.count(ScheduledNotificationModel.id))
            .filter(ScheduledNotificationModel.status.is_(False))
            .filter(ScheduledNotificationModel.time_created < ensure_utc(before))
            .scalar()
        )

    def create(self, notification: ScheduledNotification) -> ScheduledNotification:
        values = {
            "title": notification.title,
            "description": notification.description,
            "time_created": ensure_utc(notification.time_created),
            "status": notification.status,
        }
        if self.supports_routing:
            values.update(
                channel=notification.channel,
                scope=notification.scope,
                recipient=notification.recipient,
                recipient_user_id=notification.recipient_user_id,
            )
        result = self.session.execute(insert(ScheduledNotificationModel.__table__).values(**values))
        self.session.commit()
        return ScheduledNotification(
            id=result.inserted_primary_key[0],
            title=notification.title,
            description=notification.description,
            time_created=values["time_created"],
            status=notification.status,
            channel=values.get("channel"),
            scope=values.get("scope"),
            recipient=values.get("recipient"),
            recipient_user_id=values.get("recipient_user_id"),
        )

    def claim(
        self,
        notification_id: int,
        *,
        token: str,
        now: datetime,
        expired_before: datetime,
    ) -> bool:
        """Atomically reserve a pending row for the run identified by ``token``.

        The row can be claimed when it is unclaimed or when its previous claim
        is older than ``expired_before``. Returns ``True`` when this call won.
        """

        updated = (
            self.session.query(ScheduledNotificationModel)
            .filter(
                ScheduledNotificationModel.id == notification_id,
                ScheduledNotificationModel.status.is_(False),
                or_(
                    ScheduledNotificationModel.claim_token.is_(None),
                    ScheduledNotificationModel.claimed_at < ensure_utc(expired_before),
                ),
            )
            .update(
                {
                    ScheduledNotificationModel.claim_token: token,
                    ScheduledNotificationModel.claimed_at: ensure_utc(now),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated == 1

    def release(self, notification_id: int, *, token: str) -> None:
        """Drop the claim held by ``token`` so a later run can retry the row."""

        if not self.supports_claims:
            return
        self.session.query(ScheduledNotificationModel).filter(
            ScheduledNotificationModel.id == notification_id,
            ScheduledNotificationModel.claim_token == token,
        ).update(
            {
                ScheduledNotificationModel.claim_token: None,
                ScheduledNotificationModel.claimed_at: None,
            },
            synchronize_session=False,
        )
        self.session.commit()

    def mark_sent(self, notification_id: int) -> bool:
        """Flip ``status`` to ``True``. Returns ``False`` if no pending row matched."""

        values = {ScheduledNotificationModel.status: True}
        if self.supports_claims:
            values[ScheduledNotificationModel.claim_token] = None
            values[ScheduledNotificationModel.claimed_at] = None
        updated = (
            self.session.query(ScheduledNotificationModel)
            .filter(
                ScheduledNotificationModel.id == notification_id,
                ScheduledNotificationModel.status.is_(False),
            )
            .update(values, synchronize_session=False)
        )
        self.session.commit()
        return updated == 1

    @staticmethod
    def _to_entity(
        model: ScheduledNotificationModel, columns: Sequence[str]
    ) -> ScheduledNotification:
        routing = {name: getattr(model, name) for name in ROUTING_COLUMNS if name in columns}
        return ScheduledNotification(
            id=model.id,
            title=model.title,
            description=model.description,
            time_created=from_database_datetime(model.time_created),
            status=bool(model.status),
            **routing,
        )


__all__ = ["ScheduledNotificationRepository"]
