"""Inspection and in-place upgrade of the hosted ``notifications`` table.

The hosted table only guarantees ``id, title, description, time_created,
status``. The routing and claim columns are added by
:func:`upgrade_notifications_table`; until then the repository reads the base
columns only.
"""

from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from sproutify_dispatch.domain.exceptions import DispatchConfigurationError
from sproutify_dispatch.infrastructure.models import ScheduledNotificationModel

logger = logging.getLogger(__name__)

BASE_COLUMNS = ("id", "title", "description", "time_created", "status")
ROUTING_COLUMNS = ("channel", "scope", "recipient", "recipient_user_id")
CLAIM_COLUMNS = ("claim_token", "claimed_at")


def notification_columns(bind: Engine | Connection) -> frozenset[str]:
    """Return the column names the ``notifications`` table has in the database."""

    inspector = inspect(bind)
    return frozenset(
        column["name"]
        for column in inspector.get_columns(ScheduledNotificationModel.__tablename__)
    )


def missing_notification_columns(bind: Engine | Connection) -> list[str]:
    present = notification_columns(bind)
    return [name for name in ROUTING_COLUMNS + CLAIM_COLUMNS if name not in present]


def upgrade_statements(engine: Engine) -> list[str]:
    """Return the ``ALTER TABLE`` statements that add every missing column."""

    table = ScheduledNotificationModel.__table__
    preparer = engine.dialect.identifier_preparer
    statements = []
    for name in missing_notification_columns(engine):
        column_type = table.c[name].type.compile(dialect=engine.dialect)
        statements.append(
            f"ALTER TABLE {preparer.format_table(table)} "
            f"ADD COLUMN {preparer.quote(name)} {column_type}"
        )
    return statements


def upgrade_notifications_table(engine: Engine, *, dry_run: bool = False) -> list[str]:
    """Add the routing and claim columns that the table is missing.

    Returns the statements that were (or, with ``dry_run``, would be) executed.
    Existing rows keep ``NULL`` in the new columns and stay on the legacy path.
    """

    try:
        statements = upgrade_statements(engine)
        if dry_run or not statements:
            return statements
        with engine.begin() as connection:
            for statement in statements:
                connection.execute(text(statement))
    except SQLAlchemyError as exc:
        msg = f"Could not upgrade the notifications table: {exc}"
        raise DispatchConfigurationError(msg) from exc

    logger.info("Added %d column(s) to the notifications table", len(statements))
    return statements


__all__ = [
    "BASE_COLUMNS",
    "CLAIM_COLUMNS",
    "ROUTING_COLUMNS",
    "missing_notification_columns",
    "notification_columns",
    "upgrade_notifications_table",
    "upgrade_statements",
]
