"""Tests for running against a ``notifications`` table without the newer columns."""

from __future__ import annotations

import importlib.util
import pathlib
from datetime import timedelta

import pytest
from sqlalchemy import inspect, text

from conftest import NOW, PROJECT_ROOT, add_users
from sproutify_dispatch.application.use_cases.notifications import (
    NotificationDispatcher,
    schedule_notification,
    single_in_app_unsupported_message,
)
from sproutify_dispatch.config import get_settings, reset_settings_cache
from sproutify_dispatch.domain.exceptions import SchedulingError
from sproutify_dispatch.infrastructure.database import (
    Base,
    dispose_engine,
    get_engine,
    session_scope,
)
from sproutify_dispatch.infrastructure.models import (
    CommunityNotificationModel,
    DirectoryUserModel,
)
from sproutify_dispatch.infrastructure.schema import (
    missing_notification_columns,
    upgrade_notifications_table,
)

BASE_TABLE = """
CREATE TABLE notifications (
    id INTEGER PRIMARY KEY,
    title TEXT,
    description TEXT,
    time_created DATETIME NOT NULL,
    status BOOLEAN NOT NULL DEFAULT 0
)
"""


@pytest.fixture()
def base_table(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    """A database whose ``notifications`` table only has the original five columns."""

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'hosted.db'}")
    dispose_engine()
    reset_settings_cache()
    engine = get_engine()
    with engine.begin() as connection:
        connection.execute(text(BASE_TABLE))
    Base.metadata.create_all(
        bind=engine,
        tables=[DirectoryUserModel.__table__, CommunityNotificationModel.__table__],
    )
    yield engine


@pytest.fixture()
def hosted_session(base_table):
    with session_scope() as db:
        yield db


def _insert(engine, notification_id: int, description: str, *, title: str | None = "Garden update"):
    due = (NOW - timedelta(seconds=10)).strftime("%Y-%m-%d %H:%M:%S.%f")
    with engine.begin() as connection:
        connection.execute(
            text(
                "INSERT INTO notifications (id, title, description, time_created, status) "
                "VALUES (:id, :title, :description, :due, 0)"
            ),
            {"id": notification_id, "title": title, "description": description, "due": due},
        )


def _status(engine, notification_id: int) -> bool:
    with engine.connect() as connection:
        value = connection.execute(
            text("SELECT status FROM notifications WHERE id = :id"), {"id": notification_id}
        ).scalar_one()
    return bool(value)


def _dispatcher(session, email_sender) -> NotificationDispatcher:
    return NotificationDispatcher(session, email_sender=email_sender, settings=get_settings())


def test_dispatcher_delivers_rows_from_the_base_table(base_table, hosted_session, email_sender):
    _insert(base_table, 1, "Email to: ana@example.com\n\nYour beds are ready")

    report = _dispatcher(hosted_session, email_sender).run(now=NOW)

    assert report.processed == 1
    assert report.emails_sent == 1
    assert report.errors == []
    assert email_sender.sent[0]["recipients"] == ["ana@example.com"]
    assert _status(base_table, 1) is True


def test_base_table_broadcast_in_app_and_unsupported_rows(
    base_table, hosted_session, email_sender
):
    add_users(hosted_session, [("user-1", "ana@example.com"), ("user-2", "kim@example.com")])
    _insert(base_table, 1, "Broadcast: frost tonight")
    _insert(base_table, 2, "Your seedlings are ready")

    report = _dispatcher(hosted_session, email_sender).run(now=NOW)

    assert report.processed == 1
    assert report.in_app_notifications_created == 2
    assert report.errors == [single_in_app_unsupported_message(2)]
    assert _status(base_table, 1) is True
    assert _status(base_table, 2) is False


def test_missing_claim_columns_are_logged(base_table, hosted_session, email_sender, caplog):
    _insert(base_table, 1, "Broadcast Email:\n\nHello")

    with caplog.at_level("WARNING"):
        _dispatcher(hosted_session, email_sender).run(now=NOW)

    assert "no claim columns" in caplog.text


def test_upgrade_adds_missing_columns_once(base_table):
    assert upgrade_notifications_table(base_table, dry_run=True)[0].startswith(
        "ALTER TABLE notifications ADD COLUMN"
    )
    assert len(missing_notification_columns(base_table)) == 6

    statements = upgrade_notifications_table(base_table)

    assert len(statements) == 6
    columns = {column["name"] for column in inspect(base_table).get_columns("notifications")}
    assert {"channel", "scope", "recipient", "recipient_user_id", "claim_token", "claimed_at"} <= columns
    assert upgrade_notifications_table(base_table) == []


def test_upgraded_table_claims_rows(base_table, email_sender):
    _insert(base_table, 1, "Broadcast Email:\n\nHello")
    upgrade_notifications_table(base_table)

    with session_scope() as session:
        dispatcher = _dispatcher(session, email_sender)
        report = dispatcher.run(now=NOW)

    assert dispatcher.notifications.supports_claims
    assert report.processed == 1
    assert _status(base_table, 1) is True


def test_scheduling_email_works_on_the_base_table(base_table, hosted_session):
    add_users(hosted_session, [("user-1", "ana@example.com")])

    notification = schedule_notification(
        hosted_session,
        title="Hello",
        message="Body",
        channel="email",
        scope="single",
        recipient_email="ana@example.com",
    )

    assert notification.channel is None
    with base_table.connect() as connection:
        description = connection.execute(
            text("SELECT description FROM notifications WHERE id = :id"), {"id": notification.id}
        ).scalar_one()
    assert description == "Email to: ana@example.com\n\nBody"


def test_scheduling_in_app_requires_routing_columns(base_table, hosted_session):
    with pytest.raises(SchedulingError, match="migrate_notifications.py") as excinfo:
        schedule_notification(
            hosted_session, title="Hello", message="Body", channel="in_app", scope="broadcast"
        )

    assert excinfo.value.error_code == "SCHEMA_OUTDATED"


def test_migration_script(base_table, capsys):
    path = PROJECT_ROOT / "scripts" / "migrate_notifications.py"
    spec = importlib.util.spec_from_file_location("migrate_notifications_script", path)
    script = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(script)

    script.main(["--dry-run"])
    assert len(missing_notification_columns(base_table)) == 6

    script.main([])
    assert missing_notification_columns(base_table) == []
    script.main([])

    output = capsys.readouterr().out
    assert "ADD COLUMN" in output
    assert "Applied 6 statement(s)." in output
    assert "already up to date" in output
