"""Shared fixtures: a throwaway SQLite database and a recording email sender."""

from __future__ import annotations

import pathlib
import sys
from datetime import datetime, timedelta, timezone

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from sproutify_dispatch.config import get_settings, reset_settings_cache
from sproutify_dispatch.domain.exceptions import EmailDeliveryError
from sproutify_dispatch.infrastructure.database import (
    dispose_engine,
    initialize_database,
    session_scope,
)
from sproutify_dispatch.infrastructure.email import EmailReceipt
from sproutify_dispatch.infrastructure.models import (
    DirectoryUserModel,
    ScheduledNotificationModel,
)
from sproutify_dispatch.utils import get_app_timezone

NOW = datetime(2026, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

_ENVIRONMENT = (
    "DATABASE_URL",
    "SENDGRID_API_KEY",
    "SENDGRID_SENDER",
    "APP_TIMEZONE",
    "DISPATCH_WINDOW_SECONDS",
    "DISPATCH_CATCH_UP",
    "DISPATCH_CLAIM_TTL_SECONDS",
    "DEFAULT_EMAIL_SUBJECT",
    "LOG_LEVEL",
)


def _reset_caches() -> None:
    dispose_engine()
    reset_settings_cache()
    get_app_timezone.cache_clear()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Start every test without dispatcher variables or cached settings."""

    for name in _ENVIRONMENT:
        monkeypatch.delenv(name, raising=False)
    _reset_caches()
    yield
    _reset_caches()


@pytest.fixture()
def database(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    """Point the application at a fresh SQLite file with every table created."""

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'dispatch.db'}")
    _reset_caches()
    initialize_database()
    yield


@pytest.fixture()
def settings(database):
    return get_settings()


@pytest.fixture()
def session(database):
    with session_scope() as db:
        yield db


class RecordingEmailSender:
    """Email sender double that remembers every request it accepted."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.failing_subjects: dict[str, Exception] = {}

    def fail_for(self, subject: str, error: Exception | None = None) -> None:
        self.failing_subjects[subject] = error or EmailDeliveryError(
            "SendGrid API error (status 400): invalid request", status_code=400
        )

    def send(self, *, subject, html_content, recipients):
        if subject in self.failing_subjects:
            raise self.failing_subjects[subject]
        self.sent.append(
            {"subject": subject, "html": html_content, "recipients": list(recipients)}
        )
        return EmailReceipt(message_id=f"msg-{len(self.sent)}", accepted=len(recipients))


@pytest.fixture()
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


def add_notification(
    session,
    *,
    description: str,
    due: datetime = NOW - timedelta(seconds=10),
    title: str | None = "Garden update",
    status: bool = False,
    **columns,
) -> int:
    model = ScheduledNotificationModel(
        title=title,
        description=description,
        time_created=due,
        status=status,
        **columns,
    )
    session.add(model)
    session.commit()
    return model.id


def add_users(session, users: list[tuple[str, str | None]]) -> None:
    session.add_all(DirectoryUserModel(id=user_id, email=email) for user_id, email in users)
    session.commit()


def notification_row(session, notification_id: int) -> ScheduledNotificationModel:
    session.expire_all()
    return session.get(ScheduledNotificationModel, notification_id)
