"""Use case that delivers due scheduled notifications.

One call performs one polling cycle: select the pending rows that fall inside
the due window, claim each one, deliver it by email or as in-app feed entries,
flip its ``status`` and report what happened. Rows are handled one at a time
in due order; a failing row is reported and never stops the batch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sproutify_dispatch.config import Settings, get_settings
from sproutify_dispatch.domain.entities import (
    CHANNEL_EMAIL,
    OUTCOME_EMAIL_SENT,
    OUTCOME_IN_APP_CREATED,
    OUTCOME_UNSUPPORTED,
    CommunityNotification,
    DeliveryOutcome,
    DeliveryPlan,
    DispatchReport,
    ScheduledNotification,
)
from sproutify_dispatch.domain.exceptions import (
    DispatchConfigurationError,
    DispatchError,
    NotificationDeliveryError,
    NotificationSelectionError,
    RecipientNotResolved,
)
from sproutify_dispatch.infrastructure.database import get_session_factory
from sproutify_dispatch.infrastructure.email import EmailSender, SendGridEmailSender
from sproutify_dispatch.infrastructure.repositories import (
    CommunityNotificationRepository,
    DirectoryUserRepository,
    ScheduledNotificationRepository,
)
from sproutify_dispatch.utils import ensure_utc, now_utc

from .classification import classify_notification
from .rendering import render_email_body

logger = logging.getLogger(__name__)


def single_in_app_unsupported_message(notification_id: int | None) -> str:
    return (
        "Single user in-app notification not fully implemented for notification "
        f"{notification_id}"
    )


class NotificationDispatcher:
    """Deliver the notifications that are due at a given instant."""

    def __init__(
        self,
        session: Session,
        *,
        email_sender: EmailSender,
        settings: Settings,
        run_token: str | None = None,
    ) -> None:
        self.session = session
        self.email_sender = email_sender
        self.settings = settings
        self.run_token = run_token or uuid4().hex
        self.notifications = ScheduledNotificationRepository(session)
        self.directory = DirectoryUserRepository(session)
        self.feed = CommunityNotificationRepository(session)

    def due_window_start(self, now: datetime) -> datetime | None:
        """Return the earliest due time selected at ``now`` (``None`` = unbounded)."""

        if self.settings.dispatch_catch_up:
            return None
        return now - timedelta(seconds=self.settings.dispatch_window_seconds)

    def run(self, *, now: datetime | None = None) -> DispatchReport:
        now = ensure_utc(now) or now_utc()
        window_start = self.due_window_start(now)

        try:
            due = self.notifications.list_due(now=now, window_start=window_start)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Error fetching notifications: %s", exc)
            raise NotificationSelectionError(f"Error fetching notifications: {exc}") from exc

        if window_start is not None:
            self._warn_about_stale_rows(window_start)
        if due and not self.notifications.supports_claims:
            logger.warning(
                "The notifications table has no claim columns; overlapping runs may deliver "
                "a row twice. Run scripts/migrate_notifications.py to add them"
            )

        report = DispatchReport(selected=len(due), timestamp=now)
        if not due:
            logger.info("No notifications to process")
            return report

        logger.info("Dispatch run %s selected %d notification(s)", self.run_token, len(due))
        for notification in due:
            self._process(notification, report, now=now)

        report.timestamp = now_utc()
        logger.info(
            "Dispatch run %s finished: processed=%d emails=%d in_app=%d errors=%d",
            self.run_token,
            report.processed,
            report.emails_sent,
            report.in_app_notifications_created,
            len(report.errors),
        )
        return report

    def _warn_about_stale_rows(self, window_start: datetime) -> None:
        try:
            stale = self.notifications.count_stale(before=window_start)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Could not count stale notifications: %s", exc)
            return
        if stale:
            logger.warning(
                "%d pending notification(s) are older than the due window and will not be "
                "selected; enable DISPATCH_CATCH_UP to deliver them",
                stale,
            )

    def _process(
        self, notification: ScheduledNotification, report: DispatchReport, *, now: datetime
    ) -> None:
        notification_id = notification.id
        if self.notifications.supports_claims and not self._claim(notification_id, report, now=now):
            return

        try:
            plan = classify_notification(notification)
            outcome = self._deliver(notification, plan)
        except Exception as exc:
            self.session.rollback()
            self._release(notification_id)
            self._record_failure(report, notification_id, _describe(exc))
            return

        if not outcome.delivered:
            self._release(notification_id)
            logger.warning("%s", outcome.message)
            report.add_error(outcome.message or f"Notification {notification_id} was not delivered")
            return

        try:
            flipped = self.notifications.mark_sent(notification_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            self._release(notification_id)
            self._record_failure(
                report, notification_id, f"Failed to update notification status: {exc}"
            )
            return
        if not flipped:
            self._record_failure(
                report,
                notification_id,
                "Failed to update notification status: the row is no longer pending",
            )
            return

        report.record(outcome)

    def _claim(self, notification_id: int | None, report: DispatchReport, *, now: datetime) -> bool:
        try:
            claimed = self.notifications.claim(
                notification_id,
                token=self.run_token,
                now=now,
                expired_before=now - timedelta(seconds=self.settings.dispatch_claim_ttl_seconds),
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            self._record_failure(report, notification_id, f"Failed to claim notification: {exc}")
            return False
        if not claimed:
            logger.info("Notification %s is claimed by another run; skipping", notification_id)
        return claimed

    def _deliver(self, notification: ScheduledNotification, plan: DeliveryPlan) -> DeliveryOutcome:
        if plan.channel == CHANNEL_EMAIL:
            if plan.is_broadcast:
                return self._send_broadcast_email(notification, plan)
            return self._send_single_email(notification, plan)
        if plan.is_broadcast:
            return self._create_broadcast_in_app(notification, plan)
        return self._create_single_in_app(notification, plan)

    def _subject(self, notification: ScheduledNotification) -> str:
        return notification.title or self.settings.default_email_subject

    def _send_broadcast_email(
        self, notification: ScheduledNotification, plan: DeliveryPlan
    ) -> DeliveryOutcome:
        try:
            addresses = self.directory.list_emails()
        except SQLAlchemyError as exc:
            raise NotificationDeliveryError(f"Failed to fetch users: {exc}") from exc

        if not addresses:
            logger.info("Notification %s: no directory users have an email address", notification.id)
            return DeliveryOutcome(OUTCOME_EMAIL_SENT, 0)

        self.email_sender.send(
            subject=self._subject(notification),
            html_content=render_email_body(plan.body),
            recipients=addresses,
        )
        return DeliveryOutcome(OUTCOME_EMAIL_SENT, len(addresses))

    def _send_single_email(
        self, notification: ScheduledNotification, plan: DeliveryPlan
    ) -> DeliveryOutcome:
        if not plan.recipient:
            raise RecipientNotResolved(notification.id)

        self.email_sender.send(
            subject=self._subject(notification),
            html_content=render_email_body(plan.body),
            recipients=[plan.recipient],
        )
        return DeliveryOutcome(OUTCOME_EMAIL_SENT, 1)

    def _create_broadcast_in_app(
        self, notification: ScheduledNotification, plan: DeliveryPlan
    ) -> DeliveryOutcome:
        try:
            user_ids = self.directory.list_ids()
        except SQLAlchemyError as exc:
            raise NotificationDeliveryError(f"Failed to fetch users: {exc}") from exc

        entries = [self._feed_entry(user_id, notification, plan) for user_id in user_ids]
        return DeliveryOutcome(OUTCOME_IN_APP_CREATED, self._insert_feed_entries(entries))

    def _create_single_in_app(
        self, notification: ScheduledNotification, plan: DeliveryPlan
    ) -> DeliveryOutcome:
        if not plan.recipient_user_id:
            # Legacy rows carry no user identifier for this case.
            return DeliveryOutcome(
                OUTCOME_UNSUPPORTED, message=single_in_app_unsupported_message(notification.id)
            )

        entry = self._feed_entry(plan.recipient_user_id, notification, plan)
        return DeliveryOutcome(OUTCOME_IN_APP_CREATED, self._insert_feed_entries([entry]))

    def _feed_entry(
        self, user_id: str, notification: ScheduledNotification, plan: DeliveryPlan
    ) -> CommunityNotification:
        return CommunityNotification(
            id=None,
            user_id=user_id,
            title=self._subject(notification),
            message=plan.body,
        )

    def _insert_feed_entries(self, entries: list[CommunityNotification]) -> int:
        try:
            return self.feed.bulk_create(entries)
        except SQLAlchemyError as exc:
            raise NotificationDeliveryError(f"Failed to create notifications: {exc}") from exc

    def _release(self, notification_id: int | None) -> None:
        try:
            self.notifications.release(notification_id, token=self.run_token)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Could not release claim on notification %s: %s", notification_id, exc)

    @staticmethod
    def _record_failure(report: DispatchReport, notification_id: int | None, message: str) -> None:
        logger.error("Error processing notification %s: %s", notification_id, message)
        report.add_error(f"Notification {notification_id}: {message}")


def _describe(exc: Exception) -> str:
    if isinstance(exc, DispatchError):
        return exc.message
    return str(exc) or exc.__class__.__name__


def load_dispatch_settings() -> Settings:
    """Return the settings, converting validation problems into a fatal dispatch error."""

    try:
        return get_settings()
    except ValidationError as exc:
        fields = sorted(
            {str(error["loc"][0]).upper() for error in exc.errors() if error.get("loc")}
        )
        if "DATABASE_URL" in fields:
            raise DispatchConfigurationError(
                "Missing database configuration (DATABASE_URL)"
            ) from exc
        raise DispatchConfigurationError(
            f"Invalid configuration: {', '.join(fields) or exc}"
        ) from exc


def run_scheduled_dispatch(
    *,
    now: datetime | None = None,
    email_sender: EmailSender | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> DispatchReport:
    """Run one dispatch cycle against the configured database.

    Raises :class:`DispatchConfigurationError` when the database cannot be
    configured and :class:`NotificationSelectionError` when the queue cannot be
    read; every other failure is reported per row.
    """

    settings = load_dispatch_settings()
    if session_factory is None:
        try:
            session_factory = get_session_factory()
        except SQLAlchemyError as exc:
            raise DispatchConfigurationError(f"Invalid database configuration: {exc}") from exc
    sender = email_sender or SendGridEmailSender.from_settings(settings)

    session = session_factory()
    try:
        dispatcher = NotificationDispatcher(session, email_sender=sender, settings=settings)
        return dispatcher.run(now=now)
    finally:
        session.close()


__all__ = [
    "NotificationDispatcher",
    "load_dispatch_settings",
    "run_scheduled_dispatch",
    "single_in_app_unsupported_message",
]
