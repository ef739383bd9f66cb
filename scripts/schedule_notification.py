"""Utility script to queue a scheduled notification from the command line."""

from __future__ import annotations

import argparse
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from sproutify_dispatch.application.use_cases.notifications import schedule_notification
from sproutify_dispatch.domain.entities import CHANNELS, SCOPES
from sproutify_dispatch.domain.exceptions import SchedulingError
from sproutify_dispatch.infrastructure.database import initialize_database, session_scope


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"'{value}' is not an ISO-8601 date and time (e.g. 2026-05-01T09:30:00+00:00)"
        ) from exc


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the notification to queue."""

    parser = argparse.ArgumentParser(
        description="Queue a notification for the Sproutify dispatcher.",
    )
    parser.add_argument("--title", required=True, help="Subject of the email or in-app title")
    parser.add_argument("--message", required=True, help="Plain-text body of the notification")
    parser.add_argument(
        "--channel",
        choices=CHANNELS,
        default="in_app",
        help="Delivery channel (default: in_app)",
    )
    parser.add_argument(
        "--scope",
        choices=SCOPES,
        default="broadcast",
        help="Send to every member or to a single one (default: broadcast)",
    )
    parser.add_argument(
        "--to",
        dest="recipient_email",
        default=None,
        help="Email address of the member, required with --scope single",
    )
    parser.add_argument(
        "--at",
        dest="scheduled_for",
        type=_parse_datetime,
        default=None,
        help="When to deliver, ISO-8601 (default: now). Naive values use APP_TIMEZONE.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (local development databases only).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Queue a notification using the provided command line arguments."""

    args = parse_args(argv)

    if args.create_tables:
        initialize_database()

    with session_scope() as session:
        try:
            notification = schedule_notification(
                session,
                title=args.title,
                message=args.message,
                channel=args.channel,
                scope=args.scope,
                recipient_email=args.recipient_email,
                scheduled_for=args.scheduled_for,
            )
        except SchedulingError as exc:
            session.rollback()
            raise SystemExit(f"Could not schedule the notification: {exc.message}") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise SystemExit(f"Error saving the notification to the database: {exc}") from exc

    print(
        "Notification scheduled:\n"
        f"  ID: {notification.id}\n"
        f"  Channel: {args.channel}\n"
        f"  Scope: {args.scope}\n"
        f"  Due: {notification.time_created.isoformat() if notification.time_created else '-'}"
    )


if __name__ == "__main__":
    main()
