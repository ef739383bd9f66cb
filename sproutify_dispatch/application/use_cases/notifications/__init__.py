"""Use cases for queueing and dispatching scheduled notifications."""

from .classification import classify_notification
from .dispatch import (
    NotificationDispatcher,
    load_dispatch_settings,
    run_scheduled_dispatch,
    single_in_app_unsupported_message,
)
from .rendering import render_email_body
from .schedule import schedule_notification

__all__ = [
    "classify_notification",
    "NotificationDispatcher",
    "load_dispatch_settings",
    "run_scheduled_dispatch",
    "single_in_app_unsupported_message",
    "render_email_body",
    "schedule_notification",
]
