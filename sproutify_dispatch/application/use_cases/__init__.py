"""Aggregate application use cases."""

from .notifications import run_scheduled_dispatch, schedule_notification

__all__ = [
    "run_scheduled_dispatch",
    "schedule_notification",
]
