"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_utc,
    from_database_datetime,
    get_app_timezone,
    isoformat_utc,
    now_utc,
)

__all__ = [
    "ensure_utc",
    "from_database_datetime",
    "get_app_timezone",
    "isoformat_utc",
    "now_utc",
]
