"""Wall-clock helpers in the salon's configured local time zone.

Booking dates and slot labels are local calendar values with no time zone
conversion, so every "today" and "now" comparison goes through here.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from flask import current_app


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_zone() -> ZoneInfo:
    return ZoneInfo(current_app.config.get("LOCAL_TIMEZONE", "UTC"))


def local_now() -> datetime:
    """Current local wall-clock time, naive, in the configured zone."""
    return datetime.now(local_zone()).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
