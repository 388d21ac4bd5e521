"""
date_time_helper.py

Provides helper functions for conversion and formatting of date and time values.
Timestamps are stored as UTC ISO strings; calendar dates (sign-off dates,
revision dates, export filenames) are taken in the configured local timezone.

All features and modules should use ONLY these helpers for date/time logic.
"""

from __future__ import annotations

from datetime import datetime, date, timezone
from zoneinfo import ZoneInfo

# Local timezone for calendar dates (replaced from config by set_local_timezone)
LOCAL_TZ = ZoneInfo("UTC")


def set_local_timezone(name: str) -> None:
    """Switch the timezone used for calendar dates, e.g. "Asia/Taipei"."""
    global LOCAL_TZ
    LOCAL_TZ = ZoneInfo(name)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso(now: datetime | None = None) -> str:
    """
    Returns the UTC time as an ISO8601 string (YYYY-MM-DDTHH:MM:SS+00:00).
    Used for creation timestamps and log entries.
    """
    now = now or utc_now()
    return now.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def local_date(now: datetime | None = None) -> date:
    """Calendar date of *now* (default: current time) in the local timezone."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(LOCAL_TZ).date()


def date_iso(now: datetime | None = None) -> str:
    """Local calendar date as YYYY-MM-DD."""
    return local_date(now).isoformat()


def date_stamp(day: date) -> str:
    """Compact YYYYMMDD form used in filenames."""
    return day.strftime("%Y%m%d")

