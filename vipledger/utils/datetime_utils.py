"""
Datetime utilities.

Provides timezone-aware datetime functions and activation cycle boundaries.
"""

from datetime import UTC, date, datetime, time, timedelta, tzinfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    SQLite returns naive datetimes for timezone-aware columns; they are
    stored in UTC, so naive values are tagged rather than converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _local_instant(day: date, hour: int, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=tz).astimezone(UTC)


def unlock_window_start(now: datetime, unlock_hour: int, tz: tzinfo) -> datetime:
    """
    Most recent unlock instant at or before now.

    Args:
        now: Reference instant
        unlock_hour: Local hour of the daily unlock
        tz: Local timezone

    Returns:
        Today's unlock instant, or yesterday's if now is before it (UTC)
    """
    local_now = ensure_utc(now).astimezone(tz)
    start = _local_instant(local_now.date(), unlock_hour, tz)
    if ensure_utc(now) < start:
        start = _local_instant(local_now.date() - timedelta(days=1), unlock_hour, tz)
    return start


def next_unlock_after(now: datetime, unlock_hour: int, tz: tzinfo) -> datetime:
    """Next unlock instant strictly after the current window start (UTC)."""
    start = unlock_window_start(now, unlock_hour, tz)
    local_start = start.astimezone(tz)
    return _local_instant(local_start.date() + timedelta(days=1), unlock_hour, tz)


def local_day_start(now: datetime, tz: tzinfo) -> datetime:
    """Local midnight of now's calendar day (UTC)."""
    return _local_instant(ensure_utc(now).astimezone(tz).date(), 0, tz)


def next_local_midnight(now: datetime, tz: tzinfo) -> datetime:
    """Local midnight of the following calendar day (UTC)."""
    local_date = ensure_utc(now).astimezone(tz).date()
    return _local_instant(local_date + timedelta(days=1), 0, tz)
