"""
Date and Time Utilities for the relief coordination API
Timestamps are stored as naive UTC datetimes and emitted as ISO 8601 strings with an explicit offset
"""
from datetime import datetime, timezone, timedelta


def utcnow():
    """
    Current time as a naive UTC datetime (our storage standard)

    Returns:
        datetime without tzinfo
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc(dt):
    """
    Attach UTC to a stored datetime

    Args:
        dt: datetime object (naive values are assumed to be UTC)

    Returns:
        timezone-aware datetime in UTC, or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_datetime_iso(dt):
    """
    Format datetime as ISO 8601 for JSON consumers

    Args:
        dt: datetime object (assumes UTC if naive)

    Returns:
        str: e.g. "2025-11-10T14:35:42+00:00", or None when dt is None
    """
    if dt is None:
        return None

    return to_utc(dt).isoformat()


def format_datetime(dt):
    """
    Format datetime as YYYY-MM-DD HH:MM UTC (used in CSV exports)

    Args:
        dt: datetime object (assumes UTC if naive)

    Returns:
        str: Formatted datetime (e.g., "2025-11-10 14:35 UTC")
    """
    if dt is None:
        return ""

    return to_utc(dt).strftime("%Y-%m-%d %H:%M UTC")


def expected_arrival(dispatched_at, eta_minutes):
    """
    Estimated arrival time of a dispatch

    Args:
        dispatched_at: datetime the resources left
        eta_minutes: int - travel estimate in minutes

    Returns:
        datetime, or None if either input is missing
    """
    if dispatched_at is None or eta_minutes is None:
        return None

    return dispatched_at + timedelta(minutes=eta_minutes)


def format_relative_time(dt, now=None):
    """
    Format datetime as relative time (e.g., "5 mins ago", "2 hours ago")
    Falls back to absolute date for older timestamps

    Args:
        dt: datetime object (assumes UTC if naive)
        now: optional reference time, defaults to the current time

    Returns:
        str: Relative time description
    """
    if dt is None:
        return ""

    then = to_utc(dt)
    now = to_utc(now) if now is not None else datetime.now(timezone.utc)

    diff_minutes = (now - then).total_seconds() / 60
    diff_hours = diff_minutes / 60
    diff_days = diff_hours / 24

    if diff_minutes < 1:
        return "Just now"
    elif diff_minutes < 60:
        mins = int(diff_minutes)
        return f"{mins} min{'s' if mins > 1 else ''} ago"
    elif diff_hours < 24:
        hours = int(diff_hours)
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    elif diff_days < 7:
        days = int(diff_days)
        return f"{days} day{'s' if days > 1 else ''} ago"
    else:
        return then.strftime("%Y-%m-%d")
