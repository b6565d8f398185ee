from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from ..core.config import WINDOW_PATTERN

WINDOW_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


def parse_iso_date(date_str: str) -> Optional[datetime]:
    """
    Parses an ISO 8601 date string into a datetime object.
    Handles the 'Z' suffix by replacing it with '+00:00' for compatibility
    with datetime.fromisoformat() in older Python versions (pre-3.11).

    Args:
        date_str: The ISO date string to parse.

    Returns:
        A datetime object or None if parsing fails.
    """
    if not date_str:
        return None

    try:
        if date_str.endswith("Z"):
            date_str = date_str[:-1] + "+00:00"

        return datetime.fromisoformat(date_str)
    except ValueError:
        return None


def parse_window_duration(window: str) -> Optional[timedelta]:
    """
    Parses a lookback string such as '30m', '24h' or '7d' into a timedelta.

    Returns None when the string does not match '<integer><m|h|d>' or the
    duration does not fit in a timedelta.
    """
    match = WINDOW_PATTERN.match(str(window or "").strip())
    if not match:
        return None
    value, unit = int(match.group(1)), match.group(2)
    try:
        return timedelta(**{WINDOW_UNITS[unit]: value})
    except OverflowError:
        return None


def ensure_utc(dt: Union[datetime, str]) -> datetime:
    """
    Ensures a datetime object is timezone-aware and in UTC.
    If input is a string, it parses it first.
    If input is naive, it assumes UTC.
    """
    if isinstance(dt, str):
        parsed = parse_iso_date(dt)
        if not parsed:
            raise ValueError(f"Invalid date string: {dt}")
        dt = parsed

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt


def to_iso_z(dt: datetime) -> str:
    """
    Converts a datetime to an ISO 8601 string with 'Z' suffix for UTC.
    """
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def from_epoch_ms(ts_ms: Union[int, float]) -> datetime:
    """Converts a Datadog epoch-milliseconds timestamp into an aware UTC datetime."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def to_epoch_seconds(dt: datetime) -> int:
    """Floors an aware datetime to whole epoch seconds, as the Datadog query API expects."""
    return int(ensure_utc(dt).timestamp() // 1)
