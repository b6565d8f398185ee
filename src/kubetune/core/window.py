# src/kubetune/core/window.py
"""
Resolves CLI time bounds (--from/--to/--window) into a concrete TimeWindow.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from ..models.metrics import TimeWindow
from ..utils.date_utils import ensure_utc, parse_iso_date, parse_window_duration
from .exceptions import InvalidWindowError

logger = logging.getLogger(__name__)

DateInput = Union[str, datetime, None]


def _parse_bound(value: DateInput, flag: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    parsed = parse_iso_date(str(value).strip())
    if parsed is None:
        raise InvalidWindowError(f"Invalid {flag} value: {value}")
    return ensure_utc(parsed)


def resolve_time_window(
    start: DateInput = None,
    end: DateInput = None,
    window: Optional[str] = None,
    default_window: str = "24h",
    now: Optional[datetime] = None,
) -> TimeWindow:
    """
    Builds the analysis window.

    - `end` defaults to the current instant (or `now` when given).
    - When `start` is given it wins over `window` and must be strictly
      before `end`.
    - Otherwise `window` (falling back to `default_window`) is parsed as
      '<int><m|h|d>' and subtracted from `end`.

    Raises:
        InvalidWindowError: on unparsable bounds, an unsupported window
            format, or start >= end.
    """
    resolved_end = _parse_bound(end, "--to")
    if resolved_end is None:
        resolved_end = ensure_utc(now) if now is not None else datetime.now(timezone.utc)

    resolved_start = _parse_bound(start, "--from")
    if resolved_start is not None:
        if resolved_start >= resolved_end:
            raise InvalidWindowError("--from must be before --to")
        return TimeWindow(start=resolved_start, end=resolved_end)

    window_str = window or default_window
    duration = parse_window_duration(window_str)
    if duration is None or duration.total_seconds() <= 0:
        raise InvalidWindowError(f"Invalid --window value: {window_str}. Supported suffixes: m, h, d")

    try:
        resolved_start = resolved_end - duration
    except OverflowError as e:
        raise InvalidWindowError(f"Invalid --window value: {window_str}. Window reaches before year 1") from e

    logger.debug("Resolved window %s back from %s", window_str, resolved_end)
    return TimeWindow(start=resolved_start, end=resolved_end)
