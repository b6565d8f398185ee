import math
from typing import Optional


def format_number(value: Optional[float], decimals: int = 2) -> str:
    """Formats a number with fixed decimals, or 'n/a' when missing or not finite."""
    if value is None or isinstance(value, bool):
        return "n/a"
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "n/a"
    if not math.isfinite(number):
        return "n/a"
    return f"{number:.{decimals}f}"
