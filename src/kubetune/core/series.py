# src/kubetune/core/series.py
"""
Time-aligned series helpers.

A series is a plain ``Dict[int, float]`` keyed by epoch milliseconds. Key
order is never relied upon: anything with first/last semantics sorts by
timestamp first. Binary operations only emit timestamps present in both
inputs, so partial provider coverage never produces fabricated values.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Tuple

from ..utils.date_utils import from_epoch_ms, to_iso_z

logger = logging.getLogger(__name__)

AlignedSeries = Dict[int, float]

NANOCORES_PER_CORE = 1e9


def aggregate_series_by_timestamp(series: Iterable[Dict[str, Any]]) -> AlignedSeries:
    """
    Sums the points of several tagged Datadog series into one series.

    Each item is a Datadog series object carrying a ``pointlist`` of
    ``[timestamp_ms, value]`` pairs. Null values are skipped, and a timestamp
    is summed only over the series that report it (no zero padding).
    """
    points: AlignedSeries = {}
    for item in series or []:
        pointlist = (item or {}).get("pointlist") or []
        for point in pointlist:
            if not point or len(point) < 2:
                continue
            ts, value = point[0], point[1]
            if ts is None or value is None:
                continue
            ts = int(ts)
            points[ts] = points.get(ts, 0.0) + float(value)
    return points


def sorted_points(series: AlignedSeries) -> List[Tuple[int, float]]:
    """Returns the (timestamp, value) pairs ordered by ascending timestamp."""
    return sorted(series.items(), key=lambda item: item[0])


def scale_series(series: AlignedSeries, divisor: float) -> AlignedSeries:
    """Divides every value by `divisor` (e.g. nanocores -> cores)."""
    return {ts: value / divisor for ts, value in series.items()}


def ratio_series(numerator: AlignedSeries, denominator: AlignedSeries, multiplier: float = 1.0) -> AlignedSeries:
    """
    Computes ``numerator[t] / denominator[t] * multiplier`` for every shared
    timestamp. Timestamps missing from either side, or with a zero
    denominator, are dropped.
    """
    output: AlignedSeries = {}
    for ts, num in numerator.items():
        den = denominator.get(ts)
        if den is None or den == 0:
            continue
        output[ts] = (num / den) * multiplier
    return output


def diff_series(a: AlignedSeries, b: AlignedSeries) -> AlignedSeries:
    """Computes ``a[t] - b[t]`` over the intersection of both timestamp sets."""
    output: AlignedSeries = {}
    for ts, a_val in a.items():
        b_val = b.get(ts)
        if b_val is None:
            continue
        output[ts] = a_val - b_val
    return output


def series_to_iso_points(series: AlignedSeries) -> List[Tuple[str, float]]:
    """Sorted (ISO-8601 timestamp, value) pairs for export."""
    return [(to_iso_z(from_epoch_ms(ts)), value) for ts, value in sorted_points(series)]


def finite_points(series: AlignedSeries) -> List[Tuple[int, float]]:
    """Sorted pairs with NaN and infinite values removed."""
    return [(ts, value) for ts, value in sorted_points(series) if value is not None and math.isfinite(value)]
