# src/kubetune/core/stats.py
"""
Statistical reductions over aligned series: per-series summaries and the
peak ratio used for incident capacity planning.
"""

import logging
import math
from typing import Iterable, Optional

from ..models.metrics import CapacityPlan, CapacityTarget, PeakRatio, SeriesStats
from ..utils.date_utils import from_epoch_ms
from .series import AlignedSeries, finite_points, sorted_points

logger = logging.getLogger(__name__)


def summarize(series: AlignedSeries) -> Optional[SeriesStats]:
    """
    Reduces a series to {samples, min, avg, max, last}.

    Non-finite values are ignored. Returns None when no finite value is
    left, which callers render as "n/a" rather than zero. `last` is the
    value at the greatest timestamp.
    """
    points = finite_points(series)
    if not points:
        return None

    values = [value for _, value in points]
    return SeriesStats(
        samples=len(values),
        min=min(values),
        avg=math.fsum(values) / len(values),
        max=max(values),
        last=values[-1],
    )


def locate_peak(numerator: AlignedSeries, denominator: AlignedSeries, multiplier: float = 1.0) -> Optional[PeakRatio]:
    """
    Finds the timestamp where ``numerator / denominator * multiplier`` is
    largest.

    Timestamps are scanned in ascending order and only a strictly greater
    ratio replaces the current best, so ties keep the earliest timestamp.
    """
    best: Optional[PeakRatio] = None
    for ts, num in sorted_points(numerator):
        den = denominator.get(ts)
        if num is None or den is None:
            continue
        if not math.isfinite(num) or not math.isfinite(den) or den == 0:
            continue
        ratio = (num / den) * multiplier
        if best is None or ratio > best.ratio:
            best = PeakRatio(timestamp=ts, ratio=ratio, numerator=num, denominator=den)
    return best


def target_key(target: float) -> str:
    """0.8 -> "80", 0.805 -> "80.5"."""
    return f"{round(target * 100, 2):g}"


def build_capacity_plan(
    numerator: AlignedSeries,
    denominator: AlignedSeries,
    targets: Iterable[float] = (0.8, 0.7),
    multiplier: float = 100.0,
) -> Optional[CapacityPlan]:
    """
    Builds a peak-based capacity plan from requested and allocatable series.

    For each target ratio, the allocatable needed to keep the peak at that
    ratio is ``peak_numerator / target`` and the scale factor is that value
    over the allocatable observed at the peak.
    """
    peak = locate_peak(numerator, denominator, multiplier)
    if peak is None:
        logger.info("No overlapping samples for capacity planning; skipping capacity plan.")
        return None

    plan = CapacityPlan(
        peak_timestamp=from_epoch_ms(peak.timestamp),
        peak_ratio=peak.ratio,
        peak_numerator=peak.numerator,
        peak_denominator=peak.denominator,
    )
    for target in targets:
        plan.targets[target_key(target)] = CapacityTarget(
            target=target,
            required_denominator=plan.required_denominator(target),
            scale_factor=plan.scale_factor(target),
        )
    logger.debug("Capacity peak at %s: %.2f%%", plan.peak_timestamp, plan.peak_ratio)
    return plan
