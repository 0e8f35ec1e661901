"""
Numeric primitives shared by every threshold method.

Pure functions: interpolation of load at a target lactate (with short
backward extrapolation), baseline lactate, lactate minimum and ordinary
least squares regression.
"""
import math
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from ..models.results import DataPoint, ThresholdPoint
from .common import (
    BASELINE_MAX_POINTS,
    EXTRAPOLATION_MAX_DEVIATION,
    round_value,
)


def interpolate_threshold(
    points: Sequence[DataPoint],
    target_lactate: float
) -> Optional[ThresholdPoint]:
    """
    Find the load at which the curve reaches ``target_lactate``.

    Scans for the first bracketing pair ``lactate[i] <= target <= lactate[i+1]``
    and interpolates load linearly by the lactate ratio. A target slightly
    below the lowest measured lactate (< 10% relative deviation) is
    extrapolated backwards along the first segment.

    Args:
        points: Stage points sorted by load
        target_lactate: Lactate level [mmol/L]

    Returns:
        ThresholdPoint rounded to 2 decimals, or None if not determinable
        (target above the curve, flat bracketing segment, non-finite or
        negative load).
    """
    if len(points) < 2 or not math.isfinite(target_lactate):
        return None

    lactates = [p.lactate for p in points]
    min_lactate = min(lactates)
    max_lactate = max(lactates)

    if target_lactate < min_lactate:
        return _extrapolate_below(points, target_lactate, min_lactate)

    if target_lactate > max_lactate:
        return None

    for lower, upper in zip(points, points[1:]):
        if lower.lactate <= target_lactate <= upper.lactate:
            lactate_diff = upper.lactate - lower.lactate
            if lactate_diff == 0:
                return None

            ratio = (target_lactate - lower.lactate) / lactate_diff
            load = lower.load + ratio * (upper.load - lower.load)
            if not math.isfinite(load) or load < 0:
                return None
            return ThresholdPoint(load=round_value(load), lactate=target_lactate)

    return None


def _extrapolate_below(
    points: Sequence[DataPoint],
    target_lactate: float,
    min_lactate: float
) -> Optional[ThresholdPoint]:
    """Backward extrapolation along the first two points."""
    if min_lactate <= 0:
        return None

    deviation = (min_lactate - target_lactate) / min_lactate
    if deviation >= EXTRAPOLATION_MAX_DEVIATION:
        return None

    first, second = points[0], points[1]
    load_diff = second.load - first.load
    if load_diff == 0:
        return None
    slope = (second.lactate - first.lactate) / load_diff
    if slope == 0:
        return None

    load = first.load - (first.lactate - target_lactate) / slope
    if not math.isfinite(load) or load <= 0:
        return None
    return ThresholdPoint(load=round_value(load), lactate=target_lactate)


def calculate_baseline(points: Sequence[DataPoint], k: Optional[int] = None) -> Optional[float]:
    """
    Individual baseline lactate: mean of the first k points.

    Default k = min(3, n // 3), at least 1.
    """
    if not points:
        return None
    if k is None:
        k = min(BASELINE_MAX_POINTS, len(points) // 3)
    k = max(1, min(k, len(points)))
    return float(np.mean([p.lactate for p in points[:k]]))


def find_min_lactate(points: Sequence[DataPoint]) -> Optional[ThresholdPoint]:
    """Point with the globally minimal lactate (first one on ties)."""
    if not points:
        return None
    best = min(points, key=lambda p: p.lactate)
    return ThresholdPoint(load=best.load, lactate=best.lactate)


def linear_regression(
    xs: Sequence[float],
    ys: Sequence[float]
) -> Optional[Tuple[float, float]]:
    """
    Ordinary least squares fit.

    Returns:
        Tuple of (slope, intercept), or None for fewer than 2 points or
        identical x values.
    """
    if len(xs) < 2 or len(xs) != len(ys):
        return None
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        return None
    if np.ptp(x) == 0:
        return None

    slope, intercept, _, _, _ = stats.linregress(x, y)
    return float(slope), float(intercept)
