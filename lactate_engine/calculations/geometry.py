"""
Geometric breakpoint detectors.

Unit-independent searches on the lactate-vs-load curve: perpendicular
distance to the first-last chord (DMAX), slope deflection, deviation from
an exponential expectation (ModDMAX) and two-segment regression in
log-log space.
"""
import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..models.results import DataPoint, ThresholdPoint
from .common import (
    DMAX_LT1_SEARCH_FRACTION,
    DMAX_LT1_SLOPE_FACTOR,
    LOGLOG_MIN_POINTS,
    LOGLOG_SLOPE_CHANGE,
    MODDMAX_EXPONENT,
    one_third_index,
    point_at,
)
from .interpolation import linear_regression

logger = logging.getLogger("LactateEngine.Geometry")


def calculate_dmax_point(points: Sequence[DataPoint]) -> Optional[ThresholdPoint]:
    """
    DMAX (Cheng et al. 1992): interior point farthest from the chord
    joining the first and last points.
    """
    if len(points) < 3:
        return None

    first, last = points[0], points[-1]
    a = last.lactate - first.lactate
    b = first.load - last.load
    c = last.load * first.lactate - first.load * last.lactate
    norm = math.hypot(a, b)
    if norm == 0:
        return None

    interior = points[1:-1]
    loads = np.array([p.load for p in interior], dtype=float)
    lactates = np.array([p.lactate for p in interior], dtype=float)
    distances = np.abs(a * loads + b * lactates + c) / norm

    return point_at(points, int(np.argmax(distances)) + 1)


def calculate_dmax_lt1_point(points: Sequence[DataPoint]) -> Optional[ThresholdPoint]:
    """
    First deflection point: forward slope above 1.5x the first-last slope.

    Only the first 70% of the test is searched. Falls back to the point
    at index n // 3 when no deflection is found.
    """
    n = len(points)
    if n < 3:
        return None

    first, last = points[0], points[-1]
    load_span = last.load - first.load
    if load_span == 0:
        return None

    target_slope = (last.lactate - first.lactate) / load_span * DMAX_LT1_SLOPE_FACTOR
    search_limit = int(n * DMAX_LT1_SEARCH_FRACTION)

    for i in range(1, min(search_limit, n - 1)):
        dx = points[i + 1].load - points[i].load
        if dx == 0:
            continue
        slope = (points[i + 1].lactate - points[i].lactate) / dx
        if slope > target_slope:
            return point_at(points, i)

    return point_at(points, one_third_index(n))


def calculate_moddmax_point(points: Sequence[DataPoint]) -> Optional[ThresholdPoint]:
    """
    ModDMAX (Bishop et al. 1998): maximum absolute deviation from
    ``first + (last - first) * u ** 1.5`` with u the normalized load.
    """
    if len(points) < 4:
        return None

    first, last = points[0], points[-1]
    load_span = last.load - first.load
    if load_span == 0:
        return None

    interior = points[1:-1]
    u = np.array([(p.load - first.load) / load_span for p in interior], dtype=float)
    actual = np.array([p.lactate for p in interior], dtype=float)
    expected = first.lactate + (last.lactate - first.lactate) * np.power(u, MODDMAX_EXPONENT)
    deviations = np.abs(actual - expected)

    return point_at(points, int(np.argmax(deviations)) + 1)


def calculate_loglog_breakpoint(
    points: Sequence[DataPoint]
) -> Tuple[Optional[ThresholdPoint], Optional[ThresholdPoint]]:
    """
    Log-Log breakpoint (Beaver et al. 1985).

    Fits two independent regressions in log-log space for every candidate
    breakpoint 2..n-3 and keeps the one with the lowest total SSE (LT2).
    LT1 is the first index before the breakpoint where adjacent log-log
    slopes differ by more than 0.5; None if there is no such index.

    Returns:
        Tuple of (lt1, lt2)
    """
    n = len(points)
    if n < LOGLOG_MIN_POINTS:
        return None, None
    if any(p.load <= 0 or p.lactate <= 0 for p in points):
        logger.info("Log-Log skipped: non-positive load or lactate")
        return None, None

    log_load = np.log([p.load for p in points])
    log_lactate = np.log([p.lactate for p in points])

    best_sse = math.inf
    best_bp = None
    for bp in range(2, n - 2):
        sse = _segment_sse(log_load[: bp + 1], log_lactate[: bp + 1])
        if sse is None:
            continue
        sse_tail = _segment_sse(log_load[bp:], log_lactate[bp:])
        if sse_tail is None:
            continue
        if sse + sse_tail < best_sse:
            best_sse = sse + sse_tail
            best_bp = bp

    if best_bp is None:
        return None, None

    lt2 = point_at(points, best_bp)

    lt1 = None
    for i in range(1, best_bp):
        dx_prev = log_load[i] - log_load[i - 1]
        dx_next = log_load[i + 1] - log_load[i]
        if dx_prev == 0 or dx_next == 0:
            continue
        slope_prev = (log_lactate[i] - log_lactate[i - 1]) / dx_prev
        slope_next = (log_lactate[i + 1] - log_lactate[i]) / dx_next
        if abs(slope_next - slope_prev) > LOGLOG_SLOPE_CHANGE:
            lt1 = point_at(points, i)
            break

    logger.debug(f"Log-Log breakpoint at index {best_bp}: lt1={lt1}, lt2={lt2}")
    return lt1, lt2


def _segment_sse(x: np.ndarray, y: np.ndarray) -> Optional[float]:
    """Sum of squared residuals of an OLS line, None if the fit is degenerate."""
    fit = linear_regression(x, y)
    if fit is None:
        return None
    slope, intercept = fit
    residuals = y - (slope * x + intercept)
    return float(np.sum(residuals ** 2))
