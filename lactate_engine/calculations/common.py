"""
Helper module - shared constants and point utilities for the calculations package.
"""
import math
from typing import Any, Iterable, List, Optional, Sequence

from ..models.results import DataPoint, ThresholdPoint

# Fixed lactate targets [mmol/L]
OBLA_LT1_TARGET = 2.0
OBLA_LT2_TARGET = 4.0
DICKHUTH_LT1_OFFSET = 0.5
DICKHUTH_LT2_OFFSET = 1.5
PLUS1_OFFSET = 1.0
SEILER_LT1_OFFSET = 0.5
SEILER_LT1_FLOOR = 1.8
SEILER_LT2_OFFSET = 2.0
SEILER_LT2_FLOOR = 3.5
FATMAX_LT1_OFFSET = 0.5
FATMAX_LT2_OFFSET = 1.5

# Interpolation
EXTRAPOLATION_MAX_DEVIATION = 0.1   # relative distance below the lowest lactate
ROUND_DIGITS = 2
BASELINE_MAX_POINTS = 3

# Geometric detectors
DMAX_LT1_SLOPE_FACTOR = 1.5         # deflection = slope > 1.5x baseline slope
DMAX_LT1_SEARCH_FRACTION = 0.7
MODDMAX_EXPONENT = 1.5
LOGLOG_SLOPE_CHANGE = 0.5
LOGLOG_MIN_POINTS = 5

# Validation fallbacks
FALLBACK_FIXED_LT1_TARGET = 2.0
FALLBACK_LT2_FRACTION = 0.6
FALLBACK_LT2_FRACTION_FLOOR = 1.5


def round_value(value: float, digits: int = ROUND_DIGITS) -> float:
    """Round to the engine's reporting precision."""
    return round(float(value), digits)


def to_float(value: Any) -> Optional[float]:
    """Coerce to float, returning None for missing or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def sort_points(points: Iterable[DataPoint]) -> List[DataPoint]:
    """Stable sort by load; the engine does not trust input order."""
    return sorted(points, key=lambda p: p.load)


def point_at(points: Sequence[DataPoint], index: int) -> ThresholdPoint:
    """ThresholdPoint view of a measured point."""
    p = points[index]
    return ThresholdPoint(load=p.load, lactate=p.lactate)


def one_third_index(n: int) -> int:
    return n // 3
