"""
Lactate Threshold Methods.

Eight published LT1/LT2 detection methods behind one registry. Every
method:
- sorts its input by load,
- returns null thresholds with an "insufficient data" note below its
  minimum point count (never raises),
- passes its raw result through the validation and fallback layer.

All methods work identically for cycling (W) and running (km/h) tests.

Usage:
    from lactate_engine.calculations import calculate_thresholds_by_method

    result = calculate_thresholds_by_method(points, "dmax")
    result.lt1, result.lt2, result.notes
"""
import functools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import Config
from ..models.results import DataPoint, MethodResult, ThresholdPoint, ThresholdResult
from .common import (
    DICKHUTH_LT1_OFFSET,
    DICKHUTH_LT2_OFFSET,
    FATMAX_LT1_OFFSET,
    FATMAX_LT2_OFFSET,
    OBLA_LT1_TARGET,
    OBLA_LT2_TARGET,
    PLUS1_OFFSET,
    SEILER_LT1_FLOOR,
    SEILER_LT1_OFFSET,
    SEILER_LT2_FLOOR,
    SEILER_LT2_OFFSET,
    sort_points,
    to_float,
)
from .geometry import (
    calculate_dmax_lt1_point,
    calculate_dmax_point,
    calculate_loglog_breakpoint,
    calculate_moddmax_point,
)
from .interpolation import calculate_baseline, find_min_lactate, interpolate_threshold
from .telemetry import INSUFFICIENT_DATA, TelemetrySink, resolve
from .validation import validate_method_result

logger = logging.getLogger("LactateEngine.ThresholdMethods")

RawResult = Tuple[Optional[ThresholdPoint], Optional[ThresholdPoint], Optional[str]]

ADJUSTED_METHOD = "adjusted"


@dataclass(frozen=True)
class RegisteredMethod:
    """Registry entry: provenance and minimum data of one method."""
    key: str
    method_name: str
    display_name: str
    reference: str
    min_points: int
    calculate: Callable[..., MethodResult]


METHOD_REGISTRY: Dict[str, RegisteredMethod] = {}


def register_method(
    key: str,
    method_name: str,
    display_name: str,
    reference: str,
    min_points: int
):
    """Wrap a raw ``points -> (lt1, lt2, notes)`` function into a validated method."""
    def decorator(raw: Callable[[Sequence[DataPoint]], RawResult]):
        @functools.wraps(raw)
        def calculate(
            points: Sequence[DataPoint],
            telemetry: Optional[TelemetrySink] = None
        ) -> MethodResult:
            data = sort_points(points)
            if len(data) < min_points:
                resolve(telemetry).emit(
                    INSUFFICIENT_DATA, method=key, points=len(data), required=min_points
                )
                return MethodResult(
                    lt1=None,
                    lt2=None,
                    method_name=method_name,
                    reference=reference,
                    notes=f"insufficient data (minimum {min_points} points required)",
                )
            lt1, lt2, notes = raw(data)
            result = MethodResult(
                lt1=lt1, lt2=lt2, method_name=method_name, reference=reference, notes=notes
            )
            return validate_method_result(result, data, key, telemetry=telemetry)

        calculate.raw = raw
        METHOD_REGISTRY[key] = RegisteredMethod(
            key=key,
            method_name=method_name,
            display_name=display_name,
            reference=reference,
            min_points=min_points,
            calculate=calculate,
        )
        return calculate
    return decorator


# ============================================================
# FIXED / BASELINE METHODS
# ============================================================

@register_method(
    "mader",
    method_name="Mader (OBLA)",
    display_name="Mader 4 mmol (OBLA)",
    reference="Mader et al. (1976), Heck et al. (1985)",
    min_points=3,
)
def calculate_mader(points: Sequence[DataPoint]) -> RawResult:
    """Fixed 2.0 / 4.0 mmol/L thresholds (onset of blood lactate accumulation)."""
    lt1 = interpolate_threshold(points, OBLA_LT1_TARGET)
    lt2 = interpolate_threshold(points, OBLA_LT2_TARGET)
    return lt1, lt2, f"Fixed thresholds at {OBLA_LT1_TARGET} and {OBLA_LT2_TARGET} mmol/L"


@register_method(
    "dickhuth",
    method_name="Dickhuth (IAT)",
    display_name="Dickhuth (IAT)",
    reference="Dickhuth et al. (1999)",
    min_points=3,
)
def calculate_dickhuth(points: Sequence[DataPoint]) -> RawResult:
    """Individual anaerobic threshold: baseline + 0.5 / + 1.5 mmol/L."""
    baseline = calculate_baseline(points)
    lt1_target = baseline + DICKHUTH_LT1_OFFSET
    lt2_target = baseline + DICKHUTH_LT2_OFFSET
    notes = (
        f"Baseline {baseline:.2f} mmol/L, LT1 at {lt1_target:.2f}, "
        f"IAT at {lt2_target:.2f} mmol/L"
    )
    return interpolate_threshold(points, lt1_target), interpolate_threshold(points, lt2_target), notes


@register_method(
    "plus1mmol",
    method_name="+1 mmol/L",
    display_name="+1 mmol/L",
    reference="Faude et al. (2009)",
    min_points=4,
)
def calculate_plus1mmol(points: Sequence[DataPoint]) -> RawResult:
    """LT1 at the lactate minimum of the first half, LT2 one mmol/L above it."""
    lt1 = find_min_lactate(points[: len(points) // 2])
    if lt1 is None:
        return None, None, "No lactate minimum in first half"
    lt2 = interpolate_threshold(points, lt1.lactate + PLUS1_OFFSET)
    return lt1, lt2, f"Lactate minimum {lt1.lactate:.2f} mmol/L + {PLUS1_OFFSET}"


@register_method(
    "seiler",
    method_name="Seiler 3-Zone",
    display_name="Seiler 3-Zone",
    reference="Seiler & Kjerland (2006)",
    min_points=3,
)
def calculate_seiler(points: Sequence[DataPoint]) -> RawResult:
    """Polarized-model boundaries: max(baseline + 0.5, 1.8) and max(baseline + 2.0, 3.5)."""
    baseline = calculate_baseline(points)
    lt1_target = max(baseline + SEILER_LT1_OFFSET, SEILER_LT1_FLOOR)
    lt2_target = max(baseline + SEILER_LT2_OFFSET, SEILER_LT2_FLOOR)
    notes = f"Baseline {baseline:.2f} mmol/L, VT1 {lt1_target:.2f}, VT2 {lt2_target:.2f}"
    return interpolate_threshold(points, lt1_target), interpolate_threshold(points, lt2_target), notes


@register_method(
    "fatmax",
    method_name="FatMax/LT",
    display_name="FatMax/LT",
    reference="San-Millán & Brooks (2018), Achten & Jeukendrup (2003)",
    min_points=3,
)
def calculate_fatmax(points: Sequence[DataPoint]) -> RawResult:
    """FatMax at min(first three) + 0.5, MLSS approximation at + 1.5 mmol/L."""
    baseline = min(p.lactate for p in points[:3])
    lt1 = interpolate_threshold(points, baseline + FATMAX_LT1_OFFSET)
    lt2 = interpolate_threshold(points, baseline + FATMAX_LT2_OFFSET)
    return lt1, lt2, f"Baseline {baseline:.2f} mmol/L, FatMax at +0.5, MLSS at +1.5"


# ============================================================
# GEOMETRIC METHODS
# ============================================================

@register_method(
    "dmax",
    method_name="DMAX",
    display_name="DMAX",
    reference="Cheng et al. (1992)",
    min_points=3,
)
def calculate_dmax(points: Sequence[DataPoint]) -> RawResult:
    """LT2 at maximum distance to the first-last chord, LT1 at the first slope deflection."""
    lt1 = calculate_dmax_lt1_point(points)
    lt2 = calculate_dmax_point(points)
    return lt1, lt2, "Maximum distance from first-last chord"


@register_method(
    "moddmax",
    method_name="ModDMAX",
    display_name="ModDMAX",
    reference="Bishop et al. (1998)",
    min_points=4,
)
def calculate_moddmax(points: Sequence[DataPoint]) -> RawResult:
    lt1 = find_min_lactate(points[: len(points) // 2])
    lt2 = calculate_moddmax_point(points)
    return lt1, lt2, "Maximum deviation from exponential curve fit"


@register_method(
    "loglog",
    method_name="Log-Log",
    display_name="Log-Log",
    reference="Beaver et al. (1985)",
    min_points=5,
)
def calculate_loglog(points: Sequence[DataPoint]) -> RawResult:
    lt1, lt2 = calculate_loglog_breakpoint(points)
    if lt2 is None:
        return None, None, "No log-log breakpoint (loads and lactates must be positive)"
    return lt1, lt2, "Two-line regression breakpoint in log-log space"


# ============================================================
# DISPATCH
# ============================================================

def available_methods() -> List[str]:
    """Registry keys in registration order."""
    return list(METHOD_REGISTRY)


def get_method_display_name(method: str) -> str:
    if method == ADJUSTED_METHOD:
        return "Manually Adjusted"
    entry = METHOD_REGISTRY.get(method)
    return entry.display_name if entry else method


def get_method_reference(method: str) -> str:
    if method == ADJUSTED_METHOD:
        return "User-defined"
    entry = METHOD_REGISTRY.get(method)
    return entry.reference if entry else "N/A"


def coerce_points(points: Iterable[DataPoint]) -> List[DataPoint]:
    """Force float load/lactate and drop points without a finite value for either."""
    coerced = []
    for p in points:
        load = to_float(p.load)
        lactate = to_float(p.lactate)
        if load is None or lactate is None:
            logger.debug(f"Dropping non-numeric point: {p}")
            continue
        heart_rate = to_float(p.heart_rate)
        coerced.append(p.with_values(load=load, lactate=lactate, heart_rate=heart_rate))
    return sort_points(coerced)


def calculate_thresholds_by_method(
    points: Iterable[DataPoint],
    method: str,
    telemetry: Optional[TelemetrySink] = None
) -> MethodResult:
    """
    Run one registered method on the given points.

    Args:
        points: Stage points in any order
        method: Registry key (see ``available_methods()``) or 'adjusted'
        telemetry: Optional diagnostics sink

    Returns:
        Validated MethodResult. 'adjusted' and unknown keys return null
        thresholds with an explanatory note.
    """
    if method == ADJUSTED_METHOD:
        return MethodResult(
            lt1=None,
            lt2=None,
            method_name="Manually Adjusted",
            reference="User-defined",
            notes="Thresholds manually adjusted by user",
        )

    entry = METHOD_REGISTRY.get(method)
    if entry is None:
        logger.warning(f"Unknown threshold method: {method}")
        return MethodResult(
            lt1=None, lt2=None, method_name="Unknown", reference="N/A",
            notes=f"Unknown method: {method}",
        )

    return entry.calculate(coerce_points(points), telemetry=telemetry)


def calculate_thresholds(
    points: Sequence[DataPoint],
    method: Optional[str] = None,
    telemetry: Optional[TelemetrySink] = None
) -> ThresholdResult:
    """Caller-facing wrapper with missing flags and a summary message."""
    method = method or Config.DEFAULT_THRESHOLD_METHOD
    if not points:
        return ThresholdResult(
            lt1=None, lt2=None, method=method,
            lt1_missing=True, lt2_missing=True,
            message="No data available",
        )

    result = calculate_thresholds_by_method(points, method, telemetry=telemetry)
    message = result.notes
    if message is None and (result.lt1 is None or result.lt2 is None):
        message = "Threshold calculation not possible"
    return ThresholdResult(
        lt1=result.lt1,
        lt2=result.lt2,
        method=method,
        lt1_missing=result.lt1 is None,
        lt2_missing=result.lt2 is None,
        message=message,
        reference=result.reference,
    )
