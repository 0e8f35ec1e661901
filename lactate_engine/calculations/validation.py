"""
Threshold ordering validation and fallback.

Every method's raw (LT1, LT2) pair passes through ``validate_method_result``.
When LT1 is not strictly before LT2 (or is missing where the method allows
recovering it), replacement LT1 candidates are tried in the order given by
the method's entry in ``FALLBACK_STRATEGIES``. The first candidate ordered
before LT2 wins; the substitution is recorded in ``notes`` and reported to
telemetry. This layer never raises.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..models.results import DataPoint, MethodResult, ThresholdPoint
from .common import (
    FALLBACK_FIXED_LT1_TARGET,
    FALLBACK_LT2_FRACTION,
    FALLBACK_LT2_FRACTION_FLOOR,
    one_third_index,
    point_at,
)
from .interpolation import interpolate_threshold
from .telemetry import (
    FALLBACK_APPLIED,
    LT1_RECOVERED,
    ORDERING_UNRESOLVED,
    TelemetrySink,
    resolve,
)

logger = logging.getLogger("LactateEngine.Validation")

FallbackStrategy = Callable[[Sequence[DataPoint], ThresholdPoint], Optional[ThresholdPoint]]


# ============================================================
# STRATEGIES
# ============================================================

def _fixed_lt1_target(points: Sequence[DataPoint], lt2: ThresholdPoint) -> Optional[ThresholdPoint]:
    return interpolate_threshold(points, FALLBACK_FIXED_LT1_TARGET)


def _lt2_fraction(points: Sequence[DataPoint], lt2: ThresholdPoint) -> Optional[ThresholdPoint]:
    target = max(lt2.lactate * FALLBACK_LT2_FRACTION, FALLBACK_LT2_FRACTION_FLOOR)
    return interpolate_threshold(points, target)


def _one_third_point(points: Sequence[DataPoint], lt2: ThresholdPoint) -> Optional[ThresholdPoint]:
    if not points:
        return None
    return point_at(points, one_third_index(len(points)))


def _last_ordered_point(points: Sequence[DataPoint], lt2: ThresholdPoint) -> Optional[ThresholdPoint]:
    for i in range(len(points) - 1, -1, -1):
        candidate = point_at(points, i)
        if is_ordered(candidate, lt2):
            return candidate
    return None


STRATEGIES: Dict[str, Tuple[FallbackStrategy, str]] = {
    "fixed_lt1_target": (_fixed_lt1_target, f"fixed {FALLBACK_FIXED_LT1_TARGET} mmol/L target"),
    "lt2_fraction": (
        _lt2_fraction,
        f"{FALLBACK_LT2_FRACTION:.0%} of LT2 lactate (min {FALLBACK_LT2_FRACTION_FLOOR} mmol/L)",
    ),
    "one_third_point": (_one_third_point, "measured point at one third of the test"),
    "last_ordered_point": (_last_ordered_point, "highest measured point below LT2"),
}


# ============================================================
# POLICY TABLE
# ============================================================

@dataclass(frozen=True)
class FallbackPolicy:
    """Ordered strategy names per failure mode."""
    on_violation: Tuple[str, ...]
    on_missing_lt1: Tuple[str, ...] = ()


_GEOMETRIC_CHAIN = ("fixed_lt1_target", "lt2_fraction", "one_third_point", "last_ordered_point")
_DEFAULT_CHAIN = ("lt2_fraction", "one_third_point", "last_ordered_point")

DEFAULT_FALLBACK_POLICY = FallbackPolicy(on_violation=_DEFAULT_CHAIN)

FALLBACK_STRATEGIES: Dict[str, FallbackPolicy] = {
    "dmax": FallbackPolicy(on_violation=_GEOMETRIC_CHAIN),
    "loglog": FallbackPolicy(
        on_violation=_GEOMETRIC_CHAIN,
        on_missing_lt1=("fixed_lt1_target", "one_third_point", "last_ordered_point"),
    ),
}


def get_fallback_policy(method: str) -> FallbackPolicy:
    return FALLBACK_STRATEGIES.get(method, DEFAULT_FALLBACK_POLICY)


# ============================================================
# VALIDATION
# ============================================================

def is_ordered(lt1: ThresholdPoint, lt2: ThresholdPoint) -> bool:
    """LT1 strictly before LT2 on load and not above it on lactate."""
    return lt1.load < lt2.load and lt1.lactate <= lt2.lactate


def validate_method_result(
    result: MethodResult,
    points: Sequence[DataPoint],
    method: str,
    telemetry: Optional[TelemetrySink] = None
) -> MethodResult:
    """
    Enforce LT1 < LT2 on a method's raw result.

    Args:
        result: Raw method output
        points: The sorted points the method ran on
        method: Registry key, selects the fallback policy
        telemetry: Optional diagnostics sink

    Returns:
        MethodResult satisfying the ordering invariant, with any
        substitution described in ``notes``.
    """
    sink = resolve(telemetry)
    policy = get_fallback_policy(method)
    lt1, lt2 = result.lt1, result.lt2

    if lt2 is None:
        return result

    if lt1 is None:
        if not policy.on_missing_lt1:
            return result
        recovered, label = _run_chain(policy.on_missing_lt1, points, lt2)
        if recovered is None:
            return result
        sink.emit(LT1_RECOVERED, method=method, strategy=label, load=recovered.load)
        return _annotate(result, recovered, f"LT1 not detected; using {label}")

    if is_ordered(lt1, lt2):
        return result

    replacement, label = _run_chain(policy.on_violation, points, lt2)
    if replacement is None:
        sink.emit(ORDERING_UNRESOLVED, method=method, lt1_load=lt1.load, lt2_load=lt2.load)
        return _annotate(result, None, "LT1 >= LT2 and no ordered fallback found; LT1 discarded")

    sink.emit(
        FALLBACK_APPLIED,
        method=method,
        strategy=label,
        original_lt1=lt1.load,
        lt1_load=replacement.load,
        lt2_load=lt2.load,
    )
    return _annotate(result, replacement, f"LT1 >= LT2; LT1 replaced by {label}")


def _run_chain(
    names: Sequence[str],
    points: Sequence[DataPoint],
    lt2: ThresholdPoint
) -> Tuple[Optional[ThresholdPoint], Optional[str]]:
    for name in names:
        strategy, label = STRATEGIES[name]
        candidate = strategy(points, lt2)
        if candidate is not None and is_ordered(candidate, lt2):
            return candidate, label
        logger.debug(f"Fallback '{name}' rejected: {candidate}")
    return None, None


def _annotate(result: MethodResult, lt1: Optional[ThresholdPoint], message: str) -> MethodResult:
    notes = f"{result.notes}; {message}" if result.notes else message
    return replace(result, lt1=lt1, notes=notes)
