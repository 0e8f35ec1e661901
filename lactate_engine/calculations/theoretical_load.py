"""
Theoretical Load Extrapolation.

For a FINAL stage terminated early: the maximum load the athlete could
have sustained for the full prescribed duration. The estimate is
fatigue-adjusted and therefore never above the load measured at
termination.

NOTE: heuristic model, not a published formula. Treat the output as an
estimate for comparison between tests, not as a physiological value.
"""
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import Config
from ..models.results import DataPoint, StageCorrectionResult, TheoreticalLoadResult
from .common import round_value
from .telemetry import STAGE_LOW_COMPLETION, TelemetrySink, resolve

logger = logging.getLogger("LactateEngine.TheoreticalLoad")

# Quadratic (fatigue exponent) model applies in [QUADRATIC_MIN_RATIO, QUADRATIC_MAX_RATIO)
QUADRATIC_MIN_RATIO = 0.25
QUADRATIC_MAX_RATIO = 0.75

# Fatigue exponent = max(MIN, SCALE / (1 + variability))
FATIGUE_EXPONENT_MIN = 4.0
FATIGUE_EXPONENT_SCALE = 10.0

# Linear model: load * (BASE + ratio * SLOPE)
LINEAR_BASE = 0.85
LINEAR_SLOPE = 0.10

# Step confidence: (upper ratio bound, confidence)
CONFIDENCE_STEPS = ((0.33, 0.40), (0.5, 0.55), (0.67, 0.70))
CONFIDENCE_MAX = 0.85

LOW_COMPLETION_RATIO = 0.33


def theoretical_load_confidence(completion_ratio: float) -> float:
    for upper, confidence in CONFIDENCE_STEPS:
        if completion_ratio < upper:
            return confidence
    return CONFIDENCE_MAX


def fatigue_exponent(pre_previous_load: float, previous_load: float, current_load: float) -> float:
    """
    Exponent from the variability of the last two load increments.

    Regular increments give a high exponent (mild correction); irregular
    increments lower it towards FATIGUE_EXPONENT_MIN.
    """
    d1 = abs(previous_load - pre_previous_load)
    d2 = abs(current_load - previous_load)
    mean_step = float(np.mean([d1, d2]))
    variability = abs(d2 - d1) / mean_step if mean_step > 0 else 0.0
    return max(FATIGUE_EXPONENT_MIN, FATIGUE_EXPONENT_SCALE / (1.0 + variability))


def needs_theoretical_load(
    actual_duration: float,
    target_duration: float,
    tolerance: Optional[float] = None
) -> bool:
    """True if the final stage ended before (1 - tolerance) of its target."""
    if tolerance is None:
        tolerance = Config.STAGE_COMPLETION_TOLERANCE
    if actual_duration <= 0 or target_duration <= 0:
        return False
    return actual_duration / target_duration < (1.0 - tolerance)


def calculate_theoretical_load(
    previous_stage: DataPoint,
    current_stage: DataPoint,
    actual_duration: float,
    target_duration: float,
    pre_previous_stage: Optional[DataPoint] = None,
    telemetry: Optional[TelemetrySink] = None
) -> TheoreticalLoadResult:
    """
    Estimate the full-duration load of an early-terminated final stage.

    Models:
    - quadratic: ``load * ratio ** (1 / fatigue_exponent)``, needs
      ``pre_previous_stage`` and 0.25 <= ratio < 0.75
    - linear: ``load * (0.85 + ratio * 0.10)``

    Args:
        previous_stage: Last complete stage
        current_stage: Final stage as measured at termination
        actual_duration: Time spent in the final stage [min]
        target_duration: Prescribed stage duration [min]
        pre_previous_stage: Stage before ``previous_stage``
        telemetry: Optional diagnostics sink

    Returns:
        TheoreticalLoadResult; method 'none' for a complete stage or
        invalid durations.
    """
    current_load = current_stage.load

    def build(value, method, confidence, note, ratio):
        correction = StageCorrectionResult(
            value=value, method=method, confidence=confidence, note=note
        )
        return TheoreticalLoadResult(
            correction=correction,
            actual_load=current_load,
            actual_duration=actual_duration,
            completion_ratio=ratio,
        )

    if actual_duration <= 0 or target_duration <= 0:
        logger.warning(f"Invalid stage durations: actual={actual_duration}, target={target_duration}")
        return build(current_load, "none", 0.0, "Invalid stage duration, no adjustment applied", 0.0)

    ratio = actual_duration / target_duration
    if ratio >= 1.0:
        return build(current_load, "none", 1.0, "Stage completed, measured load kept", ratio)

    if ratio < LOW_COMPLETION_RATIO:
        resolve(telemetry).emit(
            STAGE_LOW_COMPLETION,
            actual_duration=actual_duration,
            target_duration=target_duration,
            completion_ratio=round_value(ratio, 3),
            final_stage=True,
        )

    percent = round(ratio * 100)
    confidence = theoretical_load_confidence(ratio)

    if pre_previous_stage is not None and QUADRATIC_MIN_RATIO <= ratio < QUADRATIC_MAX_RATIO:
        exponent = fatigue_exponent(pre_previous_stage.load, previous_stage.load, current_load)
        value = current_load * ratio ** (1.0 / exponent)
        note = (
            f"Theoretical load from fatigue model (exponent {exponent:.2f}, "
            f"{percent}% completion)"
        )
        return build(round_value(value), "quadratic", confidence, note, ratio)

    value = current_load * (LINEAR_BASE + ratio * LINEAR_SLOPE)
    note = f"Theoretical load from linear fatigue model ({percent}% completion)"
    return build(round_value(value), "linear", confidence, note, ratio)


def apply_theoretical_load(
    points: Sequence[DataPoint],
    actual_duration: float,
    target_duration: float,
    tolerance: Optional[float] = None,
    telemetry: Optional[TelemetrySink] = None
) -> Tuple[List[DataPoint], Optional[TheoreticalLoadResult]]:
    """
    Replace the final stage's load with its theoretical load.

    The measured load is kept in ``measured_load``. Points are returned
    unchanged when the final stage is complete or there is no previous
    stage to anchor on.

    Returns:
        Tuple of (points, result or None)
    """
    data = list(points)
    if len(data) < 2 or not needs_theoretical_load(actual_duration, target_duration, tolerance):
        return data, None

    final = data[-1]
    result = calculate_theoretical_load(
        data[-2],
        final,
        actual_duration,
        target_duration,
        pre_previous_stage=data[-3] if len(data) >= 3 else None,
        telemetry=telemetry,
    )
    if result.method == "none":
        return data, result

    logger.info(
        f"Final stage load {final.load} -> {result.theoretical_load} "
        f"({result.method}, confidence {result.confidence})"
    )
    data[-1] = final.with_values(
        load=result.theoretical_load,
        theoretical_load=result.theoretical_load,
        measured_load=final.load,
        is_interpolated=True,
    )
    return data, result
