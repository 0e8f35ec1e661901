"""
Incomplete Stage Interpolation.

Estimates the values a prematurely ended intermediate stage would have
reached at its prescribed duration.

References:
- Newell et al. (2007), Software for calculating blood lactate endurance
  markers. J Sports Sci 25(12).
- Bentley et al. (2001), quadratic fit of the non-linear lactate response.
- Kuipers et al. (1985), linear extrapolation within a stage.

Model selection by completion ratio r = actual / target duration:
- r >= 0.9                                  : no correction
- pre-previous stage and 0.33 <= r < 0.67   : quadratic
- otherwise (or quadratic failure)          : linear
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import Config
from ..models.results import DataPoint, InterpolatedStage, StageCorrectionResult
from .common import round_value
from .telemetry import QUADRATIC_FIT_FAILED, STAGE_LOW_COMPLETION, TelemetrySink, resolve

logger = logging.getLogger("LactateEngine.StageInterpolation")

COMPLETE_RATIO = 0.9
LOW_COMPLETION_RATIO = 0.33
QUADRATIC_MAX_RATIO = 0.67

# Advisory confidence vs. completion ratio (piecewise linear, monotone)
CONFIDENCE_KNOTS_X = (0.0, 0.33, 0.5, 0.67, 1.0)
CONFIDENCE_KNOTS_Y = (0.0, 0.4, 0.6, 0.8, 1.0)

# Normalized stage time: pre-previous at -1, previous at 0, full current stage at 1
PRE_PREVIOUS_X = -1.0
PREVIOUS_X = 0.0
TARGET_X = 1.0


def completion_confidence(completion_ratio: float) -> float:
    """Advisory confidence (0-1) of a correction made at this completion ratio."""
    value = np.interp(completion_ratio, CONFIDENCE_KNOTS_X, CONFIDENCE_KNOTS_Y)
    return round_value(float(value))


def is_stage_incomplete(
    actual_duration: float,
    target_duration: float,
    tolerance: Optional[float] = None
) -> bool:
    """True if the stage ran shorter than (1 - tolerance) of its target."""
    if tolerance is None:
        tolerance = Config.STAGE_COMPLETION_TOLERANCE
    if actual_duration <= 0 or target_duration <= 0:
        return False
    return actual_duration / target_duration < (1.0 - tolerance)


def _quadratic_value(pre_previous: float, previous: float, current: float, ratio: float) -> float:
    """Exact parabola through the three stage samples, evaluated at full duration."""
    x = np.array([PRE_PREVIOUS_X, PREVIOUS_X, ratio])
    y = np.array([pre_previous, previous, current], dtype=float)
    coeffs = np.polyfit(x, y, 2)
    value = float(np.polyval(coeffs, TARGET_X))
    if not math.isfinite(value):
        raise ValueError(f"non-finite quadratic extrapolation: {value}")
    return value


def _linear_value(previous: float, current: float, ratio: float) -> float:
    return previous + (current - previous) / ratio


def _has_heart_rate(*stages: DataPoint) -> bool:
    return all(s.heart_rate is not None for s in stages)


def _corrections(
    load: float,
    lactate: float,
    heart_rate: Optional[float],
    method: str,
    confidence: float,
    note: str
) -> Tuple[StageCorrectionResult, StageCorrectionResult, Optional[StageCorrectionResult]]:
    def wrap(value):
        return StageCorrectionResult(value=value, method=method, confidence=confidence, note=note)

    hr = wrap(float(round(heart_rate))) if heart_rate is not None else None
    return wrap(round_value(load)), wrap(max(0.0, round_value(lactate))), hr


def interpolate_incomplete_stage(
    previous_stage: DataPoint,
    current_stage: DataPoint,
    actual_duration: float,
    target_duration: float,
    pre_previous_stage: Optional[DataPoint] = None,
    telemetry: Optional[TelemetrySink] = None
) -> InterpolatedStage:
    """
    Correct one incomplete stage to its prescribed duration.

    Load, lactate and heart rate are corrected independently with the
    same model. Heart rate is only corrected when every anchor stage
    has one.

    Args:
        previous_stage: Last complete (or already corrected) stage
        current_stage: Values measured at early termination
        actual_duration: Time actually spent in the stage [min]
        target_duration: Prescribed stage duration [min]
        pre_previous_stage: Stage before ``previous_stage``, enables the quadratic model
        telemetry: Optional diagnostics sink

    Returns:
        InterpolatedStage. ``confidence`` is advisory and never gates the value.
    """
    sink = resolve(telemetry)

    if actual_duration <= 0 or target_duration <= 0:
        logger.warning(f"Invalid stage durations: actual={actual_duration}, target={target_duration}")
        load, lactate, hr = _corrections(
            current_stage.load, current_stage.lactate, current_stage.heart_rate,
            "none", 0.0, "Invalid stage duration, no adjustment applied",
        )
        return InterpolatedStage(load=load, lactate=lactate, heart_rate=hr, completion_ratio=0.0)

    ratio = actual_duration / target_duration

    if ratio >= COMPLETE_RATIO:
        note = "Stage nearly complete (>=90%), no adjustment needed"
        def unchanged(value):
            return StageCorrectionResult(value=value, method="none", confidence=1.0, note=note)
        hr = unchanged(current_stage.heart_rate) if current_stage.heart_rate is not None else None
        return InterpolatedStage(
            load=unchanged(current_stage.load),
            lactate=unchanged(current_stage.lactate),
            heart_rate=hr,
            completion_ratio=ratio,
        )

    if ratio < LOW_COMPLETION_RATIO:
        sink.emit(
            STAGE_LOW_COMPLETION,
            actual_duration=actual_duration,
            target_duration=target_duration,
            completion_ratio=round_value(ratio, 3),
        )

    percent = round(ratio * 100)
    confidence = completion_confidence(ratio)
    values = None
    method = "linear"
    note = f"Linear interpolation from {percent}% stage completion (Kuipers method)"

    if pre_previous_stage is not None and LOW_COMPLETION_RATIO <= ratio < QUADRATIC_MAX_RATIO:
        anchors = (pre_previous_stage, previous_stage, current_stage)
        try:
            load = _quadratic_value(*(s.load for s in anchors), ratio)
            lactate = _quadratic_value(*(s.lactate for s in anchors), ratio)
            heart_rate = (
                _quadratic_value(*(s.heart_rate for s in anchors), ratio)
                if _has_heart_rate(*anchors) else None
            )
            values = (load, lactate, heart_rate)
            method = "quadratic"
            note = f"Quadratic interpolation (polynomial fit) from {percent}% stage completion"
        except (np.linalg.LinAlgError, ValueError) as e:
            sink.emit(QUADRATIC_FIT_FAILED, completion_ratio=round_value(ratio, 3), error=str(e))
            note = f"Linear interpolation (fallback) from {percent}% stage completion"

    if values is None:
        heart_rate = (
            _linear_value(previous_stage.heart_rate, current_stage.heart_rate, ratio)
            if _has_heart_rate(previous_stage, current_stage) else None
        )
        values = (
            _linear_value(previous_stage.load, current_stage.load, ratio),
            _linear_value(previous_stage.lactate, current_stage.lactate, ratio),
            heart_rate,
        )

    load, lactate, hr = _corrections(*values, method, confidence, note)
    return InterpolatedStage(load=load, lactate=lactate, heart_rate=hr, completion_ratio=ratio)


def correct_incomplete_stages(
    points: Sequence[DataPoint],
    target_duration: float,
    stage_durations: Optional[Sequence[Optional[float]]] = None,
    telemetry: Optional[TelemetrySink] = None
) -> Tuple[List[DataPoint], List[InterpolatedStage]]:
    """
    Apply stage correction across a test in stage order.

    The first stage is never corrected. Already corrected stages serve as
    anchors for the following ones. Missing durations count as complete.

    Returns:
        Tuple of (points with corrected stages, corrections applied)
    """
    result: List[DataPoint] = []
    corrections: List[InterpolatedStage] = []

    for i, point in enumerate(points):
        actual = None
        if stage_durations is not None and i < len(stage_durations):
            actual = stage_durations[i]
        if actual is None:
            actual = target_duration

        if i == 0 or not is_stage_incomplete(actual, target_duration):
            result.append(point)
            continue

        pre_previous = result[i - 2] if i >= 2 else None
        stage = interpolate_incomplete_stage(
            result[i - 1], point, actual, target_duration,
            pre_previous_stage=pre_previous, telemetry=telemetry,
        )
        logger.info(
            f"Stage {point.stage or i + 1} corrected ({stage.method}, "
            f"confidence {stage.confidence}): load {point.load} -> {stage.load.value}, "
            f"lactate {point.lactate} -> {stage.lactate.value}"
        )
        result.append(stage.to_data_point(point))
        corrections.append(stage)

    return result, corrections


def interpolate_data_series(
    points: Sequence[DataPoint],
    target_duration: float,
    stage_durations: Optional[Sequence[Optional[float]]] = None,
    telemetry: Optional[TelemetrySink] = None
) -> List[DataPoint]:
    """Points with every incomplete stage replaced by its corrected values."""
    corrected, _ = correct_incomplete_stages(
        points, target_duration, stage_durations, telemetry=telemetry
    )
    return corrected
