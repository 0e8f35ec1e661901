"""
Threshold Analysis Service

High-level orchestration of one lactate test:
1. Boundary normalization (raw records -> DataPoint)
2. Incomplete intermediate stage correction
3. Theoretical load of an early-terminated final stage
4. Threshold method + validation
5. Training zones
"""
import logging
from typing import Optional, Sequence, Union

from ..config import Config
from ..models.results import DataPoint, LactateTestAnalysis
from ..calculations import (
    apply_theoretical_load,
    calculate_thresholds_by_method,
    calculate_training_zones,
    correct_incomplete_stages,
)
from ..calculations.common import sort_points
from ..calculations.telemetry import TelemetrySink
from .data_validation import Records, normalize_data_points

logger = logging.getLogger("LactateEngine.ThresholdAnalysis")


def _as_points(data: Union[Records, Sequence[DataPoint]]):
    if isinstance(data, (list, tuple)) and data and all(isinstance(p, DataPoint) for p in data):
        return list(data)
    return normalize_data_points(data)


def analyze_lactate_test(
    data: Union[Records, Sequence[DataPoint]],
    method: Optional[str] = None,
    zone_model: Optional[str] = None,
    target_duration: Optional[float] = None,
    stage_durations: Optional[Sequence[Optional[float]]] = None,
    telemetry: Optional[TelemetrySink] = None
) -> LactateTestAnalysis:
    """Run the full analysis pipeline for one test.

    Stage corrections only run when both ``target_duration`` and
    ``stage_durations`` are given. ``stage_durations`` is positional in
    stage order: a shorter list leaves the remaining stages (including the
    final one) complete, extra entries are ignored.

    Args:
        data: DataPoints, raw record dicts or a DataFrame of stage records
        method: Threshold method key (default: Config.DEFAULT_THRESHOLD_METHOD)
        zone_model: Zone model (default: Config.DEFAULT_ZONE_MODEL)
        target_duration: Prescribed stage duration [min]
        stage_durations: Actual duration of each stage [min]
        telemetry: Optional diagnostics sink

    Returns:
        LactateTestAnalysis

    Raises:
        DataValidationError: raw records rejected at the boundary
    """
    method = method or Config.DEFAULT_THRESHOLD_METHOD
    zone_model = zone_model or Config.DEFAULT_ZONE_MODEL
    points = _as_points(data)

    corrections = []
    theoretical = None
    if target_duration and stage_durations and len(points) > 1:
        # positional: entry i belongs to stage i, absent entries count as complete
        durations = list(stage_durations)[:len(points)]
        durations += [None] * (len(points) - len(durations))
        final_duration = durations[-1]

        intermediate, corrections = correct_incomplete_stages(
            points[:-1], target_duration, durations[:-1], telemetry=telemetry
        )
        points = intermediate + [points[-1]]

        if final_duration is not None:
            points, theoretical = apply_theoretical_load(
                points, final_duration, target_duration, telemetry=telemetry
            )

    points = sort_points(points)
    result = calculate_thresholds_by_method(points, method, telemetry=telemetry)
    max_load = max((p.load for p in points), default=0.0)
    zones = calculate_training_zones(
        result.lt1, result.lt2, max_load, method=method, zone_model=zone_model
    )

    logger.info(
        f"Analysis ({method}, {zone_model}): {len(points)} points, "
        f"{len(corrections)} corrected stage(s), lt1={result.lt1}, lt2={result.lt2}"
    )

    return LactateTestAnalysis(
        points=tuple(points),
        result=result,
        zones=tuple(zones),
        method=method,
        zone_model=zone_model,
        max_load=max_load,
        stage_corrections=tuple(corrections),
        theoretical_load=theoretical,
    )
