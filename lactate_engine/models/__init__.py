"""
Models Module - Lactate Test Data Models

Immutable records shared by the calculation engine and its callers.
NO I/O OR UI DEPENDENCIES ALLOWED.

Sub-modules:
- results: data points, thresholds, zones and stage corrections
"""

from .results import (
    DataPoint,
    ThresholdPoint,
    MethodResult,
    ThresholdResult,
    TrainingZone,
    StageCorrectionResult,
    InterpolatedStage,
    TheoreticalLoadResult,
    LactateTestAnalysis,
)

__all__ = [
    "DataPoint",
    "ThresholdPoint",
    "MethodResult",
    "ThresholdResult",
    "TrainingZone",
    "StageCorrectionResult",
    "InterpolatedStage",
    "TheoreticalLoadResult",
    "LactateTestAnalysis",
]
