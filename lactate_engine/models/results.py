"""
Lactate Test Result Objects.

Immutable value records passed between the engine stages and returned to
callers (chart rendering, persistence, export). Every record exposes
``to_dict()`` in the camelCase wire shape the collaborators consume.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


# ============================================================
# INPUT POINTS
# ============================================================

@dataclass(frozen=True)
class DataPoint:
    """
    One completed (or corrected) test stage.

    ``load`` is an opaque ordered scalar: watts for cycling, km/h for
    running. The engine never converts between the two.
    """
    load: float
    lactate: float                          # mmol/L, >= 0
    heart_rate: Optional[float] = None      # bpm
    vo2: Optional[float] = None
    timestamp: Optional[str] = None
    stage: Optional[int] = None
    theoretical_load: Optional[float] = None
    measured_load: Optional[float] = None   # load before theoretical correction
    is_interpolated: bool = False

    def with_values(self, **changes: Any) -> "DataPoint":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"load": self.load, "lactate": self.lactate}
        optional = {
            "heartRate": self.heart_rate,
            "vo2": self.vo2,
            "timestamp": self.timestamp,
            "stage": self.stage,
            "theoreticalLoad": self.theoretical_load,
            "measuredLoad": self.measured_load,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        if self.is_interpolated:
            out["isInterpolated"] = True
        return out


# ============================================================
# THRESHOLDS
# ============================================================

@dataclass(frozen=True)
class ThresholdPoint:
    """A single breakpoint on the lactate-vs-load curve."""
    load: float
    lactate: float

    def to_dict(self) -> Dict[str, float]:
        return {"load": self.load, "lactate": self.lactate}


@dataclass(frozen=True)
class MethodResult:
    """
    Output of one threshold detection method.

    After validation: if both thresholds are present,
    ``lt1.load < lt2.load`` and ``lt1.lactate <= lt2.lactate``.
    """
    lt1: Optional[ThresholdPoint]
    lt2: Optional[ThresholdPoint]
    method_name: str
    reference: str
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lt1": self.lt1.to_dict() if self.lt1 else None,
            "lt2": self.lt2.to_dict() if self.lt2 else None,
            "methodName": self.method_name,
            "reference": self.reference,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ThresholdResult:
    """Caller-facing summary of a threshold calculation."""
    lt1: Optional[ThresholdPoint]
    lt2: Optional[ThresholdPoint]
    method: str
    lt1_missing: bool
    lt2_missing: bool
    message: Optional[str] = None
    reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lt1": self.lt1.to_dict() if self.lt1 else None,
            "lt2": self.lt2.to_dict() if self.lt2 else None,
            "method": self.method,
            "lt1Missing": self.lt1_missing,
            "lt2Missing": self.lt2_missing,
            "message": self.message,
            "reference": self.reference,
        }


# ============================================================
# ZONES
# ============================================================

@dataclass(frozen=True)
class TrainingZone:
    """
    One contiguous load interval.

    Zones come in ascending ``id`` order; ``range[1]`` of zone n equals
    ``range[0]`` of zone n+1.
    """
    id: int
    name: str
    range: Tuple[float, float]
    description: str

    @property
    def lower(self) -> float:
        return self.range[0]

    @property
    def upper(self) -> float:
        return self.range[1]

    @property
    def width(self) -> float:
        return self.range[1] - self.range[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "range": [self.range[0], self.range[1]],
            "description": self.description,
        }


# ============================================================
# STAGE CORRECTIONS
# ============================================================

@dataclass(frozen=True)
class StageCorrectionResult:
    """
    Corrected value of a prematurely ended stage.

    ``confidence`` is advisory only (0-1, derived from completion ratio);
    it never gates whether the value is returned.
    """
    value: float
    method: str             # 'quadratic' | 'linear' | 'none'
    confidence: float
    note: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "method": self.method,
            "confidence": self.confidence,
            "note": self.note,
        }


@dataclass(frozen=True)
class InterpolatedStage:
    """Load, lactate and heart rate of one incomplete intermediate stage."""
    load: StageCorrectionResult
    lactate: StageCorrectionResult
    heart_rate: Optional[StageCorrectionResult] = None
    completion_ratio: float = 1.0

    @property
    def method(self) -> str:
        return self.load.method

    @property
    def confidence(self) -> float:
        return self.load.confidence

    @property
    def note(self) -> str:
        return self.load.note

    @property
    def is_corrected(self) -> bool:
        return self.method != "none"

    def to_data_point(self, template: DataPoint) -> DataPoint:
        """Merge the corrected values into a copy of the measured point."""
        return template.with_values(
            load=self.load.value,
            lactate=self.lactate.value,
            heart_rate=self.heart_rate.value if self.heart_rate else template.heart_rate,
            is_interpolated=template.is_interpolated or self.is_corrected,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interpolatedLoad": self.load.value,
            "interpolatedLactate": self.lactate.value,
            "interpolatedHeartRate": self.heart_rate.value if self.heart_rate else None,
            "method": self.method,
            "confidence": self.confidence,
            "note": self.note,
        }


@dataclass(frozen=True)
class TheoreticalLoadResult:
    """Fatigue-adjusted maximum load sustainable for the full final stage."""
    correction: StageCorrectionResult
    actual_load: float
    actual_duration: float
    completion_ratio: float

    @property
    def theoretical_load(self) -> float:
        return self.correction.value

    @property
    def method(self) -> str:
        return self.correction.method

    @property
    def confidence(self) -> float:
        return self.correction.confidence

    @property
    def note(self) -> str:
        return self.correction.note

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theoreticalLoad": self.theoretical_load,
            "actualLoad": self.actual_load,
            "actualDuration": self.actual_duration,
            "method": self.method,
            "confidence": self.confidence,
            "note": self.note,
        }


@dataclass(frozen=True)
class LactateTestAnalysis:
    """Complete pipeline output for one lactate test."""
    points: Tuple[DataPoint, ...]
    result: MethodResult
    zones: Tuple[TrainingZone, ...]
    method: str
    zone_model: str
    max_load: float
    stage_corrections: Tuple[InterpolatedStage, ...] = field(default_factory=tuple)
    theoretical_load: Optional[TheoreticalLoadResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "result": self.result.to_dict(),
            "zones": [z.to_dict() for z in self.zones],
            "method": self.method,
            "zoneModel": self.zone_model,
            "maxLoad": self.max_load,
            "stageCorrections": [c.to_dict() for c in self.stage_corrections],
            "theoreticalLoad": self.theoretical_load.to_dict() if self.theoretical_load else None,
        }
