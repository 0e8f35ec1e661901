"""
Engine Telemetry.

Injectable diagnostics channel for the calculation engine. Fallback
activation and low-confidence corrections are reported as named events so
callers can observe them without the engine depending on a logging backend.

Usage:
    from lactate_engine.calculations.telemetry import RecordingTelemetry

    telemetry = RecordingTelemetry()
    calculate_thresholds_by_method(points, "dmax", telemetry=telemetry)
    telemetry.names()  # ['fallback_applied']
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger("LactateEngine.Telemetry")

# Event names
FALLBACK_APPLIED = "fallback_applied"
LT1_RECOVERED = "lt1_recovered"
ORDERING_UNRESOLVED = "ordering_unresolved"
STAGE_LOW_COMPLETION = "stage_low_completion"
QUADRATIC_FIT_FAILED = "quadratic_fit_failed"
INSUFFICIENT_DATA = "insufficient_data"

# Events that indicate a degraded result
_WARNING_EVENTS = {ORDERING_UNRESOLVED, STAGE_LOW_COMPLETION, QUADRATIC_FIT_FAILED}


@dataclass(frozen=True)
class TelemetryEvent:
    """One diagnostic event emitted by the engine."""
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)


class TelemetrySink(ABC):
    """Receiver of engine diagnostic events."""

    @abstractmethod
    def emit(self, event: str, **fields: Any) -> None:
        """Record a single event with structured fields."""


class LoggingTelemetry(TelemetrySink):
    """Forwards events to a standard library logger."""

    def __init__(self, target: Optional[logging.Logger] = None):
        self.logger = target or logging.getLogger("LactateEngine")

    def emit(self, event: str, **fields: Any) -> None:
        level = logging.WARNING if event in _WARNING_EVENTS else logging.INFO
        detail = ", ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        self.logger.log(level, f"{event}: {detail}", extra={"event": event, "event_fields": fields})


class NullTelemetry(TelemetrySink):
    """Discards all events."""

    def emit(self, event: str, **fields: Any) -> None:
        return None


class RecordingTelemetry(TelemetrySink):
    """Keeps events in memory, in emission order."""

    def __init__(self):
        self.events: List[TelemetryEvent] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append(TelemetryEvent(name=event, fields=dict(fields)))

    def names(self) -> List[str]:
        return [e.name for e in self.events]

    def clear(self) -> None:
        self.events.clear()


_DEFAULT_SINK: TelemetrySink = LoggingTelemetry()


def resolve(telemetry: Optional[TelemetrySink]) -> TelemetrySink:
    """Use the given sink or the module default."""
    return telemetry if telemetry is not None else _DEFAULT_SINK
