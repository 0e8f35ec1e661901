"""
Lactate threshold calculation engine.

Modules grouped by responsibility:
- interpolation.py: load at target lactate, baseline, lactate minimum, OLS
- geometry.py: DMAX, deflection, ModDMAX, Log-Log breakpoints
- threshold_methods.py: method registry and dispatch
- validation.py: LT1 < LT2 enforcement and fallback strategy table
- zones.py: training zone models
- stage_interpolation.py: incomplete intermediate stages
- theoretical_load.py: early-terminated final stage
- telemetry.py: injectable diagnostics channel

All public functions are re-exported from this module.
"""

# ============================================================
# Re-exports
# Import: from lactate_engine.calculations import calculate_thresholds_by_method
# ============================================================

from .interpolation import (
    interpolate_threshold,
    calculate_baseline,
    find_min_lactate,
    linear_regression,
)

from .geometry import (
    calculate_dmax_point,
    calculate_dmax_lt1_point,
    calculate_moddmax_point,
    calculate_loglog_breakpoint,
)

from .threshold_methods import (
    METHOD_REGISTRY,
    RegisteredMethod,
    register_method,
    calculate_mader,
    calculate_dickhuth,
    calculate_dmax,
    calculate_moddmax,
    calculate_loglog,
    calculate_plus1mmol,
    calculate_seiler,
    calculate_fatmax,
    calculate_thresholds_by_method,
    calculate_thresholds,
    available_methods,
    get_method_display_name,
    get_method_reference,
)

from .validation import (
    FALLBACK_STRATEGIES,
    FallbackPolicy,
    validate_method_result,
    is_ordered,
)

from .zones import (
    ZONE_MODELS,
    calculate_training_zones,
)

from .stage_interpolation import (
    interpolate_incomplete_stage,
    is_stage_incomplete,
    correct_incomplete_stages,
    interpolate_data_series,
)

from .theoretical_load import (
    calculate_theoretical_load,
    needs_theoretical_load,
    apply_theoretical_load,
)

from .telemetry import (
    TelemetrySink,
    LoggingTelemetry,
    NullTelemetry,
    RecordingTelemetry,
)


__all__ = [
    # Primitives
    'interpolate_threshold',
    'calculate_baseline',
    'find_min_lactate',
    'linear_regression',
    # Geometry
    'calculate_dmax_point',
    'calculate_dmax_lt1_point',
    'calculate_moddmax_point',
    'calculate_loglog_breakpoint',
    # Methods
    'METHOD_REGISTRY',
    'RegisteredMethod',
    'register_method',
    'calculate_mader',
    'calculate_dickhuth',
    'calculate_dmax',
    'calculate_moddmax',
    'calculate_loglog',
    'calculate_plus1mmol',
    'calculate_seiler',
    'calculate_fatmax',
    'calculate_thresholds_by_method',
    'calculate_thresholds',
    'available_methods',
    'get_method_display_name',
    'get_method_reference',
    # Validation
    'FALLBACK_STRATEGIES',
    'FallbackPolicy',
    'validate_method_result',
    'is_ordered',
    # Zones
    'ZONE_MODELS',
    'calculate_training_zones',
    # Stage corrections
    'interpolate_incomplete_stage',
    'is_stage_incomplete',
    'correct_incomplete_stages',
    'interpolate_data_series',
    'calculate_theoretical_load',
    'needs_theoretical_load',
    'apply_theoretical_load',
    # Telemetry
    'TelemetrySink',
    'LoggingTelemetry',
    'NullTelemetry',
    'RecordingTelemetry',
]
