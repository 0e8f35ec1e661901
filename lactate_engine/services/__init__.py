"""
Services: boundary adapter and analysis orchestration.
"""
from .data_validation import (
    DataValidationError,
    normalize_data_points,
    validate_stage_records,
)
from .threshold_analysis import analyze_lactate_test

__all__ = [
    'DataValidationError',
    'normalize_data_points',
    'validate_stage_records',
    'analyze_lactate_test',
]
