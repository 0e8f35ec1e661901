"""Unit tests for lactate_engine/calculations/validation.py"""
import pytest

from lactate_engine.calculations import (
    FALLBACK_STRATEGIES,
    validate_method_result,
    is_ordered,
)
from lactate_engine.calculations.telemetry import (
    FALLBACK_APPLIED,
    ORDERING_UNRESOLVED,
)
from lactate_engine.calculations.validation import (
    DEFAULT_FALLBACK_POLICY,
    STRATEGIES,
    get_fallback_policy,
)
from lactate_engine.models import MethodResult, ThresholdPoint


def method_result(lt1, lt2, notes="raw"):
    return MethodResult(
        lt1=ThresholdPoint(*lt1) if lt1 else None,
        lt2=ThresholdPoint(*lt2) if lt2 else None,
        method_name="Test",
        reference="Test",
        notes=notes,
    )


class TestStrategyTable:
    """Tests for the declarative fallback table."""

    def test_geometric_methods_try_fixed_target_first(self):
        for method in ("dmax", "loglog"):
            assert FALLBACK_STRATEGIES[method].on_violation[0] == "fixed_lt1_target"

    def test_other_methods_use_default(self):
        assert get_fallback_policy("mader") is DEFAULT_FALLBACK_POLICY
        assert DEFAULT_FALLBACK_POLICY.on_violation[0] == "lt2_fraction"

    def test_every_chain_ends_with_last_ordered_point(self):
        for policy in list(FALLBACK_STRATEGIES.values()) + [DEFAULT_FALLBACK_POLICY]:
            assert policy.on_violation[-1] == "last_ordered_point"

    def test_all_names_resolve(self):
        for policy in FALLBACK_STRATEGIES.values():
            for name in policy.on_violation + policy.on_missing_lt1:
                assert name in STRATEGIES


class TestIsOrdered:

    def test_ordered(self):
        assert is_ordered(ThresholdPoint(150, 2.0), ThresholdPoint(200, 4.0))

    def test_equal_load_is_not_ordered(self):
        assert not is_ordered(ThresholdPoint(200, 2.0), ThresholdPoint(200, 4.0))

    def test_higher_lactate_is_not_ordered(self):
        assert not is_ordered(ThresholdPoint(150, 5.0), ThresholdPoint(200, 4.0))


class TestValidateMethodResult:
    """Tests for LT1 < LT2 enforcement."""

    def test_valid_result_unchanged(self, normal_curve, telemetry):
        result = method_result((150, 1.8), (250, 4.0))
        assert validate_method_result(result, normal_curve, "mader", telemetry) is result
        assert telemetry.events == []

    def test_missing_lt2_unchanged(self, normal_curve):
        result = method_result((150, 1.8), None)
        assert validate_method_result(result, normal_curve, "dmax") is result

    def test_missing_lt1_without_recovery_policy(self, normal_curve):
        result = method_result(None, (250, 4.0))
        assert validate_method_result(result, normal_curve, "mader").lt1 is None

    def test_lt2_fraction_fallback(self, normal_curve, telemetry):
        """Default chain: interpolate at max(60% of LT2 lactate, 1.5)."""
        result = method_result((250, 4.0), (200, 2.5))
        validated = validate_method_result(result, normal_curve, "mader", telemetry)
        assert (validated.lt1.load, validated.lt1.lactate) == (100, 1.5)
        assert validated.notes.startswith("raw; LT1 >= LT2; LT1 replaced by 60% of LT2 lactate")
        assert telemetry.names() == [FALLBACK_APPLIED]
        assert telemetry.events[0].fields["original_lt1"] == 250

    def test_one_third_point_fallback(self, points_from):
        points = points_from([(100, 4.0), (150, 4.2), (200, 4.4), (250, 5.0), (300, 8.0), (350, 9.0)])
        # 60% of LT2 lactate (3.0) is too far below the curve to extrapolate
        result = method_result((300, 8.0), (250, 5.0))
        validated = validate_method_result(result, points, "mader")
        assert (validated.lt1.load, validated.lt1.lactate) == (200, 4.4)
        assert "one third of the test" in validated.notes

    def test_last_ordered_point_fallback(self, points_from):
        points = points_from([(100, 6.0), (150, 2.0), (200, 1.8), (250, 1.7), (300, 3.0)])
        # lt2_fraction target 1.5 is below the curve; one third point (150, 2.0) lies above LT2 lactate
        result = method_result((250, 1.7), (220, 1.9))
        validated = validate_method_result(result, points, "mader")
        assert (validated.lt1.load, validated.lt1.lactate) == (200, 1.8)
        assert "highest measured point below LT2" in validated.notes

    def test_unresolved_discards_lt1(self, points_from, telemetry):
        points = points_from([(100, 5.0), (200, 4.0), (300, 3.0)])
        result = method_result((200, 4.0), (100, 5.0))
        validated = validate_method_result(result, points, "mader", telemetry)
        assert validated.lt1 is None
        assert validated.lt2.load == 100
        assert "LT1 discarded" in validated.notes
        assert telemetry.names() == [ORDERING_UNRESOLVED]

    def test_notes_without_raw_notes(self, normal_curve):
        result = method_result((250, 4.0), (200, 2.5), notes=None)
        validated = validate_method_result(result, normal_curve, "seiler")
        assert validated.notes.startswith("LT1 >= LT2")
