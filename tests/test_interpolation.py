"""Unit tests for lactate_engine/calculations/interpolation.py"""
import math

import pytest

from lactate_engine.calculations import (
    interpolate_threshold,
    calculate_baseline,
    find_min_lactate,
    linear_regression,
)
from lactate_engine.calculations.common import sort_points, to_float
from lactate_engine.models import DataPoint


class TestInterpolateThreshold:
    """Tests for load interpolation at a target lactate."""

    def test_interpolates_between_bracketing_points(self, normal_curve):
        result = interpolate_threshold(normal_curve, 2.0)
        assert result.load == pytest.approx(164.29)
        assert result.lactate == 2.0

    def test_exact_match_at_measured_point(self, normal_curve):
        result = interpolate_threshold(normal_curve, 4.0)
        assert result.load == 250

    @pytest.mark.parametrize("index", [1, 2, 3])
    def test_interior_points_are_reproduced(self, normal_curve, index):
        """Interpolating at a measured lactate returns that point's load."""
        point = normal_curve[index]
        result = interpolate_threshold(normal_curve, point.lactate)
        assert result.load == point.load

    def test_target_above_curve_is_none(self, normal_curve):
        assert interpolate_threshold(normal_curve, 8.0) is None

    def test_small_backward_extrapolation(self, normal_curve):
        """Target within 10% below the lowest lactate extrapolates along the first segment."""
        result = interpolate_threshold(normal_curve, 1.4)
        assert result.load == pytest.approx(83.33)
        assert result.lactate == 1.4

    def test_large_backward_extrapolation_is_none(self, normal_curve):
        assert interpolate_threshold(normal_curve, 1.3) is None

    def test_flat_bracketing_segment_is_none(self, points_from):
        points = points_from([(100, 2.0), (150, 2.0), (200, 3.0)])
        assert interpolate_threshold(points, 2.0) is None

    def test_negative_extrapolated_load_is_none(self, points_from):
        points = points_from([(10, 2.0), (20, 2.1)])
        # 10 - (2.0 - 1.85) / 0.01 = -5
        assert interpolate_threshold(points, 1.85) is None

    def test_single_point_is_none(self, points_from):
        assert interpolate_threshold(points_from([(100, 2.0)]), 2.0) is None

    def test_non_finite_target_is_none(self, normal_curve):
        assert interpolate_threshold(normal_curve, math.nan) is None
        assert interpolate_threshold(normal_curve, math.inf) is None

    def test_running_units(self, running_test):
        """km/h loads are handled exactly like watts."""
        assert interpolate_threshold(running_test, 2.0).load == 12
        assert interpolate_threshold(running_test, 4.0).load == pytest.approx(14.33)


class TestBaseline:
    """Tests for calculate_baseline."""

    def test_default_uses_first_third(self, points_from):
        points = points_from([(i * 25, v) for i, v in enumerate([1.0, 1.2, 1.4, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0])])
        # n=9 -> k = min(3, 3) = 3
        assert calculate_baseline(points) == pytest.approx(1.2)

    def test_short_test_uses_first_point(self, normal_curve):
        # n=5 -> k = min(3, 1) = 1
        assert calculate_baseline(normal_curve) == pytest.approx(1.5)

    def test_explicit_k(self, normal_curve):
        assert calculate_baseline(normal_curve, k=2) == pytest.approx(1.65)

    def test_k_is_at_least_one(self, points_from):
        assert calculate_baseline(points_from([(100, 1.3), (150, 1.9)])) == pytest.approx(1.3)

    def test_empty(self):
        assert calculate_baseline([]) is None


class TestFindMinLactate:
    """Tests for find_min_lactate."""

    def test_global_minimum(self, flat_beginning):
        result = find_min_lactate(flat_beginning)
        assert (result.load, result.lactate) == (125, 1.1)

    def test_first_minimum_on_ties(self, points_from):
        result = find_min_lactate(points_from([(100, 1.0), (150, 1.0), (200, 2.0)]))
        assert result.load == 100

    def test_empty(self):
        assert find_min_lactate([]) is None


class TestLinearRegression:
    """Tests for linear_regression."""

    def test_exact_line(self):
        slope, intercept = linear_regression([1, 2, 3], [3, 5, 7])
        assert slope == pytest.approx(2.0)
        assert intercept == pytest.approx(1.0)

    def test_identical_x_is_none(self):
        assert linear_regression([2, 2, 2], [1, 2, 3]) is None

    def test_too_few_points(self):
        assert linear_regression([1], [1]) is None

    def test_length_mismatch(self):
        assert linear_regression([1, 2, 3], [1, 2]) is None


class TestPointHelpers:
    """Tests for shared point helpers."""

    def test_sort_points_is_stable(self):
        a = DataPoint(load=200, lactate=2.0)
        b = DataPoint(load=100, lactate=1.0)
        c = DataPoint(load=200, lactate=2.5)
        assert sort_points([a, b, c]) == [b, a, c]

    @pytest.mark.parametrize("raw,expected", [
        ("1.5", 1.5), (2, 2.0), (None, None), ("abc", None), (math.nan, None), (True, None),
    ])
    def test_to_float(self, raw, expected):
        assert to_float(raw) == expected
