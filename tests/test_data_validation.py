"""
Tests for the stage record boundary adapter.
"""
import pytest
import pandas as pd

from lactate_engine.config import Config
from lactate_engine.services import (
    DataValidationError,
    normalize_data_points,
    validate_stage_records,
)


class TestValidateStageRecords:

    def test_valid_records(self, stage_records_df):
        is_valid, msg = validate_stage_records(stage_records_df)
        assert is_valid
        assert msg == ""

    def test_empty(self):
        is_valid, msg = validate_stage_records(pd.DataFrame())
        assert not is_valid
        assert "No stage records" in msg

    def test_missing_lactate_column(self, stage_records_df):
        is_valid, msg = validate_stage_records(stage_records_df.drop(columns=["lactate"]))
        assert not is_valid
        assert "Missing lactate column" in msg

    def test_missing_load_column(self, stage_records_df):
        is_valid, msg = validate_stage_records(stage_records_df.drop(columns=["power"]))
        assert not is_valid
        assert "Missing load column" in msg


class TestNormalizeDataPoints:
    """Alias resolution and fail-closed rejection."""

    def test_from_records(self, stage_records):
        points = normalize_data_points(stage_records)
        assert [p.load for p in points] == [100, 150, 200, 250, 300]
        assert points[0].heart_rate == 120
        assert points[0].stage == 1
        assert not any(p.is_interpolated for p in points)

    def test_from_dataframe(self, stage_records_df):
        points = normalize_data_points(stage_records_df)
        assert len(points) == 5
        assert isinstance(points[2].lactate, float)

    def test_load_aliases(self):
        points = normalize_data_points([
            {"speed": 12, "lactate": 2.0, "hr": 160},
            {"load": 14, "lactate": 3.0, "heart_rate": 170},
        ])
        assert [p.load for p in points] == [12, 14]
        assert [p.heart_rate for p in points] == [160, 170]

    def test_theoretical_load_takes_priority(self):
        points = normalize_data_points([
            {"power": 18, "lactate": 6.5},
            {"power": 20, "theoreticalLoad": 17.56, "lactate": 8.2},
        ])
        final = points[-1]
        assert final.load == 17.56
        assert final.theoretical_load == 17.56
        assert final.measured_load == 20
        assert final.is_interpolated
        assert points[0].measured_load is None

    def test_final_approximation_flag(self):
        points = normalize_data_points([
            {"power": 200, "lactate": 2.5},
            {"power": 250, "lactate": 4.0, "isFinalApproximation": True},
        ])
        assert [p.is_interpolated for p in points] == [False, True]

    def test_order_preserved(self):
        points = normalize_data_points([{"power": 200, "lactate": 2.5}, {"power": 100, "lactate": 1.5}])
        assert [p.load for p in points] == [200, 100]

    def test_missing_heart_rate_is_none(self):
        points = normalize_data_points([
            {"power": 100, "lactate": 1.5, "heartRate": 120},
            {"power": 150, "lactate": 1.8},
        ])
        assert points[1].heart_rate is None

    def test_rejects_malformed_records(self):
        with pytest.raises(DataValidationError) as exc_info:
            normalize_data_points([
                {"power": 100, "lactate": 1.5},
                {"power": 150, "lactate": "abc"},
                {"power": -10, "lactate": 2.0},
                {"lactate": 3.0},
                {"power": 250, "lactate": 4.0, "heartRate": Config.VALIDATION_MAX_HR + 10},
            ])
        errors = exc_info.value.errors
        assert len(errors) == 4
        assert "record 1: lactate not numeric" in errors
        assert any(e.startswith("record 2: load") for e in errors)
        assert "record 3: load missing" in errors
        assert any(e.startswith("record 4: heart rate") for e in errors)

    def test_rejects_non_numeric_alias_values(self):
        """A present but unparseable value is never replaced by another alias."""
        with pytest.raises(DataValidationError) as exc_info:
            normalize_data_points([
                {"power": 200, "lactate": 2.0},
                {"power": 250, "theoreticalLoad": "abc", "lactate": 4.0},
                {"power": "n/a", "load": 300, "lactate": 6.0},
                {"power": 350, "lactate": 8.0, "stage": 2.7},
            ])
        assert exc_info.value.errors == [
            "record 1: theoreticalLoad not numeric",
            "record 2: power not numeric",
            "record 3: stage 2.7 not a whole number",
        ]

    def test_rejects_non_numeric_heart_rate(self):
        with pytest.raises(DataValidationError, match="record 0: hr not numeric"):
            normalize_data_points([{"power": 100, "lactate": 1.5, "hr": "high"}])

    def test_whole_number_stage_accepted(self):
        points = normalize_data_points([{"power": 100, "lactate": 1.5, "stage": 2.0}])
        assert points[0].stage == 2

    def test_missing_timestamp_is_none(self):
        df = pd.DataFrame({
            "power": [100, 150],
            "lactate": [1.5, 1.8],
            "timestamp": pd.to_datetime(["2024-05-01 10:00", None]),
        })
        points = normalize_data_points(df)
        assert points[0].timestamp == pd.Timestamp("2024-05-01 10:00")
        assert points[1].timestamp is None

    def test_rejects_implausible_lactate(self):
        with pytest.raises(DataValidationError, match="lactate"):
            normalize_data_points([{"power": 100, "lactate": Config.VALIDATION_MAX_LACTATE + 1}])

    def test_rejects_invalid_structure(self):
        with pytest.raises(DataValidationError, match="Missing lactate column"):
            normalize_data_points([{"power": 100}])

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            normalize_data_points([])

    def test_to_dict_wire_shape(self):
        point = normalize_data_points([
            {"power": 20, "theoreticalLoad": 17.56, "lactate": 8.2, "heartRate": 180},
        ])[0]
        assert point.to_dict() == {
            "load": 17.56,
            "lactate": 8.2,
            "heartRate": 180,
            "theoreticalLoad": 17.56,
            "measuredLoad": 20,
            "isInterpolated": True,
        }
