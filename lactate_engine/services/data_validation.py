"""
Data Validation Service

Boundary adapter between loosely-shaped stage records (device payloads,
stored sessions, spreadsheets) and the engine's canonical ``DataPoint``.

Field aliases are resolved in priority order (see ``Config``):
- load: theoreticalLoad, theoretical_load, power, load, speed
- heart rate: heartRate, heart_rate, hr

Validation fails closed: a malformed record is rejected, never coerced.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..config import Config
from ..models.results import DataPoint

logger = logging.getLogger("LactateEngine.DataValidation")

THEORETICAL_LOAD_FIELDS = ["theoreticalLoad", "theoretical_load"]
MEASURED_LOAD_FIELDS = ["power", "load", "speed"]
INTERPOLATED_FLAG_FIELDS = ["isFinalApproximation", "isInterpolated", "is_interpolated"]
NUMERIC_EXTRA_FIELDS = ["vo2", "stage"]

Records = Union[pd.DataFrame, Iterable[Dict[str, Any]]]


class DataValidationError(ValueError):
    """Stage records rejected at the boundary. ``errors`` lists every problem."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("Invalid stage records:\n" + "\n".join(self.errors))


def to_frame(records: Records) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        return records.reset_index(drop=True)
    return pd.DataFrame(list(records))


def _numeric(df: pd.DataFrame, col: str) -> pd.Series:
    return pd.to_numeric(df[col], errors="coerce")


def _first_numeric(df: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
    """Row-wise first non-null numeric value across alias columns."""
    result = pd.Series(np.nan, index=df.index, dtype=float)
    for col in columns:
        if col in df.columns:
            result = result.combine_first(_numeric(df, col))
    return result


def _non_numeric_errors(df: pd.DataFrame, columns: Sequence[str]) -> Dict[int, List[str]]:
    """Per-row errors for values that are present but do not parse as numbers."""
    errors: Dict[int, List[str]] = {}
    for col in columns:
        if col not in df.columns:
            continue
        bad = df[col].notna() & _numeric(df, col).isna()
        for i in df.index[bad]:
            errors.setdefault(i, []).append(f"record {i}: {col} not numeric")
    return errors


def _flag(df: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
    flag = pd.Series(False, index=df.index)
    for col in columns:
        if col in df.columns:
            flag |= df[col].map(lambda v: v is True or v == 1 or v == "true")
    return flag


def validate_stage_records(df: pd.DataFrame) -> Tuple[bool, str]:
    """Validate that stage records have the minimum required structure.

    Checks for:
    - Non-empty DataFrame
    - A lactate column and at least one load column
    - Minimum number of records

    Args:
        df: DataFrame of stage records

    Returns:
        Tuple of (is_valid, error_message)
    """
    if df is None or df.empty:
        return False, "No stage records provided."

    cols = df.columns

    if not any(col in cols for col in Config.VALIDATION_LACTATE_FIELDS):
        return False, f"Missing lactate column. Expected one of: {Config.VALIDATION_LACTATE_FIELDS}"

    if not any(col in cols for col in Config.VALIDATION_LOAD_FIELDS):
        return False, f"Missing load column. Expected at least one of: {Config.VALIDATION_LOAD_FIELDS}"

    if len(df) < Config.MIN_STAGE_RECORDS:
        return False, f"Too few stage records ({len(df)}). Minimum: {Config.MIN_STAGE_RECORDS}."

    return True, ""


def _record_errors(row: int, load: float, lactate: float, heart_rate: float, stage: float) -> List[str]:
    errors = []
    if np.isnan(load):
        errors.append(f"record {row}: load missing")
    elif load < 0 or load > Config.VALIDATION_MAX_LOAD:
        errors.append(f"record {row}: load {load} outside [0, {Config.VALIDATION_MAX_LOAD}]")

    if np.isnan(lactate):
        errors.append(f"record {row}: lactate missing")
    elif lactate < 0 or lactate > Config.VALIDATION_MAX_LACTATE:
        errors.append(
            f"record {row}: lactate {lactate} outside [0, {Config.VALIDATION_MAX_LACTATE}] mmol/L"
        )

    if not np.isnan(heart_rate) and (heart_rate <= 0 or heart_rate > Config.VALIDATION_MAX_HR):
        errors.append(f"record {row}: heart rate {heart_rate} outside (0, {Config.VALIDATION_MAX_HR}] bpm")

    if not np.isnan(stage) and not float(stage).is_integer():
        errors.append(f"record {row}: stage {stage} not a whole number")
    return errors


def _optional(value: Any) -> Optional[Any]:
    return None if value is None or pd.isna(value) else value


def normalize_data_points(records: Records) -> List[DataPoint]:
    """
    Convert raw stage records into validated ``DataPoint`` objects.

    Records keep their input (stage) order. A record carrying a
    theoretical load, or flagged as a final approximation, becomes an
    interpolated point whose measured load is kept in ``measured_load``.

    A value that is present but not numeric rejects its record even when
    another alias of the same field is usable.

    Raises:
        DataValidationError: structure invalid or any record rejected
    """
    df = to_frame(records)
    is_valid, message = validate_stage_records(df)
    if not is_valid:
        raise DataValidationError([message])

    non_numeric = _non_numeric_errors(
        df,
        THEORETICAL_LOAD_FIELDS
        + MEASURED_LOAD_FIELDS
        + list(Config.VALIDATION_LACTATE_FIELDS)
        + list(Config.VALIDATION_HR_FIELDS)
        + NUMERIC_EXTRA_FIELDS,
    )
    theoretical = _first_numeric(df, THEORETICAL_LOAD_FIELDS)
    measured = _first_numeric(df, MEASURED_LOAD_FIELDS)
    load = theoretical.combine_first(measured)
    lactate = _first_numeric(df, Config.VALIDATION_LACTATE_FIELDS)
    heart_rate = _first_numeric(df, Config.VALIDATION_HR_FIELDS)
    vo2 = _first_numeric(df, ["vo2"])
    stage = _first_numeric(df, ["stage"])
    interpolated = _flag(df, INTERPOLATED_FLAG_FIELDS) | theoretical.notna()

    errors: List[str] = []
    points: List[DataPoint] = []
    for i in df.index:
        record_errors = non_numeric.get(i) or _record_errors(
            i, load[i], lactate[i], heart_rate[i], stage[i]
        )
        if record_errors:
            errors.extend(record_errors)
            continue

        has_theoretical = not np.isnan(theoretical[i])
        points.append(DataPoint(
            load=float(load[i]),
            lactate=float(lactate[i]),
            heart_rate=_optional(float(heart_rate[i])),
            vo2=_optional(float(vo2[i])),
            timestamp=_optional(df["timestamp"][i]) if "timestamp" in df.columns else None,
            stage=None if np.isnan(stage[i]) else int(stage[i]),
            theoretical_load=float(theoretical[i]) if has_theoretical else None,
            measured_load=float(measured[i]) if has_theoretical and not np.isnan(measured[i]) else None,
            is_interpolated=bool(interpolated[i]),
        ))

    if errors:
        logger.warning(f"Rejected {len(errors)} stage record problem(s)")
        raise DataValidationError(errors)

    return points
