"""
Training Zone Calculator.

Partitions [0, max_load] into contiguous training zones anchored on LT1
and LT2. Missing thresholds are replaced by 65% / 85% of the maximum load
so a full partition is always returned.

Zone models:
- '5-zones'   : Regeneration / Aerobic base / Threshold / Anaerobic / Power
- '3-zones-a' : split exactly at LT1 and LT2
- '3-zones-b' : polarized model, split at 80% LT1 and 105% LT2
"""
import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import Config
from ..models.results import ThresholdPoint, TrainingZone
from .common import round_value

logger = logging.getLogger("LactateEngine.Zones")

# Substitutes for missing thresholds (fraction of max load)
MISSING_LT1_FRACTION = 0.65
MISSING_LT2_FRACTION = 0.85

# 5-zone spacing: (zone 2 start as fraction of LT1, zone 5 start as multiple of LT2)
DICKHUTH_ZONE_SPACING = (0.75, 1.15)
STANDARD_ZONE_SPACING = (0.68, 1.08)

# Polarized model
POLARIZED_LOW_FRACTION = 0.80
POLARIZED_HIGH_FACTOR = 1.05

ZoneTemplate = Sequence[Tuple[str, str]]

FIVE_ZONE_TEMPLATE: ZoneTemplate = (
    ("Zone 1 - Regeneration", "Recovery and fat metabolism (< 2.0 mmol/L)"),
    ("Zone 2 - Aerobic Base", "Aerobic endurance up to LT1 (~2.0-2.5 mmol/L)"),
    ("Zone 3 - Threshold", "Tempo between LT1 and LT2 (~2.5-4.0 mmol/L)"),
    ("Zone 4 - Anaerobic", "Threshold work around LT2 (~4.0-8.0 mmol/L)"),
    ("Zone 5 - Power", "Maximal anaerobic power (> 8.0 mmol/L)"),
)

THREE_ZONE_A_TEMPLATE: ZoneTemplate = (
    ("Zone 1 - Aerobic Base", "Aerobic endurance up to LT1"),
    ("Zone 2 - Threshold", "Tempo between LT1 and LT2"),
    ("Zone 3 - Anaerobic", "Anaerobic range above LT2"),
)

THREE_ZONE_B_TEMPLATE: ZoneTemplate = (
    ("Zone 1 - Low Intensity", "Low intensity, high volume (up to ~80% LT1)"),
    ("Zone 2 - Threshold", "Threshold range (~80% LT1 to ~105% LT2)"),
    ("Zone 3 - High Intensity", "High intensity, short intervals (above ~105% LT2)"),
)


def _five_zone_boundaries(lt1: float, lt2: float, method: str) -> List[float]:
    zone2_fraction, zone5_factor = (
        DICKHUTH_ZONE_SPACING if method == "dickhuth" else STANDARD_ZONE_SPACING
    )
    return [lt1 * zone2_fraction, lt1, lt2, lt2 * zone5_factor]


def _three_zone_a_boundaries(lt1: float, lt2: float, method: str) -> List[float]:
    return [lt1, lt2]


def _three_zone_b_boundaries(lt1: float, lt2: float, method: str) -> List[float]:
    return [lt1 * POLARIZED_LOW_FRACTION, lt2 * POLARIZED_HIGH_FACTOR]


ZONE_MODELS: Dict[str, Tuple[Callable[[float, float, str], List[float]], ZoneTemplate]] = {
    "5-zones": (_five_zone_boundaries, FIVE_ZONE_TEMPLATE),
    "3-zones-a": (_three_zone_a_boundaries, THREE_ZONE_A_TEMPLATE),
    "3-zones-b": (_three_zone_b_boundaries, THREE_ZONE_B_TEMPLATE),
}
# Used when a requested or configured model is unknown
FALLBACK_ZONE_MODEL = "5-zones"


def resolve_threshold_loads(
    lt1: Optional[ThresholdPoint],
    lt2: Optional[ThresholdPoint],
    max_load: float
) -> Tuple[float, float]:
    """LT1/LT2 loads with best-effort substitutes, LT1 never above LT2."""
    lt1_load = lt1.load if lt1 is not None else max_load * MISSING_LT1_FRACTION
    lt2_load = lt2.load if lt2 is not None else max_load * MISSING_LT2_FRACTION
    if lt1_load > lt2_load:
        logger.debug(f"LT1 {lt1_load} above LT2 {lt2_load}; collapsing onto LT2")
        lt1_load = lt2_load
    return lt1_load, lt2_load


def _build_zones(inner: Sequence[float], max_load: float, template: ZoneTemplate) -> List[TrainingZone]:
    """Clamp inner boundaries into [0, max_load] and emit contiguous zones."""
    clipped = np.clip(np.asarray(inner, dtype=float), 0.0, max_load)
    monotone = np.maximum.accumulate(clipped)
    edges = [0.0] + [round_value(b) for b in monotone] + [max_load]
    # rounding may push an inner edge past max_load
    edges = [min(e, max_load) for e in edges]

    return [
        TrainingZone(id=i + 1, name=name, range=(edges[i], edges[i + 1]), description=description)
        for i, (name, description) in enumerate(template)
    ]


def calculate_training_zones(
    lt1: Optional[ThresholdPoint],
    lt2: Optional[ThresholdPoint],
    max_load: float,
    method: str = "dickhuth",
    zone_model: Optional[str] = None
) -> List[TrainingZone]:
    """
    Calculate training zones from validated thresholds.

    Args:
        lt1: First threshold (None allowed)
        lt2: Second threshold (None allowed)
        max_load: Maximum observed load, upper bound of the last zone
        method: Threshold method the thresholds came from (selects 5-zone spacing)
        zone_model: '5-zones', '3-zones-a' or '3-zones-b'
            (default: Config.DEFAULT_ZONE_MODEL)

    Returns:
        Zones in ascending order: the first starts at 0, the last ends at
        max_load, and each zone starts where the previous one ends.
    """
    zone_model = zone_model or Config.DEFAULT_ZONE_MODEL
    if zone_model not in ZONE_MODELS:
        logger.warning(f"Unknown zone model '{zone_model}', using {FALLBACK_ZONE_MODEL}")
        zone_model = FALLBACK_ZONE_MODEL

    if max_load is None or not math.isfinite(max_load) or max_load < 0:
        logger.warning(f"Invalid max load {max_load}; zones collapse to 0")
        max_load = 0.0

    boundaries, template = ZONE_MODELS[zone_model]
    lt1_load, lt2_load = resolve_threshold_loads(lt1, lt2, max_load)
    return _build_zones(boundaries(lt1_load, lt2_load, method), max_load, template)
