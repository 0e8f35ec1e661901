# Tests configuration for lactate_engine
import pytest
import pandas as pd
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lactate_engine.models import DataPoint
from lactate_engine.calculations import RecordingTelemetry


def make_points(pairs, heart_rates=None):
    """Build DataPoints from (load, lactate) pairs."""
    heart_rates = heart_rates or [None] * len(pairs)
    return [
        DataPoint(load=load, lactate=lactate, heart_rate=hr, stage=i + 1)
        for i, ((load, lactate), hr) in enumerate(zip(pairs, heart_rates))
    ]


@pytest.fixture
def normal_curve():
    """Typical cycling step test (W, mmol/L)."""
    return make_points(
        [(100, 1.5), (150, 1.8), (200, 2.5), (250, 4.0), (300, 7.0)],
        heart_rates=[120, 132, 145, 160, 175],
    )


@pytest.fixture
def steep_late_rise():
    """Flat curve with a single steep rise in the last stage."""
    return make_points([(100, 1.5), (150, 1.6), (200, 1.7), (250, 2.0), (300, 7.0)])


@pytest.fixture
def early_rise_curve():
    """Steep first step then a flat plateau: raw DMAX LT1 lands after LT2."""
    return make_points([(100, 1.0), (150, 4.0), (200, 4.5), (250, 5.0), (300, 5.5), (350, 6.0)])


@pytest.fixture
def flat_beginning():
    """Long flat start, typical of a well-trained athlete."""
    return make_points([
        (100, 1.2), (125, 1.1), (150, 1.2), (175, 1.3), (200, 1.5),
        (225, 2.0), (250, 2.9), (275, 4.3), (300, 6.8),
    ])


@pytest.fixture
def smooth_curve():
    """Smooth log-log curve without an early slope change."""
    return make_points([(100, 1.5), (150, 1.6), (200, 1.7), (250, 1.8), (300, 5.0)])


@pytest.fixture
def running_test():
    """Treadmill test (km/h, mmol/L)."""
    return make_points([(8, 1.2), (10, 1.4), (12, 2.0), (14, 3.5), (16, 6.5)])


@pytest.fixture
def all_curves(normal_curve, steep_late_rise, early_rise_curve, flat_beginning, smooth_curve, running_test):
    return [normal_curve, steep_late_rise, early_rise_curve, flat_beginning, smooth_curve, running_test]


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def stage_records():
    """Raw stage records as delivered by a lactate analyzer."""
    return [
        {"stage": 1, "power": 100, "lactate": 1.5, "heartRate": 120},
        {"stage": 2, "power": 150, "lactate": 1.8, "heartRate": 132},
        {"stage": 3, "power": 200, "lactate": 2.5, "heartRate": 145},
        {"stage": 4, "power": 250, "lactate": 4.0, "heartRate": 160},
        {"stage": 5, "power": 300, "lactate": 7.0, "heartRate": 175},
    ]


@pytest.fixture
def stage_records_df(stage_records):
    return pd.DataFrame(stage_records)


@pytest.fixture
def points_from():
    """Factory fixture: (load, lactate) pairs -> DataPoints."""
    return make_points
