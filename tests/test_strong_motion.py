import numpy as np
import pytest

from strongmotion.processing.strong_motion import (
    FROM_G,
    StrongMotionCalculator,
    calculate_strong_motion,
)

from tests.helpers import sine


@pytest.fixture
def shaking():
    """0.2 g at 1 Hz for 10 seconds, in cm/s2."""
    return sine(1000, 0.01, 1.0, 0.2 * FROM_G)


def test_sine_parameters(shaking):
    params = calculate_strong_motion(shaking, 0.01)

    assert params is not None
    assert params.arias_intensity == pytest.approx(3.08, abs=0.02)
    assert params.rms_acceleration == pytest.approx(0.2 / np.sqrt(2.0), abs=0.005)
    assert params.duration_interval == pytest.approx(9.0, abs=0.1)
    assert params.duration_start < params.duration_end
    assert params.cumulative_abs_velocity == pytest.approx(12.49, abs=0.05)
    assert 9.8 <= params.bracketed_duration <= 10.0


def test_below_threshold_returns_none():
    assert calculate_strong_motion(np.full(1000, 1.0), 0.01) is None


def test_threshold_in_percent_g(shaking):
    assert StrongMotionCalculator(threshold_pct_g=25.0).calculate(shaking, 0.01) is None
    assert StrongMotionCalculator(threshold_pct_g=15.0).calculate(shaking, 0.01) is not None


def test_quiet_windows_excluded_from_cav():
    acc = np.zeros(1000)
    acc[:100] = sine(100, 0.01, 1.0, 0.2 * FROM_G)
    calculator = StrongMotionCalculator()
    gacc = acc / FROM_G
    cav = calculator.cumulative_absolute_velocity(acc, gacc, 0.01)
    assert cav == pytest.approx(1.249, abs=0.01)
