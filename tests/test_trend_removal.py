import numpy as np
import pytest

from strongmotion.processing.trend_removal import TrendRemover


def test_offset_and_ramp_removed(dt, time_integrator):
    t = np.arange(2000) * dt
    acceleration = 0.3 + 0.01 * t
    result = TrendRemover(time_integrator).remove(acceleration, dt, 300)

    assert result.acceleration is acceleration
    assert result.pre_event_mean == pytest.approx(0.3 + 0.01 * 1.495)
    assert result.trend_order == 1
    assert np.max(np.abs(result.velocity)) < 1e-6
    assert np.max(np.abs(acceleration)) < 1e-6


def test_constant_offset_without_onset(dt, time_integrator):
    acceleration = np.full(1000, 0.5)
    result = TrendRemover(time_integrator).remove(acceleration, dt, 0)

    # no pre-event window: the offset becomes a linear velocity trend
    assert result.pre_event_mean == 0.0
    assert result.trend_order == 0
    assert np.max(np.abs(result.velocity)) < 1e-9


def test_fft_integrator_path(dt):
    from strongmotion.processing.integration import Integrator

    t = np.arange(2048) * dt
    acceleration = np.sin(2.0 * np.pi * 3.0 * t) + 0.2
    result = TrendRemover(Integrator(use_fft=True)).remove(acceleration, dt, 200)
    assert len(result.velocity) == 2048
    assert np.all(np.isfinite(result.velocity))
