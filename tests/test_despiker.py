import numpy as np
import pytest

from strongmotion.processing.despiker import Despiker, despike_record


@pytest.fixture
def pulse():
    t = np.arange(1000) * 0.01
    return 10.0 * np.exp(-((t - 5.0) / 1.0) ** 2)


def test_isolated_spike_removed(pulse):
    values = pulse.copy()
    values[300] += 200.0
    result = despike_record(values, 0.01)

    assert result.spikes_found
    assert result.spike_count >= 1
    assert result.cleaned is values
    assert values[300] == pytest.approx(pulse[300], abs=0.5)
    assert np.max(np.abs(values - pulse)) < 0.5


def test_smooth_signal_untouched(pulse):
    values = pulse.copy()
    result = Despiker().despike(values, 0.01)
    assert result.spike_count == 0
    assert np.array_equal(values, pulse)


def test_spike_near_start_uses_inward_mean():
    values = np.zeros(100)
    values[3] = 50.0
    assert Despiker().fix_spike(values, 3)
    assert values[3] == 0.0


def test_short_trace_left_alone():
    values = np.ones(15)
    values[7] = 40.0
    assert not Despiker().fix_spike(values, 7)
    assert values[7] == 40.0


def test_empty_trace():
    result = Despiker().despike(np.array([]), 0.01)
    assert result.spike_count == 0
    assert not result.spikes_found
