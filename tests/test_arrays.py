import numpy as np
import pytest

from strongmotion.processing.arrays import (
    INVALID_RANGE,
    NO_CROSSING,
    ArrayStats,
    central_difference,
    correct_for_zero_initial_estimate,
    cosine_taper,
    find_trend_with_best_fit,
    find_zero_crossing,
    integrate,
    polynomial_fit,
    remove_linear_trend,
    root_mean_square,
    signal_to_noise_ratio,
    subset_mean,
)


def test_zero_crossing_forward():
    assert find_zero_crossing(np.array([1.0, 1.0, -1.0, -1.0]), 0, 3) == 1


def test_zero_crossing_backward():
    assert find_zero_crossing(np.array([-1.0, -1.0, 1.0, 1.0]), 3, 0) == 1


def test_zero_crossing_sentinels():
    assert find_zero_crossing(np.ones(5), 0, 4) == NO_CROSSING
    assert find_zero_crossing(np.array([]), 0, 3) == INVALID_RANGE
    assert find_zero_crossing(np.ones(5), 2, 2) == INVALID_RANGE
    assert find_zero_crossing(np.ones(5), 0, 9) == INVALID_RANGE


def test_array_stats_signed_peak():
    stats = ArrayStats(np.array([1.0, -3.0, 2.0]))
    assert stats.peak_value == -3.0
    assert stats.peak_index == 1
    assert stats.mean == pytest.approx(0.0)
    assert stats.value_range == 5.0


def test_array_stats_empty():
    stats = ArrayStats(np.array([]))
    assert stats.peak_index == -1
    assert stats.peak_value == 0.0


def test_modal_min_picks_lower_cluster():
    values = np.concatenate((np.full(50, 0.1), np.full(5, 9.9), [0.0, 10.0]))
    level = ArrayStats(values).modal_min(4)
    # bin 0 covers [0, 2.5)
    assert level == pytest.approx(1.25)


def test_subset_mean_invalid_range():
    assert subset_mean(np.arange(5.0), 3, 2) == 0.0
    assert subset_mean(np.arange(5.0), 0, 10) == 0.0
    assert subset_mean(np.arange(5.0), 1, 3) == pytest.approx(1.5)


def test_rms_with_reference():
    values = np.array([1.0, 2.0, 3.0])
    assert root_mean_square(values, values) == 0.0
    assert root_mean_square(np.array([])) == 0.0
    assert root_mean_square(np.array([3.0, -3.0])) == pytest.approx(3.0)


def test_polynomial_fit_recovers_coefficients(dt):
    t = np.arange(500) * dt
    coefs = polynomial_fit(1.0 + 2.0 * t - 0.5 * t ** 2, dt, 2)
    assert coefs == pytest.approx([1.0, 2.0, -0.5], abs=1e-9)
    assert len(polynomial_fit(np.ones(2), dt, 2)) == 0


def test_best_fit_prefers_linear_when_quadratic_adds_nothing(dt):
    t = np.arange(1000) * dt
    _, degree = find_trend_with_best_fit(3.0 - 0.2 * t, dt)
    assert degree == 1
    _, degree = find_trend_with_best_fit(0.3 * t ** 2, dt)
    assert degree == 2


def test_remove_linear_trend_in_place(dt):
    values = 4.0 + 0.5 * np.arange(300) * dt
    remove_linear_trend(values, dt)
    assert np.max(np.abs(values)) < 1e-10


def test_central_difference_quadratic(dt):
    t = np.arange(200) * dt
    for order in (3, 5, 7, 9):
        derivative = central_difference(t ** 2, dt, order)
        assert derivative[5:-5] == pytest.approx(2.0 * t[5:-5], abs=1e-8)


def test_central_difference_rejects_order(dt):
    with pytest.raises(ValueError):
        central_difference(np.ones(10), dt, 4)


def test_integrate_constant(dt):
    result = integrate(np.ones(101), dt, 1.0)
    assert result[0] == 1.0
    assert result[-1] == pytest.approx(2.0)


def test_cosine_taper():
    values = np.ones(100)
    assert cosine_taper(values, 20, 20)
    assert values[0] == 0.0
    assert values[-1] == 0.0
    assert np.all(values[10:90] == 1.0)
    assert not cosine_taper(np.ones(10), 20, 4)


def test_zero_initial_estimate_removes_leading_offset():
    values = np.concatenate((np.full(10, 0.5), [-1.0], np.linspace(0.0, 3.0, 20)))
    correct_for_zero_initial_estimate(values, 15)
    # crossing found at index 9, the mean of values[1:9] was removed
    assert values[1] == pytest.approx(0.0)


def test_signal_to_noise_ratio():
    values = np.concatenate((np.full(100, 0.1), np.full(100, 10.0)))
    snr = signal_to_noise_ratio(values, 100)
    assert snr == pytest.approx(10.0 * np.log10((0.01 + 100.0) / 2.0 / 0.01))
    assert signal_to_noise_ratio(values, 0) == -1.0
    assert signal_to_noise_ratio(np.zeros(10), 5) == -1.0
