"""
Array Utilities
===============
Statistics, trend fitting, differentiation, tapering and zero-crossing
search for uniformly sampled traces.

Degenerate inputs (empty arrays, bad index ranges) return neutral
sentinels instead of raising or producing NaN.
"""

import numpy as np
from numpy.polynomial import polynomial as P
from scipy.integrate import cumulative_trapezoid
from typing import Tuple

EPSILON = 1e-5

# find_zero_crossing sentinels
NO_CROSSING = -1
INVALID_RANGE = -2

# Central-difference stencils, keyed by order
_STENCILS = {
    3: (np.array([-1.0, 0.0, 1.0]), 2.0),
    5: (np.array([1.0, -8.0, 0.0, 8.0, -1.0]), 12.0),
    7: (np.array([-1.0, 9.0, -45.0, 0.0, 45.0, -9.0, 1.0]), 60.0),
    9: (np.array([3.0, -32.0, 168.0, -672.0, 0.0, 672.0, -168.0, 32.0, -3.0]), 840.0),
}


class ArrayStats:
    """
    Summary statistics of a single array.

    The peak is the sample with the largest magnitude, keeping its sign.
    """

    def __init__(self, values: np.ndarray):
        self.values = np.asarray(values, dtype=float)
        n = len(self.values)
        if n == 0:
            self.mean = 0.0
            self.min_value = self.max_value = 0.0
            self.min_index = self.max_index = -1
            self.peak_value = 0.0
            self.peak_index = -1
            return

        self.mean = float(np.mean(self.values))
        self.min_index = int(np.argmin(self.values))
        self.max_index = int(np.argmax(self.values))
        self.min_value = float(self.values[self.min_index])
        self.max_value = float(self.values[self.max_index])

        if abs(self.max_value) > abs(self.min_value):
            self.peak_value, self.peak_index = self.max_value, self.max_index
        else:
            self.peak_value, self.peak_index = self.min_value, self.min_index

    @property
    def value_range(self) -> float:
        return self.max_value - self.min_value

    def histogram(self, num_bins: int) -> Tuple[np.ndarray, float]:
        """
        Count samples in equal-width bins between min and max.

        Each bin includes its lower edge and excludes its upper edge, so
        the maximum value itself is not counted.

        Returns:
            Tuple of (counts, bin width)
        """
        step = self.value_range / num_bins
        if num_bins < 1 or step <= 0:
            return np.zeros(max(num_bins, 0), dtype=int), 0.0
        bins = np.floor((self.values - self.min_value) / step).astype(int)
        bins = bins[(bins >= 0) & (bins < num_bins)]
        return np.bincount(bins, minlength=num_bins), step

    def _modal_level(self, num_bins: int, lower_half: bool) -> float:
        counts, step = self.histogram(num_bins)
        occupied = np.nonzero(counts)[0]
        if step == 0 or len(occupied) == 0:
            return self.min_value
        start_bin, stop_bin = int(occupied[0]), int(occupied[-1])
        half = (stop_bin - start_bin) // 2 + 1
        if lower_half:
            candidates = range(start_bin, max(half, start_bin + 1))
        else:
            candidates = range(min(half, stop_bin), stop_bin + 1)

        # ties go to the later bin
        mode_index, mode_count = candidates[0], -1
        for i in candidates:
            if counts[i] >= mode_count:
                mode_index, mode_count = i, counts[i]
        return self.min_value + step * mode_index + step / 2.0

    def modal_min(self, num_bins: int) -> float:
        """Centre of the most populated bin in the lower half of the histogram."""
        return self._modal_level(num_bins, lower_half=True)

    def modal_max(self, num_bins: int) -> float:
        """Centre of the most populated bin in the upper half of the histogram."""
        return self._modal_level(num_bins, lower_half=False)


def subset_mean(values: np.ndarray, start: int, stop: int) -> float:
    """Mean of values[start:stop], or 0.0 for an invalid range."""
    if start < 0 or stop > len(values) or start >= stop:
        return 0.0
    return float(np.mean(values[start:stop]))


def standard_deviation(values: np.ndarray) -> float:
    """Sample standard deviation (n - 1 denominator); 0.0 below two samples."""
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def root_mean_square(values: np.ndarray, reference: np.ndarray = None) -> float:
    """
    RMS of values, or of the difference from a reference curve.

    Returns 0.0 for empty input.
    """
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        return 0.0
    if reference is not None:
        if len(reference) != len(values):
            raise ValueError("RMS reference length does not match values")
        values = values - reference
    return float(np.sqrt(np.mean(values ** 2)))


def sample_times(length: int, dt: float, start: int = 0) -> np.ndarray:
    """Times i*dt for i in [start, start+length)."""
    return (np.arange(length) + start) * dt


def polynomial_fit(values: np.ndarray, dt: float, degree: int) -> np.ndarray:
    """
    Least-squares polynomial against time i*dt.

    Returns:
        Coefficients ordered from the constant term up; empty when there
        are not enough samples for the requested degree.
    """
    if degree < 0 or len(values) <= degree:
        return np.array([])
    return P.polyfit(sample_times(len(values), dt), values, degree)


def polynomial_values(coefs: np.ndarray, length: int, dt: float, start: int = 0) -> np.ndarray:
    """Evaluate a polynomial at times (start + i)*dt."""
    if len(coefs) == 0:
        return np.zeros(length)
    return P.polyval(sample_times(length, dt, start), coefs)


def polynomial_derivative(coefs: np.ndarray) -> np.ndarray:
    if len(coefs) == 0:
        return np.array([])
    return P.polyder(coefs)


def remove_linear_trend(values: np.ndarray, dt: float) -> np.ndarray:
    """Subtract the least-squares line through (i*dt, values) in place."""
    if len(values) < 2:
        return values
    coefs = polynomial_fit(values, dt, 1)
    values -= polynomial_values(coefs, len(values), dt)
    return values


def find_trend_with_best_fit(values: np.ndarray, dt: float) -> Tuple[np.ndarray, int]:
    """
    Fit first- and second-order trends and keep the better one.

    The linear trend is kept unless the quadratic reduces the RMS error
    by more than EPSILON.

    Returns:
        Tuple of (coefficients, degree); degree 0 with empty coefficients
        when the array is too short.
    """
    n = len(values)
    if n < 3:
        return np.array([]), 0
    linear = polynomial_fit(values, dt, 1)
    quadratic = polynomial_fit(values, dt, 2)
    rms_linear = root_mean_square(values, polynomial_values(linear, n, dt))
    rms_quadratic = root_mean_square(values, polynomial_values(quadratic, n, dt))
    if rms_linear - rms_quadratic <= EPSILON:
        return linear, 1
    return quadratic, 2


def integrate(values: np.ndarray, dt: float, initial: float = 0.0) -> np.ndarray:
    """Trapezoidal running integral starting at the given initial value."""
    if len(values) == 0:
        return np.array([])
    return cumulative_trapezoid(values, dx=dt, initial=0.0) + initial


def central_difference(values: np.ndarray, dt: float, order: int = 5) -> np.ndarray:
    """
    Differentiate with a central-difference stencil of the given order.

    Points too close to the ends for the full stencil use the widest
    stencil that fits, down to a two-point difference at the end samples.

    Args:
        values: Input array
        dt: Sample interval (seconds)
        order: Stencil width, one of 3, 5, 7, 9

    Returns:
        Derivative array of the same length
    """
    if order not in _STENCILS:
        raise ValueError(f"Differentiation order must be 3, 5, 7 or 9, got {order}")
    values = np.asarray(values, dtype=float)
    n = len(values)
    result = np.zeros(n)
    if n < 2:
        return result

    for width in (3, 5, 7, 9):
        if width > order:
            break
        weights, scale = _STENCILS[width]
        half = width // 2
        if n <= 2 * half:
            break
        interior = np.zeros(n - 2 * half)
        for j, w in enumerate(weights):
            if w:
                interior += w * values[j:n - 2 * half + j]
        result[half:n - half] = interior / (scale * dt)

    result[0] = (values[1] - values[0]) / dt
    result[-1] = (values[-1] - values[-2]) / dt
    return result


def correct_for_zero_initial_estimate(values: np.ndarray, upper_limit: int) -> np.ndarray:
    """
    Remove the mean of the leading segment before the first zero crossing.

    The crossing is searched backward from upper_limit. Integrating with
    a zero initial value leaves an unknown offset; the mean of the quiet
    leading samples is the best estimate of it.
    """
    crossing = find_zero_crossing(values, upper_limit, 0)
    if crossing > 1:
        values -= subset_mean(values, 1, crossing)
    return values


def cosine_taper(values: np.ndarray, start_length: int, end_length: int) -> bool:
    """
    Apply half-cosine tapers to both ends of the array in place.

    Args:
        values: Array to taper
        start_length: Full cosine length at the start; half of it is applied
        end_length: Full cosine length at the end; half of it is applied

    Returns:
        False if a taper length is invalid (array left unchanged)
    """
    n = len(values)
    if start_length == 0 and end_length == 0:
        return True
    if start_length <= 1 or end_length <= 1 or start_length > n or end_length > n:
        return False

    m1 = start_length // 2
    taper = 0.5 * (1.0 - np.cos(2.0 * np.pi * np.arange(m1) / (start_length - 1)))
    values[:m1] *= taper

    m2 = end_length // 2
    taper = 0.5 * (1.0 - np.cos(2.0 * np.pi * np.arange(m2) / (end_length - 1)))
    values[n - m2:] *= taper[::-1]
    return True


def find_zero_crossing(values: np.ndarray, start: int, stop: int) -> int:
    """
    Find the first zero crossing between start and stop.

    Searching forward (start < stop) returns the first k with
    values[k] * values[k+1] <= 0. Searching backward (start > stop)
    returns k - 1 for the first k with values[k] * values[k-1] < 0.

    Returns:
        The crossing index, NO_CROSSING (-1) when none was found, or
        INVALID_RANGE (-2) for an empty array or bad indices.
    """
    n = len(values)
    if n == 0 or start == stop or not (0 <= start < n) or not (0 <= stop < n):
        return INVALID_RANGE

    if start < stop:
        products = values[start + 1:stop] * values[start:stop - 1]
        hits = np.nonzero(products <= 0.0)[0]
        return int(start + hits[0]) if len(hits) else NO_CROSSING

    # backward: products[j] = values[start - j] * values[start - j - 1]
    segment = values[stop:start + 1][::-1]
    products = segment[:-1] * segment[1:]
    hits = np.nonzero(products < 0.0)[0]
    return int(start - hits[0] - 1) if len(hits) else NO_CROSSING


def signal_to_noise_ratio(values: np.ndarray, onset: int) -> float:
    """
    Signal-to-noise ratio in dB, using the samples before onset as noise.

    Returns:
        10*log10(mean power / mean pre-onset power), or -1.0 when the
        onset is out of range or the noise power is zero.
    """
    if onset <= 0 or onset >= len(values):
        return -1.0
    power = np.asarray(values, dtype=float) ** 2
    noise = float(np.mean(power[:onset]))
    if noise <= 0.0:
        return -1.0
    return float(10.0 * np.log10(np.mean(power) / noise))
