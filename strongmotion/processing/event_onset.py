"""
Event Onset Detection
=====================
Picks the sample where seismic signal begins.

Two interchangeable pickers:
- PWD: energy of a damped single-degree-of-freedom oscillator driven by
  the trace (P-wave detector)
- AIC: Akaike information criterion changepoint on segment variances
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

import numpy as np
from scipy import linalg

from strongmotion.errors import ConfigurationError
from strongmotion.processing.arrays import (
    ArrayStats,
    central_difference,
    integrate,
    remove_linear_trend,
    signal_to_noise_ratio,
)
from strongmotion.processing.butterworth import ButterworthFilter

logger = logging.getLogger(__name__)


@lru_cache(maxsize=32)
def oscillator_coefficients(dt: float, period: float = 0.01, damping: float = 0.6) -> Tuple[float, ...]:
    """
    Discrete recursion coefficients for a damped oscillator.

    With A = [[0, 1], [-w^2, -2*xi*w]], the state transition is
    expm(A*dt) and the input vector is A^-1 (expm(A*dt) - I) [0, 1].

    Returns:
        Tuple (a, b, c, d, e, f) with transition [[a, b], [c, d]] and
        input vector [e, f]
    """
    omega = 2.0 * np.pi / period
    system = np.array([[0.0, 1.0], [-omega ** 2, -2.0 * damping * omega]])
    transition = linalg.expm(system * dt)
    forcing = np.linalg.solve(system, (transition - np.eye(2)) @ np.array([0.0, 1.0]))
    a, b = transition[0]
    c, d = transition[1]
    return float(a), float(b), float(c), float(d), float(forcing[0]), float(forcing[1])


def buffered_index(onset: int, buffer_seconds: float, dt: float) -> int:
    """Move the onset back by buffer_seconds, clamped at zero."""
    if dt <= 0 or abs(dt) < np.finfo(float).eps:
        return -1
    return max(0, onset - int(round(buffer_seconds / dt)))


class PWDDetector:
    """
    P-wave detector.

    The trace up to its peak drives an oscillator with a 0.01 s natural
    period and 0.6 damping ratio. The normalized viscous damping energy
    is differentiated; the first sample exceeding the lower modal level
    of that curve is the rough pick, and the last zero crossing of the
    acceleration before it is the onset.
    """

    NUM_BINS = 200
    DAMPING = 0.6
    PERIOD = 0.01

    def __init__(self, dt: float, differentiation_order: int = 5):
        self.dt = dt
        self.differentiation_order = differentiation_order
        self.omega = 2.0 * np.pi / self.PERIOD
        self.damping_constant = 2.0 * self.DAMPING * self.omega
        self.coefficients = oscillator_coefficients(dt, self.PERIOD, self.DAMPING)

    def find_onset(self, acceleration: np.ndarray) -> int:
        """
        Returns:
            Onset index, 0 if none was found, -1 for an empty trace
        """
        if len(acceleration) == 0:
            return -1
        peak = ArrayStats(acceleration).peak_index
        acc = np.asarray(acceleration[:peak], dtype=float)
        n = len(acc)
        if n < 2:
            return 0

        a, b, c, d, e, f = self.coefficients
        displacement = np.zeros(n)
        velocity = np.zeros(n)
        for k in range(1, n):
            displacement[k] = a * displacement[k - 1] + b * velocity[k - 1] + e * acc[k]
            velocity[k] = c * displacement[k - 1] + d * velocity[k - 1] + f * acc[k]

        energy = integrate(self.damping_constant * velocity ** 2, self.dt, 0.0)
        largest = np.max(np.abs(energy))
        normalized = energy / largest if largest > 0 else np.zeros(n)
        power = central_difference(normalized, self.dt, self.differentiation_order)

        lower_mode = ArrayStats(power).modal_min(self.NUM_BINS)
        above = np.nonzero(power > lower_mode)[0]
        rough_pick = int(above[0]) if len(above) else 0

        for k in range(rough_pick, 0, -1):
            if acc[k] * acc[k - 1] < 0.0:
                return k - 1
        return 0


class AICDetector:
    """Akaike information criterion picker."""

    def __init__(self, to_peak: bool = True):
        self.to_peak = to_peak

    @staticmethod
    def aic_curve(segment: np.ndarray) -> np.ndarray:
        """
        k*log(var(left)) + (n-k)*log(var(right)) for k in [0, n-1).

        Sample variances; a segment with no spread contributes zero.
        """
        n = len(segment)
        if n < 2:
            return np.array([])
        split = np.arange(n - 1)

        prefix = np.concatenate(([0.0], np.cumsum(segment)))
        prefix_sq = np.concatenate(([0.0], np.cumsum(segment ** 2)))

        with np.errstate(divide="ignore", invalid="ignore"):
            left_n = split.astype(float)
            left_var = (prefix_sq[split] - prefix[split] ** 2 / left_n) / (left_n - 1.0)
            right_n = (n - split).astype(float)
            right_sum = prefix[n] - prefix[split]
            right_sq = prefix_sq[n] - prefix_sq[split]
            right_var = (right_sq - right_sum ** 2 / right_n) / (right_n - 1.0)

            left_var = np.where(left_n >= 2, left_var, 0.0)
            left_log = np.where(left_var > 0, np.log(np.where(left_var > 0, left_var, 1.0)), 0.0)
            right_log = np.where(right_var > 0, np.log(np.where(right_var > 0, right_var, 1.0)), 0.0)

        return split * left_log + (n - split) * right_log

    def find_onset(self, values: np.ndarray) -> int:
        """
        Returns:
            Index one past the minimum of the AIC curve, 0 when the search
            window is too short, -1 for an empty trace
        """
        if len(values) == 0:
            return -1
        work = np.asarray(values, dtype=float) - np.median(values)
        if self.to_peak:
            work = work[:ArrayStats(work).peak_index]
        curve = self.aic_curve(work)
        if len(curve) == 0:
            return 0
        return int(np.argmin(curve)) + 1


@dataclass
class OnsetPick:
    """Event onset pick with the filtered copy it was made on."""
    method: str
    onset_index: int
    buffered_index: int
    snr: float
    filtered: np.ndarray


class EventOnsetPicker:
    """
    Picks the onset on a detrended, bandpass-filtered copy of the trace.

    Args:
        method: "PWD" or "AIC"
        lowcut: Filter low corner (Hz)
        highcut: Filter high corner (Hz)
        rolloff: Filter roll-off
        taper_length: Minimum taper time (seconds)
        buffer: Seconds subtracted from the pick
        differentiation_order: Stencil width for the PWD energy derivative
    """

    def __init__(
        self,
        method: str = "PWD",
        lowcut: float = 0.1,
        highcut: float = 20.0,
        rolloff: int = 2,
        taper_length: float = 2.0,
        buffer: float = 0.0,
        differentiation_order: int = 5
    ):
        method = method.upper()
        if method not in ("PWD", "AIC"):
            raise ConfigurationError(f"Unknown event onset method: {method}")
        self.method = method
        self.lowcut = lowcut
        self.highcut = highcut
        self.rolloff = rolloff
        self.taper_length = taper_length
        self.buffer = buffer
        self.differentiation_order = differentiation_order

    def pick(self, acceleration: np.ndarray, dt: float) -> OnsetPick:
        """
        Pick the event onset. The input array is not modified.

        Raises:
            FilterParameterError: if the filter corners are invalid for dt
        """
        bandpass = ButterworthFilter().calculate_coefficients(
            self.lowcut, self.highcut, dt, self.rolloff, causal=False
        )
        work = np.array(acceleration, dtype=float)
        remove_linear_trend(work, dt)
        bandpass.apply(work, self.taper_length, int(self.taper_length * dt))

        if self.method == "PWD":
            onset = PWDDetector(dt, self.differentiation_order).find_onset(work)
        else:
            onset = AICDetector(to_peak=True).find_onset(work)

        buffered = buffered_index(onset, self.buffer, dt) if onset > 0 else onset
        snr = signal_to_noise_ratio(work, onset)
        logger.debug("%s onset %d (buffered %d), SNR %.2f dB", self.method, onset, buffered, snr)
        return OnsetPick(
            method=self.method,
            onset_index=onset,
            buffered_index=buffered,
            snr=snr,
            filtered=work,
        )
