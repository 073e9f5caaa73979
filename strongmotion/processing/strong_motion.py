"""
Strong-Motion Parameters
========================
Computed parameters for records that exceed the strong-motion threshold.
"""

import numpy as np
from typing import Optional, Tuple
from scipy.integrate import cumulative_trapezoid, trapezoid
from dataclasses import dataclass

from strongmotion.processing.arrays import ArrayStats

# cm/s2 per g
FROM_G = 980.665
TO_G = 1.0 / FROM_G

# CAV only counts 1-second windows whose peak exceeds this level (g)
CAV_THRESHOLD = 0.025


@dataclass
class StrongMotionParams:
    """Computed parameters of a strong-motion record."""
    bracketed_duration: float = 0.0   # s above the threshold
    duration_interval: float = 0.0    # s between 5% and 95% Arias intensity
    duration_start: float = 0.0       # s
    duration_end: float = 0.0         # s
    arias_intensity: float = 0.0      # m/s
    rms_acceleration: float = 0.0     # g
    cumulative_abs_velocity: float = 0.0  # m/s

    def __repr__(self):
        return (
            f"StrongMotionParams(bracketed={self.bracketed_duration:.2f}s, "
            f"D5-95={self.duration_interval:.2f}s, "
            f"Ia={self.arias_intensity:.4f}m/s, "
            f"RMS={self.rms_acceleration:.4f}g, "
            f"CAV={self.cumulative_abs_velocity:.4f}m/s)"
        )


class StrongMotionCalculator:
    """
    Calculates duration and intensity measures from corrected acceleration.

    Acceleration is supplied in cm/s2 and converted to g internally.
    """

    def __init__(self, threshold_pct_g: float = 5.0):
        """
        Args:
            threshold_pct_g: Strong-motion threshold in percent of g
        """
        self.threshold = threshold_pct_g / 100.0

    @staticmethod
    def arias_integral(gacc_sq: np.ndarray, dt: float) -> float:
        """Trapezoidal integral of squared acceleration in g."""
        if len(gacc_sq) < 2:
            return 0.0
        return float(trapezoid(gacc_sq, dx=dt))

    def bracketed_duration(self, gacc: np.ndarray, dt: float) -> Optional[float]:
        """
        Time between the first and last exceedance of the threshold.

        Returns:
            Duration in seconds, or None when the record never exceeds
            the threshold
        """
        above = np.nonzero(np.abs(gacc) > self.threshold)[0]
        if len(above) == 0:
            return None
        return float((above[-1] - above[0]) * dt)

    @staticmethod
    def duration_interval(gacc_sq: np.ndarray, dt: float, total: float) -> Tuple[float, float]:
        """
        Times at which the running Arias integral reaches 5% and 95%.

        Returns:
            Tuple of (start, end) in seconds
        """
        running = cumulative_trapezoid(gacc_sq, dx=dt, initial=0.0)
        start = int(np.searchsorted(running, 0.05 * total))
        end = int(np.searchsorted(running, 0.95 * total))
        end = min(end, len(gacc_sq) - 1)
        return start * dt, end * dt

    @staticmethod
    def rms_acceleration(gacc: np.ndarray, dt: float, start: float, end: float) -> float:
        """RMS acceleration (g) over the duration interval."""
        first = int(round(start / dt))
        last = int(round(end / dt))
        segment = gacc[first:last + 1]
        if len(segment) == 0:
            return 0.0
        return float(np.sqrt(np.mean(segment ** 2)))

    @staticmethod
    def cumulative_absolute_velocity(acc: np.ndarray, gacc: np.ndarray, dt: float) -> float:
        """
        Integral of |acceleration| (m/s) over the 1-second windows whose
        peak exceeds CAV_THRESHOLD.
        """
        step = int(round(1.0 / dt))
        if step < 1:
            return 0.0
        windows = len(acc) // step
        total = 0.0
        for k in range(windows):
            window = slice(k * step, (k + 1) * step)
            if np.any(np.abs(gacc[window]) > CAV_THRESHOLD):
                total += float(np.sum(np.abs(acc[window]))) * 0.01 * dt
        return total

    def calculate(self, acceleration: np.ndarray, dt: float) -> Optional[StrongMotionParams]:
        """
        Compute all parameters.

        Args:
            acceleration: Corrected acceleration (cm/s2)
            dt: Sample interval (seconds)

        Returns:
            StrongMotionParams, or None when the peak is below the threshold
        """
        acc = np.asarray(acceleration, dtype=float)
        if len(acc) < 2:
            return None
        gacc = acc * TO_G
        if abs(ArrayStats(gacc).peak_value) < self.threshold:
            return None

        bracketed = self.bracketed_duration(gacc, dt)
        if bracketed is None:
            return None

        gacc_sq = gacc ** 2
        total = self.arias_integral(gacc_sq, dt)
        start, end = self.duration_interval(gacc_sq, dt, total)

        return StrongMotionParams(
            bracketed_duration=bracketed,
            duration_interval=end - start,
            duration_start=start,
            duration_end=end,
            arias_intensity=total * np.pi / 2.0 * FROM_G * 0.01,
            rms_acceleration=self.rms_acceleration(gacc, dt, start, end),
            cumulative_abs_velocity=self.cumulative_absolute_velocity(acc, gacc, dt),
        )


def calculate_strong_motion(
    acceleration: np.ndarray,
    dt: float,
    threshold_pct_g: float = 5.0
) -> Optional[StrongMotionParams]:
    """
    Convenience function to compute strong-motion parameters.

    Args:
        acceleration: Corrected acceleration (cm/s2)
        dt: Sample interval (seconds)
        threshold_pct_g: Strong-motion threshold in percent of g

    Returns:
        StrongMotionParams or None
    """
    return StrongMotionCalculator(threshold_pct_g).calculate(acceleration, dt)
