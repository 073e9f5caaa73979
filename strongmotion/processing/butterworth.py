"""
Butterworth Bandpass Filter
===========================
Recursive bandpass filter built from second-order sections, applied
causally (one forward pass) or acausally (forward and backward, with
tapering and zero padding).
"""

import math
import numpy as np
from scipy import signal
from typing import Optional

from strongmotion.errors import FilterParameterError
from strongmotion.processing.arrays import cosine_taper, find_zero_crossing

MAX_ROLLOFF = 8
CORNER_EPSILON = 0.001


class ButterworthFilter:
    """
    Bandpass Butterworth filter for a fixed sample interval.

    Each of the 2 x roll-off sections implements

        y[n] = fact * (x[n] - x[n-2]) - b1 * y[n-1] - b2 * y[n-2]

    with poles obtained by mapping the analog bandpass prototype through
    the bilinear transform at pre-warped corner frequencies.
    """

    def __init__(self):
        self.lowcut: Optional[float] = None
        self.highcut: Optional[float] = None
        self.dt: Optional[float] = None
        self.rolloff = 0
        self.causal = False
        self.fact = np.array([])
        self.b1 = np.array([])
        self.b2 = np.array([])

        # Set by apply()
        self.pad_length = 0
        self.taper_start_count = 0
        self.taper_end_count = 0

    @staticmethod
    def validate(lowcut: float, highcut: float, dt: float, rolloff: int) -> None:
        """
        Raise FilterParameterError unless 0 < lowcut < highcut < nyquist
        and 1 <= rolloff <= MAX_ROLLOFF, with the corners clear of each
        other, of zero and of nyquist.
        """
        if not dt or not math.isfinite(dt) or dt <= 0:
            raise FilterParameterError(f"Sample interval must be positive, got {dt}")
        nyquist = 0.5 / dt
        if not (1 <= rolloff <= MAX_ROLLOFF):
            raise FilterParameterError(f"Roll-off must be in [1, {MAX_ROLLOFF}], got {rolloff}")
        if not (0.0 < lowcut < highcut < nyquist):
            raise FilterParameterError(
                f"Corners must satisfy 0 < {lowcut} < {highcut} < nyquist {nyquist}"
            )
        if (abs(lowcut) < CORNER_EPSILON or abs(highcut - lowcut) < CORNER_EPSILON
                or abs(lowcut - nyquist) < CORNER_EPSILON
                or abs(highcut - nyquist) < CORNER_EPSILON):
            raise FilterParameterError(
                f"Corners {lowcut}/{highcut} Hz too close to each other, zero or nyquist"
            )

    def calculate_coefficients(
        self,
        lowcut: float,
        highcut: float,
        dt: float,
        rolloff: int,
        causal: bool = False
    ) -> "ButterworthFilter":
        """
        Compute the section gains and recursion coefficients.

        Args:
            lowcut: Low corner (Hz)
            highcut: High corner (Hz)
            dt: Sample interval (seconds)
            rolloff: Roll-off; the filter order is 2 x rolloff
            causal: Forward-only application when True

        Returns:
            self

        Raises:
            FilterParameterError: if the parameters are invalid
        """
        self.validate(lowcut, highcut, dt, rolloff)

        w1 = 2.0 * math.tan(2.0 * math.pi * lowcut * dt / 2.0) / dt
        w2 = 2.0 * math.tan(2.0 * math.pi * highcut * dt / 2.0) / dt
        bandwidth = w2 - w1

        sections = 2 * rolloff
        fact = np.zeros(sections)
        b1 = np.zeros(sections)
        b2 = np.zeros(sections)

        for k in range(1, rolloff + 1):
            angle = math.pi * (2 * k - 1) / (4 * rolloff)
            pre = -math.sin(angle)
            pim = math.cos(angle)
            argre = (pre ** 2 - pim ** 2) * bandwidth ** 2 / 4.0 - w1 * w2
            argim = 2.0 * pre * pim * bandwidth ** 2 / 4.0
            rho = (argre ** 2 + argim ** 2) ** 0.25
            theta = math.pi + math.atan2(argim, argre) / 2.0

            for i in (1, 2):
                sign = (-1) ** i
                sjre = pre * bandwidth / 2.0 + sign * rho * (-math.sin(theta - math.pi / 2.0))
                sjim = pim * bandwidth / 2.0 + sign * rho * math.cos(theta - math.pi / 2.0)
                bj = -2.0 * sjre
                cj = sjre ** 2 + sjim ** 2
                con = 1.0 / (2.0 / dt + bj + cj * dt / 2.0)
                index = 2 * k + i - 3
                fact[index] = bandwidth * con
                b1[index] = (cj * dt - 4.0 / dt) * con
                b2[index] = (2.0 / dt - bj + cj * dt / 2.0) * con

        self.lowcut, self.highcut, self.dt = lowcut, highcut, dt
        self.rolloff, self.causal = rolloff, causal
        self.fact, self.b1, self.b2 = fact, b1, b2
        return self

    def filter_sections(self, values: np.ndarray) -> np.ndarray:
        """Run every section forward over the array, starting from rest."""
        result = np.asarray(values, dtype=float)
        for fact, b1, b2 in zip(self.fact, self.b1, self.b2):
            result = signal.lfilter([fact, 0.0, -fact], [1.0, b1, b2], result)
        return result

    def padding_samples(self) -> int:
        """Zero padding added around the trace for acausal filtering."""
        dt = self.dt
        return max(
            int(math.floor(3.0 * self.rolloff / (self.lowcut * dt))),
            int(math.floor(6.0 * self.rolloff / ((self.highcut - self.lowcut) * dt))),
        )

    def apply(self, values: np.ndarray, taper_length: float, onset_index: int) -> np.ndarray:
        """
        Filter the array in place.

        For acausal filtering the start taper runs to the last zero
        crossing before the onset (or twice taper_length when that
        crossing is missing or too early), the end taper covers twice
        taper_length, and the trace is zero padded on both sides before
        the forward and backward passes.

        Args:
            values: Trace to filter, modified in place
            taper_length: Minimum taper time (seconds)
            onset_index: Event onset sample used to place the start taper

        Returns:
            The filtered trace including padding; pad_length holds the
            number of samples padded in front.
        """
        if self.dt is None:
            raise FilterParameterError("Filter coefficients have not been calculated")
        dt = self.dt
        fallback = int(2.0 * taper_length / dt)

        taper_count = find_zero_crossing(values, onset_index, 0)
        if taper_count <= 0 or taper_count * dt < taper_length:
            taper_count = fallback
        self.taper_start_count = taper_count
        self.taper_end_count = fallback

        if self.causal:
            self.pad_length = 0
            values[:] = self.filter_sections(values)
            return values.copy()

        cosine_taper(values, self.taper_start_count, self.taper_end_count)

        npad = self.padding_samples()
        front = npad // 2
        padded = np.zeros(len(values) + npad)
        padded[front:front + len(values)] = values

        padded = self.filter_sections(padded)
        padded = self.filter_sections(padded[::-1])[::-1].copy()

        values[:] = padded[front:front + len(values)]
        self.pad_length = front
        return padded


if __name__ == "__main__":
    print("Testing Butterworth filter")
    print("=" * 50)

    dt = 0.01
    t = np.arange(4000) * dt
    trace = np.sin(2 * np.pi * 2.0 * t) + 0.5 * np.sin(2 * np.pi * 0.02 * t)

    bw = ButterworthFilter().calculate_coefficients(0.1, 20.0, dt, 2)
    padded = bw.apply(trace, 2.0, 0)
    print(f"  Sections: {len(bw.fact)}")
    print(f"  Padded length: {len(padded)} (front pad {bw.pad_length})")
    print(f"  Taper samples: start {bw.taper_start_count}, end {bw.taper_end_count}")
    print(f"  Mid-record peak: {np.max(np.abs(trace[1000:3000])):.3f}")
