"""
Time-Series Resampling Module
=============================
Upsamples records below the sampling floor and decimates them back.

Both directions work in the frequency domain on a zero-padded trace:
upsampling inserts zeros above the original Nyquist frequency of the
power-of-two padded trace, decimation pads to a power of two rounded up
to a multiple of the factor and drops the bins above the new Nyquist
frequency.
"""

import math
import numpy as np
from scipy import fft

from strongmotion.errors import ConfigurationError
from strongmotion.processing.fourier import FourierEngine, next_power_of_two


class Resampler:
    """
    Integer-factor spectral resampler.

    Args:
        limit: Minimum acceptable samples per second
    """

    def __init__(self, limit: float = 200.0):
        if limit <= 0:
            raise ConfigurationError(f"Sampling limit must be positive, got {limit}")
        self.limit = limit

    def needs_resampling(self, sample_rate: float) -> bool:
        return 0 < sample_rate < self.limit

    def factor(self, sample_rate: float) -> int:
        """Upsampling factor for a rate, 1 when no resampling is needed."""
        if sample_rate <= 0:
            raise ConfigurationError(f"Invalid sampling rate of {sample_rate}")
        if not self.needs_resampling(sample_rate):
            return 1
        return int(math.ceil(self.limit / sample_rate))

    def resample(self, values: np.ndarray, sample_rate: float) -> np.ndarray:
        """
        Upsample by zero insertion in the spectrum.

        Args:
            values: Trace at the original rate
            sample_rate: Original samples per second

        Returns:
            Trace at sample_rate * factor, len(values) * factor samples
        """
        factor = self.factor(sample_rate)
        n = len(values)
        if factor == 1 or n == 0:
            return np.array(values, dtype=float)

        padded = FourierEngine.pad(values)
        size = len(padded)
        spectrum = fft.rfft(padded)

        upsized = np.zeros(size * factor // 2 + 1, dtype=complex)
        upsized[:len(spectrum)] = spectrum
        # the old Nyquist bin is shared between the positive and negative halves
        upsized[size // 2] /= 2.0

        upsampled = fft.irfft(upsized, n=size * factor) * factor
        return upsampled[:n * factor].copy()


def decimate(values: np.ndarray, factor: int) -> np.ndarray:
    """
    Reduce the sample rate by an integer factor with spectral truncation.

    Args:
        values: Trace to decimate
        factor: Decimation factor

    Returns:
        len(values) // factor samples
    """
    if len(values) == 0:
        raise ConfigurationError("Invalid decimation input array")
    if factor <= 0:
        raise ConfigurationError(f"Invalid decimation factor {factor}")
    if factor == 1:
        return np.array(values, dtype=float)

    # padded length is a multiple of factor so the output lands on every factor-th sample
    size = next_power_of_two(len(values))
    size += -size % factor
    padded = np.zeros(size)
    padded[:len(values)] = values
    keep = size // factor
    spectrum = fft.rfft(padded)[:keep // 2 + 1]
    reduced = fft.irfft(spectrum, n=keep) * keep / size
    return reduced[:len(values) // factor].copy()


def resample_record(values: np.ndarray, sample_rate: float, limit: float = 200.0) -> np.ndarray:
    """
    Convenience function to bring a trace up to the sampling floor.

    Args:
        values: Trace at the original rate
        sample_rate: Original samples per second
        limit: Sampling floor

    Returns:
        Resampled trace (a copy of the input when already fast enough)
    """
    return Resampler(limit).resample(values, sample_rate)
