"""
Fourier Engine
==============
Power-of-two padded FFTs and frequency-domain integration/differentiation.
"""

import numpy as np
from scipy import fft

from strongmotion.processing.arrays import cosine_taper, remove_linear_trend


def next_power_of_two(length: int) -> int:
    """Smallest power of two >= length, at least 2."""
    size = 2
    while size < length:
        size *= 2
    return size


class FourierEngine:
    """
    Forward and inverse transforms on zero-padded traces.

    The trace is padded at the end to the next power of two before the
    forward transform; `shift` moves zero frequency to the centre.
    """

    @staticmethod
    def pad(values: np.ndarray, front: bool = False) -> np.ndarray:
        """Zero-pad to the next power of two, at the end or the front."""
        size = next_power_of_two(len(values))
        padded = np.zeros(size)
        if front:
            padded[size - len(values):] = values
        else:
            padded[:len(values)] = values
        return padded

    @classmethod
    def forward(cls, values: np.ndarray, front: bool = False) -> np.ndarray:
        return fft.fft(cls.pad(values, front))

    @staticmethod
    def inverse(spectrum: np.ndarray) -> np.ndarray:
        """Real part of the inverse transform."""
        return np.real(fft.ifft(spectrum))

    @staticmethod
    def shift(spectrum: np.ndarray) -> np.ndarray:
        return fft.fftshift(spectrum)

    @staticmethod
    def unshift(spectrum: np.ndarray) -> np.ndarray:
        return fft.ifftshift(spectrum)

    @staticmethod
    def angular_frequencies(size: int, dt: float) -> np.ndarray:
        """Omega for each bin of a shifted spectrum, zero at index size//2."""
        return 2.0 * np.pi / (dt * size) * (np.arange(size) - size // 2)


def fft_integrate(values: np.ndarray, dt: float) -> np.ndarray:
    """
    Integrate by dividing the spectrum by i*omega.

    The zero-frequency bin is set to zero and the result is linearly
    detrended before being cut back to the input length.

    Args:
        values: Trace to integrate
        dt: Sample interval (seconds)

    Returns:
        Integrated trace, same length as the input
    """
    n = len(values)
    if n == 0:
        return np.array([])
    spectrum = FourierEngine.shift(FourierEngine.forward(values))
    omega = FourierEngine.angular_frequencies(len(spectrum), dt)

    result = np.zeros_like(spectrum)
    nonzero = omega != 0.0
    result[nonzero] = spectrum[nonzero] / (1j * omega[nonzero])

    integrated = FourierEngine.inverse(FourierEngine.unshift(result))[:n].copy()
    return remove_linear_trend(integrated, dt)


def fft_differentiate(values: np.ndarray, dt: float, taper_length: float = 0.0) -> np.ndarray:
    """
    Differentiate by multiplying the spectrum by i*omega.

    Args:
        values: Trace to differentiate
        dt: Sample interval (seconds)
        taper_length: Optional cosine taper (seconds) applied to a copy
                      of both ends first

    Returns:
        Differentiated trace, same length as the input
    """
    n = len(values)
    if n == 0:
        return np.array([])
    work = np.array(values, dtype=float)
    if taper_length > 0:
        count = int(round(taper_length / dt))
        cosine_taper(work, count, count)

    spectrum = FourierEngine.shift(FourierEngine.forward(work))
    omega = FourierEngine.angular_frequencies(len(spectrum), dt)
    return FourierEngine.inverse(FourierEngine.unshift(spectrum * 1j * omega))[:n].copy()
