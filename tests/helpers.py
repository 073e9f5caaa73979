"""Synthetic signal helpers shared by the tests."""

import numpy as np


def sine(n: int, dt: float, frequency: float, amplitude: float = 1.0) -> np.ndarray:
    return amplitude * np.sin(2.0 * np.pi * frequency * np.arange(n) * dt)
