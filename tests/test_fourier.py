import numpy as np
import pytest

from strongmotion.processing.fourier import (
    FourierEngine,
    fft_differentiate,
    fft_integrate,
    next_power_of_two,
)
from strongmotion.processing.integration import Integrator

from tests.helpers import sine

N = 1024
# eight whole cycles over the record
FREQUENCY = 8.0 / (N * 0.01)


def test_next_power_of_two():
    assert next_power_of_two(1) == 2
    assert next_power_of_two(1000) == 1024
    assert next_power_of_two(1024) == 1024
    assert next_power_of_two(1025) == 2048


def test_pad_front_and_end():
    values = np.arange(1.0, 4.0)
    assert FourierEngine.pad(values).tolist() == [1.0, 2.0, 3.0, 0.0]
    assert FourierEngine.pad(values, front=True).tolist() == [0.0, 1.0, 2.0, 3.0]


def test_angular_frequencies_centred():
    omega = FourierEngine.angular_frequencies(8, 0.01)
    assert omega[4] == 0.0
    assert omega[5] == pytest.approx(2.0 * np.pi / 0.08)


def test_fft_integrate_sine(dt):
    values = sine(N, dt, FREQUENCY)
    omega = 2.0 * np.pi * FREQUENCY
    integrated = fft_integrate(values, dt)
    expected = -np.cos(omega * np.arange(N) * dt) / omega
    interior = slice(N // 10, N - N // 10)
    assert integrated[interior] == pytest.approx(expected[interior], abs=2e-3)


@pytest.mark.parametrize("use_fft", [True, False])
def test_differentiate_inverts_integrate(dt, use_fft):
    values = sine(N, dt, FREQUENCY)
    integrator = Integrator(use_fft=use_fft)
    roundtrip = integrator.differentiate(integrator.integrate(values, dt), dt)
    interior = slice(N // 10, N - N // 10)
    assert roundtrip[interior] == pytest.approx(values[interior], abs=0.01)


def test_fft_differentiate_cosine(dt):
    omega = 2.0 * np.pi * FREQUENCY
    t = np.arange(N) * dt
    derivative = fft_differentiate(np.cos(omega * t), dt)
    assert derivative == pytest.approx(-omega * np.sin(omega * t), abs=1e-6)


def test_empty_input(dt):
    assert len(fft_integrate(np.array([]), dt)) == 0
    assert len(fft_differentiate(np.array([]), dt)) == 0
