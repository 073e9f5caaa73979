"""
Integration and Filtering
=========================
Integrator/differentiator selection and the filter-then-integrate step
that turns corrected acceleration into velocity and displacement.
"""

from dataclasses import dataclass, field
import numpy as np

from strongmotion.processing.arrays import central_difference, integrate
from strongmotion.processing.butterworth import ButterworthFilter
from strongmotion.processing.fourier import fft_differentiate, fft_integrate


class Integrator:
    """
    Integrates and differentiates with one method for a whole run.

    Args:
        use_fft: Frequency-domain integration when True, trapezoidal otherwise
        differentiation_order: Central-difference stencil width (3, 5, 7 or 9)
    """

    def __init__(self, use_fft: bool = True, differentiation_order: int = 5):
        self.use_fft = use_fft
        self.differentiation_order = differentiation_order

    @property
    def method(self) -> str:
        return "fft" if self.use_fft else "time"

    def integrate(self, values: np.ndarray, dt: float) -> np.ndarray:
        if self.use_fft:
            return fft_integrate(values, dt)
        return integrate(values, dt, 0.0)

    def differentiate(self, values: np.ndarray, dt: float) -> np.ndarray:
        if self.use_fft:
            return fft_differentiate(values, dt)
        return central_difference(values, dt, self.differentiation_order)


@dataclass
class FilteredMotion:
    """Filtered acceleration with the velocity and displacement it integrates to."""
    acceleration: np.ndarray = field(repr=False)
    velocity: np.ndarray = field(repr=False)
    displacement: np.ndarray = field(repr=False)
    padded_acceleration: np.ndarray = field(repr=False)
    initial_velocity: float = 0.0
    initial_displacement: float = 0.0
    taper_start_seconds: float = 0.0
    taper_end_seconds: float = 0.0


class FilterIntegrator:
    """
    Bandpass filters acceleration and integrates it twice.

    Integration runs on the padded filtered trace so the filter's
    transient tails are kept, then the pad is cut away.
    """

    def __init__(self, bandpass: ButterworthFilter, integrator: Integrator, taper_length: float):
        self.bandpass = bandpass
        self.integrator = integrator
        self.taper_length = taper_length

    def process(self, acceleration: np.ndarray, dt: float, onset_index: int) -> FilteredMotion:
        """
        Filter acceleration in place and integrate it.

        Args:
            acceleration: Corrected acceleration, filtered in place
            dt: Sample interval (seconds)
            onset_index: Event onset used to place the start taper

        Returns:
            FilteredMotion with unpadded arrays
        """
        n = len(acceleration)
        padded = self.bandpass.apply(acceleration, self.taper_length, onset_index)
        pad = self.bandpass.pad_length

        velocity_padded = self.integrator.integrate(padded, dt)
        displacement_padded = self.integrator.integrate(velocity_padded, dt)
        velocity = velocity_padded[pad:pad + n].copy()
        displacement = displacement_padded[pad:pad + n].copy()

        return FilteredMotion(
            acceleration=acceleration,
            velocity=velocity,
            displacement=displacement,
            padded_acceleration=padded,
            initial_velocity=float(velocity[0]) if n else 0.0,
            initial_displacement=float(displacement[0]) if n else 0.0,
            taper_start_seconds=self.bandpass.taper_start_count * dt,
            taper_end_seconds=self.bandpass.taper_end_count * dt,
        )
