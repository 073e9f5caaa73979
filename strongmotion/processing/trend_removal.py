"""
Trend Removal
=============
Removes the pre-event mean and the best-fit polynomial velocity trend
from acceleration.
"""

from dataclasses import dataclass, field
import numpy as np

from strongmotion.processing.arrays import (
    correct_for_zero_initial_estimate,
    find_trend_with_best_fit,
    polynomial_derivative,
    polynomial_values,
    subset_mean,
)
from strongmotion.processing.integration import Integrator


@dataclass
class TrendRemovalResult:
    """Trend-corrected acceleration and the velocity it integrates to."""
    acceleration: np.ndarray = field(repr=False)
    velocity: np.ndarray = field(repr=False)
    pre_event_mean: float = 0.0
    trend_coefficients: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    # order of the trend removed from acceleration (velocity fit degree - 1)
    trend_order: int = -1


class TrendRemover:
    """
    Trend removal for one trace.

    1. subtract the mean of acceleration before the start index
    2. integrate to velocity and remove the initial-value offset
    3. fit linear and quadratic velocity trends, keep the better one
    4. subtract the trend's derivative from acceleration and re-integrate
    """

    def __init__(self, integrator: Integrator):
        self.integrator = integrator

    def remove(self, acceleration: np.ndarray, dt: float, start_index: int) -> TrendRemovalResult:
        """
        Args:
            acceleration: Trace to correct, modified in place
            dt: Sample interval (seconds)
            start_index: Buffered event onset index

        Returns:
            TrendRemovalResult sharing the corrected acceleration array
        """
        n = len(acceleration)
        pre_event_mean = 0.0
        if start_index > 0:
            pre_event_mean = subset_mean(acceleration, 0, start_index)
            acceleration -= pre_event_mean

        velocity = self.integrator.integrate(acceleration, dt)
        correct_for_zero_initial_estimate(velocity, start_index)

        coefs, degree = find_trend_with_best_fit(velocity, dt)
        if degree > 0:
            derivative = polynomial_derivative(coefs)
            acceleration -= polynomial_values(derivative, n, dt)
            velocity = self.integrator.integrate(acceleration, dt)

        return TrendRemovalResult(
            acceleration=acceleration,
            velocity=velocity,
            pre_event_mean=pre_event_mean,
            trend_coefficients=coefs,
            trend_order=degree - 1,
        )
