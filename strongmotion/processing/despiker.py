"""
De-spiking Module
=================
Removes isolated single-sample glitches from raw acceleration.

Candidate spikes are samples whose absolute derivative exceeds the
modal minimum of the derivative histogram. A candidate is replaced when
it lies more than `num_std` standard deviations from the mean of the
surrounding window.
"""

import logging
import numpy as np
from typing import List
from dataclasses import dataclass, field

from strongmotion.processing.arrays import ArrayStats, central_difference, standard_deviation

logger = logging.getLogger(__name__)


@dataclass
class DespikeResult:
    """Results from de-spiking operation."""
    cleaned: np.ndarray = field(repr=False)
    spike_count: int
    spike_indices: List[int] = field(default_factory=list)

    @property
    def spikes_found(self) -> bool:
        return self.spike_count > 0


class Despiker:
    """
    Two-pass derivative-threshold despiker.

    Near the record ends a spike is replaced by the mean of its
    2*neighbors nearest samples on the inward side; elsewhere a
    three-sample zone centred on the spike is re-interpolated linearly
    from its neighbours.
    """

    DIFF_ORDER = 5
    NUM_PASSES = 2
    NUM_BINS = 4
    ZONE = 3

    def __init__(
        self,
        num_std: float = 3.0,
        window_size: int = 25,
        neighbors: int = 5
    ):
        """
        Args:
            num_std: Deviation from the window mean, in standard
                     deviations, that marks a spike
            window_size: Samples around the spike used for its statistics
            neighbors: Samples each side used for interpolation
        """
        self.num_std = num_std
        self.window_size = window_size
        self.neighbors = neighbors

    def detect_candidates(self, values: np.ndarray, dt: float) -> np.ndarray:
        """Indices whose absolute derivative exceeds the modal minimum."""
        slope = np.abs(central_difference(values, dt, self.DIFF_ORDER))
        level = ArrayStats(slope).modal_min(self.NUM_BINS)
        return np.nonzero(slope > level)[0]

    def fix_spike(self, values: np.ndarray, index: int) -> bool:
        """
        Test one candidate and replace it in place when it is a spike.

        Returns:
            True if values were changed
        """
        n = len(values)
        if 0 < index < n - 1:
            # move to the largest of the three samples, keeping the centre on ties
            peak = index
            for neighbour in (index - 1, index + 1):
                if abs(values[neighbour]) > abs(values[peak]):
                    peak = neighbour
            index = peak

        edge = 2 * self.neighbors
        if n <= 2 * edge:
            return False
        if index <= edge:
            values[index] = float(np.mean(values[index + 1:index + 1 + edge]))
            return True
        if index >= n - edge:
            values[index] = float(np.mean(values[index - edge:index]))
            return True

        window = self.window_size
        half = window // 2
        if index <= half:
            half = index
        elif index >= n - half:
            half = (n - index) // 2
        neighbors = min(self.neighbors, half - 1)
        if half < 1 or neighbors < 1:
            return False

        around = np.concatenate((values[index - half:index], values[index + 1:index + 1 + half]))
        mean = float(np.mean(around))
        spread = standard_deviation(around)
        if mean - spread * self.num_std < values[index] < mean + spread * self.num_std:
            return False

        known_x = np.concatenate((
            np.arange(index - neighbors - 1, index - 1),
            np.arange(index + 2, index + 2 + neighbors),
        ))
        known_x = known_x[(known_x >= 0) & (known_x < n)]
        zone_x = np.arange(index - 1, index - 1 + self.ZONE)
        values[zone_x] = np.interp(zone_x, known_x, values[known_x])
        return True

    def despike(self, values: np.ndarray, dt: float) -> DespikeResult:
        """
        Detect and remove spikes.

        Args:
            values: Acceleration array, modified in place
            dt: Sample interval (seconds)

        Returns:
            DespikeResult wrapping the cleaned array
        """
        fixed: List[int] = []
        if len(values) == 0:
            return DespikeResult(cleaned=values, spike_count=0)

        for _ in range(self.NUM_PASSES):
            for index in self.detect_candidates(values, dt):
                if self.fix_spike(values, int(index)):
                    fixed.append(int(index))

        if fixed:
            logger.info("Despike: replaced %d samples", len(fixed))
        return DespikeResult(cleaned=values, spike_count=len(fixed), spike_indices=fixed)


def despike_record(values: np.ndarray, dt: float, num_std: float = 3.0) -> DespikeResult:
    """
    Convenience function to despike one record in place.

    Args:
        values: Acceleration array
        dt: Sample interval (seconds)
        num_std: Spike threshold in standard deviations

    Returns:
        DespikeResult
    """
    return Despiker(num_std=num_std).despike(values, dt)
