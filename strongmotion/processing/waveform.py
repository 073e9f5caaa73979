"""
Waveform Types
==============
Uniformly sampled traces and the source parameters that travel with them.
"""

from dataclasses import dataclass, field
from typing import Optional
import numpy as np

from strongmotion.errors import ConfigurationError


@dataclass
class Waveform:
    """A uniformly sampled trace. Samples may be corrected in place."""
    samples: np.ndarray = field(repr=False)
    dt: float

    def __post_init__(self):
        self.samples = np.asarray(self.samples, dtype=float)
        if not np.isfinite(self.dt) or self.dt <= 0:
            raise ConfigurationError(f"Sample interval must be positive, got {self.dt}")

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def sample_rate(self) -> float:
        return 1.0 / self.dt

    @property
    def nyquist(self) -> float:
        return 0.5 / self.dt

    @property
    def duration(self) -> float:
        return len(self.samples) * self.dt

    def time(self) -> np.ndarray:
        """Time in seconds for each sample, starting at zero."""
        return np.arange(len(self.samples)) * self.dt

    def copy(self) -> "Waveform":
        return Waveform(self.samples.copy(), self.dt)


@dataclass(frozen=True)
class RecordSource:
    """
    Immutable description of where a trace came from.

    Carries the header values that processing decisions depend on
    (station code for corner tables, magnitudes for corner selection).
    Magnitudes left as None are treated as not available.
    """
    station: str = ""
    channel: str = ""
    event_id: str = ""
    moment_magnitude: Optional[float] = None
    local_magnitude: Optional[float] = None
    surface_magnitude: Optional[float] = None
    other_magnitude: Optional[float] = None

    def preferred_magnitude(self) -> Optional[float]:
        """First available magnitude in order moment, local, surface, other."""
        for value in (self.moment_magnitude, self.local_magnitude,
                      self.surface_magnitude, self.other_magnitude):
            if value is not None and np.isfinite(value) and value >= 0:
                return float(value)
        return None
