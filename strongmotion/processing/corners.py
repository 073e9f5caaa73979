"""
Filter Corner Selection
=======================
Chooses the bandpass corners used for correction.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from strongmotion.processing.waveform import RecordSource

# Records sampled below this rate cannot use magnitude-based corners
MIN_MAGNITUDE_SPS = 50.0
MAX_HIGHCUT = 40.0


@dataclass
class CornerSelection:
    """Outcome of corner selection."""
    lowcut: float
    highcut: float
    source: str          # "config", "station" or "magnitude"
    ok: bool = True
    reason: str = ""


def magnitude_lowcut(magnitude: float) -> float:
    """Low corner for an event magnitude."""
    if magnitude >= 5.5:
        return 0.1
    if magnitude >= 3.5:
        return 0.3
    return 0.5


def magnitude_highcut(sample_rate: float) -> float:
    """High corner for a sample rate, below nyquist by a tenth of the rate."""
    return min(MAX_HIGHCUT, sample_rate / 2.0 - sample_rate / 10.0)


class CornerSelector:
    """
    Selects corners by configured method.

    Args:
        method: "config", "station" or "magnitude"
        lowcut: Configured low corner (Hz)
        highcut: Configured high corner (Hz)
        station_corners: Station code to (lowcut, highcut) table
    """

    def __init__(
        self,
        method: str = "config",
        lowcut: float = 0.1,
        highcut: float = 20.0,
        station_corners: Optional[Dict[str, Tuple[float, float]]] = None
    ):
        self.method = method
        self.lowcut = lowcut
        self.highcut = highcut
        self.station_corners = station_corners or {}

    def select(
        self,
        source: RecordSource,
        sample_rate: float,
        original_sample_rate: float
    ) -> CornerSelection:
        """
        Args:
            source: Record lineage (station code, magnitudes)
            sample_rate: Processing rate after any resampling
            original_sample_rate: Rate of the input record

        Returns:
            CornerSelection; ok is False when the corners cannot be used
        """
        if self.method == "station" and source.station in self.station_corners:
            low, high = self.station_corners[source.station]
            selection = CornerSelection(low, high, "station")
        elif self.method == "magnitude":
            magnitude = source.preferred_magnitude()
            if magnitude is None:
                return CornerSelection(self.lowcut, self.highcut, "magnitude", False,
                                       "no usable magnitude")
            if original_sample_rate < MIN_MAGNITUDE_SPS:
                return CornerSelection(self.lowcut, self.highcut, "magnitude", False,
                                       f"sample rate {original_sample_rate} below {MIN_MAGNITUDE_SPS}")
            selection = CornerSelection(
                magnitude_lowcut(magnitude), magnitude_highcut(original_sample_rate), "magnitude"
            )
        else:
            selection = CornerSelection(self.lowcut, self.highcut, "config")

        nyquist = sample_rate / 2.0
        if not (0.0 < selection.lowcut < selection.highcut < nyquist) or \
                not math.isfinite(selection.highcut):
            selection.ok = False
            selection.reason = (
                f"corners {selection.lowcut}/{selection.highcut} Hz invalid for nyquist {nyquist}"
            )
        return selection
