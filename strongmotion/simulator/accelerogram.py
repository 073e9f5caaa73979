"""
Synthetic Accelerogram Simulator
================================
Generates strong-motion-like acceleration records with a known onset,
for demos and tests.

The event is a decaying burst whose velocity and displacement return
to zero, so any residual after correction comes from the added drift,
baseline kink, noise or spikes.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from strongmotion.processing.waveform import RecordSource


@dataclass
class RecordConfiguration:
    """Configuration for a synthetic record."""

    # Record identification
    station: str = "SYN01"
    channel: str = "HNE"
    event_id: str = "synthetic"
    magnitude: Optional[float] = 6.0

    # Sampling
    sample_rate: float = 100.0       # samples/sec
    duration_seconds: float = 20.0
    onset_seconds: float = 3.0

    # Event burst: a(t) = B * d2/dt2 [t^2 exp(-decay t) cos(2 pi f t)]
    burst_amplitude: float = 1.0
    decay: float = 1.0               # 1/s
    frequency: float = 2.0           # Hz

    # Contamination
    noise_std: float = 0.05          # cm/s2
    drift_offset: float = 0.0        # cm/s2
    drift_slope: float = 0.0         # cm/s3
    kink_seconds: Optional[float] = None
    kink_offset: float = 0.0         # cm/s2 step, a velocity kink
    spike_indices: List[int] = field(default_factory=list)
    spike_amplitude: float = 200.0   # cm/s2

    seed: Optional[int] = 42


@dataclass
class SyntheticRecord:
    """A generated record and the clean signal it was built from."""
    acceleration: np.ndarray = field(repr=False)
    clean: np.ndarray = field(repr=False)
    dt: float
    onset_index: int
    source: RecordSource


def burst_acceleration(tau: np.ndarray, amplitude: float, decay: float, frequency: float) -> np.ndarray:
    """
    Second derivative of amplitude * tau^2 * exp(-decay tau) * cos(omega tau).

    Zero for tau < 0. At tau = 0 the acceleration jumps to 2 * amplitude
    while velocity and displacement start from zero.
    """
    omega = 2.0 * np.pi * frequency
    t = np.clip(tau, 0.0, None)
    envelope = np.exp(-decay * t)
    g = t ** 2 * envelope
    g1 = (2.0 * t - decay * t ** 2) * envelope
    g2 = (2.0 - 4.0 * decay * t + decay ** 2 * t ** 2) * envelope
    cos = np.cos(omega * t)
    sin = np.sin(omega * t)
    accel = amplitude * (g2 * cos - 2.0 * omega * g1 * sin - omega ** 2 * g * cos)
    return np.where(tau >= 0.0, accel, 0.0)


class AccelerogramSimulator:
    """Builds synthetic records from a RecordConfiguration."""

    def __init__(self, config: RecordConfiguration):
        self.config = config
        self.rng = np.random.default_rng(config.seed)

    @property
    def dt(self) -> float:
        return 1.0 / self.config.sample_rate

    def time(self) -> np.ndarray:
        n = int(round(self.config.duration_seconds * self.config.sample_rate))
        return np.arange(n) * self.dt

    def generate(self) -> SyntheticRecord:
        """Generate one record."""
        cfg = self.config
        t = self.time()
        onset_index = int(round(cfg.onset_seconds * cfg.sample_rate))

        clean = burst_acceleration(t - onset_index * self.dt, cfg.burst_amplitude,
                                   cfg.decay, cfg.frequency)
        accel = clean + cfg.drift_offset + cfg.drift_slope * t
        if cfg.kink_seconds is not None:
            accel = accel + np.where(t >= cfg.kink_seconds, cfg.kink_offset, 0.0)
        if cfg.noise_std > 0:
            accel = accel + self.rng.normal(0.0, cfg.noise_std, len(t))
        for index in cfg.spike_indices:
            if 0 <= index < len(t):
                accel[index] += cfg.spike_amplitude

        source = RecordSource(
            station=cfg.station,
            channel=cfg.channel,
            event_id=cfg.event_id,
            moment_magnitude=cfg.magnitude,
        )
        return SyntheticRecord(
            acceleration=accel,
            clean=clean,
            dt=self.dt,
            onset_index=onset_index,
            source=source,
        )

    def get_record_metadata(self) -> Dict:
        """Get record metadata for summaries."""
        cfg = self.config
        return {
            "station": cfg.station,
            "channel": cfg.channel,
            "event_id": cfg.event_id,
            "magnitude": cfg.magnitude,
            "sample_rate": cfg.sample_rate,
            "duration_seconds": cfg.duration_seconds,
            "onset_seconds": cfg.onset_seconds,
        }


def main():
    """Test the simulator."""
    print("Synthetic Accelerogram Simulator")
    print("=" * 60)

    config = RecordConfiguration(drift_offset=0.05, drift_slope=0.02, spike_indices=[1200])
    sim = AccelerogramSimulator(config)
    record = sim.generate()

    print("\nConfiguration:")
    for key, value in sim.get_record_metadata().items():
        print(f"  {key}: {value}")

    peak = np.max(np.abs(record.clean))
    print(f"\n  Generated {len(record.acceleration):,} samples, dt {record.dt} s")
    print(f"  Onset index: {record.onset_index}")
    print(f"  Clean peak acceleration: {peak:.2f} cm/s2")

    print("\nSimulator working!")


if __name__ == "__main__":
    main()
