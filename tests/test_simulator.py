import numpy as np
import pytest

from strongmotion.simulator.accelerogram import (
    AccelerogramSimulator,
    RecordConfiguration,
    burst_acceleration,
)


def test_burst_starts_at_twice_the_amplitude():
    tau = np.array([-0.5, -0.01, 0.0])
    accel = burst_acceleration(tau, 1.5, 1.0, 2.0)
    assert list(accel) == pytest.approx([0.0, 0.0, 3.0])


def test_record_layout():
    config = RecordConfiguration(noise_std=0.0, spike_indices=[100], spike_amplitude=50.0)
    record = AccelerogramSimulator(config).generate()

    assert len(record.acceleration) == 2000
    assert record.dt == pytest.approx(0.01)
    assert record.onset_index == 300
    assert np.all(record.acceleration[:100] == 0.0)
    assert record.acceleration[100] == 50.0
    assert record.source.preferred_magnitude() == 6.0


def test_seed_is_reproducible():
    first = AccelerogramSimulator(RecordConfiguration(seed=1)).generate()
    second = AccelerogramSimulator(RecordConfiguration(seed=1)).generate()
    assert np.array_equal(first.acceleration, second.acceleration)


def test_record_metadata_matches_configuration():
    config = RecordConfiguration(station="CE01", sample_rate=200.0, duration_seconds=30.0)
    simulator = AccelerogramSimulator(config)
    metadata = simulator.get_record_metadata()

    assert metadata["station"] == "CE01"
    assert metadata["sample_rate"] == 200.0
    assert metadata["magnitude"] == 6.0
    assert len(simulator.generate().acceleration) == metadata["sample_rate"] * metadata["duration_seconds"]
