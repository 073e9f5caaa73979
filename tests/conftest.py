import pytest

from strongmotion.config import ProcessingConfig
from strongmotion.processing.integration import Integrator
from strongmotion.simulator.accelerogram import AccelerogramSimulator, RecordConfiguration


@pytest.fixture
def dt() -> float:
    return 0.01


@pytest.fixture
def time_integrator() -> Integrator:
    return Integrator(use_fft=False, differentiation_order=5)


@pytest.fixture
def drifting_record():
    """2000 samples at 100 sps, onset at 300, noise and a ramp drift."""
    config = RecordConfiguration(
        sample_rate=100.0,
        duration_seconds=20.0,
        onset_seconds=3.0,
        noise_std=0.05,
        drift_offset=0.05,
        drift_slope=0.02,
        seed=7,
    )
    return AccelerogramSimulator(config).generate()


@pytest.fixture
def aic_config() -> ProcessingConfig:
    config = ProcessingConfig()
    config.event_onset.method = "AIC"
    return config

