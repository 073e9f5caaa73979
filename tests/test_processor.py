import numpy as np
import pytest

from strongmotion.config import ProcessingConfig
from strongmotion.errors import ConfigurationError, FilterParameterError
from strongmotion.processing.processor import NOT_COMPUTED, RecordProcessor, process_record
from strongmotion.processing.status import BaselineType, ProcessingStage, ProcessingStatus
from strongmotion.processing.strong_motion import FROM_G
from strongmotion.simulator.accelerogram import AccelerogramSimulator, RecordConfiguration


@pytest.mark.parametrize("method", ["PWD", "AIC"])
def test_drifting_record_corrected(drifting_record, method):
    config = ProcessingConfig()
    config.event_onset.method = method
    original = drifting_record.acceleration.copy()
    result = RecordProcessor(config).process(
        drifting_record.acceleration, drifting_record.dt, drifting_record.source
    )

    assert np.array_equal(drifting_record.acceleration, original)
    assert result.status == ProcessingStatus.GOOD
    assert result.baseline_type == BaselineType.BESTFIT
    # 100 sps is below the default sampling floor
    assert result.resample_factor == 2
    assert result.dt == pytest.approx(0.005)
    assert result.sample_count == 4000
    assert result.onset_method == method
    assert abs(result.pick_index / result.resample_factor - 300) <= 5
    assert result.qc_initial_velocity <= 0.1
    assert result.qc_residual_velocity <= 0.1
    assert result.qc_residual_displacement <= 0.1
    assert result.strong_motion is not None
    assert result.stages[0] == ProcessingStage.INIT
    assert result.stages[-1] == ProcessingStage.DONE
    assert result.diagnostics[-1] == "exit status = GOOD"

    stats = result.to_statistics_dict()
    assert stats['status'] == 'GOOD'
    assert stats['station'] == 'SYN01'
    assert 'arias_intensity' in stats


def test_input_in_g(drifting_record, aic_config):
    cm = RecordProcessor(aic_config).process(drifting_record.acceleration, drifting_record.dt)
    aic_config.data_units = "g"
    g = RecordProcessor(aic_config).process(drifting_record.acceleration / FROM_G, drifting_record.dt)
    assert g.pick_index == cm.pick_index
    assert g.acceleration_stats.peak == pytest.approx(cm.acceleration_stats.peak, rel=1e-6)


def test_quiet_record_has_no_event():
    result = process_record(np.zeros(2000), 0.01)
    assert result.status == ProcessingStatus.NOEVENT
    assert ProcessingStage.SNR_PEAK_CHECK not in result.stages


def test_low_snr_fails_before_trend_removal(drifting_record):
    config = ProcessingConfig(snr_threshold=1000.0)
    result = RecordProcessor(config).process(drifting_record.acceleration, drifting_record.dt)
    assert result.status == ProcessingStatus.FAILINIT
    assert ProcessingStage.TREND_REMOVAL not in result.stages


def test_pga_check(drifting_record):
    config = ProcessingConfig(pga_check=True, pga_threshold=1e6)
    result = RecordProcessor(config).process(drifting_record.acceleration, drifting_record.dt)
    assert result.status == ProcessingStatus.FAILINIT


def test_magnitude_corners_without_magnitude(drifting_record):
    config = ProcessingConfig(corner_method="magnitude")
    result = RecordProcessor(config).process(drifting_record.acceleration, drifting_record.dt)
    assert result.status == ProcessingStatus.FAILINIT
    assert result.corner_source == "magnitude"
    assert any("corner selection failed" in line for line in result.diagnostics)


def test_invalid_inputs_raise():
    processor = RecordProcessor()
    with pytest.raises(ConfigurationError):
        processor.process(np.ones(100), 0.0)
    with pytest.raises(ConfigurationError):
        processor.process(np.array([]), 0.01)
    with pytest.raises(ConfigurationError):
        processor.process(np.array([1.0, np.nan, 2.0]), 0.01)

    config = ProcessingConfig()
    config.filter.highcut = 150.0
    with pytest.raises(FilterParameterError):
        RecordProcessor(config).process(np.ones(100), 0.01)


def test_decimation_restores_original_rate():
    record = AccelerogramSimulator(RecordConfiguration(
        sample_rate=50.0, duration_seconds=40.0, noise_std=0.02, seed=3
    )).generate()
    config = ProcessingConfig(decimate=True)
    config.event_onset.method = "AIC"
    result = RecordProcessor(config).process(record.acceleration, record.dt)

    assert result.status in (ProcessingStatus.GOOD, ProcessingStatus.FAILQC)
    assert result.resample_factor == 4
    assert result.qc_summary.passed == (result.status == ProcessingStatus.GOOD)
    assert result.decimated
    assert result.dt == pytest.approx(0.02)
    assert result.sample_count == 2000
    assert len(result.velocity) == 2000
    assert result.initial_velocity == NOT_COMPUTED
    assert result.initial_displacement == NOT_COMPUTED
    assert ProcessingStage.DECIMATE in result.stages


def test_velocity_kink_goes_to_adaptive_correction():
    record = AccelerogramSimulator(RecordConfiguration(
        kink_seconds=8.0, kink_offset=2.0, noise_std=0.02, seed=9
    )).generate()
    config = ProcessingConfig()
    config.event_onset.method = "AIC"
    result = RecordProcessor(config).process(record.acceleration, record.dt, record.source)

    assert ProcessingStage.ADAPTIVE_BASELINE_CORRECTION in result.stages
    assert result.abc is not None
    assert result.abc.candidates_evaluated > 0
    assert result.status == result.abc.status
    assert result.status in (ProcessingStatus.GOOD, ProcessingStatus.FAILQC)
    assert result.qc_summary is result.abc.qc_summary
    assert result.qc_summary.passed == (result.status == ProcessingStatus.GOOD)
    assert (result.abc.rank >= 1) == (result.status == ProcessingStatus.GOOD)
    assert result.abc.solution.break1 == result.start_index
    assert result.baseline_type == BaselineType.ABC
    assert result.to_statistics_dict()['abc_candidates'] == result.abc.candidates_evaluated


def test_despike_stage(drifting_record, aic_config):
    aic_config.despike = True
    acceleration = drifting_record.acceleration.copy()
    acceleration[1500] += 500.0
    result = RecordProcessor(aic_config).process(acceleration, drifting_record.dt)
    assert ProcessingStage.DESPIKE in result.stages
    assert result.spike_count >= 1
    assert acceleration[1500] > 400.0
