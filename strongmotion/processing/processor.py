"""
Processing Pipeline Orchestrator
================================
Runs one acceleration trace from uncorrected (V1) to corrected (V2):
units → despike → resample → event onset → SNR/PGA check → corner
selection → trend removal → QC → filter/integrate or adaptive baseline
correction → decimate → computed parameters.
"""

import logging
from typing import Any, Dict, List, Optional
from datetime import datetime
from dataclasses import dataclass, field
import numpy as np

from strongmotion.config import ProcessingConfig
from strongmotion.errors import ConfigurationError
from strongmotion.processing.abc import ABCResult, AdaptiveBaselineCorrector
from strongmotion.processing.arrays import ArrayStats
from strongmotion.processing.butterworth import ButterworthFilter
from strongmotion.processing.corners import CornerSelector
from strongmotion.processing.despiker import Despiker
from strongmotion.processing.event_onset import EventOnsetPicker
from strongmotion.processing.integration import FilterIntegrator, Integrator
from strongmotion.processing.qc_engine import QCEngine, QCSummary
from strongmotion.processing.resampler import Resampler, decimate
from strongmotion.processing.status import BaselineType, ProcessingStage, ProcessingStatus
from strongmotion.processing.strong_motion import FROM_G, StrongMotionCalculator, StrongMotionParams
from strongmotion.processing.trend_removal import TrendRemover
from strongmotion.processing.waveform import RecordSource, Waveform

logger = logging.getLogger(__name__)

# Initial velocity/displacement after decimation
NOT_COMPUTED = -999.0


@dataclass
class SeriesStats:
    """Signed peak and mean of one output series."""
    peak: float = 0.0
    peak_index: int = -1
    peak_time: float = 0.0
    mean: float = 0.0

    @classmethod
    def from_array(cls, values: np.ndarray, dt: float) -> "SeriesStats":
        stats = ArrayStats(values)
        return cls(
            peak=stats.peak_value,
            peak_index=stats.peak_index,
            peak_time=stats.peak_index * dt if stats.peak_index >= 0 else 0.0,
            mean=stats.mean,
        )


@dataclass
class V2Result:
    """Complete processing results for one trace."""
    status: ProcessingStatus
    source: RecordSource = field(default_factory=RecordSource)

    # Corrected arrays
    acceleration: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    velocity: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    displacement: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    padded_acceleration: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    dt: float = 0.0

    # Sampling
    original_dt: float = 0.0
    resample_factor: int = 1
    decimated: bool = False
    spike_count: int = 0

    # Event onset
    onset_method: str = ""
    pick_index: int = -1
    start_index: int = -1
    snr: float = -1.0

    # Filter
    lowcut: float = 0.0
    highcut: float = 0.0
    corner_source: str = ""
    taper_start: float = 0.0
    taper_end: float = 0.0

    # Baseline
    pre_event_mean: float = 0.0
    trend_order: int = -1
    baseline_type: BaselineType = BaselineType.NONE
    abc: Optional[ABCResult] = field(default=None, repr=False)

    # QC
    initial_velocity: float = 0.0
    initial_displacement: float = 0.0
    qc_initial_velocity: float = 0.0
    qc_residual_velocity: float = 0.0
    qc_residual_displacement: float = 0.0
    qc_summary: Optional[QCSummary] = None

    # Statistics
    acceleration_stats: SeriesStats = field(default_factory=SeriesStats)
    velocity_stats: SeriesStats = field(default_factory=SeriesStats)
    displacement_stats: SeriesStats = field(default_factory=SeriesStats)
    strong_motion: Optional[StrongMotionParams] = None

    # Processing metadata
    stages: List[ProcessingStage] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def sample_count(self) -> int:
        return len(self.acceleration)

    def to_statistics_dict(self) -> Dict[str, Any]:
        """Flatten the result into one row for a parameter log."""
        stats = {
            'station': self.source.station,
            'channel': self.source.channel,
            'event_id': self.source.event_id,
            'status': self.status.value,
            'sample_count': self.sample_count,
            'dt': self.dt,
            'resample_factor': self.resample_factor,
            'decimated': self.decimated,
            'spike_count': self.spike_count,
            'onset_method': self.onset_method,
            'pick_index': self.pick_index,
            'pick_time': self.pick_index * self.dt if self.pick_index > 0 else 0.0,
            'start_index': self.start_index,
            'snr': self.snr,
            'lowcut': self.lowcut,
            'highcut': self.highcut,
            'corner_source': self.corner_source,
            'taper_start': self.taper_start,
            'taper_end': self.taper_end,
            'pre_event_mean': self.pre_event_mean,
            'trend_order': self.trend_order,
            'baseline_type': self.baseline_type.value,
            'initial_velocity': self.initial_velocity,
            'initial_displacement': self.initial_displacement,
            'qc_initial_velocity': self.qc_initial_velocity,
            'qc_residual_velocity': self.qc_residual_velocity,
            'qc_residual_displacement': self.qc_residual_displacement,
            'peak_acceleration': self.acceleration_stats.peak,
            'peak_acceleration_time': self.acceleration_stats.peak_time,
            'peak_velocity': self.velocity_stats.peak,
            'peak_velocity_time': self.velocity_stats.peak_time,
            'peak_displacement': self.displacement_stats.peak,
            'peak_displacement_time': self.displacement_stats.peak_time,
            'processing_time_ms': self.processing_time_ms,
        }

        if self.abc and self.abc.solution:
            solution = self.abc.solution
            stats.update({
                'abc_candidates': self.abc.candidates_evaluated,
                'abc_rank': self.abc.rank,
                'abc_break1': solution.break1,
                'abc_break2': solution.break2,
                'abc_order1': solution.order1,
                'abc_order3': solution.order3,
                'abc_score': solution.score,
            })

        if self.strong_motion:
            stats.update({
                'bracketed_duration': self.strong_motion.bracketed_duration,
                'duration_interval': self.strong_motion.duration_interval,
                'arias_intensity': self.strong_motion.arias_intensity,
                'rms_acceleration': self.strong_motion.rms_acceleration,
                'cav': self.strong_motion.cumulative_abs_velocity,
            })

        return stats


class RecordProcessor:
    """
    Orchestrates V2 processing of a single trace.

    A processor holds only the shared, read-only configuration; every
    call to process() owns its own arrays, filter and QC state, so one
    processor can serve many channels.
    """

    def __init__(self, config: Optional[ProcessingConfig] = None):
        """
        Initialize the processor.

        Args:
            config: Processing configuration (defaults when omitted)
        """
        self.config = (config or ProcessingConfig()).validate()
        self.integrator = Integrator(self.config.use_fft, self.config.differentiation_order)
        self.resampler = Resampler(self.config.sampling_limit)

    def _check_inputs(self, acceleration, dt: float) -> Waveform:
        waveform = Waveform(np.array(acceleration, dtype=float), dt)
        if len(waveform) == 0:
            raise ConfigurationError("Acceleration trace is empty")
        if not np.all(np.isfinite(waveform.samples)):
            raise ConfigurationError("Acceleration trace contains non-finite samples")

        # configured corners must suit the processing rate before anything is changed
        factor = self.resampler.factor(waveform.sample_rate)
        ButterworthFilter.validate(
            self.config.filter.lowcut, self.config.filter.highcut,
            dt / factor, self.config.filter.rolloff
        )
        return waveform

    def process(
        self,
        acceleration: np.ndarray,
        dt: float,
        source: Optional[RecordSource] = None
    ) -> V2Result:
        """
        Process one trace through the complete pipeline.

        Args:
            acceleration: Uncorrected acceleration in the configured units;
                          the caller's array is not modified
            dt: Sample interval (seconds)
            source: Optional station and event description

        Returns:
            V2Result; quality outcomes are reported through its status

        Raises:
            ConfigurationError: invalid dt, empty trace or bad config
            FilterParameterError: configured corners invalid for dt
        """
        start_time = datetime.now()
        waveform = self._check_inputs(acceleration, dt)
        config = self.config
        result = V2Result(
            status=ProcessingStatus.NOEVENT,
            source=source or RecordSource(),
            original_dt=dt,
            dt=dt,
        )
        note = result.diagnostics.append

        # Step 1: Units
        result.stages.append(ProcessingStage.INIT)
        accel = waveform.samples
        if config.data_units == "g":
            accel *= FROM_G
            note("converted input from g to cm/s2")

        # Step 2: Despike
        if config.despike:
            result.stages.append(ProcessingStage.DESPIKE)
            despiked = Despiker(num_std=config.despike_stdev).despike(accel, dt)
            result.spike_count = despiked.spike_count
            note(f"despiking replaced {despiked.spike_count} samples")

        # Step 3: Resample
        original_rate = waveform.sample_rate
        factor = self.resampler.factor(original_rate)
        if factor > 1:
            result.stages.append(ProcessingStage.RESAMPLE)
            accel = self.resampler.resample(accel, original_rate)
            dt = dt / factor
            result.resample_factor = factor
            note(f"resampled from {original_rate:.1f} to {original_rate * factor:.1f} sps")
        result.dt = dt
        sample_rate = 1.0 / dt

        # Step 4: Event onset
        result.stages.append(ProcessingStage.EVENT_ONSET)
        picker = EventOnsetPicker(
            method=config.event_onset.method,
            lowcut=config.filter.lowcut,
            highcut=config.filter.highcut,
            rolloff=config.filter.rolloff,
            taper_length=config.filter.taper_length,
            buffer=config.event_onset.buffer,
            differentiation_order=config.differentiation_order,
        )
        pick = picker.pick(accel, dt)
        result.onset_method = pick.method
        result.pick_index = pick.onset_index
        result.start_index = pick.buffered_index
        note(f"event onset ({pick.method}): pick index {pick.onset_index}, "
             f"start index {pick.buffered_index}")
        if pick.onset_index <= 0:
            return self._finish(result, ProcessingStatus.NOEVENT, start_time)

        # Step 5: SNR and peak check
        result.stages.append(ProcessingStage.SNR_PEAK_CHECK)
        result.snr = pick.snr
        note(f"acceleration SNR {pick.snr:.2f} dB, limit {config.snr_threshold:.2f} dB")
        if pick.snr < config.snr_threshold:
            return self._finish(result, ProcessingStatus.FAILINIT, start_time)
        if config.pga_check:
            pga = ArrayStats(pick.filtered).peak_value
            note(f"peak acceleration {abs(pga):.4f}, limit {abs(config.pga_threshold):.4f}")
            if abs(pga) < abs(config.pga_threshold):
                return self._finish(result, ProcessingStatus.FAILINIT, start_time)

        # Step 6: Filter corners
        result.stages.append(ProcessingStage.FILTER_THRESHOLD_SELECTION)
        corners = CornerSelector(
            config.corner_method, config.filter.lowcut, config.filter.highcut,
            config.station_corners
        ).select(result.source, sample_rate, original_rate)
        result.lowcut, result.highcut, result.corner_source = (
            corners.lowcut, corners.highcut, corners.source
        )
        if not corners.ok:
            note(f"filter corner selection failed: {corners.reason}")
            return self._finish(result, ProcessingStatus.FAILINIT, start_time)
        note(f"filter corners ({corners.source}): {corners.lowcut} - {corners.highcut} Hz")
        bandpass = ButterworthFilter().calculate_coefficients(
            corners.lowcut, corners.highcut, dt, config.filter.rolloff, config.filter.causal
        )

        # Step 7: Trend removal
        result.stages.append(ProcessingStage.TREND_REMOVAL)
        start_index = result.start_index
        detrended = TrendRemover(self.integrator).remove(accel, dt, start_index)
        result.pre_event_mean = detrended.pre_event_mean
        result.trend_order = detrended.trend_order
        note(f"pre-event mean {detrended.pre_event_mean:.6f}, "
             f"trend order {detrended.trend_order}")

        # Step 8: First QC on velocity
        result.stages.append(ProcessingStage.QC1)
        qc = QCEngine(self._qc_thresholds())
        qc.set_window(corners.lowcut, sample_rate, start_index)
        first_qc = qc.run_all_checks(detrended.velocity)
        note(f"first QC {'passed' if first_qc.passed else 'failed'}: "
             f"initial velocity {first_qc.measured('VEL-INIT'):.6f}, "
             f"residual velocity {first_qc.measured('VEL-RES'):.6f}")

        if first_qc.passed:
            # Step 9a: Filter and integrate
            result.stages.append(ProcessingStage.FILTER_AND_INTEGRATE)
            result.baseline_type = BaselineType.BESTFIT
            motion = FilterIntegrator(
                bandpass, self.integrator, config.filter.taper_length
            ).process(detrended.acceleration, dt, start_index)

            result.stages.append(ProcessingStage.QC2)
            summary = qc.run_all_checks(motion.velocity, motion.displacement)
            status = ProcessingStatus.GOOD if summary.passed else ProcessingStatus.FAILQC
        else:
            # Step 9b: Adaptive baseline correction
            result.stages.append(ProcessingStage.ADAPTIVE_BASELINE_CORRECTION)
            corrector = AdaptiveBaselineCorrector(
                config=config.abc,
                bandpass=bandpass,
                integrator=self.integrator,
                qc_thresholds=self._qc_thresholds(),
                lowcut=corners.lowcut,
                taper_length=config.filter.taper_length,
                differentiation_order=config.differentiation_order,
            )
            abc = corrector.correct(detrended.acceleration, detrended.velocity, dt, start_index)
            result.abc = abc
            note(f"adaptive baseline correction: {abc.status.value} after "
                 f"{abc.candidates_evaluated} candidates")
            if abc.status == ProcessingStatus.NOABC:
                result.acceleration = detrended.acceleration
                result.velocity = detrended.velocity
                return self._finish(result, ProcessingStatus.NOABC, start_time)

            result.stages.append(ProcessingStage.QC2)
            result.baseline_type = BaselineType.ABC
            motion = abc.motion
            summary = abc.qc_summary
            status = abc.status

        result.qc_summary = summary
        result.qc_initial_velocity = abs(summary.measured('VEL-INIT'))
        result.qc_residual_velocity = abs(summary.measured('VEL-RES'))
        result.qc_residual_displacement = abs(summary.measured('DIS-RES'))
        result.initial_velocity = motion.initial_velocity
        result.initial_displacement = motion.initial_displacement
        result.taper_start = motion.taper_start_seconds
        result.taper_end = motion.taper_end_seconds
        result.acceleration = motion.acceleration
        result.velocity = motion.velocity
        result.displacement = motion.displacement
        result.padded_acceleration = motion.padded_acceleration
        for issue in summary.critical_issues:
            note(f"QC: {issue}")

        # Step 10: Decimate back to the original rate
        if factor > 1 and config.decimate:
            result.stages.append(ProcessingStage.DECIMATE)
            result.acceleration = decimate(result.acceleration, factor)
            result.velocity = decimate(result.velocity, factor)
            result.displacement = decimate(result.displacement, factor)
            result.padded_acceleration = decimate(result.padded_acceleration, factor)
            result.dt = dt * factor
            result.decimated = True
            result.initial_velocity = NOT_COMPUTED
            result.initial_displacement = NOT_COMPUTED
            note("final arrays decimated to the original sampling rate")

        # Step 11: Computed parameters
        result.stages.append(ProcessingStage.COMPUTED_PARAMETERS)
        if status == ProcessingStatus.GOOD:
            result.strong_motion = StrongMotionCalculator(
                config.strong_motion_threshold
            ).calculate(result.acceleration, result.dt)
            if result.strong_motion is not None:
                note(f"strong motion: {result.strong_motion!r}")

        return self._finish(result, status, start_time)

    def _qc_thresholds(self) -> Dict[str, float]:
        return {
            'initial_velocity': self.config.qc.initial_velocity,
            'residual_velocity': self.config.qc.residual_velocity,
            'residual_displacement': self.config.qc.residual_displacement,
        }

    @staticmethod
    def _finish(result: V2Result, status: ProcessingStatus, start_time: datetime) -> V2Result:
        """Set the terminal status, compute statistics and log the trail."""
        result.status = status
        result.stages.append(ProcessingStage.DONE)
        result.diagnostics.append(f"exit status = {status.value}")

        result.acceleration_stats = SeriesStats.from_array(result.acceleration, result.dt)
        result.velocity_stats = SeriesStats.from_array(result.velocity, result.dt)
        result.displacement_stats = SeriesStats.from_array(result.displacement, result.dt)
        result.processing_time_ms = (datetime.now() - start_time).total_seconds() * 1000

        level = logging.INFO if status == ProcessingStatus.GOOD else logging.WARNING
        label = result.source.station or "record"
        if result.source.channel:
            label = f"{label}.{result.source.channel}"
        logger.log(level, "%s: %s\n  %s", label, status.value, "\n  ".join(result.diagnostics))
        return result


def process_record(
    acceleration: np.ndarray,
    dt: float,
    config: Optional[ProcessingConfig] = None,
    source: Optional[RecordSource] = None
) -> V2Result:
    """
    Convenience function to process one trace.

    Args:
        acceleration: Uncorrected acceleration
        dt: Sample interval (seconds)
        config: Optional processing configuration
        source: Optional station and event description

    Returns:
        V2Result
    """
    return RecordProcessor(config).process(acceleration, dt, source)


if __name__ == "__main__":
    from strongmotion.simulator.accelerogram import AccelerogramSimulator, RecordConfiguration

    logging.basicConfig(level=logging.INFO)
    print("Testing Processing Pipeline")
    print("=" * 60)

    record = AccelerogramSimulator(RecordConfiguration()).generate()
    result = process_record(record.acceleration, record.dt)

    print(f"\nStatus: {result.status.value}")
    print(f"  Onset: pick {result.pick_index}, start {result.start_index}")
    print(f"  Baseline: {result.baseline_type.value}")
    print(f"  QC: vel0 {result.qc_initial_velocity:.4f}, "
          f"velN {result.qc_residual_velocity:.4f}, disN {result.qc_residual_displacement:.4f}")
    print(f"  PGA {result.acceleration_stats.peak:.3f} cm/s2 at {result.acceleration_stats.peak_time:.2f} s")
    print(f"  Processing time: {result.processing_time_ms:.1f}ms")
