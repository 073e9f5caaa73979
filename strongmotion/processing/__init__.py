"""
Processing Module
=================
V1 to V2 correction of strong-motion acceleration traces.

Modules:
- arrays / fourier: numeric utilities and FFT integration/differentiation
- butterworth: bandpass filter
- event_onset: PWD and AIC onset detectors
- trend_removal: pre-event mean and best-fit trend removal
- qc_engine: velocity/displacement end-condition checks
- abc: adaptive baseline correction
- resampler / despiker / corners: optional input preparation
- strong_motion: computed parameters
- processor: pipeline orchestration
"""

from strongmotion.processing.waveform import (
    Waveform,
    RecordSource
)

from strongmotion.processing.status import (
    ProcessingStatus,
    ProcessingStage,
    BaselineType
)

from strongmotion.processing.butterworth import ButterworthFilter

from strongmotion.processing.event_onset import (
    AICDetector,
    PWDDetector,
    EventOnsetPicker,
    OnsetPick
)

from strongmotion.processing.integration import (
    Integrator,
    FilterIntegrator,
    FilteredMotion
)

from strongmotion.processing.trend_removal import (
    TrendRemover,
    TrendRemovalResult
)

from strongmotion.processing.qc_engine import (
    QCEngine,
    QCCheck,
    QCSummary,
    QCStatus,
    run_qc
)

from strongmotion.processing.abc import (
    AdaptiveBaselineCorrector,
    ABCResult,
    Candidate
)

from strongmotion.processing.resampler import (
    Resampler,
    decimate,
    resample_record
)

from strongmotion.processing.despiker import (
    Despiker,
    DespikeResult,
    despike_record
)

from strongmotion.processing.corners import (
    CornerSelector,
    CornerSelection
)

from strongmotion.processing.strong_motion import (
    StrongMotionCalculator,
    StrongMotionParams,
    calculate_strong_motion
)

from strongmotion.processing.processor import (
    RecordProcessor,
    V2Result,
    SeriesStats,
    process_record
)

__all__ = [
    # Data
    'Waveform',
    'RecordSource',
    'ProcessingStatus',
    'ProcessingStage',
    'BaselineType',

    # Filtering and integration
    'ButterworthFilter',
    'Integrator',
    'FilterIntegrator',
    'FilteredMotion',

    # Event onset
    'AICDetector',
    'PWDDetector',
    'EventOnsetPicker',
    'OnsetPick',

    # Baseline correction and QC
    'TrendRemover',
    'TrendRemovalResult',
    'QCEngine',
    'QCCheck',
    'QCSummary',
    'QCStatus',
    'run_qc',
    'AdaptiveBaselineCorrector',
    'ABCResult',
    'Candidate',

    # Input preparation
    'Resampler',
    'decimate',
    'resample_record',
    'Despiker',
    'DespikeResult',
    'despike_record',
    'CornerSelector',
    'CornerSelection',

    # Computed parameters
    'StrongMotionCalculator',
    'StrongMotionParams',
    'calculate_strong_motion',

    # Processor
    'RecordProcessor',
    'V2Result',
    'SeriesStats',
    'process_record',
]
