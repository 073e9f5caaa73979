"""
Processing Status
=================
Terminal outcomes and pipeline stages.
"""

from enum import Enum


class ProcessingStatus(Enum):
    """Terminal outcome of a processing run."""
    GOOD = "GOOD"
    FAILQC = "FAILQC"
    FAILINIT = "FAILINIT"
    NOEVENT = "NOEVENT"
    NOABC = "NOABC"


class ProcessingStage(Enum):
    """Pipeline stages, in execution order."""
    INIT = "init"
    DESPIKE = "despike"
    RESAMPLE = "resample"
    EVENT_ONSET = "event_onset"
    SNR_PEAK_CHECK = "snr_peak_check"
    FILTER_THRESHOLD_SELECTION = "filter_threshold_selection"
    TREND_REMOVAL = "trend_removal"
    QC1 = "qc1"
    FILTER_AND_INTEGRATE = "filter_and_integrate"
    ADAPTIVE_BASELINE_CORRECTION = "adaptive_baseline_correction"
    QC2 = "qc2"
    DECIMATE = "decimate"
    COMPUTED_PARAMETERS = "computed_parameters"
    DONE = "done"


class BaselineType(Enum):
    """Which baseline correction produced the final record."""
    NONE = "none"
    BESTFIT = "bestfit"
    ABC = "abc"
