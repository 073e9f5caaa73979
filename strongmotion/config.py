"""
Strong-Motion Configuration Module
==================================
Processing parameters for V1 to V2 correction.
Values come from environment variables (a local .env file is merged first).
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple
from dotenv import load_dotenv

from strongmotion.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Load .env file if present
load_dotenv()

ENV_PREFIX = "SM_"

EVENT_ONSET_METHODS = ("PWD", "AIC")
INTEGRATION_METHODS = ("fft", "time")
CORNER_METHODS = ("config", "station", "magnitude")
DIFFERENTIATION_ORDERS = (3, 5, 7, 9)


@dataclass
class FilterConfig:
    """Bandpass filter defaults."""
    lowcut: float = 0.1          # Hz
    highcut: float = 20.0        # Hz
    order: int = 4               # filter order = 2 x roll-off
    taper_length: float = 2.0    # seconds
    causal: bool = False

    @property
    def rolloff(self) -> int:
        return max(1, self.order // 2)


@dataclass
class EventOnsetConfig:
    """Event onset picking."""
    method: str = "PWD"
    buffer: float = 0.0          # seconds subtracted from the pick


@dataclass
class QCThresholds:
    """Tolerances for the velocity and displacement checks."""
    initial_velocity: float = 0.1       # cm/s
    residual_velocity: float = 0.1      # cm/s
    residual_displacement: float = 0.1  # cm


@dataclass
class ABCConfig:
    """Adaptive baseline correction search ranges."""
    poly1_range: Tuple[int, int] = (1, 2)
    poly3_range: Tuple[int, int] = (1, 3)
    moving_window: int = 200

    def validate(self) -> None:
        for name, (low, high) in (("poly1_range", self.poly1_range),
                                  ("poly3_range", self.poly3_range)):
            if low < 1 or high < 1 or low > high:
                raise ConfigurationError(f"Invalid ABC {name}: {low}-{high}")
        if self.moving_window < 1:
            raise ConfigurationError(f"Invalid ABC moving window: {self.moving_window}")


@dataclass
class ProcessingConfig:
    """Main processing configuration, passed explicitly to the processor."""
    filter: FilterConfig = field(default_factory=FilterConfig)
    event_onset: EventOnsetConfig = field(default_factory=EventOnsetConfig)
    qc: QCThresholds = field(default_factory=QCThresholds)
    abc: ABCConfig = field(default_factory=ABCConfig)

    integration_method: str = "fft"
    differentiation_order: int = 5
    data_units: str = "cm/s2"

    sampling_limit: float = 200.0   # samples/sec floor before upsampling
    decimate: bool = False

    snr_threshold: float = 3.0      # dB
    pga_check: bool = False
    pga_threshold: float = 0.5      # cm/s2
    strong_motion_threshold: float = 5.0  # %g

    despike: bool = False
    despike_stdev: float = 3.0

    corner_method: str = "config"
    station_corners: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    @property
    def use_fft(self) -> bool:
        return self.integration_method == "fft"

    def validate(self) -> "ProcessingConfig":
        """
        Check the configuration, raising ConfigurationError on bad values.

        Optional values that are merely out of range are reset to their
        defaults instead of failing.

        Returns:
            self, for chaining
        """
        defaults = ProcessingConfig()
        if self.filter.taper_length < 0:
            self.filter.taper_length = defaults.filter.taper_length
        if self.event_onset.buffer < 0:
            self.event_onset.buffer = defaults.event_onset.buffer
        if not 0.0 <= self.strong_motion_threshold <= 100.0:
            self.strong_motion_threshold = defaults.strong_motion_threshold

        self.event_onset.method = self.event_onset.method.upper()
        if self.event_onset.method not in EVENT_ONSET_METHODS:
            raise ConfigurationError(f"Unknown event onset method: {self.event_onset.method}")
        if self.integration_method not in INTEGRATION_METHODS:
            raise ConfigurationError(f"Unknown integration method: {self.integration_method}")
        if self.differentiation_order not in DIFFERENTIATION_ORDERS:
            raise ConfigurationError(
                f"Differentiation order must be one of {DIFFERENTIATION_ORDERS}, "
                f"got {self.differentiation_order}"
            )
        if self.corner_method not in CORNER_METHODS:
            raise ConfigurationError(f"Unknown corner method: {self.corner_method}")
        if self.data_units not in ("cm/s2", "g"):
            raise ConfigurationError(f"Unknown data units: {self.data_units}")
        if self.filter.order < 2 or self.filter.order % 2:
            raise ConfigurationError(f"Filter order must be even and >= 2, got {self.filter.order}")
        if self.sampling_limit <= 0:
            raise ConfigurationError(f"Sampling limit must be positive, got {self.sampling_limit}")
        for name in ("initial_velocity", "residual_velocity", "residual_displacement"):
            if getattr(self.qc, name) < 0:
                raise ConfigurationError(f"QC threshold {name} must be non-negative")
        self.abc.validate()
        return self


def _lookup(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = _lookup(env, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name}: cannot parse '{value}' as a number")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = _lookup(env, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name}: cannot parse '{value}' as an integer")


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = _lookup(env, name)
    if value is None:
        return default
    if value.lower() in ("1", "true", "yes", "on"):
        return True
    if value.lower() in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name}: cannot parse '{value}' as a boolean")


def _env_range(env: Mapping[str, str], name: str, default: Tuple[int, int]) -> Tuple[int, int]:
    """Parse an order range written as '1-3' or '1,3'."""
    value = _lookup(env, name)
    if value is None:
        return default
    parts = value.replace(",", "-").split("-")
    try:
        low, high = (int(p) for p in parts)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name}: cannot parse '{value}' as an order range")
    return low, high


def load_station_corners(path: str) -> Dict[str, Tuple[float, float]]:
    """
    Read a station filter corner table.

    Each line reads `STATION: lowcut,highcut`. Blank lines and lines
    starting with '#' are skipped; lines that do not parse, or whose
    corners are not 0 < lowcut < highcut, are logged and ignored.

    Args:
        path: Table file

    Returns:
        Station code to (lowcut, highcut) mapping
    """
    corners: Dict[str, Tuple[float, float]] = {}
    with open(path) as table:
        for line in table:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, _, values = line.partition(":")
            try:
                low, high = (float(v) for v in values.split(","))
            except ValueError:
                logger.warning("Station corners: cannot parse '%s'", line)
                continue
            if not key.strip() or not 0.0 < low < high:
                logger.warning("Station corners: invalid entry '%s'", line)
                continue
            corners[key.strip()] = (low, high)
    logger.info("Loaded filter corners for %d stations from %s", len(corners), path)
    return corners


def load_config(environ: Optional[Mapping[str, str]] = None) -> ProcessingConfig:
    """
    Load processing configuration from the environment.

    Args:
        environ: Mapping to read instead of os.environ (used by tests)

    Returns:
        Validated ProcessingConfig
    """
    env = os.environ if environ is None else environ
    defaults = ProcessingConfig()

    filter_config = FilterConfig(
        lowcut=_env_float(env, "LOWCUT", defaults.filter.lowcut),
        highcut=_env_float(env, "HIGHCUT", defaults.filter.highcut),
        order=_env_int(env, "FILTER_ORDER", defaults.filter.order),
        taper_length=_env_float(env, "TAPER_LENGTH", defaults.filter.taper_length),
        causal=_env_bool(env, "CAUSAL", defaults.filter.causal),
    )
    onset_config = EventOnsetConfig(
        method=_lookup(env, "EVENT_ONSET_METHOD") or defaults.event_onset.method,
        buffer=_env_float(env, "EVENT_ONSET_BUFFER", defaults.event_onset.buffer),
    )
    qc_config = QCThresholds(
        initial_velocity=_env_float(env, "QC_INITIAL_VELOCITY", defaults.qc.initial_velocity),
        residual_velocity=_env_float(env, "QC_RESIDUAL_VELOCITY", defaults.qc.residual_velocity),
        residual_displacement=_env_float(
            env, "QC_RESIDUAL_DISPLACEMENT", defaults.qc.residual_displacement
        ),
    )
    abc_config = ABCConfig(
        poly1_range=_env_range(env, "ABC_POLY1_RANGE", defaults.abc.poly1_range),
        poly3_range=_env_range(env, "ABC_POLY3_RANGE", defaults.abc.poly3_range),
        moving_window=_env_int(env, "ABC_MOVING_WINDOW", defaults.abc.moving_window),
    )

    config = ProcessingConfig(
        filter=filter_config,
        event_onset=onset_config,
        qc=qc_config,
        abc=abc_config,
        integration_method=(_lookup(env, "INTEGRATION_METHOD") or defaults.integration_method).lower(),
        differentiation_order=_env_int(env, "DIFFERENTIATION_ORDER", defaults.differentiation_order),
        data_units=_lookup(env, "DATA_UNITS") or defaults.data_units,
        sampling_limit=_env_float(env, "SAMPLING_LIMIT", defaults.sampling_limit),
        decimate=_env_bool(env, "DECIMATE", defaults.decimate),
        snr_threshold=_env_float(env, "SNR_THRESHOLD", defaults.snr_threshold),
        pga_check=_env_bool(env, "PGA_CHECK", defaults.pga_check),
        pga_threshold=_env_float(env, "PGA_THRESHOLD", defaults.pga_threshold),
        strong_motion_threshold=_env_float(
            env, "STRONG_MOTION_THRESHOLD", defaults.strong_motion_threshold
        ),
        despike=_env_bool(env, "DESPIKE", defaults.despike),
        despike_stdev=_env_float(env, "DESPIKE_STDEV", defaults.despike_stdev),
        corner_method=(_lookup(env, "CORNER_METHOD") or defaults.corner_method).lower(),
    )

    table = _lookup(env, "STATION_CORNERS")
    if table is not None:
        try:
            config.station_corners = load_station_corners(table)
        except OSError as e:
            raise ConfigurationError(f"{ENV_PREFIX}STATION_CORNERS: cannot read {table}: {e}")
    return config.validate()


if __name__ == "__main__":
    # Test configuration loading
    config = load_config()
    print("Configuration loaded successfully!")
    print(f"  Filter: {config.filter.lowcut}-{config.filter.highcut} Hz, order {config.filter.order}")
    print(f"  Onset: {config.event_onset.method} (buffer {config.event_onset.buffer} s)")
    print(f"  QC: {config.qc}")
    print(f"  Integration: {config.integration_method}")
