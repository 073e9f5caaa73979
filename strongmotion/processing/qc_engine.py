"""
Quality Control Engine
======================
Checks that corrected velocity and displacement start and end near zero.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum

from strongmotion.errors import ConfigurationError
from strongmotion.processing.arrays import find_zero_crossing


class QCStatus(Enum):
    """QC check status."""
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


@dataclass
class QCCheck:
    """Result of a single QC check."""
    rule_name: str
    rule_code: str
    status: QCStatus
    measured_value: Optional[float]
    threshold: float
    details: str


@dataclass
class QCSummary:
    """Overall QC summary for one corrected record."""
    overall_status: QCStatus
    checks: List[QCCheck] = field(default_factory=list)
    total_checks: int = 0
    passed_checks: int = 0
    failed_checks: int = 0
    window: int = 0
    critical_issues: List[str] = field(default_factory=list)

    def add_check(self, check: QCCheck):
        """Add a check result and update counts."""
        self.checks.append(check)
        self.total_checks += 1

        if check.status == QCStatus.PASS:
            self.passed_checks += 1
        elif check.status == QCStatus.FAIL:
            self.failed_checks += 1
            self.critical_issues.append(f"{check.rule_code}: {check.details}")

    def finalize(self):
        """Determine overall status based on checks."""
        self.overall_status = QCStatus.FAIL if self.failed_checks > 0 else QCStatus.PASS

    @property
    def passed(self) -> bool:
        return self.overall_status == QCStatus.PASS

    def measured(self, rule_code: str) -> float:
        """Measured value of a check by code, 0.0 if it did not run."""
        for check in self.checks:
            if check.rule_code == rule_code and check.measured_value is not None:
                return check.measured_value
        return 0.0

    def to_dict(self) -> Dict:
        return {
            'overall_status': self.overall_status.value,
            'total_checks': self.total_checks,
            'passed_checks': self.passed_checks,
            'failed_checks': self.failed_checks,
            'window': self.window,
            'critical_issues': '; '.join(self.critical_issues) if self.critical_issues else '',
        }


class QCEngine:
    """
    Velocity and displacement end-condition checks.

    A record passes when its velocity starts near zero and its velocity
    and displacement settle back near zero at the end. The value at each
    end is the mean of the samples between the record end and the zero
    crossing nearest the decision window, or the end sample itself when
    no crossing exists.
    """

    # Default thresholds (cm/s, cm/s, cm)
    DEFAULT_THRESHOLDS = {
        'initial_velocity': 0.1,
        'residual_velocity': 0.1,
        'residual_displacement': 0.1,
    }

    def __init__(self, thresholds: Optional[Dict[str, float]] = None):
        """
        Initialize the QC engine.

        Args:
            thresholds: Optional dict of threshold overrides
        """
        self.thresholds = {**self.DEFAULT_THRESHOLDS}
        if thresholds:
            for key, value in thresholds.items():
                try:
                    self.thresholds[key] = float(value)
                except (TypeError, ValueError):
                    raise ConfigurationError(f"QC threshold {key}: cannot parse '{value}'")
        self.window = 0

    @staticmethod
    def find_window(lowcut: float, sample_rate: float, onset_index: int) -> int:
        """
        Decision window length in samples.

        The longer of the onset index and one period of the low corner,
        with the period rounded to whole seconds.
        """
        if lowcut <= 0:
            return max(onset_index, 0)
        return max(onset_index, int(round(1.0 / lowcut) * sample_rate))

    def set_window(self, lowcut: float, sample_rate: float, onset_index: int) -> int:
        self.window = self.find_window(lowcut, sample_rate, onset_index)
        return self.window

    def _leading_value(self, values: np.ndarray) -> float:
        if self.window > 0:
            crossing = find_zero_crossing(values, self.window, 0)
            if crossing > 0:
                return float(np.mean(values[:crossing + 1]))
        return float(values[0])

    def _trailing_value(self, values: np.ndarray) -> float:
        n = len(values)
        if self.window > 0:
            crossing = find_zero_crossing(values, n - self.window - 1, n - 1)
            if crossing > 0:
                return float(np.mean(values[crossing:]))
        return float(values[-1])

    def _make_check(self, name: str, code: str, key: str, value: float) -> QCCheck:
        threshold = self.thresholds[key]
        if abs(value) <= threshold:
            status = QCStatus.PASS
            details = f"{name} {value:.6f} within +/-{threshold}"
        else:
            status = QCStatus.FAIL
            details = f"{name} {value:.6f} exceeds +/-{threshold}"
        return QCCheck(
            rule_name=name,
            rule_code=code,
            status=status,
            measured_value=value,
            threshold=threshold,
            details=details
        )

    def check_velocity(self, velocity: np.ndarray) -> Tuple[QCCheck, QCCheck]:
        """
        Check initial and residual velocity.

        Args:
            velocity: Corrected velocity (cm/s)

        Returns:
            Tuple of (initial velocity check, residual velocity check)
        """
        if len(velocity) == 0:
            skipped = [
                QCCheck(name, code, QCStatus.SKIP, None, self.thresholds[key], "No velocity data")
                for name, code, key in (
                    ("Initial velocity", "VEL-INIT", 'initial_velocity'),
                    ("Residual velocity", "VEL-RES", 'residual_velocity'),
                )
            ]
            return skipped[0], skipped[1]

        return (
            self._make_check("Initial velocity", "VEL-INIT", 'initial_velocity',
                             self._leading_value(velocity)),
            self._make_check("Residual velocity", "VEL-RES", 'residual_velocity',
                             self._trailing_value(velocity)),
        )

    def check_displacement(self, displacement: np.ndarray) -> QCCheck:
        """
        Check residual displacement at the end of the record.

        Args:
            displacement: Corrected displacement (cm)

        Returns:
            QCCheck result
        """
        if len(displacement) == 0:
            return QCCheck("Residual displacement", "DIS-RES", QCStatus.SKIP, None,
                           self.thresholds['residual_displacement'], "No displacement data")
        return self._make_check("Residual displacement", "DIS-RES", 'residual_displacement',
                                self._trailing_value(displacement))

    def run_all_checks(
        self,
        velocity: np.ndarray,
        displacement: Optional[np.ndarray] = None
    ) -> QCSummary:
        """
        Run the velocity checks, and the displacement check when given.

        Returns:
            QCSummary with all check results
        """
        summary = QCSummary(overall_status=QCStatus.PASS, window=self.window)
        for check in self.check_velocity(velocity):
            summary.add_check(check)
        if displacement is not None:
            summary.add_check(self.check_displacement(displacement))
        summary.finalize()
        return summary


def run_qc(
    velocity: np.ndarray,
    displacement: np.ndarray,
    lowcut: float,
    sample_rate: float,
    onset_index: int,
    thresholds: Optional[Dict[str, float]] = None
) -> QCSummary:
    """
    Convenience function to run QC checks.

    Args:
        velocity: Corrected velocity
        displacement: Corrected displacement
        lowcut: Filter low corner used to size the window (Hz)
        sample_rate: Samples per second
        onset_index: Event onset index
        thresholds: Optional dict of threshold overrides

    Returns:
        QCSummary
    """
    engine = QCEngine(thresholds)
    engine.set_window(lowcut, sample_rate, onset_index)
    return engine.run_all_checks(velocity, displacement)
