"""
Adaptive Baseline Correction
============================
Searches piecewise velocity baselines when simple trend removal fails QC.

The baseline has three pieces:
- a polynomial over [0, break1] (break1 is the event onset)
- a cubic Hermite spline over (break1, break2)
- a polynomial over [break2, end]

break2 and the order of the last polynomial are searched; each
candidate is corrected, filtered, integrated and checked, then ranked
by the RMS misfit of the baseline pieces.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from strongmotion.config import ABCConfig
from strongmotion.processing.arrays import (
    ArrayStats,
    central_difference,
    polynomial_fit,
    polynomial_values,
    root_mean_square,
)
from strongmotion.processing.butterworth import ButterworthFilter
from strongmotion.processing.integration import FilteredMotion, FilterIntegrator, Integrator
from strongmotion.processing.qc_engine import QCEngine, QCSummary
from strongmotion.processing.status import ProcessingStatus

logger = logging.getLogger(__name__)

STEP_PENALTY = 1000.0
BREAK2_LIMIT = 0.8
SPLINE_ORDER = 3


@dataclass
class Candidate:
    """One evaluated (break2, order3) combination."""
    break1: int
    break2: int
    order1: int
    order3: int
    rms1: float
    rms2: float
    rms3: float
    score: float
    initial_velocity: float
    residual_velocity: float
    residual_displacement: float
    iteration: int

    @property
    def order_history(self) -> Tuple[int, int, int]:
        """Velocity baseline orders of the three segments, first to last."""
        return self.order1, SPLINE_ORDER, self.order3

    def passes(self, thresholds: Dict[str, float]) -> bool:
        return (abs(self.initial_velocity) <= thresholds['initial_velocity']
                and abs(self.residual_velocity) <= thresholds['residual_velocity']
                and abs(self.residual_displacement) <= thresholds['residual_displacement'])


@dataclass
class ABCResult:
    """Outcome of the baseline search."""
    status: ProcessingStatus
    candidates_evaluated: int = 0
    rank: int = 0
    solution: Optional[Candidate] = None
    baseline: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    baseline_derivative: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)
    motion: Optional[FilteredMotion] = field(default=None, repr=False)
    qc_summary: Optional[QCSummary] = None


def spline_segment(
    values: np.ndarray,
    break1: int,
    break2: int,
    dt: float
) -> np.ndarray:
    """
    Cubic Hermite curve joining values[break1] to values[break2].

    End slopes are five-point one-sided differences taken outward from
    each breakpoint, so the joined curve is continuous in value and
    approximately in slope.

    Returns:
        Curve for indices break1+1 .. break2-1
    """
    n = len(values)
    a = values[break1]
    b = values[break2]

    if break1 >= 4:
        slope1 = (3 * values[break1 - 4] - 16 * values[break1 - 3] + 36 * values[break1 - 2]
                  - 48 * values[break1 - 1] + 25 * values[break1]) / (12 * dt)
    elif break1 >= 1:
        slope1 = (values[break1] - values[break1 - 1]) / dt
    else:
        slope1 = 0.0

    if break2 + 4 < n:
        slope2 = (-25 * values[break2] + 48 * values[break2 + 1] - 36 * values[break2 + 2]
                  + 16 * values[break2 + 3] - 3 * values[break2 + 4]) / (12 * dt)
    elif break2 + 1 < n:
        slope2 = (values[break2 + 1] - values[break2]) / dt
    else:
        slope2 = 0.0

    length = (break2 - break1) * dt
    t = np.arange(break1 + 1, break2) * dt
    s = t - break1 * dt
    e = t - break2 * dt
    return ((1 + 2 * s / length) * e ** 2 * a
            + (1 - 2 * e / length) * s ** 2 * b
            + s * e ** 2 * slope1
            + e * s ** 2 * slope2) / length ** 2


class AdaptiveBaselineCorrector:
    """
    Searches three-segment baselines for one trace.

    Args:
        config: Search ranges and break2 step
        bandpass: Filter with coefficients already calculated for dt
        integrator: Run-wide integrator
        qc_thresholds: Initial velocity, residual velocity and residual
                       displacement tolerances
        lowcut: Low corner (Hz); also the minimum spline length is 1/lowcut
        taper_length: Minimum taper time (seconds)
        differentiation_order: Stencil width for baseline differentiation
    """

    def __init__(
        self,
        config: ABCConfig,
        bandpass: ButterworthFilter,
        integrator: Integrator,
        qc_thresholds: Dict[str, float],
        lowcut: float,
        taper_length: float,
        differentiation_order: int = 5
    ):
        config.validate()
        self.config = config
        self.bandpass = bandpass
        self.integrator = integrator
        self.qc_thresholds = qc_thresholds
        self.lowcut = lowcut
        self.taper_length = taper_length
        self.differentiation_order = differentiation_order

    def _fit_first_segment(self, velocity: np.ndarray, break1: int, dt: float) -> Tuple[np.ndarray, int, float]:
        """Best-RMS polynomial over [0, break1] across the configured order range."""
        segment = velocity[:break1 + 1]
        best = (np.zeros(len(segment)), self.config.poly1_range[0], np.inf)
        low, high = self.config.poly1_range
        for order in range(low, high + 1):
            fitted = polynomial_values(polynomial_fit(segment, dt, order), len(segment), dt)
            rms = root_mean_square(segment, fitted)
            if rms < best[2]:
                best = (fitted, order, rms)
        return best

    def build_baseline(
        self,
        velocity: np.ndarray,
        first_segment: np.ndarray,
        break1: int,
        break2: int,
        order3: int,
        dt: float
    ) -> Tuple[np.ndarray, float, float]:
        """
        Assemble the three-piece baseline.

        Returns:
            Tuple of (baseline, spline RMS misfit, last-segment RMS misfit)
        """
        n = len(velocity)
        tail = velocity[break2:]
        tail_fit = polynomial_values(polynomial_fit(tail, dt, order3), len(tail), dt)

        baseline = np.zeros(n)
        baseline[:break1 + 1] = first_segment
        baseline[break2:] = tail_fit
        baseline[break1 + 1:break2] = spline_segment(baseline, break1, break2, dt)

        rms2 = root_mean_square(velocity[break1 + 1:break2], baseline[break1 + 1:break2])
        rms3 = root_mean_square(tail, tail_fit)
        return baseline, rms2, rms3

    def _apply_baseline(
        self,
        acceleration: np.ndarray,
        baseline: np.ndarray,
        break1: int,
        dt: float
    ) -> Tuple[np.ndarray, np.ndarray, FilteredMotion, QCSummary]:
        derivative = central_difference(baseline, dt, self.differentiation_order)
        corrected = acceleration - derivative
        unfiltered = corrected.copy()

        filter_integrator = FilterIntegrator(self.bandpass, self.integrator, self.taper_length)
        motion = filter_integrator.process(corrected, dt, break1)

        qc = QCEngine(self.qc_thresholds)
        qc.set_window(self.lowcut, 1.0 / dt, break1)
        summary = qc.run_all_checks(motion.velocity, motion.displacement)
        return derivative, unfiltered, motion, summary

    def search(
        self,
        acceleration: np.ndarray,
        velocity: np.ndarray,
        dt: float,
        break1: int
    ) -> Tuple[List[Candidate], np.ndarray, int, float]:
        """
        Evaluate every admissible (break2, order3) pair.

        Returns:
            Tuple of (candidates in evaluation order, first-segment fit,
            first-segment order, first-segment RMS)
        """
        n = len(velocity)
        first_segment, order1, rms1 = self._fit_first_segment(velocity, break1, dt)
        step = self.config.moving_window
        minimum_seconds = 1.0 / self.lowcut

        candidates: List[Candidate] = []
        low, high = self.config.poly3_range
        for order3 in range(low, high + 1):
            for break2 in range(break1 + step, int(BREAK2_LIMIT * n) + 1, step):
                if (break2 - break1) * dt < minimum_seconds:
                    continue
                baseline, rms2, rms3 = self.build_baseline(
                    velocity, first_segment, break1, break2, order3, dt
                )
                _, unfiltered, motion, summary = self._apply_baseline(
                    acceleration, baseline, break1, dt
                )
                score = float(np.sqrt(rms1 ** 2 + rms2 ** 2 + rms3 ** 2))

                # a corrected trace whose first sample is its peak is a spurious step
                peak = ArrayStats(unfiltered).peak_value
                if peak != 0.0 and np.isclose(abs(unfiltered[0]), abs(peak), rtol=1e-12, atol=0.0):
                    score = STEP_PENALTY

                candidates.append(Candidate(
                    break1=break1,
                    break2=break2,
                    order1=order1,
                    order3=order3,
                    rms1=rms1,
                    rms2=rms2,
                    rms3=rms3,
                    score=score,
                    initial_velocity=summary.measured("VEL-INIT"),
                    residual_velocity=summary.measured("VEL-RES"),
                    residual_displacement=summary.measured("DIS-RES"),
                    iteration=len(candidates),
                ))
        return candidates, first_segment, order1, rms1

    def correct(
        self,
        acceleration: np.ndarray,
        velocity: np.ndarray,
        dt: float,
        onset_index: int
    ) -> ABCResult:
        """
        Run the search and rebuild the selected solution.

        The ranking is walked in ascending score; the first candidate
        whose three QC values are within tolerance is GOOD. When none
        passes, the lowest score is returned as FAILQC. No admissible
        candidate at all gives NOABC.

        Args:
            acceleration: Acceleration after pre-event mean removal
            velocity: Velocity integrated from that acceleration
            dt: Sample interval (seconds)
            onset_index: Buffered event onset, used as break1

        Returns:
            ABCResult
        """
        candidates, first_segment, _, _ = self.search(acceleration, velocity, dt, onset_index)
        if not candidates:
            logger.info("ABC: no admissible breakpoints for %d samples", len(velocity))
            return ABCResult(status=ProcessingStatus.NOABC)

        ranking = sorted(candidates, key=lambda c: c.score)
        status = ProcessingStatus.FAILQC
        rank = 0
        solution = ranking[0]
        for position, candidate in enumerate(ranking):
            if candidate.passes(self.qc_thresholds):
                status = ProcessingStatus.GOOD
                rank = position + 1
                solution = candidate
                break

        baseline, _, _ = self.build_baseline(
            velocity, first_segment, solution.break1, solution.break2, solution.order3, dt
        )
        derivative, _, motion, summary = self._apply_baseline(
            acceleration, baseline, solution.break1, dt
        )
        logger.info(
            "ABC: %s after %d candidates, break2=%d order3=%d rank=%d",
            status.value, len(candidates), solution.break2, solution.order3, rank
        )
        return ABCResult(
            status=status,
            candidates_evaluated=len(candidates),
            rank=rank,
            solution=solution,
            baseline=baseline,
            baseline_derivative=derivative,
            motion=motion,
            qc_summary=summary,
        )
