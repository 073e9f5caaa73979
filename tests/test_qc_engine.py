import numpy as np
import pytest

from strongmotion.errors import ConfigurationError
from strongmotion.processing.qc_engine import QCEngine, QCStatus, run_qc


@pytest.mark.parametrize("lowcut, sample_rate, onset, expected", [
    (0.3, 200.0, 1234, 1234),
    (0.3, 200.0, 500, 600),
    (0.3, 0.0, 0, 0),
])
def test_find_window(lowcut, sample_rate, onset, expected):
    assert QCEngine.find_window(lowcut, sample_rate, onset) == expected


def test_velocity_end_samples_without_window():
    velocity = np.zeros(10)
    velocity[0] = 0.01
    velocity[9] = 0.02
    initial, residual = QCEngine().check_velocity(velocity)
    assert initial.measured_value == pytest.approx(0.01)
    assert residual.measured_value == pytest.approx(0.02)
    assert initial.status == QCStatus.PASS
    assert residual.status == QCStatus.PASS

    velocity[0] = 0.21
    assert not QCEngine().run_all_checks(velocity).passed
    velocity[0] = 0.01
    velocity[9] = 0.22
    assert not QCEngine().run_all_checks(velocity).passed


def test_velocity_means_to_zero_crossings():
    velocity = np.full(10, 0.04)
    velocity[3] = -0.03
    velocity[6] = -0.02
    engine = QCEngine()
    engine.window = 5
    initial, residual = engine.check_velocity(velocity)
    assert initial.measured_value == pytest.approx(0.0225)
    assert residual.measured_value == pytest.approx(0.028)


def test_displacement_residual():
    displacement = np.zeros(10)
    displacement[9] = 0.01
    check = QCEngine().check_displacement(displacement)
    assert check.measured_value == pytest.approx(0.01)
    assert check.status == QCStatus.PASS

    displacement[9] = 0.11
    assert QCEngine().check_displacement(displacement).status == QCStatus.FAIL


def test_displacement_mean_after_crossing():
    displacement = np.full(10, 0.02)
    engine = QCEngine()
    engine.window = 4
    assert engine.check_displacement(displacement).measured_value == pytest.approx(0.02)

    displacement[7] = -0.02
    assert engine.check_displacement(displacement).measured_value == pytest.approx(0.01)


def test_threshold_boundary_is_inclusive():
    engine = QCEngine({'residual_velocity': 2.0})
    velocity = np.zeros(10)
    velocity[-1] = 2.0
    assert engine.run_all_checks(velocity).passed
    velocity[-1] = 2.000001
    summary = engine.run_all_checks(velocity)
    assert not summary.passed
    assert summary.failed_checks == 1
    assert summary.critical_issues[0].startswith("VEL-RES")


def test_unparsable_threshold_raises():
    with pytest.raises(ConfigurationError):
        QCEngine({'initial_velocity': 'fast'})


def test_empty_arrays_are_skipped():
    summary = QCEngine().run_all_checks(np.array([]), np.array([]))
    assert summary.total_checks == 3
    assert all(check.status == QCStatus.SKIP for check in summary.checks)
    assert summary.passed


def test_run_qc_sets_window():
    summary = run_qc(np.zeros(2000), np.zeros(2000), 0.1, 100.0, 300)
    assert summary.window == 1000
    assert summary.passed
    assert summary.to_dict()['overall_status'] == 'pass'
