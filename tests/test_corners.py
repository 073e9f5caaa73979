import pytest

from strongmotion.processing.corners import CornerSelector, magnitude_highcut, magnitude_lowcut
from strongmotion.processing.waveform import RecordSource


@pytest.mark.parametrize("magnitude, expected", [
    (7.0, 0.1),
    (5.5, 0.1),
    (5.4, 0.3),
    (3.5, 0.3),
    (3.4, 0.5),
])
def test_magnitude_lowcut(magnitude, expected):
    assert magnitude_lowcut(magnitude) == expected


def test_magnitude_highcut():
    assert magnitude_highcut(50.0) == pytest.approx(20.0)
    assert magnitude_highcut(100.0) == 40.0
    assert magnitude_highcut(200.0) == 40.0


def test_station_table_hit_and_fallback():
    selector = CornerSelector("station", 0.1, 20.0, {"ABC": (0.2, 25.0)})

    hit = selector.select(RecordSource(station="ABC"), 200.0, 100.0)
    assert (hit.lowcut, hit.highcut, hit.source) == (0.2, 25.0, "station")
    assert hit.ok

    fallback = selector.select(RecordSource(station="XYZ"), 200.0, 100.0)
    assert (fallback.lowcut, fallback.highcut, fallback.source) == (0.1, 20.0, "config")
    assert fallback.ok


def test_magnitude_corners():
    selector = CornerSelector("magnitude")
    selection = selector.select(RecordSource(local_magnitude=4.2), 200.0, 100.0)
    assert selection.ok
    assert selection.lowcut == 0.3
    assert selection.highcut == 40.0


def test_magnitude_corners_unavailable():
    selector = CornerSelector("magnitude")
    assert not selector.select(RecordSource(), 200.0, 100.0).ok
    low_rate = selector.select(RecordSource(moment_magnitude=6.0), 200.0, 40.0)
    assert not low_rate.ok
    assert "below" in low_rate.reason


def test_corners_above_nyquist_rejected():
    selection = CornerSelector("config", 0.1, 60.0).select(RecordSource(), 100.0, 100.0)
    assert not selection.ok
    assert "nyquist" in selection.reason
