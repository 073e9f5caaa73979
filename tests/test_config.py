import pytest

from strongmotion.config import ProcessingConfig, load_config
from strongmotion.errors import ConfigurationError


def test_defaults():
    config = load_config({})
    assert config.filter.lowcut == 0.1
    assert config.filter.highcut == 20.0
    assert config.filter.rolloff == 2
    assert config.event_onset.method == "PWD"
    assert config.use_fft
    assert config.abc.poly3_range == (1, 3)
    assert not config.decimate


def test_environment_overrides():
    config = load_config({
        "SM_LOWCUT": "0.3",
        "SM_EVENT_ONSET_METHOD": "aic",
        "SM_ABC_POLY3_RANGE": "1-2",
        "SM_DECIMATE": "true",
        "SM_DESPIKE_STDEV": "4",
        "SM_INTEGRATION_METHOD": "TIME",
        "SM_HIGHCUT": "  ",
    })
    assert config.filter.lowcut == 0.3
    assert config.filter.highcut == 20.0
    assert config.event_onset.method == "AIC"
    assert config.abc.poly3_range == (1, 2)
    assert config.decimate
    assert config.despike_stdev == 4.0
    assert not config.use_fft


@pytest.mark.parametrize("name, value", [
    ("SM_LOWCUT", "low"),
    ("SM_FILTER_ORDER", "4.5"),
    ("SM_DECIMATE", "maybe"),
    ("SM_ABC_POLY1_RANGE", "one-two"),
])
def test_unparsable_values_raise(name, value):
    with pytest.raises(ConfigurationError):
        load_config({name: value})
    with pytest.raises(ValueError):
        load_config({name: value})


def test_out_of_range_optionals_reset():
    config = load_config({
        "SM_TAPER_LENGTH": "-1",
        "SM_STRONG_MOTION_THRESHOLD": "150",
    })
    assert config.filter.taper_length == 2.0
    assert config.strong_motion_threshold == 5.0


@pytest.mark.parametrize("env", [
    {"SM_DIFFERENTIATION_ORDER": "4"},
    {"SM_ABC_POLY3_RANGE": "3-1"},
    {"SM_EVENT_ONSET_METHOD": "STALTA"},
    {"SM_CORNER_METHOD": "guess"},
    {"SM_FILTER_ORDER": "3"},
    {"SM_QC_INITIAL_VELOCITY": "-0.1"},
])
def test_invalid_values_raise(env):
    with pytest.raises(ConfigurationError):
        load_config(env)


def test_validate_returns_self():
    config = ProcessingConfig()
    assert config.validate() is config


def test_station_corner_table(tmp_path):
    table = tmp_path / "corners.txt"
    table.write_text(
        "# station: lowcut,highcut\n"
        "\n"
        "CE.24386: 0.2,25\n"
        "NC.ABC: 0.5,0.3\n"
        "NC.XYZ: fast,slow\n"
    )
    config = load_config({"SM_STATION_CORNERS": str(table), "SM_CORNER_METHOD": "station"})
    assert config.station_corners == {"CE.24386": (0.2, 25.0)}


def test_missing_station_corner_table(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config({"SM_STATION_CORNERS": str(tmp_path / "missing.txt")})
