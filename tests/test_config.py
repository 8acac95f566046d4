import logging

import pytest

from GaneshaMetrics import config


def test_defaults():
    settings = config.parse_settings([], environ={})
    assert settings.port == 8080
    assert settings.address == ""
    assert settings.metrics_path == "/metrics"
    assert settings.bus_address is None
    assert settings.dbus_timeout is None
    assert settings.commit_id is None
    assert settings.log_level == "INFO"


def test_command_line():
    settings = config.parse_settings(
        ["--port", "9587", "--address", "127.0.0.1", "--path", "/stats",
         "--bus-address", "unix:path=/run/dbus/test", "--dbus-timeout", "2.5",
         "--commit-id", "abc", "--log-level", "debug"], environ={})
    assert settings == config.Settings(port=9587,
                                       address="127.0.0.1",
                                       metrics_path="/stats",
                                       bus_address="unix:path=/run/dbus/test",
                                       dbus_timeout=2.5,
                                       commit_id="abc",
                                       log_level="DEBUG")


def test_environment_fallbacks():
    env = {"GANESHA_METRICS_PORT": "9100",
           "GANESHA_METRICS_PATH": "/ganesha",
           "GANESHA_METRICS_DBUS_TIMEOUT": "10",
           "GANESHA_METRICS_LOG_LEVEL": "warning"}
    settings = config.parse_settings([], environ=env)
    assert settings.port == 9100
    assert settings.metrics_path == "/ganesha"
    assert settings.dbus_timeout == 10.0
    assert settings.log_level == "WARNING"


def test_command_line_overrides_environment():
    settings = config.parse_settings(["-p", "8000"],
                                     environ={"GANESHA_METRICS_PORT": "9100"})
    assert settings.port == 8000


@pytest.mark.parametrize("argv", [
    ["--port", "http"],
    ["--port", "0"],
    ["--port", "70000"],
    ["--path", "metrics"],
    ["--dbus-timeout", "-1"],
    ["--dbus-timeout", "soon"],
    ["--log-level", "chatty"],
])
def test_invalid_values(argv):
    with pytest.raises(SystemExit) as err:
        config.parse_settings(argv, environ={})
    assert err.value.code == 2


def test_invalid_environment_value():
    with pytest.raises(SystemExit):
        config.parse_settings([], environ={"GANESHA_METRICS_PORT": "x"})


def test_setup_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig",
                        lambda **kwargs: calls.append(kwargs))
    config.setup_logging(config.parse_settings(["--log-level", "error"],
                                               environ={}))
    assert calls == [{"format": config.FORMAT, "level": logging.ERROR}]
