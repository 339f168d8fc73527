from chatrelay.core.logging import build_logging_config


def test_app_loggers_use_requested_level():
    config = build_logging_config("info")

    assert config["loggers"]["chatrelay"]["level"] == "INFO"
    assert config["loggers"]["chatrelay"]["propagate"] is False
    assert config["loggers"]["uvicorn.access"]["handlers"] == ["access"]


def test_http_client_loggers_stay_quiet_at_debug():
    config = build_logging_config("DEBUG")

    assert config["loggers"]["chatrelay"]["level"] == "DEBUG"
    assert config["loggers"]["httpx"]["level"] == "WARNING"
    assert config["loggers"]["uvicorn.error"]["level"] == "INFO"
