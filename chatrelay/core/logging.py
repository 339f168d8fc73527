"""Logging setup shared by the app and uvicorn.

Application records (`chatrelay.*`) go to stdout at `settings.log_level`;
uvicorn's server and access logs keep their own handlers at INFO so a DEBUG
app level does not flood the access log.
"""

import sys
from logging.config import dictConfig
from typing import Any

from chatrelay.core.config import settings

APP_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] %(message)s"
ACCESS_FORMAT = '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s'
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers quieted regardless of the app level
QUIET_LOGGERS = {"httpx": "WARNING", "openai": "INFO"}


def _logger(handler: str, level: str) -> dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def build_logging_config(level: str = "DEBUG") -> dict[str, Any]:
    """dictConfig mapping with uvicorn's formatters and `level` for the app loggers."""
    level = level.upper()
    loggers = {
        "root": _logger("server", "INFO"),
        "uvicorn.error": _logger("server", "INFO"),
        "uvicorn.access": _logger("access", "INFO"),
        "chatrelay": _logger("relay", level),
    }
    loggers.update({name: _logger("server", quiet) for name, quiet in QUIET_LOGGERS.items()})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"()": "uvicorn.logging.DefaultFormatter", "fmt": APP_FORMAT, "datefmt": DATE_FORMAT},
            "access": {"()": "uvicorn.logging.AccessFormatter", "fmt": ACCESS_FORMAT},
        },
        "handlers": {
            "server": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stderr},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": sys.stdout},
            "relay": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stdout},
        },
        "loggers": loggers,
    }


def setup_logging() -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(settings.log_level))
