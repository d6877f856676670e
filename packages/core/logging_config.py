from __future__ import annotations

import logging
import logging.config
import os
import sys
from typing import Optional


# Loggers that emit a line per scheduler tick or per request.
_QUIET_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def _log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def _log_destination() -> str:
    return os.getenv("LOG_DESTINATION", "stdout").lower()


def _log_file_path() -> Optional[str]:
    return os.getenv("LOG_FILE")


def _handler_config(destination: str) -> dict:
    if destination == "file":
        log_file = _log_file_path()
        if not log_file:
            raise RuntimeError("LOG_FILE is required when LOG_DESTINATION=file")
        return {
            "class": "logging.FileHandler",
            "level": _log_level(),
            "filename": log_file,
            "formatter": "standard",
        }
    if destination not in ("stdout", "stderr"):
        raise RuntimeError(f"Unsupported LOG_DESTINATION: {destination}")
    return {
        "class": "logging.StreamHandler",
        "level": _log_level(),
        "stream": sys.stdout if destination == "stdout" else sys.stderr,
        "formatter": "standard",
    }


def configure_logging() -> None:
    quiet_level = "DEBUG" if _log_level() == "DEBUG" else "WARNING"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
                }
            },
            "handlers": {"default": _handler_config(_log_destination())},
            "loggers": {name: {"level": quiet_level} for name in _QUIET_LOGGERS},
            "root": {"handlers": ["default"], "level": _log_level()},
        }
    )
