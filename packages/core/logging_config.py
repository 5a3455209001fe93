from __future__ import annotations

import logging
import logging.config
import os
import sys
from typing import Optional


VERBOSE_LOGGERS = ("thread_digest.sync", "thread_digest.discord")


def _log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def _log_destination() -> str:
    return os.getenv("LOG_DESTINATION", "stdout").lower()


def _log_file_path() -> Optional[str]:
    return os.getenv("LOG_FILE")


def _verbose_enabled() -> bool:
    return os.getenv("DISCORD_VERBOSE_LOGS", "false").lower() == "true"


def configure_logging() -> None:
    destination = _log_destination()
    handlers = {}

    if destination == "file":
        log_file = _log_file_path()
        if not log_file:
            raise RuntimeError("LOG_FILE is required when LOG_DESTINATION=file")
        handlers["default"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "filename": log_file,
            "formatter": "standard",
        }
    else:
        stream = sys.stdout if destination == "stdout" else sys.stderr
        handlers["default"] = {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "stream": stream,
            "formatter": "standard",
        }

    # Per-thread progress lines are DEBUG; the verbose toggle surfaces them
    # without lowering the root level.
    loggers = {}
    if _verbose_enabled():
        loggers = {name: {"level": "DEBUG"} for name in VERBOSE_LOGGERS}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": handlers,
            "loggers": loggers,
            "root": {"handlers": ["default"], "level": _log_level()},
        }
    )
