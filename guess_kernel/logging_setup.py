"""Logging configuration for applications embedding the guess kernel.

The library itself only creates module loggers under the ``guess_kernel``
namespace; nothing is configured on import.
"""

import logging
import logging.config
from pathlib import Path
from typing import Optional


LOGGER_NAME = "guess_kernel"


def setup_logging(
    level: str = "INFO",
    console: bool = True,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``guess_kernel`` logger.

    Args:
        level: Level for the package logger.
        console: Whether to attach a stderr handler.
        log_file: Optional path; when given, everything down to DEBUG is
            written there as well.
    """
    handlers = {}
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": level.upper(),
        }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "filename": log_file,
            "encoding": "utf-8",
            "level": "DEBUG",
        }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "{asctime} {levelname:<7} {name} - {message}",
                "style": "{",
            },
            "console": {
                "format": "{levelname:<7} {message}",
                "style": "{",
            },
        },
        "handlers": handlers,
        "loggers": {
            LOGGER_NAME: {
                "level": "DEBUG" if log_file else level.upper(),
                "handlers": list(handlers),
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(config)

    logger = logging.getLogger(LOGGER_NAME)
    logger.debug("Logging initialised (level=%s, file=%s)", level, log_file)
    return logger
