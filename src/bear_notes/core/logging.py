"""
Logging Configuration

Console logging shared by the HTTP app and the index build script.
Everything goes to stderr so stdout stays free for a tool-protocol
transport.
"""

import sys
from logging.config import dictConfig

from bear_notes.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers, capped regardless of LOG_LEVEL.
# aiosqlite logs every cursor operation at DEBUG.
QUIET_LOGGERS: dict[str, str] = {
    "aiosqlite": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sentence_transformers": "WARNING",
    "uvicorn": "INFO",
}


def setup_logging(level: str | None = None) -> None:
    """
    Route application and library logs to one stderr handler.

    Args:
        level: Overrides the LOG_LEVEL setting for the ``bear_notes`` tree.
    """
    log_level = (level or settings.LOG_LEVEL).upper()

    loggers = {
        name: {"level": cap, "handlers": ["stderr"], "propagate": False}
        for name, cap in QUIET_LOGGERS.items()
    }
    loggers["bear_notes"] = {
        "level": log_level,
        "handlers": ["stderr"],
        "propagate": False,
    }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stderr,
                    "formatter": "default",
                },
            },
            "root": {"level": log_level, "handlers": ["stderr"]},
            "loggers": loggers,
        }
    )
