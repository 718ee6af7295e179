"""
Central logging configuration for the application.

Installs a single stdout handler on the root logger so every
``logging.getLogger(__name__)`` in the codebase emits through it.
"""
import json
import logging
from logging.config import dictConfig

from app.config import settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _build_config(level: str, fmt: str) -> dict:
    if fmt == "json":
        formatter = {"()": "app.core.logging_setup.JsonFormatter"}
    else:
        formatter = {"format": _TEXT_FORMAT}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging() -> None:
    """
    Configure application-wide logging once.

    Returns early when the root logger already has handlers, so reloaders
    and test runners do not end up with duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_build_config(settings.log_level.upper(), settings.log_format.lower()))
