from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from logging.config import dictConfig
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Server loggers that otherwise bring their own handlers.
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class ZoneAwareFormatter(logging.Formatter):
    """Render record timestamps in ``zone`` (UTC when unset)."""

    def __init__(self, fmt: str, datefmt: Optional[str] = None, zone: Optional[str] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.zone = ZoneInfo(zone) if zone else dt_timezone.utc

    def formatTime(self, record, datefmt=None):  # noqa: N802 - override signature
        stamp = datetime.fromtimestamp(record.created, tz=self.zone)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()


def build_logging_config(log_level: str = "INFO", timezone: Optional[str] = None) -> Dict[str, Any]:
    """Return the ``dictConfig`` payload for the proxy process."""

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "proxy": {
                "()": ZoneAwareFormatter,
                "fmt": DEFAULT_FORMAT,
                "datefmt": DEFAULT_DATE_FORMAT,
                "zone": timezone,
            }
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "proxy",
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {name: {"handlers": [], "propagate": True} for name in SERVER_LOGGERS},
        "root": {"handlers": ["stdout"], "level": level},
    }


def configure_logging(log_level: str = "INFO", timezone: Optional[str] = None) -> None:
    """Apply :func:`build_logging_config` and route ``warnings`` into logging.

    Calling it again replaces the root handler instead of stacking another.
    """

    dictConfig(build_logging_config(log_level, timezone))
    logging.captureWarnings(True)
