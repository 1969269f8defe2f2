from __future__ import annotations

import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger.json import JsonFormatter

_CONFIGURED = False

# Domain ids passed through `extra=` that are worth indexing.
_CONTEXT_FIELDS = ("organization_id", "enrollment_id", "attendance_id", "payment_id", "actor")


class DaycareJsonFormatter(JsonFormatter):
    """JSON log lines with a UTC timestamp and any domain ids attached to the record."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_record[name] = getattr(record, name)


def build_logging_config(level: str = "INFO", fmt: str = "text") -> dict:
    formatter = "json" if fmt == "json" else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": DaycareJsonFormatter,
                "format": "%(timestamp)s %(level)s %(logger)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "level": level,
            },
        },
        "loggers": {
            "src.daycare_system": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "mysql.connector": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging(level: str = "INFO", fmt: str = "text") -> logging.Logger:
    """Configure application logging once per process. `fmt` is "text" or "json"."""
    global _CONFIGURED
    if not _CONFIGURED:
        logging.config.dictConfig(build_logging_config(level.upper(), fmt.lower()))
        _CONFIGURED = True
    logger = logging.getLogger("src.daycare_system")
    logger.debug("Logging initialized with level: %s", level)
    return logger
