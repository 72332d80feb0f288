"""Centralized logging configuration."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.config import dictConfig

from app.core.context import get_api_user, get_request_id

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(api_user)s | %(message)s"


class RequestContextFilter(logging.Filter):
    """Add request_id and api_user attributes to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.api_user = get_api_user() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, using the field names Cloud Logging understands."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "api_user": getattr(record, "api_user", "-"),
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        }
        if record.exc_info:
            entry["stack"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(*, log_level: str = "INFO", log_format: str = "text") -> None:
    """Configure application logging once at startup."""
    if getattr(configure_logging, "_configured", False):
        return

    formatter = "json" if log_format.lower() == "json" else "default"
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": TEXT_FORMAT},
                "json": {"()": "app.core.logging.JsonFormatter"},
            },
            "filters": {
                "request_context": {
                    "()": "app.core.logging.RequestContextFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter,
                    "level": log_level,
                    "filters": ["request_context"],
                }
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s (%s)", log_level, formatter)
    setattr(configure_logging, "_configured", True)
