# backend/wealth_analytics/utils/logging.py
"""
Logging configuration for the analytics engine.

The engine modules only ever call `logging.getLogger(__name__)`. Hosting
processes (API workers, batch jobs, notebooks) call `setup_logging()` once
to decide level and format.

Formats:
    text  - "timestamp | level | correlation_id | logger | message"
    json  - one JSON object per line, including any `extra={...}` fields

Environment Configuration:
    LOG_LEVEL=DEBUG       # Per-day return series and solver iterations
    LOG_LEVEL=INFO        # One line per calculation
    LOG_LEVEL=WARNING     # Degradations only (fallbacks, non-convergence)
    LOG_FORMAT=json       # Machine-readable output
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from wealth_analytics.config import settings
from wealth_analytics.utils.context import get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

# LogRecord attributes that are not user-supplied extras
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class CorrelationIdFilter(logging.Filter):
    """Attach the context correlation ID to every record as `correlation_id`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "wealth_analytics.services.performance.service",
        "correlation_id": "abc-123",
        "message": "Performance calculated for portfolio p-1",
        "extra": {"portfolio_id": "p-1", "calculation_time_ms": 4}
    }

    Non-JSON-serializable extras (Decimal, date) are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
) -> None:
    """
    Configure root logging with correlation ID support.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: 'text' or 'json'. Defaults to settings.log_format.

    Raises:
        ValueError: If the level name is not recognised
    """
    level_name = level or settings.log_level
    log_level = _get_log_level(level_name)
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}",
        extra={"config": {"level": level_name, "format": format_type}},
    )


def _get_log_level(level_str: str) -> int:
    """
    Convert string log level to logging constant.

    Raises:
        ValueError: If level_str is not a valid log level
    """
    key = level_str.upper().strip()
    if key not in _LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_str}'. "
            f"Valid levels are: {', '.join(_LEVELS)}"
        )
    return _LEVELS[key]
