"""
Structured Logging Configuration Module for the LMS Video Service

This module provides logging utilities with JSON or plain-text output,
integration with Uvicorn's loggers, and a redaction filter that keeps signed
URL credentials out of log output.

Features:
- JSONFormatter: Formatter outputting structured JSON log records
- StandardFormatter: Human-readable formatter for development
- SignedQueryRedactionFilter: Masks sig= and token= query values in messages
- setup_logging: Application-wide logging configuration with Uvicorn integration

Usage:
    from app.utils.logger import setup_logging

    # Initialize logging at application startup
    setup_logging(log_level="INFO", json_logs=True)

    # Modules log through the standard library
    logger = logging.getLogger(__name__)
    logger.info("Application started")
"""

import json
import logging
import re
import sys
import traceback

from datetime import UTC, datetime
from typing import Any


# =============================================================================
# Constants
# =============================================================================

# Log level mapping from string to logging constants
LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers to reduce verbosity
THIRD_PARTY_LOGGERS: list[str] = [
    "uvicorn.access",
    "fastapi",
    "motor",
    "pymongo",
    "httpx",
    "httpcore",
    "asyncio",
]

# Query parameters that carry signed-grant credentials
REDACTED_QUERY_PARAMS: tuple[str, ...] = ("sig", "token")

REDACTED_VALUE: str = "[REDACTED]"

_SIGNED_QUERY_PATTERN = re.compile(
    r"(?P<key>[?&](?:" + "|".join(REDACTED_QUERY_PARAMS) + r")=)[^&#\s]+"
)


def redact_signed_query(text: str) -> str:
    """
    Mask signature values in a string.

    Example:
        >>> redact_signed_query("/uploads/a.pdf?sig=deadbeef&exp=1700000000")
        '/uploads/a.pdf?sig=[REDACTED]&exp=1700000000'
    """
    return _SIGNED_QUERY_PATTERN.sub(lambda m: f"{m.group('key')}{REDACTED_VALUE}", text)


# =============================================================================
# Filters
# =============================================================================


class SignedQueryRedactionFilter(logging.Filter):
    """
    Logging filter that removes signed URL credentials from messages.

    A signed URL is a bearer credential until it expires. The filter renders
    the record message once, masks sig= and token= values, and replaces the
    record's msg/args with the masked text.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except Exception:
            return True

        redacted = redact_signed_query(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


# =============================================================================
# JSONFormatter Class
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    Logging formatter that outputs log records as JSON strings.

    Example output:
        {
            "timestamp": "2025-01-15T10:30:45.123456+00:00",
            "level": "WARNING",
            "logger": "app.services.video_service",
            "message": "URL_SIGNING_SECRET not configured, returning original URL"
        }
    """

    # Standard LogRecord attributes to exclude from extra fields
    RESERVED_ATTRS: set[str] = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }

    def __init__(self, include_source_location: bool = False) -> None:
        """
        Initialize the JSON formatter.

        Args:
            include_source_location: If True, include filename, lineno, funcName
        """
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False, separators=(",", ":"))


# =============================================================================
# Standard Text Formatter
# =============================================================================


class StandardFormatter(logging.Formatter):
    """
    Human-readable formatter for console output in development mode.

    Format: [TIMESTAMP] LEVEL logger_name: message
    """

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self) -> None:
        super().__init__(fmt=self.DEFAULT_FORMAT, datefmt=self.DEFAULT_DATE_FORMAT)


# =============================================================================
# Application Logging Setup
# =============================================================================


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure application-wide logging with root logger and Uvicorn integration.

    Called once during the FastAPI lifespan startup. Configures:
    - Root logger with a single console handler
    - JSON or plain formatting
    - Signed URL redaction on every handler
    - Uvicorn loggers routed through the same handler
    - Third-party logger level reduction

    Args:
        log_level: Application log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON format; if False, output standard text
        third_party_level: Log level for third-party libraries (default WARNING)
    """
    level_str = log_level.upper()
    level = LOG_LEVEL_MAP.get(level_str, logging.INFO)

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(include_source_location=level <= logging.DEBUG)
    else:
        formatter = StandardFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(SignedQueryRedactionFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Uvicorn installs its own handlers; route them through ours instead
    for uvicorn_logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(uvicorn_logger_name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(third_party_log_level)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_str}, json={json_logs}"
    )
