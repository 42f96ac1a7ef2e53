"""
Logging setup for the image request pipeline.

Request-scoped fields travel on each record through ``extra=``: the
correlation id, the operation name and a mapping of request fields such
as the bucket, the key or the error kind. RequestContextFormatter renders
them, so one request can be followed across its log lines.
"""

import os
import sys
import logging
from typing import Any, Dict, Mapping, Optional

DEFAULT_LOGGER_NAME = "image-request"
NO_CONTEXT = "-"

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | %(operation)s | %(correlation_id)s | "
    "%(message)s%(field_summary)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - [%(correlation_id)s] %(message)s%(field_summary)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def context_extra(
    correlation_id: Optional[str] = None,
    operation: Optional[str] = None,
    fields: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the ``extra=`` mapping understood by RequestContextFormatter."""
    return {
        "correlation_id": correlation_id or NO_CONTEXT,
        "operation": operation or NO_CONTEXT,
        "request_fields": dict(fields or {}),
    }


def render_fields(fields: Optional[Mapping[str, Any]]) -> str:
    """Render request fields as a trailing ``(k=v, ...)`` group."""
    if not fields:
        return ""
    return " (" + ", ".join(f"{k}={v}" for k, v in fields.items()) + ")"


class RequestContextFormatter(logging.Formatter):
    """Formatter for records carrying request context.

    Records logged without ``extra=`` (plain ``logging`` calls from the CLI
    or third-party code) get placeholder values instead of a KeyError.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = getattr(record, "correlation_id", None) or NO_CONTEXT
        record.operation = getattr(record, "operation", None) or NO_CONTEXT
        record.field_summary = render_fields(getattr(record, "request_fields", None))
        return super().format(record)


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure a logger writing request-context lines to stdout.

    Args:
        name: Logger name (defaults to "image-request")
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_FORMAT: Set format type ("structured" or "simple")
    """
    logger = logging.getLogger(name)

    requested = level or os.getenv("LOG_LEVEL", "INFO")
    log_level = getattr(logging, requested.upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger.setLevel(log_level)

    # One handler per logger name, however often it is configured
    if not logger.handlers:
        env_format = os.getenv("LOG_FORMAT", format_type).lower()
        fmt = STRUCTURED_FORMAT if env_format == "structured" else SIMPLE_FORMAT

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(RequestContextFormatter(fmt, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Get a logger configured by setup_logger."""
    return setup_logger(name)
