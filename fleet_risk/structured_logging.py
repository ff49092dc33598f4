"""
Structured Logging Module for Fleet Risk

Provides JSON-formatted logging for production environments and a readable
console format for development. Services log through structlog, which is
routed into the stdlib handlers configured here so both styles end up in the
same stream with the same correlation ID.

Usage:
    from fleet_risk.structured_logging import setup_logging, set_correlation_id

    setup_logging()
    set_correlation_id()  # once per aggregation cycle
"""

import json
import logging
import os
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

# Context variable for correlation ID (propagates into asyncio tasks)
correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "exc_info",
    "exc_text",
    "thread",
    "threadName",
    "taskName",
    "message",
    "asctime",
}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2026-01-12T12:00:00.000000+00:00",
        "level": "INFO",
        "logger": "fleet_risk.orchestrators.fleet_aggregator",
        "message": "Aggregation cycle finished",
        "correlation_id": "abc-123",
        "vehicles": 42
    }
    """

    # Fields to mask in logs (security)
    SENSITIVE_FIELDS = {"password", "token", "secret", "api_key", "authorization"}

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        log_entry["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        for key, value in _extra_fields(record).items():
            if key.lower() in self.SENSITIVE_FIELDS:
                log_entry[key] = "***MASKED***"
            else:
                log_entry[key] = self._serialize_value(value)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": (
                    traceback.format_exception(*record.exc_info)
                    if record.exc_info[0]
                    else None
                ),
            }

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _serialize_value(self, value: Any) -> Any:
        """Serialize value for JSON"""
        if isinstance(value, (str, int, float, bool, type(None))):
            return value
        elif isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        elif isinstance(value, dict):
            return {k: self._serialize_value(v) for k, v in value.items()}
        elif isinstance(value, datetime):
            return value.isoformat()
        else:
            return str(value)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = correlation_id_var.get()
        prefix = f"[{correlation_id[:8]}] " if correlation_id else ""

        color = self.COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""

        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        message = f"{timestamp} {color}{record.levelname:8}{reset} {prefix}{record.getMessage()}"

        extras = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        if extras:
            message += f" | {' '.join(extras)}"

        if record.exc_info:
            message += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return message


def setup_logging(
    level: str = None,
    format_type: str = None,
    log_file: str = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" for structured or "console" for human-readable
        log_file: Optional file path for logging (always JSON)

    Environment variables:
        LOG_LEVEL: Set log level
        LOG_FORMAT: Set format (json or console)
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    format_type = (format_type or os.getenv("LOG_FORMAT", "console")).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    root_logger.handlers.clear()

    formatter = JSONFormatter() if format_type == "json" else ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # structlog events become stdlib records; key/values travel as `extra`
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def generate_correlation_id() -> str:
    """Generate a new correlation ID"""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str = None) -> str:
    """Set correlation ID for current context"""
    if correlation_id is None:
        correlation_id = generate_correlation_id()
    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID"""
    return correlation_id_var.get()
