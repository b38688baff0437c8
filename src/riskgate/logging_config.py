"""Structured logging configuration with transaction context.

This module provides structured JSON logging with:
- Correlation IDs for tracing an assessment across the orchestrator
- Contextual fields (user, transaction, device)
- Consistent log formatting
"""
from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

# Context variables for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
transaction_id_var: ContextVar[Optional[str]] = ContextVar("transaction_id", default=None)
device_id_var: ContextVar[Optional[str]] = ContextVar("device_id", default=None)

_CONTEXT_FIELDS = ("correlation_id", "user_id", "transaction_id", "device_id")

_RESERVED_RECORD_ATTRS = frozenset({
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
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
    *_CONTEXT_FIELDS,
})


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID and context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        record.user_id = user_id_var.get()
        record.transaction_id = transaction_id_var.get()
        record.device_id = device_id_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields passed via ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for the risk engine host process.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging (True) or simple format (False)
        log_file: Optional file path for logging output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(correlation_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(CorrelationIDFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(CorrelationIDFilter())
        root_logger.addHandler(file_handler)


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return f"cor_{uuid.uuid4().hex[:16]}"


class transaction_context:
    """Context manager binding user/transaction/device ids to log records."""

    def __init__(
        self,
        user_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
        device_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ):
        self._values = {
            correlation_id_var: correlation_id or correlation_id_var.get() or generate_correlation_id(),
            user_id_var: user_id,
            transaction_id_var: transaction_id,
            device_id_var: device_id,
        }
        self._tokens = []

    def __enter__(self) -> "transaction_context":
        self._tokens = [var.set(value) for var, value in self._values.items()]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens = []
