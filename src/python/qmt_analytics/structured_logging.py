"""
Structured logging helpers.

Provides:
- JSON-formatted log output (one object per record)
- Thread-local context fields (strategy_id, benchmark, ...) attached to
  every record emitted while they are bound
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Context fields for the current thread."""

    fields: Dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        self.fields[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def remove(self, key: str) -> None:
        self.fields.pop(key, None)

    def clear(self) -> None:
        self.fields.clear()

    def copy(self) -> Dict[str, Any]:
        return self.fields.copy()


_local = threading.local()


def get_context() -> LogContext:
    """Get the current thread's logging context."""
    if not hasattr(_local, "context"):
        _local.context = LogContext()
    return _local.context


def bind(**kwargs) -> None:
    """Bind fields to the current logging context."""
    context = get_context()
    for key, value in kwargs.items():
        context.set(key, value)


def unbind(*keys: str) -> None:
    """Remove fields from the current logging context."""
    context = get_context()
    for key in keys:
        context.remove(key)


def clear_context() -> None:
    """Clear all fields from the current logging context."""
    get_context().clear()


class BoundLogger:
    """
    Context manager for temporarily binding log context.

    Example:
        >>> with BoundLogger(strategy_id="ma_cross"):
        ...     logger.info("Computing metrics")
    """

    def __init__(self, **kwargs):
        self.bindings = kwargs
        self.previous_values: Dict[str, Any] = {}

    def __enter__(self) -> "BoundLogger":
        context = get_context()
        for key, value in self.bindings.items():
            if key in context.fields:
                self.previous_values[key] = context.fields[key]
            context.set(key, value)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        context = get_context()
        for key in self.bindings:
            if key in self.previous_values:
                context.set(key, self.previous_values[key])
            else:
                context.remove(key)


_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(
        self,
        include_context: bool = True,
        include_source: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None,
    ):
        super().__init__()
        self.include_context = include_context
        self.include_source = include_source
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        result: Dict[str, Any] = {
            "@timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if self.include_context:
            context = get_context().copy()
            if context:
                result["context"] = context

        # Fields passed via logger.info(..., extra={...})
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                result[key] = value
        result.update(self.extra_fields)

        if record.exc_info:
            result["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_source:
            result["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(result, default=str)
