"""
Structured JSON logging for the inventory kernel.

Every record is one JSON line carrying the fields of the unit of work that
emitted it (correlation id, operation, locked product) plus whatever the
caller passed as ``extra``.  Kernel exceptions logged with ``exc_info``
contribute their structured attributes as ``exc_*`` fields.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from typing import Any

_LOGGER_PREFIX = "inventory_kernel"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = ("correlation_id", "operation", "product_id")

# Always replaced, never mutated in place
_context: ContextVar[Mapping[str, str]] = ContextVar("inventory_log_context", default={})


class LogContext:
    """Fields added to every record logged by the current thread or task."""

    @staticmethod
    def _merged(fields: Mapping[str, Any]) -> dict[str, str]:
        merged = dict(_context.get())
        for name, value in fields.items():
            if name in _CONTEXT_FIELDS and value is not None:
                merged[name] = str(value)
        return merged

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields until the enclosing ``bind`` exits (or for good)."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Set fields for the duration of a block.

        On exit the whole context is restored, including fields ``set``
        inside the block.  Unknown field names are ignored.
        """
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}
_HEADER_KEYS = frozenset({"ts", "level", "logger", "message"})


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # UUID, Decimal and enums
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if hasattr(exc, "code"):
        fields["exc_code"] = exc.code
    # InventoryKernelError subclasses keep their details as public attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        # explicit extras win over context fields
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES and key not in _HEADER_KEYS:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Loggers
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the inventory_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the inventory_kernel logger.

    Only the first call has an effect until ``reset_logging``.  Records do
    not propagate to the root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False

    handler = handler or logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging. For tests."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
