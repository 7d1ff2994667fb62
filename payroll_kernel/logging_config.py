"""
Structured JSON logging for the payroll back office.

Every record is one JSON object per line.  Fields bound through
``LogContext`` (the payroll run, the employee, the record being approved)
are merged into every record emitted while they are bound, so a single
``generate_payroll`` call can be followed across the service, engine and
ledger loggers.

Usage:
    logger = get_logger("modules.payroll.service")
    with LogContext.bind(period_id=period.id, actor_id=actor_id):
        logger.info("payroll_generation_started", extra={"employees": 12})

Money and identifiers in ``extra`` may be passed as ``Decimal`` / ``UUID``;
they are written as strings so amounts keep their exact centavos.
"""

__all__ = [
    "CONTEXT_FIELDS",
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from payroll_kernel.exceptions import PayrollKernelError

LOGGER_ROOT = "payroll_kernel"

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "employee_id",
    "period_id",
    "record_id",
)

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"payroll_log_{name}", default=None) for name in CONTEXT_FIELDS
}


class LogContext:
    """Request-scoped log fields, safe across threads and tasks.

    Unknown field names and ``None`` values are ignored; everything else is
    stored as ``str`` so UUIDs can be bound directly.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        for name, value in fields.items():
            if value is not None and name in _context:
                _context[name].set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: var.get() for name, var in _context.items() if var.get() is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _context.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Bind fields for the duration of a block, restoring the outer values."""
        tokens = [
            (_context[name], _context[name].set(str(value)))
            for name, value in fields.items()
            if value is not None and name in _context
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, PayrollKernelError):
        fields["exc_code"] = exc.code
        for key, value in vars(exc).items():
            if not key.startswith("_"):
                fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON line per record: timestamp, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("modules.advances.ledger")``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``payroll_kernel`` tree.

    Only the first call has an effect.  ``level`` accepts a level name such
    as ``"DEBUG"`` (the form ``PAYROLL_LOG_LEVEL`` uses).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger(LOGGER_ROOT)
    root.setLevel(level)
    root.propagate = False

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Undo ``configure_logging``.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(LOGGER_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
