"""
payroll_engines.tracer -- one log record per pure engine call.

``@traced_engine`` wraps a keyword-only engine function and, after it
returns, logs ``payroll_engine_trace`` with:

    engine_name / engine_version   which calculator ran
    schedule_version               statutory tables used (``schedule=`` kwarg)
    input_fingerprint              SHA-256 prefix of the selected kwargs
    duration_ms
    plus whatever ``summary(result)`` returns (e.g. the net pay)

The fingerprint lets two runs of the same cutoff be compared from logs alone:
equal inputs give equal fingerprints, and amounts are normalised so
``Decimal("11")`` and ``Decimal("11.00")`` are the same input.

Usage:
    @traced_engine(
        "payroll_calculator", "1.0",
        fingerprint_fields=("inputs", "cutoff_kind"),
        summary=lambda c: {"net_pay": c.net_pay},
    )
    def compute_payroll(*, inputs, schedule, cutoff_kind):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from dataclasses import fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_EVENT = "payroll_engine_trace"


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if is_dataclass(value) and not isinstance(value, type):
        return _canonical({f.name: getattr(value, f.name) for f in fields(value)})
    if isinstance(value, Mapping):
        items = sorted((_canonical(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """16 hex chars of SHA-256 over the named kwargs; absent ones count as null."""
    canonical = "|".join(
        f"{name}={_canonical(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
    summary: Callable[[Any], Mapping[str, Any]] | None = None,
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed = time.monotonic() - started

            schedule = kwargs.get("schedule")
            extra: dict[str, Any] = {
                "engine_name": engine_name,
                "engine_version": engine_version,
                "schedule_version": getattr(schedule, "version", None),
                "input_fingerprint": compute_input_fingerprint(fingerprint_fields, kwargs),
                "duration_ms": round(elapsed * 1000, 2),
            }
            if summary is not None:
                extra.update(summary(result))
            logger.debug(TRACE_EVENT, extra=extra)
            return result

        return wrapper

    return decorator
