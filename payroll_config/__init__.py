"""
payroll_config -- single public entrypoint for statutory schedules.

Responsibility:
    ``get_schedule_registry()`` is the ONLY way runtime code obtains the
    bracket tables.  Schedules are loaded once per directory, validated,
    and cached as immutable snapshots; no calculation re-reads YAML.

Architecture position:
    Configuration -- sits above ``payroll_engines`` (whose frozen types it
    builds) and below ``payroll_modules``.  The kernel never imports it.

Failure modes:
    - ``FileNotFoundError`` -- the schedule directory does not exist.
    - ``ScheduleValidationError`` -- a schedule is structurally invalid.

Audit relevance:
    Every load emits a ``PAYROLL_CONFIG_TRACE`` log entry with the version,
    effective date and checksum of each schedule.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from payroll_config.loader import load_schedule_directory
from payroll_config.settings import DEFAULT_SCHEDULE_DIR, PayrollSettings
from payroll_engines.brackets import ScheduleRegistry

_logger = logging.getLogger("payroll_kernel.config")

_cache: dict[Path, ScheduleRegistry] = {}
_cache_lock = threading.Lock()


def get_schedule_registry(schedule_dir: Path | None = None) -> ScheduleRegistry:
    """The ONLY public schedule entrypoint.

    Guarantees:
        - Every returned schedule has passed structural validation.
        - Repeated calls for the same directory return the same registry.
    """
    directory = Path(schedule_dir or DEFAULT_SCHEDULE_DIR).resolve()
    with _cache_lock:
        cached = _cache.get(directory)
        if cached is not None:
            return cached

        registry = ScheduleRegistry(load_schedule_directory(directory))
        for schedule in registry.schedules:
            _logger.info(
                "PAYROLL_CONFIG_TRACE",
                extra={
                    "trace_type": "PAYROLL_CONFIG_TRACE",
                    "schedule_version": schedule.version,
                    "effective_date": schedule.effective_date.isoformat(),
                    "checksum": schedule.checksum,
                    "sss_bracket_count": len(schedule.social_insurance.brackets),
                    "tax_bracket_count": len(schedule.withholding_tax.brackets),
                },
            )
        _cache[directory] = registry
        return registry


def clear_schedule_cache() -> None:
    """Forget loaded registries. FOR TESTING ONLY."""
    with _cache_lock:
        _cache.clear()


__all__ = [
    "DEFAULT_SCHEDULE_DIR",
    "PayrollSettings",
    "clear_schedule_cache",
    "get_schedule_registry",
]
