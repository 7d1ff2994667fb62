"""
Process bootstrap for the payroll back office.

Configures structured logging, opens the database, creates tables with the
immutability listeners installed, and loads the statutory schedules, all
from one ``PayrollSettings`` value.

Usage:
    runtime = bootstrap()
    with session_scope() as session:
        PayrollService(session, directory, attendance, leave,
                       registry=runtime.registry).generate_payroll(...)
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from payroll_config import PayrollSettings, get_schedule_registry
from payroll_engines.brackets import ScheduleRegistry
from payroll_kernel.db.engine import init_engine_from_url
from payroll_kernel.logging_config import configure_logging, get_logger
from payroll_modules._orm_registry import create_all_tables

logger = get_logger("modules.bootstrap")


@dataclass(frozen=True)
class PayrollRuntime:
    settings: PayrollSettings
    engine: Engine
    registry: ScheduleRegistry


def bootstrap(settings: PayrollSettings | None = None) -> PayrollRuntime:
    settings = settings or PayrollSettings.from_env()
    configure_logging(level=settings.log_level)

    engine = init_engine_from_url(settings.database_url)
    create_all_tables()
    registry = get_schedule_registry(settings.schedule_dir)

    logger.info("payroll_bootstrapped", extra={
        "dialect": engine.dialect.name,
        "schedule_versions": [s.version for s in registry.schedules],
    })
    return PayrollRuntime(settings=settings, engine=engine, registry=registry)
