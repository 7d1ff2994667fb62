"""
Pytest fixtures for the payroll test suite.

Provides:
- Structured logging configured once per session, with a JSON log capture
- The bundled statutory schedule and registry
- A fresh in-memory SQLite database per test, with every table created and
  the immutability listeners registered
- Fake employee directory, attendance and leave providers
- Services wired to a DeterministicClock

Environment Variables:
- DATABASE_URL: optional SQLAlchemy URL; defaults to in-memory SQLite.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from payroll_config import clear_schedule_cache, get_schedule_registry
from payroll_engines.brackets import CutoffKind
from payroll_engines.pay import RateBasis
from payroll_kernel.db.engine import (
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_modules._orm_registry import create_all_tables, import_all_orm_models
from payroll_modules.advances.service import AdvanceService
from payroll_modules.disciplinary.service import DisciplinaryService
from payroll_modules.payroll.models import (
    AttendanceAggregate,
    EmployeeRateConfig,
    EmploymentStatus,
    LeaveAggregate,
)
from payroll_modules.payroll.service import PayrollService

# Mappers must be configured before ledger tests build transient models.
import_all_orm_models()

TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000001")
EMPLOYEE_A = UUID("00000000-0000-4000-a000-0000000000a1")
EMPLOYEE_B = UUID("00000000-0000-4000-a000-0000000000b2")

# 2024-03-01 09:00 Manila time, expressed in UTC.
START_TIME = datetime(2024, 3, 1, 1, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _suite_logging():
    """JSON logging at DEBUG into a throwaway buffer for the whole run."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _fresh_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Parsed JSON records emitted under ``payroll_kernel`` during the test.

        def test_skips(captured_logs, payroll_service, ...):
            payroll_service.generate_payroll(period.id, actor)
            skipped = [r for r in captured_logs() if r["message"] == "payroll_employee_skipped"]
    """
    buffer = StringIO()
    capture = logging.StreamHandler(buffer)
    capture.setFormatter(StructuredFormatter())
    payroll_logger = logging.getLogger("payroll_kernel")
    payroll_logger.addHandler(capture)

    yield lambda: [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    payroll_logger.removeHandler(capture)


# =============================================================================
# Statutory schedules
# =============================================================================


@pytest.fixture(scope="session")
def registry():
    clear_schedule_cache()
    return get_schedule_registry()


@pytest.fixture(scope="session")
def schedule(registry):
    """The bundled PH-2024.1 schedule."""
    return registry.for_date(date(2024, 3, 15))


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", "sqlite://")


@pytest.fixture
def session():
    """A session on a freshly created database.

    In-memory SQLite lives on one shared connection, so disposing the
    engine at teardown discards every row.
    """
    init_engine_from_url(get_database_url())
    create_all_tables()
    sess = get_session()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()
        if not get_database_url().startswith("sqlite"):
            drop_tables()
        reset_engine()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


@pytest.fixture
def clock():
    return DeterministicClock(START_TIME)


# =============================================================================
# External collaborators
# =============================================================================


class FakeDirectory:
    def __init__(self, employees=()):
        self.employees = list(employees)

    def employees_for(self, period):
        return list(self.employees)


class FakeAttendance:
    def __init__(self, default=None):
        self.default = default or AttendanceAggregate(days_worked=Decimal("11"))
        self.by_employee: dict[UUID, AttendanceAggregate] = {}

    def aggregate_for(self, employee_id, period):
        return self.by_employee.get(employee_id, self.default)


class FakeLeave:
    def __init__(self):
        self.by_employee: dict[UUID, LeaveAggregate] = {}

    def aggregate_for(self, employee_id, period):
        return self.by_employee.get(employee_id, LeaveAggregate())


class RecordingAuditSink:
    def __init__(self):
        self.events: list[tuple] = []

    def record(self, action, entity_type, entity_id, actor_id, details=None):
        self.events.append((action, entity_type, entity_id, actor_id, dict(details or {})))

    def actions(self) -> list[str]:
        return [e[0] for e in self.events]


def monthly_employee(employee_id=EMPLOYEE_A, monthly_rate="35000", **kwargs):
    return EmployeeRateConfig(
        employee_id=employee_id,
        rate_basis=RateBasis.MONTHLY,
        monthly_rate=Decimal(monthly_rate),
        **kwargs,
    )


def daily_employee(employee_id=EMPLOYEE_B, daily_rate="800", **kwargs):
    return EmployeeRateConfig(
        employee_id=employee_id,
        rate_basis=RateBasis.DAILY,
        daily_rate=Decimal(daily_rate),
        **kwargs,
    )


@pytest.fixture
def directory():
    return FakeDirectory([monthly_employee()])


@pytest.fixture
def attendance():
    return FakeAttendance()


@pytest.fixture
def leave():
    return FakeLeave()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def advance_service(session, clock, audit_sink):
    return AdvanceService(session, clock, audit_sink)


@pytest.fixture
def payroll_service(session, directory, attendance, leave, clock, registry, audit_sink):
    return PayrollService(
        session, directory, attendance, leave,
        clock=clock, registry=registry, audit=audit_sink,
    )


@pytest.fixture
def disciplinary_service(session, clock, audit_sink):
    return DisciplinaryService(session, clock, audit_sink)


@pytest.fixture
def open_period(payroll_service, test_actor_id):
    """First semi-monthly cutoff of March 2024."""
    return payroll_service.create_period(
        "2024-03-A", date(2024, 3, 1), date(2024, 3, 15),
        CutoffKind.SEMI_MONTHLY, test_actor_id,
    )


@pytest.fixture
def disbursed_advance(advance_service, test_actor_id):
    """Factory: request, approve and disburse an advance for an employee."""

    def _make(employee_id=EMPLOYEE_A, amount="5000", deduction_per_cutoff="1000"):
        advance = advance_service.request_advance(
            employee_id, Decimal(amount), Decimal(deduction_per_cutoff), test_actor_id,
        )
        advance_service.approve_advance(advance.id, test_actor_id)
        return advance_service.disburse_advance(advance.id, test_actor_id)

    return _make


def new_id() -> UUID:
    return uuid4()
