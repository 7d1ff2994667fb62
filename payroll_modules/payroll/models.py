"""
Payroll Domain Models (``payroll_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of payroll: collaborator
aggregates (employee rate config, attendance, unpaid leave), pay periods,
payroll records, payslips and period reports.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned to
callers by ``PayrollService`` and ``PayrollSelector``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Collaborator aggregates reject negative days and minutes at construction.

Audit relevance
---------------
* PayrollRecord DTOs carry the rate snapshot and schedule version used.
* Payslip snapshots are the employee-facing copy of a released record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from payroll_engines.brackets import CutoffKind, OvertimeType
from payroll_engines.pay import RateBasis
from payroll_kernel.domain.money import ZERO
from payroll_kernel.exceptions import NegativeAmountError
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")


class EmploymentStatus(str, Enum):
    """Employment status as reported by the employee directory."""
    ACTIVE = "active"
    PROBATIONARY = "probationary"
    ON_LEAVE = "on_leave"
    RESIGNED = "resigned"
    TERMINATED = "terminated"

    @property
    def is_payroll_eligible(self) -> bool:
        return self in (EmploymentStatus.ACTIVE, EmploymentStatus.PROBATIONARY)


class PayPeriodStatus(str, Enum):
    """Pay period lifecycle states."""
    OPEN = "open"
    PROCESSING = "processing"
    CLOSED = "closed"


class PayrollRecordStatus(str, Enum):
    """Payroll record lifecycle states."""
    DRAFT = "draft"
    APPROVED = "approved"
    RELEASED = "released"


@dataclass(frozen=True)
class EmployeeRateConfig:
    """Rate configuration for one employee, supplied by the directory."""
    employee_id: UUID
    rate_basis: RateBasis
    daily_rate: Decimal | None = None
    monthly_rate: Decimal | None = None
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    employee_number: str | None = None

    @property
    def has_rate(self) -> bool:
        return bool(self.daily_rate) or bool(self.monthly_rate)

    def effective_basis(self) -> RateBasis:
        """Declared basis, or the other one when only that rate is set."""
        basis = RateBasis(self.rate_basis)
        if basis is RateBasis.MONTHLY and not self.monthly_rate and self.daily_rate:
            return RateBasis.DAILY
        if basis is RateBasis.DAILY and not self.daily_rate and self.monthly_rate:
            return RateBasis.MONTHLY
        return basis


@dataclass(frozen=True)
class AttendanceAggregate:
    """Attendance facts for one (employee, period).

    ``deductible_late_minutes`` already excludes the grace period.
    """
    days_worked: Decimal = ZERO
    overtime_minutes_by_type: Mapping[OvertimeType, int] = field(default_factory=dict)
    deductible_late_minutes: int = 0

    def __post_init__(self):
        if self.days_worked < 0:
            raise NegativeAmountError("days_worked", self.days_worked)
        if self.deductible_late_minutes < 0:
            raise NegativeAmountError("deductible_late_minutes", self.deductible_late_minutes)
        for ot_type, minutes in self.overtime_minutes_by_type.items():
            if minutes < 0:
                raise NegativeAmountError(
                    f"overtime_minutes.{OvertimeType(ot_type).value}", minutes,
                )

    def minutes_for(self, ot_type: OvertimeType) -> int:
        total = 0
        for key, minutes in self.overtime_minutes_by_type.items():
            if OvertimeType(key) is ot_type:
                total += minutes
        return total


@dataclass(frozen=True)
class LeaveAggregate:
    """Unpaid leave days for one (employee, period)."""
    unpaid_leave_days: Decimal = ZERO

    def __post_init__(self):
        if self.unpaid_leave_days < 0:
            raise NegativeAmountError("unpaid_leave_days", self.unpaid_leave_days)


@dataclass(frozen=True)
class PayPeriod:
    """A semi-monthly or monthly date range."""
    id: UUID
    name: str
    start_date: date
    end_date: date
    cutoff_kind: CutoffKind
    status: PayPeriodStatus = PayPeriodStatus.OPEN


@dataclass(frozen=True)
class PlannedAdvanceDeduction:
    """Deduction computed at DRAFT time; committed only on approval."""
    advance_id: UUID
    amount: Decimal


@dataclass(frozen=True)
class PayrollRecord:
    """One employee's payroll for one period."""
    id: UUID
    employee_id: UUID
    period_id: UUID
    status: PayrollRecordStatus
    rate_basis: RateBasis
    daily_rate: Decimal
    hourly_rate: Decimal
    monthly_salary: Decimal
    days_worked: Decimal
    unpaid_leave_days: Decimal
    overtime_minutes: Mapping[OvertimeType, int]
    late_minutes: int
    basic_pay: Decimal
    overtime_pay: Decimal
    holiday_pay: Decimal
    allowances: Decimal
    sss_deduction: Decimal
    philhealth_deduction: Decimal
    pagibig_deduction: Decimal
    withholding_tax: Decimal
    cash_advance_deduction: Decimal
    late_deduction: Decimal
    unpaid_leave_deduction: Decimal
    other_deductions: Decimal
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    schedule_version: str
    advance_plan: tuple[PlannedAdvanceDeduction, ...] = ()
    computation_notes: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    released_by_id: UUID | None = None
    released_at: datetime | None = None


@dataclass(frozen=True)
class Payslip:
    """Immutable snapshot of a released payroll record."""
    id: UUID
    payroll_record_id: UUID
    employee_id: UUID
    period_id: UUID
    issued_at: datetime
    snapshot: Mapping[str, Any]


@dataclass(frozen=True)
class PeriodSummary:
    """Totals for one pay period across all records."""
    period_id: UUID
    period_name: str
    period_status: PayPeriodStatus
    record_count: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    status_counts: Mapping[PayrollRecordStatus, int]


@dataclass(frozen=True)
class RegisterLine:
    """One row of the payroll register."""
    record_id: UUID
    employee_id: UUID
    status: PayrollRecordStatus
    basic_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    sss_deduction: Decimal
    philhealth_deduction: Decimal
    pagibig_deduction: Decimal
    withholding_tax: Decimal
    cash_advance_deduction: Decimal
    late_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal
