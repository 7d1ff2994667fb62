"""
Payroll ORM Persistence Models (``payroll_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models for pay periods, payroll records and payslips, each
    with ``to_dto()`` conversion to the frozen DTOs in
    ``payroll_modules.payroll.models``.

Architecture position:
    **Modules layer** -- persistence companions to the DTO models.  Inherits
    ``TrackedBase``: id (UUID PK), created_at, updated_at, created_by_id
    (NOT NULL), updated_by_id.

Invariants enforced:
    - All monetary fields are Decimal (NUMERIC(14, 2)), never float.
    - Enum fields are stored as String containing the enum .value.
    - One payroll record per (employee_id, period_id)
      (uq_payroll_record_employee_period).
    - One payslip per payroll record (uq_payslip_record).
    - ``recompute_totals()`` is the only writer of gross_pay,
      total_deductions and net_pay.
    - Approved/released records and payslips are locked by the ORM
      listeners in ``payroll_kernel.db.immutability``.

Audit relevance:
    Each record keeps its rate snapshot, attendance inputs and the statutory
    schedule version it was computed with.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_engines.brackets import CutoffKind, OvertimeType
from payroll_engines.pay import RateBasis
from payroll_engines.payroll_calculator import PayrollComputation, totals_from
from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.money import ZERO
from payroll_modules.payroll.models import PayrollRecordStatus

# Columns that may still change after a record leaves DRAFT.
STATUS_COLUMNS: frozenset[str] = frozenset({
    "status",
    "approved_by_id",
    "approved_at",
    "released_by_id",
    "released_at",
    "updated_at",
    "updated_by_id",
})


def _money_column() -> Mapped[Decimal]:
    return mapped_column(nullable=False, default=ZERO)


# ---------------------------------------------------------------------------
# PayPeriodModel
# ---------------------------------------------------------------------------

class PayPeriodModel(TrackedBase):
    """
    ORM model for ``PayPeriod``.

    Contract:
        Periods of the same cutoff kind never overlap (checked by
        ``PayrollService.create_period``).  Status moves
        open -> processing -> closed.
    """

    __tablename__ = "payroll_pay_periods"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    cutoff_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_payroll_period_kind_dates", "cutoff_kind", "start_date", "end_date"),
        Index("idx_payroll_period_status", "status"),
    )

    def to_dto(self):
        from payroll_modules.payroll.models import PayPeriod, PayPeriodStatus
        return PayPeriod(
            id=self.id,
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            cutoff_kind=CutoffKind(self.cutoff_kind),
            status=PayPeriodStatus(self.status),
        )

    def __repr__(self) -> str:
        return f"<PayPeriodModel {self.name} {self.cutoff_kind}: {self.status}>"


# ---------------------------------------------------------------------------
# PayrollRecordModel
# ---------------------------------------------------------------------------

class PayrollRecordModel(TrackedBase):
    """
    ORM model for ``PayrollRecord``.

    Contract:
        Created in DRAFT by the payroll service.  Earnings and deduction lines
        change only while DRAFT; afterward only status/approval/release
        columns change.

    Guarantees:
        - gross/total/net always satisfy the totals invariant after
          ``apply_computation`` or ``recompute_totals``.
        - ``advance_plan`` holds the planned advance deductions as
          ``[{"advance_id": str, "amount": str}]``.
    """

    __tablename__ = "payroll_records"

    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_pay_periods.id"), nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    # Rate snapshot
    rate_basis: Mapped[str] = mapped_column(String(20), nullable=False)
    daily_rate: Mapped[Decimal] = _money_column()
    hourly_rate: Mapped[Decimal] = _money_column()
    monthly_salary: Mapped[Decimal] = _money_column()

    # Inputs
    days_worked: Mapped[Decimal] = _money_column()
    unpaid_leave_days: Mapped[Decimal] = _money_column()
    ot_ordinary_minutes: Mapped[int] = mapped_column(nullable=False, default=0)
    ot_rest_day_minutes: Mapped[int] = mapped_column(nullable=False, default=0)
    ot_holiday_minutes: Mapped[int] = mapped_column(nullable=False, default=0)
    late_minutes: Mapped[int] = mapped_column(nullable=False, default=0)

    # Earnings
    basic_pay: Mapped[Decimal] = _money_column()
    overtime_pay: Mapped[Decimal] = _money_column()
    holiday_pay: Mapped[Decimal] = _money_column()
    allowances: Mapped[Decimal] = _money_column()

    # Deductions
    sss_deduction: Mapped[Decimal] = _money_column()
    philhealth_deduction: Mapped[Decimal] = _money_column()
    pagibig_deduction: Mapped[Decimal] = _money_column()
    withholding_tax: Mapped[Decimal] = _money_column()
    cash_advance_deduction: Mapped[Decimal] = _money_column()
    late_deduction: Mapped[Decimal] = _money_column()
    unpaid_leave_deduction: Mapped[Decimal] = _money_column()
    other_deductions: Mapped[Decimal] = _money_column()

    # Totals
    gross_pay: Mapped[Decimal] = _money_column()
    total_deductions: Mapped[Decimal] = _money_column()
    net_pay: Mapped[Decimal] = _money_column()

    schedule_version: Mapped[str] = mapped_column(String(50), nullable=False)
    advance_plan: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    computation_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    released_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    period: Mapped["PayPeriodModel"] = relationship()
    payslip: Mapped["PayslipModel | None"] = relationship(
        back_populates="payroll_record", uselist=False,
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "period_id", name="uq_payroll_record_employee_period"),
        Index("idx_payroll_record_period_status", "period_id", "status"),
        Index("idx_payroll_record_employee", "employee_id"),
    )

    @property
    def is_draft(self) -> bool:
        return self.status == PayrollRecordStatus.DRAFT.value

    def overtime_minutes(self) -> dict[OvertimeType, int]:
        return {
            OvertimeType.ORDINARY: self.ot_ordinary_minutes or 0,
            OvertimeType.REST_DAY: self.ot_rest_day_minutes or 0,
            OvertimeType.HOLIDAY: self.ot_holiday_minutes or 0,
        }

    def apply_computation(self, computation: PayrollComputation) -> None:
        """Copy every computed line (and the rate snapshot) onto the record."""
        for name, value in computation.lines().items():
            setattr(self, name, value)
        self.daily_rate = computation.daily_rate
        self.hourly_rate = computation.hourly_rate
        self.monthly_salary = computation.monthly_salary
        self.schedule_version = computation.schedule_version

    def recompute_totals(self) -> None:
        totals = totals_from(self)
        self.gross_pay = totals.gross_pay
        self.total_deductions = totals.total_deductions
        self.net_pay = totals.net_pay

    def planned_advances(self) -> list[tuple[UUID, Decimal]]:
        return [
            (UUID(str(item["advance_id"])), Decimal(str(item["amount"])))
            for item in (self.advance_plan or [])
        ]

    def to_dto(self):
        from payroll_modules.payroll.models import PayrollRecord, PlannedAdvanceDeduction
        return PayrollRecord(
            id=self.id,
            employee_id=self.employee_id,
            period_id=self.period_id,
            status=PayrollRecordStatus(self.status),
            rate_basis=RateBasis(self.rate_basis),
            daily_rate=self.daily_rate,
            hourly_rate=self.hourly_rate,
            monthly_salary=self.monthly_salary,
            days_worked=self.days_worked,
            unpaid_leave_days=self.unpaid_leave_days,
            overtime_minutes=self.overtime_minutes(),
            late_minutes=self.late_minutes,
            basic_pay=self.basic_pay,
            overtime_pay=self.overtime_pay,
            holiday_pay=self.holiday_pay,
            allowances=self.allowances,
            sss_deduction=self.sss_deduction,
            philhealth_deduction=self.philhealth_deduction,
            pagibig_deduction=self.pagibig_deduction,
            withholding_tax=self.withholding_tax,
            cash_advance_deduction=self.cash_advance_deduction,
            late_deduction=self.late_deduction,
            unpaid_leave_deduction=self.unpaid_leave_deduction,
            other_deductions=self.other_deductions,
            gross_pay=self.gross_pay,
            total_deductions=self.total_deductions,
            net_pay=self.net_pay,
            schedule_version=self.schedule_version,
            advance_plan=tuple(
                PlannedAdvanceDeduction(advance_id=a, amount=amt)
                for a, amt in self.planned_advances()
            ),
            computation_notes=self.computation_notes,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            released_by_id=self.released_by_id,
            released_at=self.released_at,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollRecordModel {self.employee_id} period={self.period_id}: "
            f"{self.status} net={self.net_pay}>"
        )


# ---------------------------------------------------------------------------
# PayslipModel
# ---------------------------------------------------------------------------

class PayslipModel(TrackedBase):
    """
    ORM model for ``Payslip`` -- the released record's serialized copy.

    Guarantees:
        - One payslip per payroll record.
        - Never updated or deleted (ORM listener).
    """

    __tablename__ = "payroll_payslips"

    payroll_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_records.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    period_id: Mapped[UUID] = mapped_column(nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    payroll_record: Mapped["PayrollRecordModel"] = relationship(back_populates="payslip")

    __table_args__ = (
        UniqueConstraint("payroll_record_id", name="uq_payslip_record"),
        Index("idx_payslip_employee", "employee_id"),
    )

    def to_dto(self):
        from payroll_modules.payroll.models import Payslip
        return Payslip(
            id=self.id,
            payroll_record_id=self.payroll_record_id,
            employee_id=self.employee_id,
            period_id=self.period_id,
            issued_at=self.issued_at,
            snapshot=dict(self.snapshot),
        )
