"""
Salary Advance ORM Persistence Models (``payroll_modules.advances.orm``).

Responsibility:
    SQLAlchemy ORM models for salary advances and their deduction rows.

Architecture position:
    **Modules layer** -- persistence companions to
    ``payroll_modules.advances.models``.  Inherits ``TrackedBase``.

Invariants enforced:
    - Monetary fields are Decimal (NUMERIC(14, 2)).
    - Enum fields are stored as String containing the enum .value.
    - amount and deduction_per_cutoff never change after insert, and
      remaining_balance never increases once set
      (``payroll_kernel.db.immutability``).
    - AdvanceDeductionModel rows are append-only.

Audit relevance:
    The deduction rows together with remaining_balance reconstruct the
    full repayment history of every advance.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_modules.advances.models import AdvanceDeduction, AdvanceStatus, SalaryAdvance


class SalaryAdvanceModel(TrackedBase):
    """
    ORM model for ``SalaryAdvance``.

    Contract:
        ``remaining_balance`` is NULL until disbursement, when it is set to
        ``amount`` exactly once.
    """

    __tablename__ = "payroll_salary_advances"

    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_per_cutoff: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_balance: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    disbursed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    fully_paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    deductions: Mapped[list["AdvanceDeductionModel"]] = relationship(
        back_populates="advance",
        order_by="AdvanceDeductionModel.created_at",
    )

    __table_args__ = (
        Index("idx_salary_advance_employee_status", "employee_id", "status"),
    )

    def to_dto(self) -> SalaryAdvance:
        return SalaryAdvance(
            id=self.id,
            employee_id=self.employee_id,
            amount=self.amount,
            deduction_per_cutoff=self.deduction_per_cutoff,
            status=AdvanceStatus(self.status),
            remaining_balance=self.remaining_balance,
            purpose=self.purpose,
            rejection_reason=self.rejection_reason,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            disbursed_at=self.disbursed_at,
            fully_paid_at=self.fully_paid_at,
        )

    def __repr__(self) -> str:
        return (
            f"<SalaryAdvanceModel {self.employee_id} {self.amount} "
            f"remaining={self.remaining_balance}: {self.status}>"
        )


class AdvanceDeductionModel(TrackedBase):
    """
    ORM model for ``AdvanceDeduction``.

    Guarantees:
        Written once, by the ledger, during payroll approval.  Never updated
        or deleted (ORM listener).
    """

    __tablename__ = "payroll_advance_deductions"

    advance_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_salary_advances.id"), nullable=False,
    )
    payroll_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_records.id"), nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_date: Mapped[date] = mapped_column(Date, nullable=False)

    advance: Mapped["SalaryAdvanceModel"] = relationship(back_populates="deductions")

    __table_args__ = (
        Index("idx_advance_deduction_advance", "advance_id"),
        Index("idx_advance_deduction_record", "payroll_record_id"),
    )

    def to_dto(self) -> AdvanceDeduction:
        return AdvanceDeduction(
            id=self.id,
            advance_id=self.advance_id,
            payroll_record_id=self.payroll_record_id,
            amount=self.amount,
            deduction_date=self.deduction_date,
        )
