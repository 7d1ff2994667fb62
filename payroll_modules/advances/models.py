"""
Salary Advance Domain Models (``payroll_modules.advances.models``).

Responsibility
--------------
Frozen value objects for salary advances and the append-only deduction rows
that repay them.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* ``0 < deduction_per_cutoff <= amount``.
* ``remaining_balance`` is ``None`` until disbursement, then ``>= 0``.
* ``sum(deductions) + remaining_balance == amount`` once disbursed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class AdvanceStatus(str, Enum):
    """Salary advance lifecycle states."""
    PENDING = "pending"
    APPROVED = "approved"
    DISBURSED = "disbursed"
    FULLY_PAID = "fully_paid"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (AdvanceStatus.FULLY_PAID, AdvanceStatus.REJECTED)


@dataclass(frozen=True)
class SalaryAdvance:
    """An employer-issued cash loan repaid by fixed per-cutoff deductions."""
    id: UUID
    employee_id: UUID
    amount: Decimal
    deduction_per_cutoff: Decimal
    status: AdvanceStatus
    remaining_balance: Decimal | None = None
    purpose: str | None = None
    rejection_reason: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    disbursed_at: datetime | None = None
    fully_paid_at: datetime | None = None

    @property
    def amount_repaid(self) -> Decimal:
        if self.remaining_balance is None:
            return Decimal("0.00")
        return self.amount - self.remaining_balance


@dataclass(frozen=True)
class AdvanceDeduction:
    """One committed repayment, tied to the payroll record that carried it."""
    id: UUID
    advance_id: UUID
    payroll_record_id: UUID
    amount: Decimal
    deduction_date: date
