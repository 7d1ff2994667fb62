"""
Advance Deduction Ledger (``payroll_modules.advances.ledger``).

Responsibility:
    Apply one bounded repayment to a disbursed salary advance: compute the
    amount, append the deduction row, decrement the balance and complete the
    advance when the balance reaches exactly zero.

Architecture position:
    **Modules layer** -- operates on mapped ``SalaryAdvanceModel`` instances
    in memory.  It never flushes or commits; the caller
    (``PayrollService.approve_payroll``) owns the row lock and the
    transaction, so the same code is unit-testable without a database.

Invariants enforced:
    - Only DISBURSED advances are deducted from.
    - amount = min(deduction_per_cutoff, remaining_balance); never more.
    - remaining_balance >= 0 after every call.
    - sum(deductions) + remaining_balance == amount (conservation).
    - FULLY_PAID exactly when remaining_balance reaches 0.

Failure modes:
    - AdvanceNotDisbursedError: advance is not DISBURSED.
    - LedgerInvariantError: the balance would go negative or the
      conservation law no longer holds.  Never clamped.

Audit relevance:
    Every committed deduction leaves an ``AdvanceDeductionModel`` row and an
    ``advance_deduction_applied`` log entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.exceptions import AdvanceNotDisbursedError, LedgerInvariantError
from payroll_kernel.logging_config import get_logger
from payroll_modules.advances.models import AdvanceStatus
from payroll_modules.advances.orm import AdvanceDeductionModel, SalaryAdvanceModel
from payroll_modules.advances.workflows import SALARY_ADVANCE_WORKFLOW

logger = get_logger("modules.advances.ledger")


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of one ``apply_deduction`` call."""
    amount: Decimal
    deduction: AdvanceDeductionModel | None
    completed: bool


def planned_deduction(advance: SalaryAdvanceModel) -> Decimal:
    """Amount the next cutoff would deduct, without touching the advance."""
    if advance.status != AdvanceStatus.DISBURSED.value:
        return ZERO
    remaining = advance.remaining_balance or ZERO
    amount = round_money(min(advance.deduction_per_cutoff, remaining))
    return amount if amount > 0 else ZERO


def apply_deduction(
    advance: SalaryAdvanceModel,
    payroll_record_id: UUID,
    deduction_date: date,
    actor_id: UUID,
    now: datetime,
) -> LedgerResult:
    """Commit one repayment against ``advance`` in memory.

    A zero or already-exhausted balance is a no-op returning 0.00 with no row.
    """
    if advance.status != AdvanceStatus.DISBURSED.value:
        raise AdvanceNotDisbursedError(str(advance.id), advance.status)

    remaining = advance.remaining_balance
    if remaining is None:
        raise LedgerInvariantError(str(advance.id), "disbursed advance has no balance")

    amount = round_money(min(advance.deduction_per_cutoff, remaining))
    if amount <= 0:
        logger.info(
            "advance_deduction_skipped",
            extra={"advance_id": str(advance.id), "remaining_balance": str(remaining)},
        )
        return LedgerResult(amount=ZERO, deduction=None, completed=False)

    new_balance = round_money(remaining - amount)
    if new_balance < 0:
        raise LedgerInvariantError(
            str(advance.id),
            f"remaining_balance would become negative ({new_balance})",
        )

    row = AdvanceDeductionModel(
        advance_id=advance.id,
        payroll_record_id=payroll_record_id,
        amount=amount,
        deduction_date=deduction_date,
        created_by_id=actor_id,
    )
    advance.deductions.append(row)
    advance.remaining_balance = new_balance
    advance.updated_by_id = actor_id

    completed = False
    if new_balance == 0:
        SALARY_ADVANCE_WORKFLOW.require_transition(
            advance.id, advance.status, AdvanceStatus.FULLY_PAID,
        )
        advance.status = AdvanceStatus.FULLY_PAID.value
        advance.fully_paid_at = now
        completed = True

    _check_conservation(advance)

    logger.info(
        "advance_deduction_applied",
        extra={
            "advance_id": str(advance.id),
            "payroll_record_id": str(payroll_record_id),
            "amount": str(amount),
            "remaining_balance": str(new_balance),
            "completed": completed,
        },
    )
    return LedgerResult(amount=amount, deduction=row, completed=completed)


def _check_conservation(advance: SalaryAdvanceModel) -> None:
    repaid = ZERO
    for row in advance.deductions:
        repaid += row.amount
    if round_money(repaid + advance.remaining_balance) != round_money(advance.amount):
        raise LedgerInvariantError(
            str(advance.id),
            f"deductions {repaid} + balance {advance.remaining_balance} "
            f"!= amount {advance.amount}",
        )
