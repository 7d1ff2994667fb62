"""
Salary Advance Service (``payroll_modules.advances.service``).

Responsibility
--------------
Request, approve, reject and disburse salary advances, and expose the
outstanding advances and repayment history payroll generation needs.

Architecture position
---------------------
**Modules layer** -- ``AdvanceService`` is the sole public entry point for
advance lifecycle changes.  Balance decrements happen only through
``payroll_modules.advances.ledger`` during payroll approval.

Invariants enforced
-------------------
* Each public mutating method owns its transaction (commit on success,
  rollback and re-raise on failure).
* Status changes go through ``SALARY_ADVANCE_WORKFLOW.require_transition``.
* Validation happens before any row is added or changed.
* ``remaining_balance`` is set exactly once, at disbursement.

Failure modes
-------------
* ``NonPositiveAmountError`` / ``DeductionExceedsPrincipalError`` on request.
* ``RejectionReasonRequiredError`` on reject without a reason.
* ``InvalidTransitionError`` for out-of-order lifecycle calls.
* ``NotFoundError`` for unknown advance ids.

Audit relevance
---------------
Every lifecycle change is logged and sent to the audit sink.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock
from payroll_kernel.domain.money import ZERO, round_money, to_decimal
from payroll_kernel.exceptions import (
    DeductionExceedsPrincipalError,
    NonPositiveAmountError,
    NotFoundError,
    RejectionReasonRequiredError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.services.base import BaseService
from payroll_modules.advances.ledger import LedgerResult, apply_deduction, planned_deduction
from payroll_modules.advances.models import AdvanceDeduction, AdvanceStatus, SalaryAdvance
from payroll_modules.advances.orm import AdvanceDeductionModel, SalaryAdvanceModel
from payroll_modules.advances.workflows import SALARY_ADVANCE_WORKFLOW
from payroll_modules.payroll.collaborators import AuditSink, LoggingAuditSink, emit_audit

logger = get_logger("modules.advances.service")


class AdvanceService(BaseService):
    """
    Salary advance lifecycle.

    Contract:
        Public methods take an already-authorized ``actor_id`` and return
        frozen ``SalaryAdvance`` DTOs.

    Guarantees:
        A rejected call leaves the advance exactly as it was.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit: AuditSink | None = None,
    ):
        super().__init__(session, clock)
        self.audit = audit or LoggingAuditSink()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def request_advance(
        self,
        employee_id: UUID,
        amount: Decimal,
        deduction_per_cutoff: Decimal,
        actor_id: UUID,
        purpose: str | None = None,
    ) -> SalaryAdvance:
        amount = round_money(to_decimal(amount))
        deduction_per_cutoff = round_money(to_decimal(deduction_per_cutoff))
        if amount <= 0:
            raise NonPositiveAmountError("amount", amount)
        if deduction_per_cutoff <= 0:
            raise NonPositiveAmountError("deduction_per_cutoff", deduction_per_cutoff)
        if deduction_per_cutoff > amount:
            raise DeductionExceedsPrincipalError(deduction_per_cutoff, amount)

        with self.transaction("salary_advance"):
            advance = SalaryAdvanceModel(
                employee_id=employee_id,
                amount=amount,
                deduction_per_cutoff=deduction_per_cutoff,
                status=AdvanceStatus.PENDING.value,
                purpose=purpose,
                created_by_id=actor_id,
            )
            self.session.add(advance)
            self.session.flush()

        logger.info(
            "advance_requested",
            extra={
                "advance_id": str(advance.id),
                "employee_id": str(employee_id),
                "amount": str(amount),
                "deduction_per_cutoff": str(deduction_per_cutoff),
            },
        )
        self._audit("advance_requested", advance, actor_id, {"amount": str(amount)})
        return advance.to_dto()

    def approve_advance(self, advance_id: UUID, actor_id: UUID) -> SalaryAdvance:
        with self.transaction("salary_advance", advance_id):
            advance = self._load(advance_id, lock=True)
            SALARY_ADVANCE_WORKFLOW.require_transition(
                advance_id, advance.status, AdvanceStatus.APPROVED,
            )
            advance.status = AdvanceStatus.APPROVED.value
            advance.approved_by_id = actor_id
            advance.approved_at = self.clock.now()
            advance.updated_by_id = actor_id

        logger.info("advance_approved", extra={"advance_id": str(advance_id)})
        self._audit("advance_approved", advance, actor_id)
        return advance.to_dto()

    def reject_advance(
        self, advance_id: UUID, reason: str | None, actor_id: UUID,
    ) -> SalaryAdvance:
        if not reason or not reason.strip():
            raise RejectionReasonRequiredError(str(advance_id))

        with self.transaction("salary_advance", advance_id):
            advance = self._load(advance_id, lock=True)
            SALARY_ADVANCE_WORKFLOW.require_transition(
                advance_id, advance.status, AdvanceStatus.REJECTED,
            )
            advance.status = AdvanceStatus.REJECTED.value
            advance.rejection_reason = reason.strip()
            advance.updated_by_id = actor_id

        logger.info(
            "advance_rejected",
            extra={"advance_id": str(advance_id), "reason": advance.rejection_reason},
        )
        self._audit("advance_rejected", advance, actor_id, {"reason": advance.rejection_reason})
        return advance.to_dto()

    def disburse_advance(self, advance_id: UUID, actor_id: UUID) -> SalaryAdvance:
        with self.transaction("salary_advance", advance_id):
            advance = self._load(advance_id, lock=True)
            SALARY_ADVANCE_WORKFLOW.require_transition(
                advance_id, advance.status, AdvanceStatus.DISBURSED,
            )
            advance.status = AdvanceStatus.DISBURSED.value
            advance.remaining_balance = advance.amount
            advance.disbursed_at = self.clock.now()
            advance.updated_by_id = actor_id

        logger.info(
            "advance_disbursed",
            extra={"advance_id": str(advance_id), "remaining_balance": str(advance.amount)},
        )
        self._audit("advance_disbursed", advance, actor_id, {"amount": str(advance.amount)})
        return advance.to_dto()

    # ------------------------------------------------------------------
    # Payroll integration (no commit; caller owns the transaction)
    # ------------------------------------------------------------------

    def plan_for_employee(self, employee_id: UUID) -> list[tuple[UUID, Decimal]]:
        """Per-advance deductions the next cutoff would take, ordered by id."""
        plan = []
        for advance in self._disbursed_for(employee_id):
            amount = planned_deduction(advance)
            if amount > 0:
                plan.append((advance.id, amount))
        return plan

    def apply_planned(
        self,
        advance_ids: list[UUID],
        payroll_record_id: UUID,
        deduction_date: date,
        actor_id: UUID,
    ) -> list[LedgerResult]:
        """Lock the advances (ordered by id) and run the ledger on each.

        An advance that was fully repaid since it was planned is skipped;
        the caller reconciles against the returned results.

        Flushes only.  Must run inside the caller's transaction.
        """
        if not advance_ids:
            return []
        stmt = (
            select(SalaryAdvanceModel)
            .where(SalaryAdvanceModel.id.in_(advance_ids))
            .order_by(SalaryAdvanceModel.id)
            .with_for_update()
        )
        advances = list(self.session.scalars(stmt))
        found = {a.id for a in advances}
        for advance_id in advance_ids:
            if advance_id not in found:
                raise NotFoundError("SalaryAdvance", str(advance_id))

        now = self.clock.now()
        results = []
        for advance in advances:
            if advance.status == AdvanceStatus.FULLY_PAID.value:
                logger.info("advance_already_repaid", extra={
                    "advance_id": str(advance.id),
                    "payroll_record_id": str(payroll_record_id),
                })
                continue
            results.append(
                apply_deduction(advance, payroll_record_id, deduction_date, actor_id, now)
            )
        self.session.flush()
        return results

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_advance(self, advance_id: UUID) -> SalaryAdvance:
        return self._load(advance_id).to_dto()

    def deductions_for(self, advance_id: UUID) -> list[AdvanceDeduction]:
        self._load(advance_id)
        stmt = (
            select(AdvanceDeductionModel)
            .where(AdvanceDeductionModel.advance_id == advance_id)
            .order_by(AdvanceDeductionModel.deduction_date, AdvanceDeductionModel.created_at)
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def outstanding_for(self, employee_id: UUID) -> Decimal:
        """Total remaining balance over the employee's disbursed advances."""
        total = ZERO
        for advance in self._disbursed_for(employee_id):
            total += advance.remaining_balance or ZERO
        return round_money(total)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _disbursed_for(self, employee_id: UUID) -> list[SalaryAdvanceModel]:
        stmt = (
            select(SalaryAdvanceModel)
            .where(
                SalaryAdvanceModel.employee_id == employee_id,
                SalaryAdvanceModel.status == AdvanceStatus.DISBURSED.value,
            )
            .order_by(SalaryAdvanceModel.id)
        )
        return list(self.session.scalars(stmt))

    def _load(self, advance_id: UUID, lock: bool = False) -> SalaryAdvanceModel:
        stmt = select(SalaryAdvanceModel).where(SalaryAdvanceModel.id == advance_id)
        if lock:
            stmt = stmt.with_for_update()
        advance = self.session.scalars(stmt).one_or_none()
        if advance is None:
            raise NotFoundError("SalaryAdvance", str(advance_id))
        return advance

    def _audit(self, action, advance, actor_id, details=None) -> None:
        emit_audit(self.audit, action, "SalaryAdvance", advance.id, actor_id, details)
