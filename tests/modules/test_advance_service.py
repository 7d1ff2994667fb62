"""
Tests for the salary advance lifecycle service.

Covers request validation, approval, rejection, disbursement, deduction
planning and the persisted deduction history.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import (
    DeductionExceedsPrincipalError,
    InvalidTransitionError,
    NonPositiveAmountError,
    NotFoundError,
    RejectionReasonRequiredError,
)
from payroll_modules.advances.models import AdvanceStatus
from tests.conftest import EMPLOYEE_A, EMPLOYEE_B


class TestRequestAdvance:

    def test_request_is_pending_without_balance(self, advance_service, test_actor_id):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("5000"), Decimal("1000"), test_actor_id, purpose="tuition",
        )
        assert advance.status is AdvanceStatus.PENDING
        assert advance.remaining_balance is None
        assert advance.amount == Decimal("5000.00")
        assert advance.purpose == "tuition"

    def test_deduction_equal_to_amount_is_allowed(self, advance_service, test_actor_id):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("1000"), Decimal("1000"), test_actor_id,
        )
        assert advance.deduction_per_cutoff == advance.amount

    def test_deduction_exceeding_amount_rejected(self, advance_service, test_actor_id):
        with pytest.raises(DeductionExceedsPrincipalError) as exc_info:
            advance_service.request_advance(
                EMPLOYEE_A, Decimal("1000"), Decimal("1500"), test_actor_id,
            )
        assert "deduction_per_cutoff exceeds amount" in str(exc_info.value)

    @pytest.mark.parametrize("amount, per_cutoff", [("0", "0"), ("-100", "50"), ("1000", "0")])
    def test_non_positive_amounts_rejected(self, advance_service, test_actor_id, amount, per_cutoff):
        with pytest.raises(NonPositiveAmountError):
            advance_service.request_advance(
                EMPLOYEE_A, Decimal(amount), Decimal(per_cutoff), test_actor_id,
            )

    def test_request_is_audited(self, advance_service, audit_sink, test_actor_id):
        advance_service.request_advance(EMPLOYEE_A, Decimal("500"), Decimal("100"), test_actor_id)
        assert audit_sink.actions() == ["advance_requested"]


class TestLifecycle:

    def test_approve_then_disburse_sets_balance(self, advance_service, clock, test_actor_id):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("5000"), Decimal("1000"), test_actor_id,
        )
        approved = advance_service.approve_advance(advance.id, test_actor_id)
        assert approved.status is AdvanceStatus.APPROVED
        assert approved.remaining_balance is None
        assert approved.approved_by_id == test_actor_id

        disbursed = advance_service.disburse_advance(advance.id, test_actor_id)
        assert disbursed.status is AdvanceStatus.DISBURSED
        assert disbursed.remaining_balance == Decimal("5000.00")
        assert disbursed.disbursed_at == clock.now()

    def test_disburse_requires_approval(self, advance_service, test_actor_id):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("5000"), Decimal("1000"), test_actor_id,
        )
        with pytest.raises(InvalidTransitionError):
            advance_service.disburse_advance(advance.id, test_actor_id)
        assert advance_service.get_advance(advance.id).status is AdvanceStatus.PENDING

    def test_cannot_disburse_twice(self, advance_service, disbursed_advance, test_actor_id):
        advance = disbursed_advance()
        with pytest.raises(InvalidTransitionError):
            advance_service.disburse_advance(advance.id, test_actor_id)

    @pytest.mark.parametrize("approve_first", [False, True])
    def test_reject_from_pending_or_approved(self, advance_service, test_actor_id, approve_first):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("5000"), Decimal("1000"), test_actor_id,
        )
        if approve_first:
            advance_service.approve_advance(advance.id, test_actor_id)
        rejected = advance_service.reject_advance(advance.id, " over limit ", test_actor_id)
        assert rejected.status is AdvanceStatus.REJECTED
        assert rejected.rejection_reason == "over limit"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason(self, advance_service, test_actor_id, reason):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("5000"), Decimal("1000"), test_actor_id,
        )
        with pytest.raises(RejectionReasonRequiredError):
            advance_service.reject_advance(advance.id, reason, test_actor_id)
        assert advance_service.get_advance(advance.id).status is AdvanceStatus.PENDING

    def test_cannot_reject_disbursed(self, advance_service, disbursed_advance, test_actor_id):
        advance = disbursed_advance()
        with pytest.raises(InvalidTransitionError):
            advance_service.reject_advance(advance.id, "changed mind", test_actor_id)

    def test_rejected_is_terminal(self, advance_service, test_actor_id):
        advance = advance_service.request_advance(
            EMPLOYEE_A, Decimal("5000"), Decimal("1000"), test_actor_id,
        )
        advance_service.reject_advance(advance.id, "duplicate request", test_actor_id)
        with pytest.raises(InvalidTransitionError):
            advance_service.approve_advance(advance.id, test_actor_id)

    def test_unknown_advance(self, advance_service, test_actor_id):
        with pytest.raises(NotFoundError):
            advance_service.approve_advance(uuid4(), test_actor_id)


class TestPlanningAndApplication:

    def test_plan_covers_only_disbursed_advances(
        self, advance_service, disbursed_advance, test_actor_id,
    ):
        first = disbursed_advance(EMPLOYEE_A, "5000", "1000")
        second = disbursed_advance(EMPLOYEE_A, "300", "300")
        advance_service.request_advance(EMPLOYEE_A, Decimal("900"), Decimal("100"), test_actor_id)
        disbursed_advance(EMPLOYEE_B, "2000", "500")

        plan = dict(advance_service.plan_for_employee(EMPLOYEE_A))
        assert plan == {first.id: Decimal("1000.00"), second.id: Decimal("300.00")}
        assert advance_service.outstanding_for(EMPLOYEE_A) == Decimal("5300.00")

    def test_apply_planned_persists_deductions(
        self, advance_service, disbursed_advance, payroll_service, open_period,
        session, test_actor_id, clock,
    ):
        advance = disbursed_advance(EMPLOYEE_A, "1500", "1000")
        record_id = payroll_service.generate_payroll(open_period.id, test_actor_id)[0].id

        results = advance_service.apply_planned(
            [advance.id], record_id, clock.today(), test_actor_id,
        )
        session.commit()

        assert [r.amount for r in results] == [Decimal("1000.00")]
        rows = advance_service.deductions_for(advance.id)
        assert len(rows) == 1
        assert rows[0].amount == Decimal("1000.00")
        assert rows[0].payroll_record_id == record_id
        refreshed = advance_service.get_advance(advance.id)
        assert refreshed.remaining_balance == Decimal("500.00")
        assert refreshed.amount_repaid == Decimal("1000.00")

    def test_apply_planned_unknown_advance(self, advance_service, test_actor_id, clock):
        with pytest.raises(NotFoundError):
            advance_service.apply_planned([uuid4()], uuid4(), clock.today(), test_actor_id)

    def test_apply_planned_nothing(self, advance_service, test_actor_id, clock):
        assert advance_service.apply_planned([], uuid4(), clock.today(), test_actor_id) == []
