"""
Tests for the Advance Deduction Ledger.

The ledger works on mapped instances in memory, so these tests need no
database: advances are built as transient ``SalaryAdvanceModel`` objects.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import AdvanceNotDisbursedError, LedgerInvariantError
from payroll_modules.advances.ledger import apply_deduction, planned_deduction
from payroll_modules.advances.orm import AdvanceDeductionModel, SalaryAdvanceModel
from tests.conftest import EMPLOYEE_A, TEST_ACTOR_ID

NOW = datetime(2024, 3, 15, 4, 0, tzinfo=timezone.utc)
CUTOFF = date(2024, 3, 15)


def _advance(amount="5000", per_cutoff="1000", status="disbursed", balance="__amount__"):
    return SalaryAdvanceModel(
        id=uuid4(),
        employee_id=EMPLOYEE_A,
        amount=Decimal(amount),
        deduction_per_cutoff=Decimal(per_cutoff),
        remaining_balance=Decimal(amount) if balance == "__amount__" else balance,
        status=status,
        created_by_id=TEST_ACTOR_ID,
    )


def _apply(advance):
    return apply_deduction(advance, uuid4(), CUTOFF, TEST_ACTOR_ID, NOW)


class TestApplyDeduction:

    def test_five_cutoffs_repay_5000(self):
        advance = _advance("5000", "1000")

        for _ in range(4):
            result = _apply(advance)
            assert result.amount == Decimal("1000.00")
            assert not result.completed
        assert advance.remaining_balance == Decimal("1000.00")
        assert advance.status == "disbursed"

        result = _apply(advance)
        assert result.amount == Decimal("1000.00")
        assert result.completed
        assert advance.remaining_balance == Decimal("0.00")
        assert advance.status == "fully_paid"
        assert advance.fully_paid_at == NOW
        assert len(advance.deductions) == 5

    def test_last_deduction_is_bounded_by_balance(self):
        advance = _advance("1100", "800")
        _apply(advance)
        assert advance.remaining_balance == Decimal("300.00")

        result = _apply(advance)
        assert result.amount == Decimal("300.00")
        assert result.completed
        assert advance.remaining_balance == Decimal("0.00")
        assert advance.status == "fully_paid"

    def test_deduction_row_recorded(self):
        advance = _advance()
        record_id = uuid4()
        result = apply_deduction(advance, record_id, CUTOFF, TEST_ACTOR_ID, NOW)

        row = result.deduction
        assert isinstance(row, AdvanceDeductionModel)
        assert row.amount == Decimal("1000.00")
        assert row.payroll_record_id == record_id
        assert row.advance_id == advance.id
        assert row.deduction_date == CUTOFF
        assert row in advance.deductions

    def test_conservation_after_every_step(self):
        advance = _advance("2500", "700")
        while advance.status == "disbursed":
            _apply(advance)
            repaid = sum(d.amount for d in advance.deductions)
            assert repaid + advance.remaining_balance == advance.amount
        assert [d.amount for d in advance.deductions] == [
            Decimal("700.00"), Decimal("700.00"), Decimal("700.00"), Decimal("400.00"),
        ]

    @pytest.mark.parametrize("status", ["pending", "approved", "rejected", "fully_paid"])
    def test_only_disbursed_advances_are_deducted(self, status):
        advance = _advance(status=status, balance=None)
        with pytest.raises(AdvanceNotDisbursedError):
            _apply(advance)
        assert advance.deductions == []

    def test_disbursed_without_balance_is_an_invariant_breach(self):
        advance = _advance(balance=None)
        with pytest.raises(LedgerInvariantError):
            _apply(advance)

    def test_zero_balance_is_a_no_op(self):
        advance = _advance(balance=Decimal("0"))
        result = _apply(advance)
        assert result.amount == Decimal("0.00")
        assert result.deduction is None
        assert advance.deductions == []

    def test_tampered_history_fails_conservation(self):
        advance = _advance("5000", "1000", balance=Decimal("4500"))
        with pytest.raises(LedgerInvariantError):
            _apply(advance)


class TestPlannedDeduction:

    def test_min_of_per_cutoff_and_balance(self):
        assert planned_deduction(_advance("5000", "1000")) == Decimal("1000.00")
        assert planned_deduction(
            _advance("5000", "800", balance=Decimal("300")),
        ) == Decimal("300.00")

    def test_does_not_mutate(self):
        advance = _advance()
        planned_deduction(advance)
        assert advance.remaining_balance == Decimal("5000")
        assert advance.deductions == []

    def test_not_disbursed_plans_nothing(self):
        assert planned_deduction(_advance(status="approved", balance=None)) == Decimal("0.00")
