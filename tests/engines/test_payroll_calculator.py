"""
Tests for the payroll calculator.

Covers:
- Worked examples for daily and monthly rate employees
- The gross / total deductions / net invariant
- Lateness as a single deduction line
- Manual DRAFT lines and advance deductions
- Negative net pay
- Engine trace logging and fingerprint determinism
"""

from decimal import Decimal

import pytest

from payroll_engines.brackets import CutoffKind, OvertimeType
from payroll_engines.pay import RateBasis, derive_rates
from payroll_engines.payroll_calculator import (
    DEDUCTION_FIELDS,
    EARNING_FIELDS,
    PayrollInputs,
    compute_payroll,
    totals_from,
)
from payroll_engines.tracer import compute_input_fingerprint
from payroll_kernel.exceptions import NegativeAmountError


def _daily_inputs(schedule, **overrides):
    rates = derive_rates(RateBasis.DAILY, schedule.pay_rules, daily_rate=Decimal("800"))
    values = dict(rates=rates, days_worked=Decimal("11"))
    values.update(overrides)
    return PayrollInputs(**values)


def _monthly_inputs(schedule, **overrides):
    rates = derive_rates(RateBasis.MONTHLY, schedule.pay_rules, monthly_rate=Decimal("35000"))
    values = dict(rates=rates, days_worked=Decimal("11"))
    values.update(overrides)
    return PayrollInputs(**values)


class TestWorkedExamples:

    def test_daily_rate_employee(self, schedule):
        result = compute_payroll(
            inputs=_daily_inputs(schedule), schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        assert result.basic_pay == Decimal("8800.00")
        assert result.gross_pay == Decimal("8800.00")
        # Contribution salary 800 x 22 = 17,600
        assert result.sss_deduction == Decimal("393.75")
        assert result.philhealth_deduction == Decimal("220.00")
        assert result.pagibig_deduction == Decimal("50.00")
        assert result.withholding_tax == Decimal("0.00")
        assert result.total_deductions == Decimal("663.75")
        assert result.net_pay == Decimal("8136.25")
        assert result.schedule_version == schedule.version

    def test_monthly_rate_employee(self, schedule):
        result = compute_payroll(
            inputs=_monthly_inputs(schedule), schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        assert result.daily_rate == Decimal("1590.91")
        assert result.basic_pay == Decimal("17500.01")
        assert result.sss_deduction == Decimal("675.00")
        assert result.philhealth_deduction == Decimal("437.50")
        assert result.pagibig_deduction == Decimal("50.00")
        assert result.withholding_tax == Decimal("888.13")
        assert result.total_deductions == Decimal("2050.63")
        assert result.net_pay == Decimal("15449.38")

    def test_cash_advance_reduces_net_not_tax(self, schedule):
        without = compute_payroll(
            inputs=_monthly_inputs(schedule), schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        with_advance = compute_payroll(
            inputs=_monthly_inputs(schedule, cash_advance_deduction=Decimal("1000")),
            schedule=schedule, cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        assert with_advance.withholding_tax == without.withholding_tax
        assert with_advance.net_pay == without.net_pay - Decimal("1000")


class TestTotalsInvariant:

    def test_totals_match_lines(self, schedule):
        result = compute_payroll(
            inputs=_daily_inputs(
                schedule,
                overtime_minutes={OvertimeType.ORDINARY: 120, OvertimeType.HOLIDAY: 60},
                late_minutes=25,
                holiday_pay=Decimal("500"),
                allowances=Decimal("750.50"),
                unpaid_leave_deduction=Decimal("100"),
                other_deductions=Decimal("42.10"),
                cash_advance_deduction=Decimal("300"),
            ),
            schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        lines = result.lines()
        gross = sum(lines[name] for name in EARNING_FIELDS)
        deductions = sum(lines[name] for name in DEDUCTION_FIELDS)
        assert result.gross_pay == gross
        assert result.total_deductions == deductions
        assert result.net_pay == gross - deductions
        assert totals_from(result).net_pay == result.net_pay

    def test_lateness_is_one_deduction_line(self, schedule):
        on_time = compute_payroll(
            inputs=_daily_inputs(schedule), schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        late = compute_payroll(
            inputs=_daily_inputs(schedule, late_minutes=15), schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        assert late.gross_pay == on_time.gross_pay
        assert late.late_deduction == Decimal("25.05")
        assert late.net_pay == on_time.net_pay - Decimal("25.05")

    def test_overtime_breakdown_sums_to_overtime_pay(self, schedule):
        result = compute_payroll(
            inputs=_daily_inputs(
                schedule,
                overtime_minutes={OvertimeType.ORDINARY: 90, OvertimeType.REST_DAY: 60},
            ),
            schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        assert result.overtime_by_type[OvertimeType.ORDINARY] == Decimal("187.50")
        assert result.overtime_by_type[OvertimeType.REST_DAY] == Decimal("130.00")
        assert result.overtime_pay == Decimal("317.50")

    def test_net_pay_may_be_negative(self, schedule):
        result = compute_payroll(
            inputs=_daily_inputs(
                schedule, days_worked=Decimal("1"), other_deductions=Decimal("5000"),
            ),
            schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        assert result.net_pay < 0
        assert result.net_pay == result.gross_pay - result.total_deductions


class TestInputValidation:

    def test_negative_manual_line_rejected(self, schedule):
        with pytest.raises(NegativeAmountError):
            _daily_inputs(schedule, allowances=Decimal("-1"))


class TestEngineTrace:

    def test_trace_logged(self, schedule, captured_logs):
        result = compute_payroll(
            inputs=_daily_inputs(schedule), schedule=schedule,
            cutoff_kind=CutoffKind.SEMI_MONTHLY,
        )
        traces = [r for r in captured_logs() if r["message"] == "payroll_engine_trace"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "payroll_calculator"
        assert traces[0]["schedule_version"] == schedule.version
        assert traces[0]["net_pay"] == str(result.net_pay)
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_same_inputs_same_fingerprint(self, schedule, captured_logs):
        for _ in range(2):
            compute_payroll(
                inputs=_daily_inputs(schedule), schedule=schedule,
                cutoff_kind=CutoffKind.SEMI_MONTHLY,
            )
        first, second = [
            r["input_fingerprint"] for r in captured_logs()
            if r["message"] == "payroll_engine_trace"
        ]
        assert first == second

    def test_fingerprint_ignores_trailing_zeros(self):
        assert compute_input_fingerprint(
            ("days_worked",), {"days_worked": Decimal("11")},
        ) == compute_input_fingerprint(("days_worked",), {"days_worked": Decimal("11.00")})

    def test_fingerprint_changes_with_inputs(self, schedule):
        a = compute_input_fingerprint(("inputs",), {"inputs": _daily_inputs(schedule)})
        b = compute_input_fingerprint(
            ("inputs",), {"inputs": _daily_inputs(schedule, late_minutes=1)},
        )
        assert a != b

    def test_cutoff_kind_is_part_of_the_fingerprint(self, schedule):
        inputs = _daily_inputs(schedule)
        semi = compute_input_fingerprint(
            ("inputs", "cutoff_kind"), {"inputs": inputs, "cutoff_kind": CutoffKind.SEMI_MONTHLY},
        )
        monthly = compute_input_fingerprint(
            ("inputs", "cutoff_kind"), {"inputs": inputs, "cutoff_kind": CutoffKind.MONTHLY},
        )
        assert semi != monthly
