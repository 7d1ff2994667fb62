"""
Payroll Calculator - assembles one employee's pay for one cutoff.

Pure orchestration of the pay, contribution and tax engines over externally
supplied aggregates.  Persistence, workflow status and advance balances are
handled by ``payroll_modules.payroll.service``; this module only computes.

Totals invariant (single source of truth, used by the ORM record too):

    gross_pay        = basic + overtime + holiday + allowances
    total_deductions = sss + philhealth + pagibig + tax
                       + cash_advance + late + unpaid_leave + other
    net_pay          = gross_pay - total_deductions

Lateness is one deduction line inside total_deductions; gross is not
reduced by it.

Usage:
    rates = derive_rates(RateBasis.MONTHLY, schedule.pay_rules, monthly_rate=Decimal("30000"))
    result = compute_payroll(
        inputs=PayrollInputs(rates=rates, days_worked=Decimal("11")),
        schedule=schedule,
        cutoff_kind=CutoffKind.SEMI_MONTHLY,
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import SimpleNamespace
from typing import Any

from payroll_engines.brackets import CutoffKind, OvertimeType, StatutorySchedule
from payroll_engines.contributions import compute_contributions
from payroll_engines.pay import DerivedRates, basic_pay, late_deduction, overtime_breakdown
from payroll_engines.tracer import traced_engine
from payroll_engines.withholding_tax import taxable_income, withholding_tax
from payroll_kernel.domain.money import ZERO, round_money, to_decimal
from payroll_kernel.exceptions import NegativeAmountError

EARNING_FIELDS: tuple[str, ...] = (
    "basic_pay",
    "overtime_pay",
    "holiday_pay",
    "allowances",
)

DEDUCTION_FIELDS: tuple[str, ...] = (
    "sss_deduction",
    "philhealth_deduction",
    "pagibig_deduction",
    "withholding_tax",
    "cash_advance_deduction",
    "late_deduction",
    "unpaid_leave_deduction",
    "other_deductions",
)


@dataclass(frozen=True)
class PayrollTotals:
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal


def totals_from(source: Any) -> PayrollTotals:
    """Derive gross/total/net from any object exposing the line attributes."""
    gross = ZERO
    for name in EARNING_FIELDS:
        gross += to_decimal(getattr(source, name) or ZERO)
    deductions = ZERO
    for name in DEDUCTION_FIELDS:
        deductions += to_decimal(getattr(source, name) or ZERO)
    gross = round_money(gross)
    deductions = round_money(deductions)
    return PayrollTotals(
        gross_pay=gross,
        total_deductions=deductions,
        net_pay=round_money(gross - deductions),
    )


@dataclass(frozen=True)
class PayrollInputs:
    """Aggregates for one (employee, period) plus DRAFT-editable lines."""

    rates: DerivedRates
    days_worked: Decimal
    unpaid_leave_days: Decimal = ZERO
    overtime_minutes: Mapping[OvertimeType, int] = field(default_factory=dict)
    late_minutes: int = 0
    cash_advance_deduction: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    allowances: Decimal = ZERO
    unpaid_leave_deduction: Decimal = ZERO
    other_deductions: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in (
            "cash_advance_deduction",
            "holiday_pay",
            "allowances",
            "unpaid_leave_deduction",
            "other_deductions",
        ):
            if to_decimal(getattr(self, name)) < 0:
                raise NegativeAmountError(name, getattr(self, name))


@dataclass(frozen=True)
class PayrollComputation:
    """Every line of one computed payroll record."""

    cutoff_kind: CutoffKind
    schedule_version: str
    daily_rate: Decimal
    hourly_rate: Decimal
    monthly_salary: Decimal
    basic_pay: Decimal
    overtime_pay: Decimal
    overtime_by_type: Mapping[OvertimeType, Decimal]
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

    def lines(self) -> dict[str, Decimal]:
        """Earnings, deductions and totals keyed by record column name."""
        names = EARNING_FIELDS + DEDUCTION_FIELDS + ("gross_pay", "total_deductions", "net_pay")
        return {name: getattr(self, name) for name in names}


@traced_engine(
    "payroll_calculator", "1.0",
    fingerprint_fields=("inputs", "cutoff_kind"),
    summary=lambda c: {"gross_pay": c.gross_pay, "net_pay": c.net_pay},
)
def compute_payroll(
    *,
    inputs: PayrollInputs,
    schedule: StatutorySchedule,
    cutoff_kind: CutoffKind,
) -> PayrollComputation:
    """
    Compute every earning, deduction and total for one cutoff.

    Postconditions: totals satisfy the gross/total/net invariant exactly.
    Raises: NegativeAmountError / ValidationError on malformed inputs.
    """
    rates = inputs.rates
    rules = schedule.pay_rules

    basic = basic_pay(rates.daily_rate, inputs.days_worked, inputs.unpaid_leave_days)
    ot_by_type = overtime_breakdown(rates.hourly_rate, inputs.overtime_minutes, rules)
    overtime = ZERO
    for amount in ot_by_type.values():
        overtime += amount
    overtime = round_money(overtime)
    late = late_deduction(rates.hourly_rate, inputs.late_minutes)

    holiday = round_money(inputs.holiday_pay)
    allowances = round_money(inputs.allowances)
    gross = round_money(basic + overtime + holiday + allowances)

    shares = compute_contributions(rates.monthly_salary, schedule, cutoff_kind)
    taxable = taxable_income(gross, shares.sss, shares.philhealth, shares.pagibig)
    tax = withholding_tax(taxable, schedule.withholding_tax, cutoff_kind)

    lines: dict[str, Any] = dict(
        basic_pay=basic,
        overtime_pay=overtime,
        holiday_pay=holiday,
        allowances=allowances,
        sss_deduction=shares.sss,
        philhealth_deduction=shares.philhealth,
        pagibig_deduction=shares.pagibig,
        withholding_tax=tax,
        cash_advance_deduction=round_money(inputs.cash_advance_deduction),
        late_deduction=late,
        unpaid_leave_deduction=round_money(inputs.unpaid_leave_deduction),
        other_deductions=round_money(inputs.other_deductions),
    )
    totals = totals_from(SimpleNamespace(**lines))

    return PayrollComputation(
        cutoff_kind=cutoff_kind,
        schedule_version=schedule.version,
        daily_rate=rates.daily_rate,
        hourly_rate=rates.hourly_rate,
        monthly_salary=rates.monthly_salary,
        overtime_by_type=ot_by_type,
        gross_pay=totals.gross_pay,
        total_deductions=totals.total_deductions,
        net_pay=totals.net_pay,
        **lines,
    )
