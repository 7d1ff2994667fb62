"""
Pay & Overtime Calculator.

Derives daily/hourly rates from an employee's rate basis and computes basic
pay, per-type overtime pay and the lateness deduction.

    daily   = round(monthly / working_days)      (monthly basis)
            = daily_rate                         (daily basis)
    hourly  = round(daily / hours_per_day)
    minute  = round(hourly / 60)
    basic   = round(daily * max(0, days_worked - unpaid_leave_days))
    OT      = sum over types of round(hourly * multiplier(type) * minutes / 60)
    late    = round(minute * deductible_late_minutes)

Overtime minutes of different types are never pooled before a multiplier is
applied.  Lateness grace periods are applied upstream; the minutes given
here are trusted as deductible.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_engines.brackets import OvertimeType, PayRules
from payroll_kernel.domain.money import ZERO, round_money, to_decimal
from payroll_kernel.exceptions import NegativeAmountError, ValidationError

MINUTES_PER_HOUR = Decimal("60")


class RateBasis(str, Enum):
    """How an employee's pay rate is expressed."""

    DAILY = "daily"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class DerivedRates:
    """Rate snapshot captured when a payroll record is computed."""

    rate_basis: RateBasis
    daily_rate: Decimal
    hourly_rate: Decimal
    minute_rate: Decimal
    monthly_salary: Decimal  # basis for statutory contributions


def _non_negative(field_name: str, value: Decimal | int | str) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        raise NegativeAmountError(field_name, amount)
    return amount


def daily_rate_from_monthly(monthly_rate: Decimal, rules: PayRules) -> Decimal:
    return round_money(_non_negative("monthly_rate", monthly_rate) / rules.working_days_per_month)


def hourly_rate_from_daily(daily_rate: Decimal, rules: PayRules) -> Decimal:
    return round_money(_non_negative("daily_rate", daily_rate) / rules.hours_per_day)


def derive_rates(
    rate_basis: RateBasis,
    rules: PayRules,
    daily_rate: Decimal | None = None,
    monthly_rate: Decimal | None = None,
) -> DerivedRates:
    """
    Resolve the daily/hourly/minute rates and contribution salary.

    Preconditions: the rate matching ``rate_basis`` is set and positive.
    Raises: ValidationError when it is missing or not positive.
    """
    basis = RateBasis(rate_basis)
    if basis is RateBasis.MONTHLY:
        if monthly_rate is None or to_decimal(monthly_rate) <= 0:
            raise ValidationError(
                "monthly_rate", "monthly_rate must be positive for monthly-basis employees",
            )
        monthly_salary = round_money(monthly_rate)
        daily = daily_rate_from_monthly(monthly_salary, rules)
    else:
        if daily_rate is None or to_decimal(daily_rate) <= 0:
            raise ValidationError(
                "daily_rate", "daily_rate must be positive for daily-basis employees",
            )
        daily = round_money(daily_rate)
        monthly_salary = round_money(daily * rules.working_days_per_month)

    hourly = hourly_rate_from_daily(daily, rules)
    return DerivedRates(
        rate_basis=basis,
        daily_rate=daily,
        hourly_rate=hourly,
        minute_rate=round_money(hourly / MINUTES_PER_HOUR),
        monthly_salary=monthly_salary,
    )


def basic_pay(
    daily_rate: Decimal,
    days_worked: Decimal | int | str,
    unpaid_leave_days: Decimal | int | str = ZERO,
) -> Decimal:
    """Daily rate times paid days; unpaid leave never drives days below zero."""
    days = _non_negative("days_worked", days_worked)
    unpaid = _non_negative("unpaid_leave_days", unpaid_leave_days)
    effective_days = max(Decimal("0"), days - unpaid)
    return round_money(daily_rate * effective_days)


def overtime_breakdown(
    hourly_rate: Decimal,
    overtime_minutes_by_type: Mapping[OvertimeType | str, int],
    rules: PayRules,
) -> dict[OvertimeType, Decimal]:
    """Overtime pay for each type, each rounded on its own."""
    breakdown: dict[OvertimeType, Decimal] = {t: ZERO for t in OvertimeType}
    for ot_type, minutes in overtime_minutes_by_type.items():
        kind = OvertimeType(ot_type)
        mins = _non_negative(f"overtime_minutes.{kind.value}", minutes)
        hours = mins / MINUTES_PER_HOUR
        breakdown[kind] = round_money(
            breakdown[kind] + round_money(hourly_rate * rules.multiplier(kind) * hours)
        )
    return breakdown


def overtime_pay(
    hourly_rate: Decimal,
    overtime_minutes_by_type: Mapping[OvertimeType | str, int],
    rules: PayRules,
) -> Decimal:
    total = ZERO
    for amount in overtime_breakdown(hourly_rate, overtime_minutes_by_type, rules).values():
        total += amount
    return round_money(total)


def late_deduction(hourly_rate: Decimal, deductible_late_minutes: Decimal | int | str) -> Decimal:
    minutes = _non_negative("deductible_late_minutes", deductible_late_minutes)
    minute_rate = round_money(hourly_rate / MINUTES_PER_HOUR)
    return round_money(minute_rate * minutes)
