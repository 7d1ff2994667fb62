"""
Contribution Calculators - statutory employee shares per cutoff.

Each calculator maps a MONTHLY salary to the employee share deducted in ONE
cutoff.  Rounding to centavos happens after every multiplication and
division, exactly as the legal tables are defined at the monthly level:

    SSS         credit = table lookup
                monthly = round(credit * employee_rate)
                per_cutoff = min(round(monthly / cutoffs), ceiling / cutoffs)

    PhilHealth  clamped = clamp(salary, floor, ceiling)
                premium = round(clamped * premium_rate)
                share   = round(premium * employee_share)
                per_cutoff = min(round(share / cutoffs), ceiling / cutoffs)

    Pag-IBIG    rate    = rate_low if salary <= threshold else rate_high
                monthly = min(round(min(salary, max_credit) * rate), monthly ceiling)
                per_cutoff = min(round(monthly / cutoffs), ceiling / cutoffs)

A zero salary yields 0.00 for every scheme.  A negative salary raises
``NegativeAmountError``.

Usage:
    from payroll_engines.contributions import compute_contributions

    shares = compute_contributions(Decimal("35000"), schedule, CutoffKind.SEMI_MONTHLY)
    shares.sss          # Decimal("675.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_engines.brackets import (
    CutoffKind,
    HealthInsuranceSchedule,
    HousingFundSchedule,
    SocialInsuranceSchedule,
    StatutorySchedule,
)
from payroll_kernel.domain.money import ZERO, clamp, round_money, to_decimal
from payroll_kernel.exceptions import NegativeAmountError


def _normalize_salary(monthly_salary: Decimal | int | str) -> Decimal:
    salary = to_decimal(monthly_salary)
    if salary < 0:
        raise NegativeAmountError("monthly_salary", salary)
    return round_money(salary)


def sss_employee_share(
    monthly_salary: Decimal | int | str,
    schedule: SocialInsuranceSchedule,
    cutoff_kind: CutoffKind = CutoffKind.SEMI_MONTHLY,
) -> Decimal:
    """Social-insurance employee share for one cutoff."""
    salary = _normalize_salary(monthly_salary)
    if salary == ZERO:
        return ZERO
    credit = schedule.salary_credit(salary)
    monthly_share = round_money(credit * schedule.employee_rate)
    per_cutoff = round_money(monthly_share / cutoff_kind.cutoffs_per_month)
    return min(per_cutoff, schedule.per_cutoff_ceiling(cutoff_kind))


def philhealth_employee_share(
    monthly_salary: Decimal | int | str,
    schedule: HealthInsuranceSchedule,
    cutoff_kind: CutoffKind = CutoffKind.SEMI_MONTHLY,
) -> Decimal:
    """Health-insurance employee share for one cutoff."""
    salary = _normalize_salary(monthly_salary)
    if salary == ZERO:
        return ZERO
    clamped = clamp(salary, schedule.salary_floor, schedule.salary_ceiling)
    premium = round_money(clamped * schedule.premium_rate)
    monthly_share = round_money(premium * schedule.employee_share)
    per_cutoff = round_money(monthly_share / cutoff_kind.cutoffs_per_month)
    return min(per_cutoff, schedule.per_cutoff_ceiling(cutoff_kind))


def pagibig_employee_share(
    monthly_salary: Decimal | int | str,
    schedule: HousingFundSchedule,
    cutoff_kind: CutoffKind = CutoffKind.SEMI_MONTHLY,
) -> Decimal:
    """Housing-fund employee share for one cutoff.

    Both ceilings apply: the monthly figure is clamped first, then the
    per-cutoff figure after halving.
    """
    salary = _normalize_salary(monthly_salary)
    if salary == ZERO:
        return ZERO
    rate = schedule.rate_for(salary)
    base = min(salary, schedule.max_salary_credit)
    monthly = min(round_money(base * rate), schedule.monthly_ceiling)
    per_cutoff = round_money(monthly / cutoff_kind.cutoffs_per_month)
    return min(per_cutoff, schedule.per_cutoff_ceiling(cutoff_kind))


@dataclass(frozen=True)
class ContributionBreakdown:
    """Employee shares of the three statutory schemes for one cutoff."""

    sss: Decimal
    philhealth: Decimal
    pagibig: Decimal

    @property
    def total(self) -> Decimal:
        return round_money(self.sss + self.philhealth + self.pagibig)


def compute_contributions(
    monthly_salary: Decimal | int | str,
    schedule: StatutorySchedule,
    cutoff_kind: CutoffKind = CutoffKind.SEMI_MONTHLY,
) -> ContributionBreakdown:
    return ContributionBreakdown(
        sss=sss_employee_share(monthly_salary, schedule.social_insurance, cutoff_kind),
        philhealth=philhealth_employee_share(
            monthly_salary, schedule.health_insurance, cutoff_kind,
        ),
        pagibig=pagibig_employee_share(monthly_salary, schedule.housing_fund, cutoff_kind),
    )
