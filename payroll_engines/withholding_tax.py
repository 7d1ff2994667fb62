"""
Tax Calculator - progressive withholding tax per cutoff.

    taxable    = max(0, gross - sss - philhealth - pagibig)      (per cutoff)
    annual     = taxable * cutoffs_per_year
    bracket    = highest bracket with lower <= annual
    annual_tax = 0.00 if bracket.rate == 0
                 else round(base_tax + rate * (annual - lower))
    per_cutoff = round(annual_tax / cutoffs_per_year)

Pure functions, no I/O.
"""

from __future__ import annotations

from decimal import Decimal

from payroll_engines.brackets import CutoffKind, WithholdingTaxSchedule
from payroll_kernel.domain.money import ZERO, round_money, to_decimal
from payroll_kernel.exceptions import NegativeAmountError


def taxable_income(
    gross_pay: Decimal,
    sss: Decimal,
    philhealth: Decimal,
    pagibig: Decimal,
) -> Decimal:
    """Gross less the three statutory shares, floored at zero."""
    return max(ZERO, round_money(gross_pay - sss - philhealth - pagibig))


def annual_tax(annual_income: Decimal | int | str, schedule: WithholdingTaxSchedule) -> Decimal:
    income = to_decimal(annual_income)
    if income < 0:
        raise NegativeAmountError("annual_income", income)
    bracket = schedule.bracket_for(income)
    if bracket.rate == 0:
        # Exactly zero, not base + 0 * excess.
        return ZERO
    return round_money(bracket.base_tax + bracket.rate * (income - bracket.lower))


def withholding_tax(
    taxable_per_cutoff: Decimal | int | str,
    schedule: WithholdingTaxSchedule,
    cutoff_kind: CutoffKind = CutoffKind.SEMI_MONTHLY,
) -> Decimal:
    """Withholding tax for one cutoff."""
    taxable = to_decimal(taxable_per_cutoff)
    if taxable < 0:
        raise NegativeAmountError("taxable_income", taxable)
    periods = cutoff_kind.cutoffs_per_year
    annual = round_money(taxable * periods)
    yearly = annual_tax(annual, schedule)
    if yearly == ZERO:
        return ZERO
    return round_money(yearly / periods)
