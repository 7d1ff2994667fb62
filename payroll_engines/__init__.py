"""
Module: payroll_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: bracket
    tables, statutory contributions, withholding tax, pay/overtime and the
    payroll calculator.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel.domain and payroll_kernel.exceptions.
    MUST NOT import payroll_modules or payroll_config.

Invariants enforced:
    - Purity: engines never read the clock; dates are passed in.
    - Decimal-only arithmetic, two-decimal ROUND_HALF_UP at every boundary.
    - Determinism: identical inputs always produce identical outputs.
"""

from payroll_engines.brackets import (
    CutoffKind,
    HealthInsuranceSchedule,
    HousingFundSchedule,
    OvertimeType,
    PayRules,
    SalaryCreditBracket,
    ScheduleRegistry,
    SocialInsuranceSchedule,
    StatutorySchedule,
    TaxBracket,
    WithholdingTaxSchedule,
)
from payroll_engines.contributions import (
    ContributionBreakdown,
    compute_contributions,
    pagibig_employee_share,
    philhealth_employee_share,
    sss_employee_share,
)
from payroll_engines.pay import (
    DerivedRates,
    RateBasis,
    basic_pay,
    derive_rates,
    late_deduction,
    overtime_breakdown,
    overtime_pay,
)
from payroll_engines.payroll_calculator import (
    DEDUCTION_FIELDS,
    EARNING_FIELDS,
    PayrollComputation,
    PayrollInputs,
    PayrollTotals,
    compute_payroll,
    totals_from,
)
from payroll_engines.withholding_tax import annual_tax, taxable_income, withholding_tax

__all__ = [
    "CutoffKind",
    "OvertimeType",
    "SalaryCreditBracket",
    "SocialInsuranceSchedule",
    "HealthInsuranceSchedule",
    "HousingFundSchedule",
    "TaxBracket",
    "WithholdingTaxSchedule",
    "PayRules",
    "StatutorySchedule",
    "ScheduleRegistry",
    "ContributionBreakdown",
    "compute_contributions",
    "sss_employee_share",
    "philhealth_employee_share",
    "pagibig_employee_share",
    "annual_tax",
    "taxable_income",
    "withholding_tax",
    "RateBasis",
    "DerivedRates",
    "derive_rates",
    "basic_pay",
    "overtime_breakdown",
    "overtime_pay",
    "late_deduction",
    "EARNING_FIELDS",
    "DEDUCTION_FIELDS",
    "PayrollInputs",
    "PayrollComputation",
    "PayrollTotals",
    "compute_payroll",
    "totals_from",
]
