"""
Salary Advances Module (``payroll_modules.advances``).

Employer cash advances repaid through fixed per-cutoff payroll deductions.
``AdvanceService`` owns the request/approve/reject/disburse lifecycle;
``ledger.apply_deduction`` is the only code that lowers a balance, and it
runs only inside payroll approval.
"""

from payroll_modules.advances.models import AdvanceDeduction, AdvanceStatus, SalaryAdvance
from payroll_modules.advances.workflows import SALARY_ADVANCE_WORKFLOW

__all__ = [
    "AdvanceDeduction",
    "AdvanceStatus",
    "SALARY_ADVANCE_WORKFLOW",
    "SalaryAdvance",
]
