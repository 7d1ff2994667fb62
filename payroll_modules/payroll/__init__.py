"""
Payroll Module (``payroll_modules.payroll``).

Responsibility
--------------
Pay periods, per-employee payroll records and payslips.  Generation pulls
attendance, leave and rate facts from external collaborators, computes every
line through ``payroll_engines`` and persists DRAFT records; approval commits
salary advance deductions; release issues the payslip.

Architecture position
---------------------
**Modules layer** -- DTO models, ORM models, workflows, collaborator
protocols, ``PayrollService`` (``service.py``) and ``PayrollSelector``
(``selectors.py``).

Invariants enforced
-------------------
* One record per (employee, period).
* gross = earnings; total_deductions = all eight deduction lines;
  net = gross - total_deductions.
* Money fields are frozen once a record leaves DRAFT.
"""

from payroll_modules.payroll.models import (
    AttendanceAggregate,
    EmployeeRateConfig,
    EmploymentStatus,
    LeaveAggregate,
    PayPeriod,
    PayPeriodStatus,
    PayrollRecord,
    PayrollRecordStatus,
    Payslip,
    PeriodSummary,
    PlannedAdvanceDeduction,
    RegisterLine,
)
from payroll_modules.payroll.workflows import PAY_PERIOD_WORKFLOW, PAYROLL_RECORD_WORKFLOW

__all__ = [
    "AttendanceAggregate",
    "EmployeeRateConfig",
    "EmploymentStatus",
    "LeaveAggregate",
    "PAYROLL_RECORD_WORKFLOW",
    "PAY_PERIOD_WORKFLOW",
    "PayPeriod",
    "PayPeriodStatus",
    "PayrollRecord",
    "PayrollRecordStatus",
    "Payslip",
    "PeriodSummary",
    "PlannedAdvanceDeduction",
    "RegisterLine",
]
