"""
Payroll Modules.

Stateful orchestration over the payroll kernel and the pure engines.
Each module contains:
- Domain models (the nouns, frozen DTOs)
- ORM models (persistence)
- Workflows (state machines)
- A service facade that owns the transaction boundary

Modules:
- payroll: pay periods, payroll records, payslips
- advances: salary advances and the deduction ledger
- disciplinary: notices, explanations, sanctions
- schedules: versioned statutory schedules stored as dated rows
"""
