"""
Statutory Schedules Module (``payroll_modules.schedules``).

Versioned social insurance, health insurance, housing fund and withholding
tax tables persisted as dated rows.  ``ScheduleService.registry()`` turns
the active rows into the same ``ScheduleRegistry`` the YAML loader builds.
"""
