"""
Every payroll table, in one import.

``Base.metadata`` only knows the tables whose ORM modules have been imported,
and the immutability listeners attach to the mapped classes, so both table
creation and listener registration go through ``import_all_orm_models()``.
"""

from payroll_kernel.db.engine import create_tables


def import_all_orm_models() -> None:
    # Payroll records first: advance deductions carry a foreign key to them.
    import payroll_modules.payroll.orm  # noqa: F401
    import payroll_modules.advances.orm  # noqa: F401
    import payroll_modules.disciplinary.orm  # noqa: F401
    import payroll_modules.schedules.orm  # noqa: F401


def create_all_tables(install_listeners: bool = True) -> None:
    """Create the payroll, advance, disciplinary and schedule tables."""
    create_tables(install_listeners=install_listeners)
