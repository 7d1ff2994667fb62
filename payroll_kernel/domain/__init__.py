"""
Pure domain layer.

Value objects and helpers with NO dependencies on the ORM, the database,
or I/O (other than SystemClock).
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.money import CENT, ZERO, clamp, round_money, sum_money, to_decimal
from payroll_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CENT",
    "ZERO",
    "clamp",
    "round_money",
    "sum_money",
    "to_decimal",
    "Guard",
    "Transition",
    "Workflow",
]
