"""
Money -- fixed-point helpers for peso amounts.

Responsibility:
    One rounding rule for the whole system: two decimal places, ROUND_HALF_UP,
    applied at every computation boundary.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - Monetary values are ``Decimal``; floats are rejected.
    - ``round_money`` never produces negative zero.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Coerce an int/str/Decimal to Decimal.  Floats are refused."""
    if isinstance(value, float):
        raise TypeError("Monetary values must not be float; pass Decimal or str")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(value: Decimal | int | str) -> Decimal:
    """Quantize to centavos, ROUND_HALF_UP."""
    result = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    if result.is_zero():
        return ZERO
    return result


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))


def sum_money(values) -> Decimal:
    """Sum already-rounded amounts and round the total."""
    total = ZERO
    for v in values:
        total += v
    return round_money(total)
