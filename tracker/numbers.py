"""Rounding helpers.

Percentages and averages round half away from zero (12.5 -> 13), not
half-even like the built-in round().
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, ndigits: int = 0) -> float:
    quant = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    """round(100 * part / whole), or 0 when whole is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def mean_int(values: list[int]) -> int:
    """Rounded mean of integers, 0 for an empty list."""
    if not values:
        return 0
    n = len(values)
    return (2 * sum(values) + n) // (2 * n)
