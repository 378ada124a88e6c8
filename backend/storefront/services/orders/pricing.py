"""
Fixed-point money arithmetic for order totals.

All amounts are ``Decimal`` values with two fraction digits. Floats are never
accepted so totals cannot drift.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyInput = Union[Decimal, int, str]


def to_money(value: MoneyInput) -> Decimal:
    """
    Normalize a monetary value to two decimal places.

    Args:
        value: Decimal, integer or numeric string

    Returns:
        Decimal quantized to cents with half-up rounding

    Raises:
        TypeError: If a float is passed
    """
    if isinstance(value, float):
        raise TypeError("Monetary values must not be floats")
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def calculate_line_subtotal(unit_price: MoneyInput, quantity: int) -> Decimal:
    """Return ``unit_price * quantity`` rounded to cents."""
    return to_money(to_money(unit_price) * quantity)


def sum_money(amounts: Iterable[MoneyInput]) -> Decimal:
    """Sum monetary amounts exactly, starting from 0.00."""
    total = ZERO
    for amount in amounts:
        total += to_money(amount)
    return to_money(total)
