"""
Money arithmetic for carts and orders.

Prices are Decimal end to end; totals are rounded half-up to cents.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from domain.constants import CENTS


def round_money(amount) -> Decimal:
    """Round a price or total to two decimal places (half-up)."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def lines_total(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    """Sum of price × quantity over (price, quantity) pairs, rounded once at the end."""
    total = Decimal("0")
    for price, quantity in lines:
        total += Decimal(str(price)) * quantity
    return round_money(total)


def money_to_json(amount) -> float:
    """JSON-friendly money value (two-decimal float)."""
    if amount is None:
        return 0.0
    return float(round_money(amount))
