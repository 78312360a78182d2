"""Decimal money helpers"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Drift between a plan total and its installments must stay below one cent
MONEY_TOLERANCE = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert a stored or user-supplied value to Decimal without going through float"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a monetary value: {value!r}") from e


def to_money(value: Any) -> Decimal:
    """Round half-up to 2 decimal places"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def amounts_match(left: Any, right: Any, tolerance: Decimal = MONEY_TOLERANCE) -> bool:
    return abs(to_decimal(left) - to_decimal(right)) < tolerance


def is_whole_cents(value: Any) -> bool:
    """True when the value carries no fraction of a cent, so storing it loses nothing"""
    return to_decimal(value) == to_money(value)
