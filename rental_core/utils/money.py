"""Decimal helpers for money and rate values."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from rental_core.errors import ValidationError

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")
EFFECTIVE_RATE_PRECISION = Decimal("0.000000000001")
ZERO = Decimal("0.00")


def to_money(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a value to a Decimal rounded to the cent.

    Floats go through str() so 0.1 becomes Decimal("0.10"), not its binary
    expansion.

    Raises:
        ValidationError: if the value is not numeric
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a number, got {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}")
    return quantize_money(amount)


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_rate(rate: Decimal) -> Decimal:
    return rate.quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def quantize_effective_rate(rate: Decimal) -> Decimal:
    return rate.quantize(EFFECTIVE_RATE_PRECISION, rounding=ROUND_HALF_UP)


def money_or_zero(value: Any) -> Decimal:
    """Normalize a nullable DB aggregate (SUM over no rows) to a cent Decimal."""
    if value is None:
        return ZERO
    return quantize_money(Decimal(str(value)) if isinstance(value, float) else Decimal(value))
