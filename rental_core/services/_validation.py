"""
Input validation shared by the service entry points.

Everything here runs before a transaction is opened and raises
ValidationError, which callers surface as-is.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from rental_core.errors import ValidationError
from rental_core.utils.money import quantize_rate, to_money


def require_text(value: Optional[str], field: str) -> str:
    """Return the stripped value, raise if it is missing or blank."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def require_positive(value: Any, field: str) -> Decimal:
    amount = to_money(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be positive, got {amount}")
    return amount


def require_non_negative(value: Any, field: str) -> Decimal:
    amount = to_money(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative, got {amount}")
    return amount


def require_rate(value: Any, field: str = "rate") -> Decimal:
    """Tax rates keep four decimals, so they bypass to_money's cent rounding."""
    try:
        rate = Decimal(str(value))
    except ArithmeticError as e:
        raise ValidationError(f"{field} must be a number, got {value!r}") from e
    if not rate.is_finite() or rate < 0:
        raise ValidationError(f"{field} must be a non-negative number, got {value!r}")
    return quantize_rate(rate)


def require_currency(value: Optional[str]) -> str:
    code = require_text(value, "currency").upper()
    if len(code) != 3 or not code.isalpha():
        raise ValidationError(f"currency must be a 3-letter ISO code, got {value!r}")
    return code


def require_date(value: Any, field: str) -> date:
    if not isinstance(value, date):
        raise ValidationError(f"{field} must be a date, got {value!r}")
    return value


def require_date_order(
    start: date, end: date, start_field: str, end_field: str, strict: bool
) -> None:
    """
    Check start < end (strict) or start <= end.

    Raises:
        ValidationError: if the range is empty or inverted
    """
    require_date(start, start_field)
    require_date(end, end_field)
    if strict and not start < end:
        raise ValidationError(f"{start_field} must be before {end_field} ({start} >= {end})")
    if not strict and start > end:
        raise ValidationError(f"{start_field} must not be after {end_field} ({start} > {end})")


def require_choice(value: Any, choices: tuple[str, ...], field: str) -> str:
    if value not in choices:
        raise ValidationError(f"{field} must be one of {', '.join(choices)}; got {value!r}")
    return str(value)
