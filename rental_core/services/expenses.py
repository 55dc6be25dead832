"""Property operating expenses, posted to the ledger as they are recorded."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from rental_core.db.readers.registry import get_property
from rental_core.db.writers.expenses import insert_expense
from rental_core.errors import ValidationError
from rental_core.ledger import entries
from rental_core.ledger.poster import post
from rental_core.models.expenses import EXPENSE_CATEGORIES
from rental_core.services._validation import require_choice, require_date, require_positive

logger = structlog.get_logger(__name__)


def record_expense(
    engine: Engine,
    property_id: int,
    category: str,
    expense_date: date,
    amount: Any,
    vendor_name: Optional[str] = None,
    description: Optional[str] = None,
    currency: Optional[str] = None,
) -> int:
    """
    Record a property expense and post Dr <category> expense / Cr Cash.

    The currency defaults to the property's and must match it when given.

    Returns:
        int: New expense_id
    """
    category = require_choice(category, EXPENSE_CATEGORIES, "category")
    expense_date = require_date(expense_date, "expense_date")
    value = require_positive(amount, "amount")

    with engine.begin() as conn:
        prop = get_property(conn, property_id)
        if currency is not None and currency.upper() != prop["currency"]:
            raise ValidationError(
                f"Expense currency {currency} does not match property currency {prop['currency']}"
            )
        expense_id = insert_expense(
            conn,
            {
                "property_id": property_id,
                "vendor_name": vendor_name,
                "category": category,
                "description": description,
                "expense_date": expense_date,
                "amount": value,
                "currency": prop["currency"],
            },
        )
        post(conn, entries.expense_recorded(expense_id, property_id, category, expense_date, value))

    logger.info(
        "expense_recorded",
        expense_id=expense_id,
        property_id=property_id,
        category=category,
        amount=str(value),
    )
    return expense_id
