"""Tax rules per location, tax lookup, and the tax return audit trail."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from rental_core.db.readers.registry import location_exists
from rental_core.db.readers.tax import get_tax_return, load_tax_rules, tax_rule_exists
from rental_core.db.writers.tax import insert_tax_return, insert_tax_rule, set_tax_return_paid
from rental_core.errors import Conflict, NotFound
from rental_core.ledger import entries
from rental_core.ledger.poster import post
from rental_core.metrics import tax_policy_gaps
from rental_core.services._validation import (
    require_date,
    require_date_order,
    require_non_negative,
    require_rate,
    require_text,
)
from rental_core.tax.resolver import (
    TaxQuote,
    TaxRuleSnapshot,
    applicable_tax_rules,
    quote_night_tax,
)

logger = structlog.get_logger(__name__)


def add_tax_rule(
    engine: Engine,
    location_id: int,
    tax_name: str,
    effective_from: date,
    rate: Any,
    is_percentage: bool = True,
    effective_to: Optional[date] = None,
) -> int:
    """
    Register a tax rule for a location.

    Args:
        engine: SQLAlchemy engine
        location_id: Jurisdiction the rule applies to
        tax_name: Name shared by successive versions of the same tax
        effective_from: First day the rule applies
        rate: Fraction (0.12) for percentage rules, absolute amount otherwise
        is_percentage: Percentage of the taxable base vs flat per night
        effective_to: Last day the rule applies (inclusive), None for open-ended

    Returns:
        int: New tax_rule_id

    Raises:
        Conflict: if (location, tax_name, effective_from) already exists
    """
    name = require_text(tax_name, "tax_name")
    require_date(effective_from, "effective_from")
    if effective_to is not None:
        require_date_order(
            effective_from, effective_to, "effective_from", "effective_to", strict=False
        )
    value = require_rate(rate)

    with engine.begin() as conn:
        if not location_exists(conn, location_id):
            raise NotFound("Location", location_id)
        if tax_rule_exists(conn, location_id, name, effective_from):
            raise Conflict(f"Tax rule {name!r} effective {effective_from} already exists")
        tax_rule_id = insert_tax_rule(
            conn,
            {
                "location_id": location_id,
                "tax_name": name,
                "effective_from": effective_from,
                "effective_to": effective_to,
                "rate": value,
                "is_percentage": is_percentage,
            },
        )

    logger.info(
        "tax_rule_added",
        tax_rule_id=tax_rule_id,
        location_id=location_id,
        tax_name=name,
        rate=str(value),
    )
    return tax_rule_id


def resolve_tax(engine: Engine, location_id: int, stay_date: date) -> list[TaxRuleSnapshot]:
    """Every tax rule that applies to a night at a location, one per tax name."""
    require_date(stay_date, "stay_date")
    with engine.connect() as conn:
        rules = load_tax_rules(conn, location_id, stay_date, stay_date)
    applicable = applicable_tax_rules(rules, stay_date)
    if not applicable:
        tax_policy_gaps.inc()
        logger.warning(
            "tax_policy_gap", location_id=location_id, stay_date=stay_date.isoformat()
        )
    return applicable


def resolve_named_tax(
    engine: Engine, location_id: int, stay_date: date, tax_name: str
) -> Optional[TaxRuleSnapshot]:
    for rule in resolve_tax(engine, location_id, stay_date):
        if rule.tax_name == tax_name:
            return rule
    return None


def quote_tax(
    engine: Engine, location_id: int, stay_date: date, taxable_base: Any
) -> TaxQuote:
    """Tax owed for one night on the given base (nightly price plus fees)."""
    base = require_non_negative(taxable_base, "taxable_base")
    return quote_night_tax(resolve_tax(engine, location_id, stay_date), stay_date, base)


def file_tax_return(
    engine: Engine,
    location_id: int,
    tax_name: str,
    period_start: date,
    period_end: date,
    declared_amount: Any,
    filed_on: date,
    reference_no: Optional[str] = None,
) -> int:
    """
    Record a filed tax return and move the declared amount from Tax Payable
    to Tax Remittance Due.

    Returns:
        int: New tax_return_id
    """
    name = require_text(tax_name, "tax_name")
    require_date_order(period_start, period_end, "period_start", "period_end", strict=False)
    require_date(filed_on, "filed_on")
    amount = require_non_negative(declared_amount, "declared_amount")

    with engine.begin() as conn:
        if not location_exists(conn, location_id):
            raise NotFound("Location", location_id)
        tax_return_id = insert_tax_return(
            conn,
            {
                "location_id": location_id,
                "tax_name": name,
                "period_start": period_start,
                "period_end": period_end,
                "declared_amount": amount,
                "filed_on": filed_on,
                "reference_no": reference_no,
            },
        )
        if amount > 0:
            post(conn, entries.tax_filed(tax_return_id, name, filed_on, amount))

    logger.info(
        "tax_return_filed",
        tax_return_id=tax_return_id,
        location_id=location_id,
        tax_name=name,
        declared_amount=str(amount),
    )
    return tax_return_id


def mark_tax_return_paid(engine: Engine, tax_return_id: int, paid_on: date) -> Decimal:
    """
    Record that a filed return was paid. Allowed once per return.

    Returns:
        Decimal: The amount remitted

    Raises:
        NotFound: unknown return
        Conflict: return already marked paid
    """
    require_date(paid_on, "paid_on")

    with engine.begin() as conn:
        tax_return = get_tax_return(conn, tax_return_id, for_update=True)
        if tax_return is None:
            raise NotFound("TaxReturn", tax_return_id)
        if tax_return["paid_on"] is not None:
            raise Conflict(f"Tax return {tax_return_id} already paid on {tax_return['paid_on']}")
        set_tax_return_paid(conn, tax_return_id, paid_on)
        amount = tax_return["declared_amount"]
        if amount > 0:
            post(conn, entries.tax_paid(tax_return_id, tax_return["tax_name"], paid_on, amount))

    logger.info("tax_return_paid", tax_return_id=tax_return_id, paid_on=paid_on.isoformat())
    return amount
