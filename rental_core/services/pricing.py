"""
Host-owned pricing layers and the read-only price lookup.

Writes here only affect future bookings: reservation nights keep the price
resolved when they were created.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.engine import Engine

from rental_core.db.readers.pricing import load_pricing_policy, override_exists
from rental_core.db.readers.registry import get_property
from rental_core.db.writers.pricing import (
    delete_price_override,
    delete_seasonal_rate,
    insert_price_override,
    insert_seasonal_rate,
)
from rental_core.errors import Conflict
from rental_core.pricing.resolver import PriceQuote, quote_nightly_price
from rental_core.services._validation import (
    require_date,
    require_date_order,
    require_non_negative,
)

logger = structlog.get_logger(__name__)


def add_seasonal_rate(
    engine: Engine, property_id: int, start_date: date, end_date: date, price: Any
) -> int:
    """
    Add a date-range price, inclusive on both ends.

    Overlap with existing seasonal rates is allowed; the newest rate wins on
    shared dates.

    Returns:
        int: New seasonal_price_id
    """
    require_date_order(start_date, end_date, "start_date", "end_date", strict=False)
    amount = require_non_negative(price, "price")

    with engine.begin() as conn:
        get_property(conn, property_id)
        seasonal_price_id = insert_seasonal_rate(conn, property_id, start_date, end_date, amount)

    logger.info(
        "seasonal_rate_added",
        property_id=property_id,
        seasonal_price_id=seasonal_price_id,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        price=str(amount),
    )
    return seasonal_price_id


def remove_seasonal_rate(engine: Engine, seasonal_price_id: int) -> bool:
    with engine.begin() as conn:
        deleted = delete_seasonal_rate(conn, seasonal_price_id)
    logger.info("seasonal_rate_removed", seasonal_price_id=seasonal_price_id, deleted=deleted)
    return deleted


def set_price_override(engine: Engine, property_id: int, stay_date: date, price: Any) -> int:
    """
    Pin the price of a single night.

    Raises:
        Conflict: if an override for (property, date) already exists; remove it first
    """
    require_date(stay_date, "stay_date")
    amount = require_non_negative(price, "price")

    with engine.begin() as conn:
        get_property(conn, property_id)
        if override_exists(conn, property_id, stay_date):
            raise Conflict(f"Price override for property {property_id} on {stay_date} exists")
        override_id = insert_price_override(conn, property_id, stay_date, amount)

    logger.info(
        "price_override_set",
        property_id=property_id,
        stay_date=stay_date.isoformat(),
        price=str(amount),
    )
    return override_id


def remove_price_override(engine: Engine, property_id: int, stay_date: date) -> bool:
    with engine.begin() as conn:
        return delete_price_override(conn, property_id, stay_date)


def quote_price(engine: Engine, property_id: int, stay_date: date) -> PriceQuote:
    """Resolve the current price of a night and the layer it came from."""
    require_date(stay_date, "stay_date")
    with engine.connect() as conn:
        policy = load_pricing_policy(conn, property_id, stay_date, stay_date)
    return quote_nightly_price(policy, stay_date)


def resolve_price(engine: Engine, property_id: int, stay_date: date) -> Decimal:
    """
    Effective nightly price for a property on a date.

    Read-only; never consulted for nights that are already booked.
    """
    return quote_price(engine, property_id, stay_date).price
