from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from rental_core.errors import NotFound
from rental_core.models.pricing import PriceOverride, SeasonalRate
from rental_core.models.properties import Property
from rental_core.pricing.resolver import PricingPolicy, SeasonalLayer


def load_pricing_policy(
    conn: Connection,
    property_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> PricingPolicy:
    """
    Read every pricing layer of a property as one immutable snapshot.

    Call inside the booking transaction so all nights are priced against the
    same policy state.

    Args:
        conn: Active database connection
        property_id: Property to load
        start: First stay date of interest (inclusive), optional
        end: Last stay date of interest (inclusive), optional

    Raises:
        NotFound: if the property does not exist
    """
    base_price = conn.execute(
        select(Property.base_price_per_night).where(Property.property_id == property_id)
    ).fetchone()
    if base_price is None:
        raise NotFound("Property", property_id)

    seasonal_stmt = select(
        SeasonalRate.seasonal_price_id,
        SeasonalRate.start_date,
        SeasonalRate.end_date,
        SeasonalRate.price_per_night,
    ).where(SeasonalRate.property_id == property_id)
    override_stmt = select(PriceOverride.stay_date, PriceOverride.price_per_night).where(
        PriceOverride.property_id == property_id
    )
    if start is not None:
        seasonal_stmt = seasonal_stmt.where(SeasonalRate.end_date >= start)
        override_stmt = override_stmt.where(PriceOverride.stay_date >= start)
    if end is not None:
        seasonal_stmt = seasonal_stmt.where(SeasonalRate.start_date <= end)
        override_stmt = override_stmt.where(PriceOverride.stay_date <= end)

    seasonal = tuple(
        SeasonalLayer(
            start_date=row.start_date,
            end_date=row.end_date,
            price=row.price_per_night,
            seasonal_price_id=row.seasonal_price_id,
        )
        for row in conn.execute(seasonal_stmt.order_by(SeasonalRate.seasonal_price_id))
    )
    overrides = {row.stay_date: row.price_per_night for row in conn.execute(override_stmt)}

    return PricingPolicy(
        property_id=property_id,
        base_price=base_price[0],
        seasonal_rates=seasonal,
        overrides=overrides,
    )


def override_exists(conn: Connection, property_id: int, stay_date: date) -> bool:
    return (
        conn.execute(
            select(PriceOverride.override_id)
            .where(PriceOverride.property_id == property_id)
            .where(PriceOverride.stay_date == stay_date)
        ).fetchone()
        is not None
    )
