from datetime import date
from decimal import Decimal

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from rental_core.db.writers._unique import unique_or_conflict
from rental_core.models.pricing import PriceOverride, SeasonalRate


def insert_seasonal_rate(
    conn: Connection, property_id: int, start_date: date, end_date: date, price: Decimal
) -> int:
    result = conn.execute(
        insert(SeasonalRate).values(
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            price_per_night=price,
        )
    )
    return int(result.inserted_primary_key[0])


def delete_seasonal_rate(conn: Connection, seasonal_price_id: int) -> bool:
    """
    Delete a seasonal rate. Bookings that already used it are unaffected.

    Returns:
        bool: True if a row was deleted
    """
    result = conn.execute(
        delete(SeasonalRate).where(SeasonalRate.seasonal_price_id == seasonal_price_id)
    )
    return result.rowcount > 0


def insert_price_override(
    conn: Connection, property_id: int, stay_date: date, price: Decimal
) -> int:
    with unique_or_conflict(f"Price override for property {property_id} on {stay_date} exists"):
        result = conn.execute(
            insert(PriceOverride).values(
                property_id=property_id, stay_date=stay_date, price_per_night=price
            )
        )
    return int(result.inserted_primary_key[0])


def delete_price_override(conn: Connection, property_id: int, stay_date: date) -> bool:
    result = conn.execute(
        delete(PriceOverride)
        .where(PriceOverride.property_id == property_id)
        .where(PriceOverride.stay_date == stay_date)
    )
    return result.rowcount > 0
