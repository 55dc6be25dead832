import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from rental_core.db.writers._unique import unique_or_conflict
from rental_core.models.locations import Location
from rental_core.models.properties import Amenity, Property, PropertyAmenity
from rental_core.models.users import User

logger = logging.getLogger(__name__)


def insert_user(conn: Connection, row: dict[str, Any]) -> int:
    """
    Insert a user row.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        row (dict): Column values for users.

    Returns:
        int: New user_id.
    """
    with unique_or_conflict(f"User with email {row.get('email')} already exists"):
        result = conn.execute(insert(User).values(**row))
    return int(result.inserted_primary_key[0])


def insert_location(conn: Connection, row: dict[str, Any]) -> int:
    """
    Insert a location row.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        row (dict): Column values for locations, optional parts as "".

    Returns:
        int: New location_id.
    """
    with unique_or_conflict("Location already exists"):
        result = conn.execute(insert(Location).values(**row))
    return int(result.inserted_primary_key[0])


def insert_property(conn: Connection, row: dict[str, Any]) -> int:
    result = conn.execute(insert(Property).values(**row))
    return int(result.inserted_primary_key[0])


def update_base_price(conn: Connection, property_id: int, price: Decimal) -> None:
    """
    Change a property's base nightly price.

    Only the properties row is touched; reservation nights keep their snapshot.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (int): Property to update.
        price (Decimal): New base price.
    """
    conn.execute(
        update(Property)
        .where(Property.property_id == property_id)
        .values(base_price_per_night=price)
    )
    logger.info("Updated base price for property_id=%s to %s", property_id, price)


def insert_amenity(conn: Connection, name: str, icon: str | None = None) -> int:
    with unique_or_conflict(f"Amenity {name!r} already exists"):
        result = conn.execute(insert(Amenity).values(name=name, icon=icon))
    return int(result.inserted_primary_key[0])


def attach_amenity(conn: Connection, property_id: int, amenity_id: int) -> bool:
    """
    Link an amenity to a property if not linked yet.

    Returns:
        bool: True if a link was created, False if it already existed.
    """
    existing = conn.execute(
        select(PropertyAmenity.property_id)
        .where(PropertyAmenity.property_id == property_id)
        .where(PropertyAmenity.amenity_id == amenity_id)
    ).fetchone()
    if existing:
        return False
    conn.execute(insert(PropertyAmenity).values(property_id=property_id, amenity_id=amenity_id))
    return True
