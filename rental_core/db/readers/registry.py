from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from rental_core.errors import NotFound
from rental_core.models.locations import Location
from rental_core.models.properties import Amenity, Property, PropertyAmenity
from rental_core.models.users import User


def get_property(conn: Connection, property_id: int) -> dict[str, Any]:
    """
    Fetch a property row.

    Raises:
        NotFound: if the property does not exist
    """
    row = (
        conn.execute(select(Property).where(Property.property_id == property_id))
        .mappings()
        .fetchone()
    )
    if row is None:
        raise NotFound("Property", property_id)
    return dict(row)


def get_user(conn: Connection, user_id: int) -> Optional[dict[str, Any]]:
    row = conn.execute(select(User).where(User.user_id == user_id)).mappings().fetchone()
    return dict(row) if row else None


def user_exists(conn: Connection, user_id: int) -> bool:
    return (
        conn.execute(select(User.user_id).where(User.user_id == user_id)).fetchone() is not None
    )


def email_taken(conn: Connection, email: str) -> bool:
    return conn.execute(select(User.user_id).where(User.email == email)).fetchone() is not None


def location_exists(conn: Connection, location_id: int) -> bool:
    return (
        conn.execute(
            select(Location.location_id).where(Location.location_id == location_id)
        ).fetchone()
        is not None
    )


def find_location_id(
    conn: Connection,
    country: str,
    city: str,
    region: str = "",
    neighborhood: str = "",
    postal_code: str = "",
) -> Optional[int]:
    """Return the id of the location with this exact normalized address, if any."""
    return conn.execute(
        select(Location.location_id)
        .where(Location.country == country)
        .where(Location.region == region)
        .where(Location.city == city)
        .where(Location.neighborhood == neighborhood)
        .where(Location.postal_code == postal_code)
    ).scalar_one_or_none()


def amenity_exists(conn: Connection, amenity_id: int) -> bool:
    return (
        conn.execute(select(Amenity.amenity_id).where(Amenity.amenity_id == amenity_id)).fetchone()
        is not None
    )


def get_property_amenities(conn: Connection, property_id: int) -> list[str]:
    """Return amenity names attached to a property, alphabetically."""
    result = conn.execute(
        select(Amenity.name)
        .join(PropertyAmenity, PropertyAmenity.amenity_id == Amenity.amenity_id)
        .where(PropertyAmenity.property_id == property_id)
        .order_by(Amenity.name)
    )
    return list(result.scalars().all())
