"""Registry of users, locations, properties and amenities."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from rental_core.config import DEFAULT_CURRENCY
from rental_core.db.readers.registry import (
    amenity_exists,
    email_taken,
    find_location_id,
    get_property,
    location_exists,
    user_exists,
)
from rental_core.db.writers.registry import (
    attach_amenity,
    insert_amenity,
    insert_location,
    insert_property,
    insert_user,
    update_base_price,
)
from rental_core.errors import Conflict, NotFound, ValidationError
from rental_core.models.users import USER_TYPES
from rental_core.services._validation import (
    require_choice,
    require_currency,
    require_positive,
    require_text,
)

logger = structlog.get_logger(__name__)


def create_user(
    engine: Engine,
    full_name: str,
    email: str,
    password_hash: str,
    user_type: str = "guest",
    phone: Optional[str] = None,
) -> int:
    """
    Register a host, guest or admin so other records can reference them.

    Returns:
        int: New user_id

    Raises:
        ValidationError: on missing fields or an unknown user_type
        Conflict: if the email is already registered
    """
    row = {
        "full_name": require_text(full_name, "full_name"),
        "email": require_text(email, "email").lower(),
        "password_hash": require_text(password_hash, "password_hash"),
        "user_type": require_choice(user_type, USER_TYPES, "user_type"),
        "phone": phone,
    }

    with engine.begin() as conn:
        if email_taken(conn, row["email"]):
            raise Conflict(f"User with email {row['email']} already exists")
        user_id = insert_user(conn, row)

    logger.info("user_created", user_id=user_id, user_type=row["user_type"])
    return user_id


def create_location(
    engine: Engine,
    country: str,
    city: str,
    region: Optional[str] = None,
    neighborhood: Optional[str] = None,
    postal_code: Optional[str] = None,
    latitude: Optional[Decimal] = None,
    longitude: Optional[Decimal] = None,
) -> int:
    """
    Return the id of a location, creating it if the address is new.

    Missing optional parts are normalized to "" so the same address always
    maps to the same row.
    """
    key = {
        "country": require_text(country, "country"),
        "city": require_text(city, "city"),
        "region": (region or "").strip(),
        "neighborhood": (neighborhood or "").strip(),
        "postal_code": (postal_code or "").strip(),
    }

    with engine.begin() as conn:
        existing = find_location_id(conn, **key)
        if existing is not None:
            return existing
        location_id = insert_location(conn, {**key, "latitude": latitude, "longitude": longitude})

    logger.info("location_created", location_id=location_id, city=key["city"])
    return location_id


def create_property(
    engine: Engine,
    host_id: int,
    location_id: int,
    title: str,
    max_guests: int,
    base_price_per_night: Any,
    currency: str = DEFAULT_CURRENCY,
    description: Optional[str] = None,
    address_line: Optional[str] = None,
) -> int:
    """
    List a new property for a host.

    Returns:
        int: New property_id

    Raises:
        ValidationError: on bad input or unknown host/location
    """
    if not isinstance(max_guests, int) or max_guests < 1:
        raise ValidationError(f"max_guests must be a positive integer, got {max_guests!r}")
    row = {
        "host_id": host_id,
        "location_id": location_id,
        "title": require_text(title, "title"),
        "max_guests": max_guests,
        "base_price_per_night": require_positive(base_price_per_night, "base_price_per_night"),
        "currency": require_currency(currency),
        "description": description,
        "address_line": address_line,
    }

    with engine.begin() as conn:
        if not user_exists(conn, host_id):
            raise NotFound("User", host_id)
        if not location_exists(conn, location_id):
            raise NotFound("Location", location_id)
        property_id = insert_property(conn, row)

    logger.info(
        "property_created",
        property_id=property_id,
        host_id=host_id,
        base_price=str(row["base_price_per_night"]),
    )
    return property_id


def change_base_price(engine: Engine, property_id: int, new_price: Any) -> Decimal:
    """
    Set a new base nightly price. Existing reservation nights keep their price.

    Returns:
        Decimal: The stored price
    """
    price = require_positive(new_price, "base_price_per_night")
    with engine.begin() as conn:
        get_property(conn, property_id)
        update_base_price(conn, property_id, price)
    return price


def create_amenity(engine: Engine, name: str, icon: Optional[str] = None) -> int:
    with engine.begin() as conn:
        return insert_amenity(conn, require_text(name, "name"), icon)


def add_amenity_to_property(engine: Engine, property_id: int, amenity_id: int) -> bool:
    """Attach an amenity to a property. Idempotent; returns True if newly linked."""
    with engine.begin() as conn:
        get_property(conn, property_id)
        if not amenity_exists(conn, amenity_id):
            raise NotFound("Amenity", amenity_id)
        return attach_amenity(conn, property_id, amenity_id)
