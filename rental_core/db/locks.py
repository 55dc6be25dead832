"""
Row locks that serialize writers on the same property, reservation or payment.

Each helper re-reads the row with SELECT ... FOR UPDATE inside the caller's
transaction and returns its current values. Concurrent writers on the same row
queue behind the lock and see committed state once they get it. SQLite has no
row locks and ignores FOR UPDATE; it serializes writers database-wide instead.

Lock order is property -> payment -> reservation.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Connection

from rental_core.errors import NotFound
from rental_core.models.payments import Payment
from rental_core.models.properties import Property
from rental_core.models.reservations import Reservation


def _lock_one(conn: Connection, model: type, key: Any, value: int, entity: str) -> dict[str, Any]:
    row = conn.execute(select(model).where(key == value).with_for_update()).mappings().fetchone()
    if row is None:
        raise NotFound(entity, value)
    return dict(row)


def lock_property(conn: Connection, property_id: int) -> dict[str, Any]:
    """Per-property booking mutex: held until the booking transaction ends."""
    return _lock_one(conn, Property, Property.property_id, property_id, "Property")


def lock_payment(conn: Connection, payment_id: int) -> dict[str, Any]:
    return _lock_one(conn, Payment, Payment.payment_id, payment_id, "Payment")


def lock_reservation(conn: Connection, reservation_id: int) -> dict[str, Any]:
    return _lock_one(
        conn, Reservation, Reservation.reservation_id, reservation_id, "Reservation"
    )
