from decimal import Decimal
from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from rental_core.models.reservations import Reservation, ReservationNight


def insert_reservation(conn: Connection, row: dict[str, Any]) -> int:
    result = conn.execute(insert(Reservation).values(**row))
    return int(result.inserted_primary_key[0])


def insert_reservation_nights(conn: Connection, rows: list[dict[str, Any]]) -> None:
    """
    Insert night snapshots.

    There is no update function for reservation_nights: a night is written
    once, at booking time.
    """
    if rows:
        conn.execute(insert(ReservationNight), rows)


def update_reservation_totals(
    conn: Connection,
    reservation_id: int,
    subtotal: Decimal,
    tax: Decimal,
    total: Decimal,
) -> None:
    """Refresh the cached totals; only called in the transaction that wrote the nights."""
    conn.execute(
        update(Reservation)
        .where(Reservation.reservation_id == reservation_id)
        .values(subtotal_amount=subtotal, tax_amount=tax, total_amount=total)
    )


def update_reservation_status(conn: Connection, reservation_id: int, status: str) -> None:
    conn.execute(
        update(Reservation)
        .where(Reservation.reservation_id == reservation_id)
        .values(status=status)
    )
