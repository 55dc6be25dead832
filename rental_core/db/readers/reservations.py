from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from rental_core.errors import NotFound
from rental_core.models.payments import PAYMENT_COMPLETED, Payment, PaymentAllocation
from rental_core.models.reservations import (
    CANCELLED,
    CONFIRMED,
    Reservation,
    ReservationNight,
)
from rental_core.utils.money import ZERO, money_or_zero


def get_reservation(conn: Connection, reservation_id: int) -> dict[str, Any]:
    """
    Fetch a reservation header.

    Raises:
        NotFound: if the reservation does not exist
    """
    row = (
        conn.execute(select(Reservation).where(Reservation.reservation_id == reservation_id))
        .mappings()
        .fetchone()
    )
    if row is None:
        raise NotFound("Reservation", reservation_id)
    return dict(row)


def list_reservation_nights(conn: Connection, reservation_id: int) -> list[dict[str, Any]]:
    result = conn.execute(
        select(ReservationNight)
        .where(ReservationNight.reservation_id == reservation_id)
        .order_by(ReservationNight.stay_date)
    )
    return [dict(row) for row in result.mappings()]


def find_overlapping_reservations(
    conn: Connection, property_id: int, check_in: date, check_out: date
) -> list[int]:
    """
    Return ids of non-cancelled reservations sharing a night with
    [check_in, check_out).

    Two half-open ranges overlap when each starts before the other ends, so
    a stay ending on the day another begins is not a conflict.
    """
    result = conn.execute(
        select(Reservation.reservation_id)
        .where(Reservation.property_id == property_id)
        .where(Reservation.status != CANCELLED)
        .where(Reservation.check_in < check_out)
        .where(Reservation.check_out > check_in)
        .order_by(Reservation.reservation_id)
    )
    return list(result.scalars().all())


def get_night_totals(conn: Connection, reservation_id: int) -> dict[str, Decimal]:
    """
    Sum the night snapshots of a reservation.

    Returns:
        dict: rental (nightly prices), fees, subtotal, tax and total
            (total is the sum of the stored total_for_night column)
    """
    totals = {"rental": ZERO, "fees": ZERO, "subtotal": ZERO, "tax": ZERO, "total": ZERO}
    for night in list_reservation_nights(conn, reservation_id):
        fees = money_or_zero(night["cleaning_fee"]) + money_or_zero(night["service_fee"])
        totals["rental"] += money_or_zero(night["nightly_price"])
        totals["fees"] += fees
        totals["subtotal"] += money_or_zero(night["nightly_price"]) + fees
        totals["tax"] += money_or_zero(night["tax_amount"])
        totals["total"] += money_or_zero(night["total_for_night"])
    return totals


def get_allocated_total(conn: Connection, reservation_id: int) -> Decimal:
    """
    Net amount applied to a reservation by completed payments.

    Refund allocations are negative; allocations of failed, pending or
    refunded payments do not count.
    """
    total = conn.execute(
        select(func.sum(PaymentAllocation.amount_applied))
        .join(Payment, Payment.payment_id == PaymentAllocation.payment_id)
        .where(PaymentAllocation.reservation_id == reservation_id)
        .where(Payment.status == PAYMENT_COMPLETED)
    ).scalar()
    return money_or_zero(total)


def get_reservations_due_for_completion(conn: Connection, as_of: date) -> list[int]:
    """Confirmed reservations whose check-out day has been reached."""
    result = conn.execute(
        select(Reservation.reservation_id)
        .where(Reservation.status == CONFIRMED)
        .where(Reservation.check_out <= as_of)
        .order_by(Reservation.reservation_id)
    )
    return list(result.scalars().all())
