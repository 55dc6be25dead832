from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from rental_core.models.payments import Payment, PaymentAllocation
from rental_core.utils.money import money_or_zero


def get_payment(conn: Connection, payment_id: int) -> Optional[dict[str, Any]]:
    stmt = select(Payment).where(Payment.payment_id == payment_id)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_payment_allocated_total(conn: Connection, payment_id: int) -> Decimal:
    """Absolute amount already drawn from a payment across all reservations."""
    total = conn.execute(
        select(func.sum(func.abs(PaymentAllocation.amount_applied))).where(
            PaymentAllocation.payment_id == payment_id
        )
    ).scalar()
    return money_or_zero(total)


def allocation_exists(conn: Connection, payment_id: int, reservation_id: int) -> bool:
    return (
        conn.execute(
            select(PaymentAllocation.allocation_id)
            .where(PaymentAllocation.payment_id == payment_id)
            .where(PaymentAllocation.reservation_id == reservation_id)
        ).fetchone()
        is not None
    )


def get_allocations_for_payment(conn: Connection, payment_id: int) -> list[dict[str, Any]]:
    result = conn.execute(
        select(PaymentAllocation)
        .where(PaymentAllocation.payment_id == payment_id)
        .order_by(PaymentAllocation.allocation_id)
    )
    return [dict(row) for row in result.mappings()]


def get_allocations_for_reservation(conn: Connection, reservation_id: int) -> list[dict[str, Any]]:
    result = conn.execute(
        select(PaymentAllocation)
        .where(PaymentAllocation.reservation_id == reservation_id)
        .order_by(PaymentAllocation.allocation_id)
    )
    return [dict(row) for row in result.mappings()]
