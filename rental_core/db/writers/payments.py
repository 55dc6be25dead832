from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from rental_core.db.writers._unique import unique_or_conflict
from rental_core.models.payments import Payment, PaymentAllocation


def insert_payment(conn: Connection, row: dict[str, Any]) -> int:
    result = conn.execute(insert(Payment).values(**row))
    return int(result.inserted_primary_key[0])


def update_payment_status(
    conn: Connection, payment_id: int, status: str, processed_at: Optional[datetime]
) -> None:
    values: dict[str, Any] = {"status": status}
    if processed_at is not None:
        values["processed_at"] = processed_at
    conn.execute(update(Payment).where(Payment.payment_id == payment_id).values(**values))


def insert_allocation(
    conn: Connection, payment_id: int, reservation_id: int, amount_applied: Decimal
) -> int:
    with unique_or_conflict(
        f"Payment {payment_id} is already allocated to reservation {reservation_id}"
    ):
        result = conn.execute(
            insert(PaymentAllocation).values(
                payment_id=payment_id,
                reservation_id=reservation_id,
                amount_applied=amount_applied,
            )
        )
    return int(result.inserted_primary_key[0])
