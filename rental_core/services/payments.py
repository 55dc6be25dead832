"""
Payment recording and allocation.

The allocator enforces, at commit time:
    - per reservation: net completed allocations <= reservation.total_amount
    - per payment: sum of |allocations| <= |payment.amount|

Both the payment and the reservation are re-read under row locks, so a
cancellation or another allocation running concurrently is seen before any
amount is applied.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from rental_core.config import DEFAULT_CURRENCY
from rental_core.db.locks import lock_payment, lock_reservation
from rental_core.db.readers.payments import (
    allocation_exists,
    get_allocations_for_payment,
    get_payment_allocated_total,
)
from rental_core.db.readers.registry import get_property, user_exists
from rental_core.db.readers.reservations import get_allocated_total, get_reservation
from rental_core.db.writers.payments import (
    insert_allocation,
    insert_payment,
    update_payment_status as write_payment_status,
)
from rental_core.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    OverAllocation,
    ValidationError,
)
from rental_core.ledger import entries
from rental_core.ledger.poster import post, reverse_entries_for
from rental_core.metrics import allocations
from rental_core.models.payments import (
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    PAYMENT_METHODS,
    PAYMENT_PENDING,
    PAYMENT_REFUNDED,
)
from rental_core.models.reservations import CANCELLED, PENDING
from rental_core.services._validation import require_choice, require_currency, require_positive
from rental_core.services.reservations import confirm_locked_reservation
from rental_core.utils.dates import utc_now
from rental_core.utils.money import to_money

logger = structlog.get_logger(__name__)

PAYMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    PAYMENT_PENDING: frozenset({PAYMENT_COMPLETED, PAYMENT_FAILED}),
    PAYMENT_COMPLETED: frozenset({PAYMENT_REFUNDED}),
    PAYMENT_FAILED: frozenset(),
    PAYMENT_REFUNDED: frozenset(),
}


def record_payment(
    engine: Engine,
    payer_user_id: Optional[int],
    method: str,
    amount: Any,
    currency: str = DEFAULT_CURRENCY,
    status: str = PAYMENT_PENDING,
    processed_at: Optional[datetime] = None,
) -> int:
    """
    Record a payment reported by the gateway.

    Args:
        engine: SQLAlchemy engine
        payer_user_id: Paying user, None for third parties
        method: One of PAYMENT_METHODS
        amount: Positive for money received, negative for a refund paid out
        currency: ISO currency code
        status: Initial status (pending, completed or failed)
        processed_at: Gateway processing time

    Returns:
        int: New payment_id
    """
    value = to_money(amount, "amount")
    if value == 0:
        raise ValidationError("amount must not be zero")
    row = {
        "payer_user_id": payer_user_id,
        "method": require_choice(method, PAYMENT_METHODS, "method"),
        "amount": value,
        "currency": require_currency(currency),
        "status": require_choice(
            status, (PAYMENT_PENDING, PAYMENT_COMPLETED, PAYMENT_FAILED), "status"
        ),
        "processed_at": processed_at,
    }

    with engine.begin() as conn:
        if payer_user_id is not None and not user_exists(conn, payer_user_id):
            raise NotFound("User", payer_user_id)
        payment_id = insert_payment(conn, row)

    logger.info(
        "payment_recorded",
        payment_id=payment_id,
        amount=str(value),
        currency=row["currency"],
        status=row["status"],
    )
    return payment_id


def _check_release(
    conn: Connection, payment_id: int, allocation: dict[str, Any], reservation: dict[str, Any]
) -> None:
    """
    Refuse to drop an allocation when the reservation's paid balance would
    leave [0, total_amount].

    A receipt can fall below zero this way when a refund payment was already
    allocated against the money it brought in.
    """
    allocated = get_allocated_total(conn, allocation["reservation_id"])
    remaining = allocated - allocation["amount_applied"]
    if 0 <= remaining <= reservation["total_amount"]:
        return
    logger.warning(
        "payment_refund_rejected",
        payment_id=payment_id,
        reservation_id=allocation["reservation_id"],
        allocated_total=str(allocated),
        remaining=str(remaining),
    )
    raise OverAllocation(
        f"Refunding payment {payment_id} would leave reservation "
        f"{allocation['reservation_id']} with a paid balance of {remaining}",
        abs(allocation["amount_applied"]),
        allocated,
    )


def update_payment_status(
    engine: Engine,
    payment_id: int,
    status: str,
    processed_at: Optional[datetime] = None,
    entry_date: Optional[date] = None,
) -> dict[str, Any]:
    """
    Apply a gateway status change.

    Marking a completed payment refunded drops its allocations from the
    reservation balances and reverses their ledger postings. Every affected
    reservation is locked after the payment, in reservation_id order.

    Raises:
        InvalidTransition: transition not allowed from the current status
        OverAllocation: dropping the allocations would push a reservation's
            paid balance below zero or above its total
    """
    with engine.begin() as conn:
        payment = lock_payment(conn, payment_id)
        current = payment["status"]
        if status not in PAYMENT_TRANSITIONS.get(current, frozenset()):
            raise InvalidTransition("Payment", payment_id, current, status)

        released: list[dict[str, Any]] = []
        if status == PAYMENT_REFUNDED:
            released = sorted(
                get_allocations_for_payment(conn, payment_id),
                key=lambda allocation: allocation["reservation_id"],
            )
            for allocation in released:
                reservation = lock_reservation(conn, allocation["reservation_id"])
                _check_release(conn, payment_id, allocation, reservation)

        write_payment_status(conn, payment_id, status, processed_at or utc_now())

        reversed_count = 0
        day = entry_date or utc_now().date()
        for allocation in released:
            reversed_count += len(
                reverse_entries_for(
                    conn,
                    entries.SOURCE_ALLOCATION,
                    allocation["allocation_id"],
                    day,
                    memo=f"Payment {payment_id} refunded by gateway",
                )
            )
        payment = lock_payment(conn, payment_id)

    logger.info(
        "payment_status_updated",
        payment_id=payment_id,
        previous_status=current,
        status=status,
        reversing_entries=reversed_count,
    )
    return payment


def allocate(
    engine: Engine,
    payment_id: int,
    reservation_id: int,
    amount: Any,
    entry_date: Optional[date] = None,
) -> dict[str, Any]:
    """
    Apply part of a completed payment (or refund) to a reservation.

    For a receipt (positive payment) the amount reduces what the guest owes;
    once completed allocations cover the total, a pending reservation is
    confirmed in the same transaction. For a refund (negative payment) the
    amount is stored negative and may not exceed the net amount already
    allocated to the reservation.

    Args:
        engine: SQLAlchemy engine
        payment_id: Completed payment to draw from
        reservation_id: Reservation to apply to
        amount: Positive amount to apply
        entry_date: Ledger date (defaults to today, UTC)

    Returns:
        dict: allocation_id, payment_id, reservation_id, amount_applied,
            allocated_total and reservation_status after the allocation

    Raises:
        ValidationError: non-positive amount or currency mismatch
        Conflict: payment not completed, reservation cancelled (receipts),
            or the pair already has an allocation
        OverAllocation: amount exceeds what is owed or what the payment has left
    """
    value = require_positive(amount, "amount")
    day = entry_date or utc_now().date()
    kind = "receipt"

    try:
        with engine.begin() as conn:
            payment = lock_payment(conn, payment_id)
            reservation = lock_reservation(conn, reservation_id)
            is_refund = payment["amount"] < 0
            if is_refund:
                kind = "refund"

            if payment["status"] != PAYMENT_COMPLETED:
                raise Conflict(f"Payment {payment_id} is {payment['status']}, not completed")
            prop = get_property(conn, reservation["property_id"])
            if payment["currency"] != prop["currency"]:
                raise ValidationError(
                    f"Payment currency {payment['currency']} does not match "
                    f"property currency {prop['currency']}"
                )
            if allocation_exists(conn, payment_id, reservation_id):
                raise Conflict(
                    f"Payment {payment_id} is already allocated to reservation {reservation_id}"
                )

            remaining_on_payment = abs(payment["amount"]) - get_payment_allocated_total(
                conn, payment_id
            )
            if value > remaining_on_payment:
                raise OverAllocation(
                    f"Payment {payment_id} has insufficient unallocated funds",
                    value,
                    remaining_on_payment,
                )

            allocated = get_allocated_total(conn, reservation_id)
            if is_refund:
                if allocated <= 0:
                    raise OverAllocation(
                        f"Reservation {reservation_id} has no paid balance to refund",
                        value,
                        allocated,
                    )
                if value > allocated:
                    raise OverAllocation(
                        f"Refund exceeds amount paid on reservation {reservation_id}",
                        value,
                        allocated,
                    )
                applied = -value
            else:
                if reservation["status"] == CANCELLED:
                    raise Conflict(f"Reservation {reservation_id} is cancelled")
                owed = reservation["total_amount"] - allocated
                if value > owed:
                    raise OverAllocation(
                        f"Allocation exceeds amount owed on reservation {reservation_id}",
                        value,
                        owed,
                    )
                applied = value

            allocation_id = insert_allocation(conn, payment_id, reservation_id, applied)
            build = entries.refund_issued if is_refund else entries.payment_received
            post(
                conn,
                build(allocation_id, reservation_id, reservation["property_id"], day, value),
            )

            allocated_total = allocated + applied
            if (
                not is_refund
                and reservation["status"] == PENDING
                and allocated_total >= reservation["total_amount"]
            ):
                reservation = confirm_locked_reservation(conn, reservation, day)
            else:
                reservation = get_reservation(conn, reservation_id)
    except (OverAllocation, Conflict):
        allocations.labels(kind=kind, status="rejected").inc()
        logger.info(
            "payment_allocation_rejected",
            payment_id=payment_id,
            reservation_id=reservation_id,
            kind=kind,
        )
        raise

    allocations.labels(kind=kind, status="applied").inc()
    logger.info(
        "payment_allocated",
        allocation_id=allocation_id,
        payment_id=payment_id,
        reservation_id=reservation_id,
        kind=kind,
        amount=str(value),
        allocated_total=str(allocated_total),
        reservation_status=reservation["status"],
    )
    return {
        "allocation_id": allocation_id,
        "payment_id": payment_id,
        "reservation_id": reservation_id,
        "amount_applied": applied,
        "allocated_total": allocated_total,
        "reservation_status": reservation["status"],
    }
