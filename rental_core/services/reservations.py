"""
Reservation state machine.

    pending   --(payment sufficient)-->  confirmed
    pending   --(cancel)-------------->  cancelled
    confirmed --(cancel)-------------->  cancelled
    confirmed --(check-out reached)--->  completed

Confirmation recognizes revenue in the ledger; cancellation reverses it with
compensating entries. Night snapshots are never deleted.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from rental_core.db.locks import lock_reservation
from rental_core.db.readers.reservations import (
    get_allocated_total,
    get_night_totals,
    get_reservation,
    get_reservations_due_for_completion,
)
from rental_core.db.writers.reservations import update_reservation_status
from rental_core.errors import Conflict, IntegrityViolation, InvalidTransition, NotFound
from rental_core.ledger import entries
from rental_core.ledger.poster import post, reverse_entries_for
from rental_core.metrics import integrity_violations, reservation_transitions
from rental_core.models.reservations import CANCELLED, COMPLETED, CONFIRMED, PENDING
from rental_core.utils.dates import utc_now

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({CANCELLED, COMPLETED}),
    CANCELLED: frozenset(),
    COMPLETED: frozenset(),
}


def _today() -> date:
    return utc_now().date()


def _transition(conn: Connection, reservation: dict[str, Any], target: str) -> None:
    current = reservation["status"]
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition("Reservation", reservation["reservation_id"], current, target)
    update_reservation_status(conn, reservation["reservation_id"], target)
    reservation_transitions.labels(status=target).inc()


def verify_reservation_totals(conn: Connection, reservation_id: int) -> None:
    """
    Check that the cached header totals equal the sum of the night snapshots.

    Raises:
        IntegrityViolation: on any difference, to the cent
    """
    reservation = get_reservation(conn, reservation_id)
    totals = get_night_totals(conn, reservation_id)
    cached = (
        reservation["subtotal_amount"],
        reservation["tax_amount"],
        reservation["total_amount"],
    )
    derived = (totals["subtotal"], totals["tax"], totals["total"])
    if cached != derived:
        integrity_violations.labels(check="reservation_totals").inc()
        logger.critical(
            "reservation_totals_drift",
            reservation_id=reservation_id,
            cached=[str(v) for v in cached],
            derived=[str(v) for v in derived],
        )
        raise IntegrityViolation(
            f"Reservation {reservation_id} totals {cached} differ from nights {derived}"
        )


def confirm_locked_reservation(
    conn: Connection, reservation: dict[str, Any], entry_date: date
) -> dict[str, Any]:
    """
    Confirm a reservation the caller already holds a row lock on, and post
    the revenue entry. Used by the payment allocator in its own transaction.
    """
    reservation_id = reservation["reservation_id"]
    _transition(conn, reservation, CONFIRMED)

    totals = get_night_totals(conn, reservation_id)
    event = entries.booking_confirmed(
        reservation_id=reservation_id,
        property_id=reservation["property_id"],
        entry_date=entry_date,
        rental_amount=totals["rental"],
        fee_amount=totals["fees"],
        tax_amount=totals["tax"],
    )
    if event.lines:
        post(conn, event)

    logger.info("reservation_confirmed", reservation_id=reservation_id)
    return get_reservation(conn, reservation_id)


def confirm_reservation(
    engine: Engine, reservation_id: int, entry_date: Optional[date] = None
) -> dict[str, Any]:
    """
    Confirm a pending reservation whose allocations already cover its total.

    Raises:
        InvalidTransition: if the reservation is not pending
        Conflict: if completed payments do not cover the total yet
    """
    with engine.begin() as conn:
        reservation = lock_reservation(conn, reservation_id)
        if reservation["status"] != PENDING:
            raise InvalidTransition("Reservation", reservation_id, reservation["status"], CONFIRMED)
        allocated = get_allocated_total(conn, reservation_id)
        if allocated < reservation["total_amount"]:
            raise Conflict(
                f"Reservation {reservation_id} is not fully paid "
                f"({allocated} of {reservation['total_amount']})"
            )
        return confirm_locked_reservation(conn, reservation, entry_date or _today())


def cancel_reservation(
    engine: Engine, reservation_id: int, cancelled_on: Optional[date] = None
) -> dict[str, Any]:
    """
    Cancel a pending or confirmed reservation.

    Nights stay in place for the audit trail and stop blocking availability.
    Revenue posted at confirmation is reversed; payments already applied stay
    on the books until refunded through a refund allocation.

    Returns:
        dict: The updated reservation

    Raises:
        NotFound: unknown reservation
        InvalidTransition: reservation already cancelled or completed
    """
    entry_date = cancelled_on or _today()
    with engine.begin() as conn:
        reservation = lock_reservation(conn, reservation_id)
        _transition(conn, reservation, CANCELLED)
        reversals = reverse_entries_for(
            conn,
            entries.SOURCE_RESERVATION,
            reservation_id,
            entry_date,
            memo=f"Reservation {reservation_id} cancelled",
        )
        updated = get_reservation(conn, reservation_id)

    logger.info(
        "reservation_cancelled",
        reservation_id=reservation_id,
        previous_status=reservation["status"],
        reversing_entries=len(reversals),
    )
    return updated


def complete_reservation(
    engine: Engine, reservation_id: int, as_of: Optional[date] = None
) -> dict[str, Any]:
    """
    Mark a confirmed reservation completed once its check-out day is reached.

    Raises:
        InvalidTransition: reservation not confirmed
        Conflict: check-out still in the future
    """
    today = as_of or _today()
    with engine.begin() as conn:
        reservation = lock_reservation(conn, reservation_id)
        if reservation["status"] == CONFIRMED and reservation["check_out"] > today:
            raise Conflict(
                f"Reservation {reservation_id} checks out on {reservation['check_out']}"
            )
        _transition(conn, reservation, COMPLETED)
        updated = get_reservation(conn, reservation_id)

    logger.info("reservation_completed", reservation_id=reservation_id)
    return updated


def complete_due_reservations(engine: Engine, as_of: Optional[date] = None) -> list[int]:
    """
    Complete every confirmed reservation whose check-out day has been reached.

    Each reservation is completed in its own transaction; one that changed
    state concurrently (e.g. was cancelled) is skipped.

    Returns:
        list[int]: Ids of the reservations completed
    """
    today = as_of or _today()
    with engine.connect() as conn:
        candidates = get_reservations_due_for_completion(conn, today)

    completed = []
    for reservation_id in candidates:
        try:
            complete_reservation(engine, reservation_id, today)
        except (InvalidTransition, NotFound):
            logger.info("reservation_completion_skipped", reservation_id=reservation_id)
            continue
        completed.append(reservation_id)

    logger.info("due_reservations_completed", as_of=today.isoformat(), count=len(completed))
    return completed
