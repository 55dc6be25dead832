"""
Booking engine.

A reservation and all of its night snapshots are written in one transaction
while the property row is locked, so availability check, price/tax resolution
and inserts happen against a single consistent view and two bookings of the
same property never interleave.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from rental_core.db.locks import lock_property
from rental_core.db.readers.pricing import load_pricing_policy
from rental_core.db.readers.registry import user_exists
from rental_core.db.readers.reservations import find_overlapping_reservations, get_reservation
from rental_core.db.readers.tax import load_tax_rules
from rental_core.db.writers.reservations import (
    insert_reservation,
    insert_reservation_nights,
    update_reservation_totals,
)
from rental_core.errors import (
    Conflict,
    IntegrityViolation,
    NotFound,
    PolicyGap,
    ValidationError,
)
from rental_core.metrics import (
    booking_duration,
    booking_failures,
    reservations_created,
    tax_policy_gaps,
)
from rental_core.models.reservations import PENDING
from rental_core.pricing.resolver import PricingPolicy, quote_nightly_price
from rental_core.services._validation import require_date_order, require_non_negative
from rental_core.services.reservations import verify_reservation_totals
from rental_core.tax.resolver import TaxRuleSnapshot, quote_night_tax
from rental_core.utils.dates import iter_nights
from rental_core.utils.money import ZERO

logger = structlog.get_logger(__name__)


def snapshot_night(
    reservation_id: int,
    policy: PricingPolicy,
    tax_rules: list[TaxRuleSnapshot],
    stay_date: date,
    cleaning_fee: Decimal,
    service_fee: Decimal,
) -> dict[str, Any]:
    """
    Price and tax one night and return the row to freeze in reservation_nights.

    A night with no applicable tax rule is taxed at zero and reported as a
    policy gap rather than failing the booking.
    """
    price = quote_nightly_price(policy, stay_date)
    taxable_base = price.price + cleaning_fee + service_fee
    tax = quote_night_tax(tax_rules, stay_date, taxable_base)

    if tax.is_gap:
        tax_policy_gaps.inc()
        logger.warning(
            "tax_policy_gap",
            property_id=policy.property_id,
            stay_date=stay_date.isoformat(),
        )

    return {
        "reservation_id": reservation_id,
        "property_id": policy.property_id,
        "stay_date": stay_date,
        "nightly_price": price.price,
        "cleaning_fee": cleaning_fee,
        "service_fee": service_fee,
        "tax_rate_applied": tax.rate,
        "tax_amount": tax.amount,
    }


def _sum_nights(nights: list[dict[str, Any]]) -> tuple[Decimal, Decimal, Decimal]:
    subtotal = ZERO
    tax = ZERO
    for night in nights:
        subtotal += night["nightly_price"] + night["cleaning_fee"] + night["service_fee"]
        tax += night["tax_amount"]
    return subtotal, tax, subtotal + tax


def create_reservation(
    engine: Engine,
    property_id: int,
    guest_id: int,
    check_in: date,
    check_out: date,
    cleaning_fee: Any = 0,
    service_fee: Any = 0,
    guests: Optional[int] = None,
) -> dict[str, Any]:
    """
    Book a property for [check_in, check_out) and freeze its prices.

    Steps, all in one transaction:
        1. lock the property row and check no non-cancelled reservation overlaps
        2. insert the reservation header as pending
        3. resolve price and tax for every night and insert the snapshots
        4. store the header totals and verify them against the nights

    Args:
        engine: SQLAlchemy engine
        property_id: Property to book
        guest_id: Guest user making the booking
        check_in: First night (inclusive)
        check_out: Departure day (exclusive)
        cleaning_fee: Cleaning fee charged on every night
        service_fee: Service fee charged on every night
        guests: Party size, checked against the property's max_guests

    Returns:
        dict: The reservation header as stored

    Raises:
        ValidationError: bad dates, fees, party size, or unknown guest/property
        Conflict: the dates overlap an existing reservation
    """
    require_date_order(check_in, check_out, "check_in", "check_out", strict=True)
    cleaning = require_non_negative(cleaning_fee, "cleaning_fee")
    service = require_non_negative(service_fee, "service_fee")
    if guests is not None and (not isinstance(guests, int) or guests < 1):
        raise ValidationError(f"guests must be a positive integer, got {guests!r}")

    last_night = check_out - timedelta(days=1)
    log = logger.bind(
        property_id=property_id,
        guest_id=guest_id,
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
    )

    try:
        with booking_duration.time(), engine.begin() as conn:
            prop = lock_property(conn, property_id)
            if guests is not None and guests > prop["max_guests"]:
                raise ValidationError(
                    f"Property {property_id} sleeps {prop['max_guests']}, requested {guests}"
                )
            if not user_exists(conn, guest_id):
                raise NotFound("User", guest_id)

            overlapping = find_overlapping_reservations(conn, property_id, check_in, check_out)
            if overlapping:
                raise Conflict(
                    f"Property {property_id} is not available from {check_in} to {check_out} "
                    f"(overlaps reservation {overlapping[0]})"
                )

            reservation_id = insert_reservation(
                conn,
                {
                    "property_id": property_id,
                    "guest_id": guest_id,
                    "check_in": check_in,
                    "check_out": check_out,
                    "guests": guests,
                    "status": PENDING,
                },
            )

            policy = load_pricing_policy(conn, property_id, check_in, last_night)
            tax_rules = load_tax_rules(conn, prop["location_id"], check_in, last_night)
            nights = [
                snapshot_night(reservation_id, policy, tax_rules, night, cleaning, service)
                for night in iter_nights(check_in, check_out)
            ]
            insert_reservation_nights(conn, nights)

            subtotal, tax, total = _sum_nights(nights)
            update_reservation_totals(conn, reservation_id, subtotal, tax, total)
            verify_reservation_totals(conn, reservation_id)

            reservation = get_reservation(conn, reservation_id)
    except Conflict:
        booking_failures.labels(reason="conflict").inc()
        log.info("booking_conflict")
        raise
    except ValidationError:
        booking_failures.labels(reason="validation").inc()
        raise
    except PolicyGap:
        booking_failures.labels(reason="policy_gap").inc()
        log.error("booking_policy_gap")
        raise
    except IntegrityViolation:
        booking_failures.labels(reason="integrity").inc()
        raise

    reservations_created.inc()
    log.info(
        "reservation_created",
        reservation_id=reservation["reservation_id"],
        nights=len(nights),
        total_amount=str(reservation["total_amount"]),
    )
    return reservation
