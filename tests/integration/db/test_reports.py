"""
Integration tests for the read-only reporting projections.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable

import pytest
from sqlalchemy.engine import Engine

from rental_core.db.readers.reports import (
    property_expense,
    property_pnl,
    property_revenue,
    top_booked_properties,
    top_searched_properties,
)
from rental_core.errors import NotFound, ValidationError
from rental_core.services.booking import create_reservation
from rental_core.services.expenses import record_expense
from rental_core.services.payments import allocate, record_payment
from rental_core.services.registry import create_property
from rental_core.services.search import record_search
from rental_core.services.tax import add_tax_rule


@pytest.fixture
def second_property_id(db_engine: Engine, host_id: int, location_id: int) -> int:
    return create_property(db_engine, host_id, location_id, "City Studio", 2, "80.00")


@pytest.fixture
def book_and_pay(db_engine: Engine, guest_id: int) -> Callable[..., dict[str, Any]]:
    """Create a reservation and, unless told otherwise, pay it in full so it confirms."""

    def make(
        property_id: int, check_in: date, check_out: date, paid: bool = True
    ) -> dict[str, Any]:
        reservation = create_reservation(db_engine, property_id, guest_id, check_in, check_out)
        if paid:
            payment_id = record_payment(
                db_engine, guest_id, "credit_card", reservation["total_amount"], status="completed"
            )
            allocate(
                db_engine, payment_id, reservation["reservation_id"], reservation["total_amount"]
            )
        return reservation

    return make


@pytest.mark.integration
def test_revenue_counts_only_booked_nights_by_month(
    db_engine: Engine,
    property_id: int,
    location_id: int,
    book_and_pay: Callable[..., dict[str, Any]],
) -> None:
    """A stay across a month end is split by night; unpaid bookings are excluded."""
    add_tax_rule(db_engine, location_id, "Occupancy", date(2026, 1, 1), "0.10")
    book_and_pay(property_id, date(2026, 7, 30), date(2026, 8, 2))
    book_and_pay(property_id, date(2026, 8, 10), date(2026, 8, 12), paid=False)

    with db_engine.connect() as conn:
        rows = property_revenue(conn)

    assert rows == [
        {
            "property_id": property_id,
            "month": date(2026, 7, 1),
            "revenue_excl_tax": Decimal("200.00"),
            "tax_collected": Decimal("20.00"),
            "revenue_incl_tax": Decimal("220.00"),
        },
        {
            "property_id": property_id,
            "month": date(2026, 8, 1),
            "revenue_excl_tax": Decimal("100.00"),
            "tax_collected": Decimal("10.00"),
            "revenue_incl_tax": Decimal("110.00"),
        },
    ]


@pytest.mark.integration
def test_revenue_groups_by_property_and_calendar_month_across_years(
    db_engine: Engine,
    property_id: int,
    second_property_id: int,
    book_and_pay: Callable[..., dict[str, Any]],
) -> None:
    book_and_pay(second_property_id, date(2026, 12, 20), date(2026, 12, 22))
    book_and_pay(property_id, date(2026, 12, 31), date(2027, 1, 2))
    book_and_pay(second_property_id, date(2027, 12, 1), date(2027, 12, 2))

    with db_engine.connect() as conn:
        rows = property_revenue(conn)
        second_only = property_revenue(conn, second_property_id)

    assert [(r["property_id"], r["month"], r["revenue_excl_tax"]) for r in rows] == [
        (property_id, date(2026, 12, 1), Decimal("100.00")),
        (property_id, date(2027, 1, 1), Decimal("100.00")),
        (second_property_id, date(2026, 12, 1), Decimal("160.00")),
        (second_property_id, date(2027, 12, 1), Decimal("80.00")),
    ]
    assert [r["month"] for r in second_only] == [date(2026, 12, 1), date(2027, 12, 1)]


@pytest.mark.integration
def test_pnl_joins_expenses_onto_revenue_months(
    db_engine: Engine,
    property_id: int,
    book_and_pay: Callable[..., dict[str, Any]],
) -> None:
    book_and_pay(property_id, date(2026, 7, 1), date(2026, 7, 4))
    record_expense(db_engine, property_id, "cleaning", date(2026, 7, 4), "45.00")
    record_expense(db_engine, property_id, "supplies", date(2026, 7, 20), "15.00")
    record_expense(db_engine, property_id, "maintenance", date(2026, 9, 2), "200.00")

    with db_engine.connect() as conn:
        expenses = property_expense(conn, property_id)
        pnl = property_pnl(conn, property_id)

    assert [(row["month"], row["total_expense"]) for row in expenses] == [
        (date(2026, 7, 1), Decimal("60.00")),
        (date(2026, 9, 1), Decimal("200.00")),
    ]
    assert pnl == [
        {
            "property_id": property_id,
            "month": date(2026, 7, 1),
            "revenue_excl_tax": Decimal("300.00"),
            "tax_collected": Decimal("0.00"),
            "total_expense": Decimal("60.00"),
            "profit_before_tax": Decimal("240.00"),
        }
    ]


@pytest.mark.integration
def test_top_booked_ranks_by_nights_in_window(
    db_engine: Engine,
    property_id: int,
    second_property_id: int,
    book_and_pay: Callable[..., dict[str, Any]],
) -> None:
    book_and_pay(property_id, date(2026, 9, 1), date(2026, 9, 3))
    book_and_pay(second_property_id, date(2026, 9, 5), date(2026, 9, 10))
    book_and_pay(property_id, date(2026, 1, 5), date(2026, 1, 20))

    with db_engine.connect() as conn:
        ranking = top_booked_properties(conn, as_of=date(2026, 9, 30), days=90)

    assert ranking == [
        {"property_id": second_property_id, "nights_booked": 5},
        {"property_id": property_id, "nights_booked": 2},
    ]


@pytest.mark.integration
def test_top_searched_ranks_by_clicks_in_window(
    db_engine: Engine, property_id: int, second_property_id: int, guest_id: int
) -> None:
    def at(day: int, month: int = 9) -> datetime:
        return datetime(2026, month, day, 12, 0, tzinfo=timezone.utc)

    record_search(
        db_engine, guest_id, city="San Diego", clicked_property_id=property_id, searched_at=at(1)
    )
    for day in (2, 3):
        record_search(
            db_engine, city="San Diego", clicked_property_id=second_property_id, searched_at=at(day)
        )
    record_search(db_engine, city="San Diego", searched_at=at(4))
    record_search(db_engine, clicked_property_id=property_id, searched_at=at(1, month=1))

    with db_engine.connect() as conn:
        ranking = top_searched_properties(conn, as_of=date(2026, 9, 30), days=90)

    assert ranking == [
        {"property_id": second_property_id, "clicks": 2},
        {"property_id": property_id, "clicks": 1},
    ]


@pytest.mark.integration
def test_record_search_validation(db_engine: Engine) -> None:
    with pytest.raises(ValidationError):
        record_search(db_engine, check_in=date(2026, 7, 3), check_out=date(2026, 7, 1))
    with pytest.raises(NotFound):
        record_search(db_engine, user_id=9999)


@pytest.mark.integration
def test_window_must_be_positive(db_engine: Engine) -> None:
    with db_engine.connect() as conn:
        with pytest.raises(ValidationError):
            top_booked_properties(conn, as_of=date(2026, 9, 30), days=0)
