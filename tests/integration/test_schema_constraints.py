"""
Integration tests for schema-level constraints and delete cascades.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import pytest
from sqlalchemy import delete, func, insert, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from rental_core.ledger import entries
from rental_core.ledger.poster import reverse_entries_for
from rental_core.models.pricing import PriceOverride, SeasonalRate
from rental_core.models.properties import Property, PropertyAmenity
from rental_core.models.reservations import Reservation, ReservationNight
from rental_core.models.search_logs import SearchLog
from rental_core.models.users import User
from rental_core.services.booking import create_reservation
from rental_core.services.expenses import record_expense
from rental_core.services.pricing import add_seasonal_rate, set_price_override
from rental_core.services.registry import add_amenity_to_property, create_amenity
from rental_core.services.search import record_search


def _count(engine: Engine, model: type) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.mark.integration
def test_deleting_property_cascades_to_pricing_links_and_bookings(
    db_engine: Engine, property_id: int, guest_id: int
) -> None:
    add_seasonal_rate(db_engine, property_id, date(2026, 7, 1), date(2026, 7, 10), "150.00")
    set_price_override(db_engine, property_id, date(2026, 7, 5), "200.00")
    add_amenity_to_property(db_engine, property_id, create_amenity(db_engine, "WiFi"))
    create_reservation(db_engine, property_id, guest_id, date(2026, 7, 4), date(2026, 7, 7))

    with db_engine.begin() as conn:
        conn.execute(delete(Property).where(Property.property_id == property_id))

    for model in (SeasonalRate, PriceOverride, PropertyAmenity, Reservation, ReservationNight):
        assert _count(db_engine, model) == 0, model.__tablename__


@pytest.mark.integration
def test_deleting_user_nulls_search_log_actor(db_engine: Engine, guest_id: int) -> None:
    search_id = record_search(db_engine, guest_id, city="San Diego")

    with db_engine.begin() as conn:
        conn.execute(delete(User).where(User.user_id == guest_id))

    with db_engine.connect() as conn:
        row = conn.execute(select(SearchLog).where(SearchLog.search_id == search_id)).one()
    assert row.user_id is None


@pytest.mark.integration
def test_reservation_night_is_unique_per_date(
    db_engine: Engine, property_id: int, guest_id: int
) -> None:
    reservation = create_reservation(
        db_engine, property_id, guest_id, date(2026, 7, 4), date(2026, 7, 5)
    )

    with pytest.raises(IntegrityError):
        with db_engine.begin() as conn:
            conn.execute(
                insert(ReservationNight).values(
                    reservation_id=reservation["reservation_id"],
                    property_id=property_id,
                    stay_date=date(2026, 7, 4),
                    nightly_price=100,
                )
            )


@pytest.mark.integration
def test_check_out_must_follow_check_in(
    db_engine: Engine, property_id: int, guest_id: int
) -> None:
    with pytest.raises(IntegrityError):
        with db_engine.begin() as conn:
            conn.execute(
                insert(Reservation).values(
                    property_id=property_id,
                    guest_id=guest_id,
                    check_in=date(2026, 7, 5),
                    check_out=date(2026, 7, 5),
                )
            )


@pytest.mark.integration
def test_schema_drops_cleanly_after_reversing_entries(
    db_engine: Engine, property_id: int, drop_schema: Callable[[Engine], None]
) -> None:
    """A reversal references its original entry; tearing the schema down must still work."""
    expense_id = record_expense(db_engine, property_id, "cleaning", date(2026, 7, 3), "80.00")
    with db_engine.begin() as conn:
        [reversal] = reverse_entries_for(conn, entries.SOURCE_EXPENSE, expense_id, date(2026, 7, 4))
    assert reversal.journal_entry_id is not None

    drop_schema(db_engine)

    assert inspect(db_engine).get_table_names() == []
