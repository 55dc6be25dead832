"""
Shared fixtures.

Integration tests run against a fresh in-memory SQLite database per test.
StaticPool keeps a single connection so every engine.begin() inside the
services sees the same database.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")

from decimal import Decimal
from typing import Any, Callable, Generator

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from rental_core.ledger.accounts import seed_chart_of_accounts
from rental_core.models.base import Base
from rental_core.models.expenses import Expense  # noqa: F401
from rental_core.models.ledger import Account, JournalEntry, JournalLine  # noqa: F401
from rental_core.models.locations import Location  # noqa: F401
from rental_core.models.payments import Payment, PaymentAllocation  # noqa: F401
from rental_core.models.pricing import PriceOverride, SeasonalRate  # noqa: F401
from rental_core.models.properties import Amenity, Property, PropertyAmenity  # noqa: F401
from rental_core.models.reservations import Reservation, ReservationNight  # noqa: F401
from rental_core.models.search_logs import SearchLog  # noqa: F401
from rental_core.models.tax import TaxReturn, TaxRule  # noqa: F401
from rental_core.models.users import User  # noqa: F401
from rental_core.services.registry import create_location, create_property, create_user


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _drop_schema(engine: Engine) -> None:
    """Drop every table with foreign keys off; reversal entries reference their originals."""
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.commit()
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """In-memory database with the full schema and the default chart of accounts."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    event.listen(test_engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=test_engine)
    with test_engine.begin() as conn:
        seed_chart_of_accounts(conn)

    yield test_engine

    _drop_schema(test_engine)
    test_engine.dispose()


@pytest.fixture
def drop_schema() -> Callable[[Engine], None]:
    return _drop_schema


@pytest.fixture
def host_id(db_engine: Engine) -> int:
    return create_user(db_engine, "Hana Host", "host@example.com", "x" * 60, user_type="host")


@pytest.fixture
def guest_factory(db_engine: Engine) -> Callable[..., int]:
    counter = iter(range(1, 1000))

    def make_guest(name: str = "Gus Guest") -> int:
        return create_user(db_engine, name, f"guest{next(counter)}@example.com", "x" * 60)

    return make_guest


@pytest.fixture
def guest_id(guest_factory: Callable[..., int]) -> int:
    return guest_factory()


@pytest.fixture
def location_id(db_engine: Engine) -> int:
    return create_location(db_engine, country="US", region="CA", city="San Diego")


@pytest.fixture
def property_id(db_engine: Engine, host_id: int, location_id: int) -> int:
    """Property with a base price of 100.00 USD sleeping four."""
    return create_property(
        db_engine,
        host_id=host_id,
        location_id=location_id,
        title="Seaside Cottage",
        max_guests=4,
        base_price_per_night=Decimal("100.00"),
    )


@pytest.fixture
def metric_value() -> Callable[..., float]:
    """Read the current value of a Prometheus sample (0.0 when never set)."""

    def read(name: str, **labels: str) -> float:
        value = REGISTRY.get_sample_value(name, labels or None)
        return value or 0.0

    return read
