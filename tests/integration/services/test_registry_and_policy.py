"""
Integration tests for the property registry and the pricing and tax policy services.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.engine import Engine

from rental_core.db.readers.registry import get_property, get_property_amenities
from rental_core.errors import Conflict, NotFound, ValidationError
from rental_core.services.pricing import (
    add_seasonal_rate,
    quote_price,
    remove_price_override,
    remove_seasonal_rate,
    resolve_price,
    set_price_override,
)
from rental_core.services.registry import (
    add_amenity_to_property,
    change_base_price,
    create_amenity,
    create_location,
    create_property,
    create_user,
)
from rental_core.services.tax import add_tax_rule, quote_tax, resolve_named_tax, resolve_tax


@pytest.mark.integration
def test_removing_layers_falls_back_in_order(db_engine: Engine, property_id: int) -> None:
    """200 with an override, 150 once it is removed, 100 once the season is removed too."""
    night = date(2026, 7, 5)
    seasonal_id = add_seasonal_rate(
        db_engine, property_id, date(2026, 7, 1), date(2026, 7, 10), "150.00"
    )
    set_price_override(db_engine, property_id, night, "200.00")

    assert resolve_price(db_engine, property_id, night) == Decimal("200.00")
    assert remove_price_override(db_engine, property_id, night) is True
    assert resolve_price(db_engine, property_id, night) == Decimal("150.00")
    assert remove_seasonal_rate(db_engine, seasonal_id) is True
    assert quote_price(db_engine, property_id, night).layer == "base"
    assert resolve_price(db_engine, property_id, night) == Decimal("100.00")


@pytest.mark.integration
def test_overlapping_seasons_resolve_to_newest(db_engine: Engine, property_id: int) -> None:
    add_seasonal_rate(db_engine, property_id, date(2026, 12, 1), date(2026, 12, 31), "180.00")
    add_seasonal_rate(db_engine, property_id, date(2026, 12, 20), date(2027, 1, 5), "240.00")

    assert resolve_price(db_engine, property_id, date(2026, 12, 10)) == Decimal("180.00")
    assert resolve_price(db_engine, property_id, date(2026, 12, 24)) == Decimal("240.00")
    assert resolve_price(db_engine, property_id, date(2027, 1, 6)) == Decimal("100.00")


@pytest.mark.integration
def test_second_override_for_same_night_conflicts(db_engine: Engine, property_id: int) -> None:
    set_price_override(db_engine, property_id, date(2026, 7, 5), "200.00")

    with pytest.raises(Conflict):
        set_price_override(db_engine, property_id, date(2026, 7, 5), "210.00")


@pytest.mark.integration
def test_seasonal_rate_validation(db_engine: Engine, property_id: int) -> None:
    with pytest.raises(ValidationError):
        add_seasonal_rate(db_engine, property_id, date(2026, 7, 10), date(2026, 7, 1), "150.00")
    with pytest.raises(ValidationError):
        add_seasonal_rate(db_engine, property_id, date(2026, 7, 1), date(2026, 7, 10), "-1")
    with pytest.raises(NotFound):
        add_seasonal_rate(db_engine, 9999, date(2026, 7, 1), date(2026, 7, 10), "150.00")


@pytest.mark.integration
def test_change_base_price(db_engine: Engine, property_id: int) -> None:
    assert change_base_price(db_engine, property_id, "300") == Decimal("300.00")
    with db_engine.connect() as conn:
        assert get_property(conn, property_id)["base_price_per_night"] == Decimal("300.00")

    with pytest.raises(ValidationError):
        change_base_price(db_engine, property_id, "0")


@pytest.mark.integration
def test_duplicate_email_conflicts(db_engine: Engine, host_id: int) -> None:
    with pytest.raises(Conflict, match="host@example.com"):
        create_user(db_engine, "Other", "HOST@example.com", "x" * 60)


@pytest.mark.integration
def test_location_is_get_or_create(db_engine: Engine, location_id: int) -> None:
    again = create_location(db_engine, country="US", region="CA", city="San Diego")
    other = create_location(
        db_engine, country="US", region="CA", city="San Diego", neighborhood="La Jolla"
    )

    assert again == location_id
    assert other != location_id


@pytest.mark.integration
def test_property_validation(db_engine: Engine, host_id: int, location_id: int) -> None:
    with pytest.raises(ValidationError, match="max_guests"):
        create_property(db_engine, host_id, location_id, "Loft", 0, "90.00")
    with pytest.raises(ValidationError, match="base_price_per_night"):
        create_property(db_engine, host_id, location_id, "Loft", 2, "0")
    with pytest.raises(NotFound, match="Location"):
        create_property(db_engine, host_id, 9999, "Loft", 2, "90.00")


@pytest.mark.integration
def test_amenities_attach_once(db_engine: Engine, property_id: int) -> None:
    wifi = create_amenity(db_engine, "WiFi")
    pool = create_amenity(db_engine, "Pool", icon="pool")

    assert add_amenity_to_property(db_engine, property_id, wifi) is True
    assert add_amenity_to_property(db_engine, property_id, wifi) is False
    add_amenity_to_property(db_engine, property_id, pool)

    with db_engine.connect() as conn:
        assert get_property_amenities(conn, property_id) == ["Pool", "WiFi"]
    with pytest.raises(Conflict):
        create_amenity(db_engine, "WiFi")


@pytest.mark.integration
def test_tax_rule_successor_takes_over_on_its_start_date(
    db_engine: Engine, location_id: int
) -> None:
    add_tax_rule(
        db_engine, location_id, "VAT", date(2024, 1, 1), "0.10", effective_to=date(2024, 6, 30)
    )
    add_tax_rule(db_engine, location_id, "VAT", date(2024, 7, 1), "0.12")

    june = resolve_named_tax(db_engine, location_id, date(2024, 6, 30), "VAT")
    july = resolve_named_tax(db_engine, location_id, date(2024, 7, 1), "VAT")

    assert june is not None and june.rate == Decimal("0.1000")
    assert july is not None and july.rate == Decimal("0.1200")


@pytest.mark.integration
def test_multiple_named_taxes_are_summed(db_engine: Engine, location_id: int) -> None:
    add_tax_rule(db_engine, location_id, "Occupancy", date(2024, 1, 1), "0.08")
    add_tax_rule(db_engine, location_id, "City levy", date(2024, 1, 1), "3.00", is_percentage=False)

    rules = resolve_tax(db_engine, location_id, date(2024, 3, 1))
    quote = quote_tax(db_engine, location_id, date(2024, 3, 1), "150.00")

    assert [r.tax_name for r in rules] == ["City levy", "Occupancy"]
    assert quote.amount == Decimal("15.00")


@pytest.mark.integration
def test_tax_rule_validation(db_engine: Engine, location_id: int) -> None:
    add_tax_rule(db_engine, location_id, "VAT", date(2024, 1, 1), "0.10")

    with pytest.raises(Conflict):
        add_tax_rule(db_engine, location_id, "VAT", date(2024, 1, 1), "0.11")
    with pytest.raises(ValidationError):
        add_tax_rule(db_engine, location_id, "VAT", date(2024, 2, 1), "-0.01")
    with pytest.raises(ValidationError):
        add_tax_rule(
            db_engine,
            location_id,
            "VAT",
            date(2024, 3, 1),
            "0.10",
            effective_to=date(2024, 2, 1),
        )


@pytest.mark.integration
def test_no_rule_resolves_to_empty_gap(db_engine: Engine, location_id: int) -> None:
    assert resolve_tax(db_engine, location_id, date(2024, 3, 1)) == []
    assert resolve_named_tax(db_engine, location_id, date(2024, 3, 1), "VAT") is None
