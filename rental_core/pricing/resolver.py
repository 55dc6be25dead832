"""
Layered nightly price resolution.

Three layers are evaluated highest priority first, each returning a price or
None for "no match":

1. price override for the exact date
2. seasonal rate whose inclusive range covers the date
3. the property's base price

Overlapping seasonal rates are resolved deterministically: the most recently
created row (highest seasonal_price_id) wins. Rates without an id (built in
memory) fall back to the narrowest range, then the highest price.

Everything here is a pure function of the PricingPolicy snapshot, which the
booking engine loads once inside its transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Mapping, Optional, Sequence

from rental_core.errors import PolicyGap


@dataclass(frozen=True)
class SeasonalLayer:
    start_date: date
    end_date: date
    price: Decimal
    seasonal_price_id: Optional[int] = None

    def covers(self, stay_date: date) -> bool:
        return self.start_date <= stay_date <= self.end_date

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days


@dataclass(frozen=True)
class PricingPolicy:
    """Point-in-time view of every pricing layer for one property."""

    property_id: int
    base_price: Optional[Decimal]
    seasonal_rates: Sequence[SeasonalLayer] = ()
    overrides: Mapping[date, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceQuote:
    price: Decimal
    layer: str


PriceLayer = Callable[[PricingPolicy, date], Optional[Decimal]]


def override_layer(policy: PricingPolicy, stay_date: date) -> Optional[Decimal]:
    return policy.overrides.get(stay_date)


def _seasonal_precedence(rate: SeasonalLayer) -> tuple[bool, int, int, Decimal]:
    # Rows with an id always outrank in-memory ones; then creation order,
    # then narrowest range, then highest price.
    return (
        rate.seasonal_price_id is not None,
        rate.seasonal_price_id or 0,
        -rate.span_days,
        rate.price,
    )


def pick_seasonal_rate(
    rates: Sequence[SeasonalLayer], stay_date: date
) -> Optional[SeasonalLayer]:
    """Return the seasonal rate that applies on stay_date, or None."""
    matches = [rate for rate in rates if rate.covers(stay_date)]
    if not matches:
        return None
    return max(matches, key=_seasonal_precedence)


def seasonal_layer(policy: PricingPolicy, stay_date: date) -> Optional[Decimal]:
    rate = pick_seasonal_rate(policy.seasonal_rates, stay_date)
    return rate.price if rate else None


def base_layer(policy: PricingPolicy, stay_date: date) -> Optional[Decimal]:
    return policy.base_price


PRICE_LAYERS: tuple[tuple[str, PriceLayer], ...] = (
    ("override", override_layer),
    ("seasonal", seasonal_layer),
    ("base", base_layer),
)


def quote_nightly_price(policy: PricingPolicy, stay_date: date) -> PriceQuote:
    """
    Resolve the price for one night and report which layer supplied it.

    Raises:
        PolicyGap: if no layer yields a price (only possible without a base price)
    """
    for name, layer in PRICE_LAYERS:
        price = layer(policy, stay_date)
        if price is not None:
            return PriceQuote(price=price, layer=name)
    raise PolicyGap(f"No price resolves for property {policy.property_id} on {stay_date}")


def resolve_nightly_price(policy: PricingPolicy, stay_date: date) -> Decimal:
    return quote_nightly_price(policy, stay_date).price
