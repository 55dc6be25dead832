"""
Temporal tax rule lookup and per-night tax computation.

A rule is in effect on a date when effective_from <= date and effective_to is
NULL or >= date. When several rules with the same tax name are in effect, the
one with the latest effective_from wins. Distinct tax names all apply and are
summed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from rental_core.errors import IntegrityViolation
from rental_core.utils.money import quantize_effective_rate, quantize_money


@dataclass(frozen=True)
class TaxRuleSnapshot:
    tax_name: str
    effective_from: date
    effective_to: Optional[date]
    rate: Decimal
    is_percentage: bool = True
    tax_rule_id: Optional[int] = None

    def in_effect(self, stay_date: date) -> bool:
        if self.effective_from > stay_date:
            return False
        return self.effective_to is None or self.effective_to >= stay_date


@dataclass(frozen=True)
class TaxComponent:
    tax_name: str
    rate: Decimal
    is_percentage: bool
    amount: Decimal


@dataclass(frozen=True)
class TaxQuote:
    """
    Tax for one night.

    rate is the effective combined rate frozen on the reservation night next
    to the amount; see effective_rate().
    """

    rate: Decimal
    amount: Decimal
    components: tuple[TaxComponent, ...] = ()

    @property
    def is_gap(self) -> bool:
        return not self.components


def applicable_tax_rules(
    rules: Iterable[TaxRuleSnapshot], stay_date: date
) -> list[TaxRuleSnapshot]:
    """Return the winning rule per tax name for stay_date, sorted by name."""
    winners: dict[str, TaxRuleSnapshot] = {}
    for rule in rules:
        if not rule.in_effect(stay_date):
            continue
        current = winners.get(rule.tax_name)
        if current is None or rule.effective_from > current.effective_from:
            winners[rule.tax_name] = rule
    return [winners[name] for name in sorted(winners)]


def effective_rate(
    components: Iterable[TaxComponent], taxable_base: Decimal, amount: Decimal
) -> Decimal:
    """
    Single combined rate frozen on a night next to its tax amount.

    With only percentage rules this is the exact sum of their rates, so
    quantize_money(taxable_base * rate) equals the amount. Flat rules have no
    percentage of their own; the rate is then amount / taxable_base, kept to
    twelve decimals, which still rounds back to the amount.

    Raises:
        IntegrityViolation: if the chosen rate does not reproduce the amount
    """
    components = list(components)
    if all(c.is_percentage for c in components):
        return sum((c.rate for c in components), Decimal("0"))
    if taxable_base <= 0:
        # A flat levy on a free night: no rate can reproduce it.
        return Decimal("0")

    rate = quantize_effective_rate(amount / taxable_base)
    if quantize_money(taxable_base * rate) != amount:
        raise IntegrityViolation(
            f"Effective tax rate {rate} does not reproduce {amount} on {taxable_base}"
        )
    return rate


def quote_night_tax(
    rules: Iterable[TaxRuleSnapshot], stay_date: date, taxable_base: Decimal
) -> TaxQuote:
    """
    Compute the tax owed for a night.

    Percentage rules apply to taxable_base (nightly price plus fees); flat
    rules add their rate as an absolute amount.
    """
    components = []
    raw_total = Decimal("0")
    for rule in applicable_tax_rules(rules, stay_date):
        raw = taxable_base * rule.rate if rule.is_percentage else rule.rate
        raw_total += raw
        components.append(
            TaxComponent(
                tax_name=rule.tax_name,
                rate=rule.rate,
                is_percentage=rule.is_percentage,
                amount=quantize_money(raw),
            )
        )

    amount = quantize_money(raw_total)
    rate = effective_rate(components, taxable_base, amount)
    return TaxQuote(rate=rate, amount=amount, components=tuple(components))
