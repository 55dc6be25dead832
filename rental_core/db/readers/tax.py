from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.engine import Connection

from rental_core.models.tax import TaxReturn, TaxRule
from rental_core.tax.resolver import TaxRuleSnapshot


def load_tax_rules(
    conn: Connection,
    location_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[TaxRuleSnapshot]:
    """
    Read the tax rules of a location, optionally only those in effect on
    some day of [start, end] (both inclusive).
    """
    stmt = select(TaxRule).where(TaxRule.location_id == location_id)
    if end is not None:
        stmt = stmt.where(TaxRule.effective_from <= end)
    if start is not None:
        stmt = stmt.where(or_(TaxRule.effective_to.is_(None), TaxRule.effective_to >= start))

    return [
        TaxRuleSnapshot(
            tax_name=row["tax_name"],
            effective_from=row["effective_from"],
            effective_to=row["effective_to"],
            rate=row["rate"],
            is_percentage=bool(row["is_percentage"]),
            tax_rule_id=row["tax_rule_id"],
        )
        for row in conn.execute(stmt.order_by(TaxRule.tax_rule_id)).mappings()
    ]


def tax_rule_exists(
    conn: Connection, location_id: int, tax_name: str, effective_from: date
) -> bool:
    return (
        conn.execute(
            select(TaxRule.tax_rule_id)
            .where(TaxRule.location_id == location_id)
            .where(TaxRule.tax_name == tax_name)
            .where(TaxRule.effective_from == effective_from)
        ).fetchone()
        is not None
    )


def get_tax_return(
    conn: Connection, tax_return_id: int, for_update: bool = False
) -> Optional[dict[str, Any]]:
    stmt = select(TaxReturn).where(TaxReturn.tax_return_id == tax_return_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None
