from datetime import date
from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from rental_core.db.writers._unique import unique_or_conflict
from rental_core.models.tax import TaxReturn, TaxRule


def insert_tax_rule(conn: Connection, row: dict[str, Any]) -> int:
    with unique_or_conflict(
        f"Tax rule {row.get('tax_name')!r} effective {row.get('effective_from')} already exists"
    ):
        result = conn.execute(insert(TaxRule).values(**row))
    return int(result.inserted_primary_key[0])


def insert_tax_return(conn: Connection, row: dict[str, Any]) -> int:
    result = conn.execute(insert(TaxReturn).values(**row))
    return int(result.inserted_primary_key[0])


def set_tax_return_paid(conn: Connection, tax_return_id: int, paid_on: date) -> None:
    """
    Record the payment date of a filed return.

    This is the only column of tax_returns that changes after filing.
    """
    conn.execute(
        update(TaxReturn)
        .where(TaxReturn.tax_return_id == tax_return_id)
        .where(TaxReturn.paid_on.is_(None))
        .values(paid_on=paid_on)
    )
