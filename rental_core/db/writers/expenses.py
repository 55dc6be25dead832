from typing import Any

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from rental_core.models.expenses import Expense


def insert_expense(conn: Connection, row: dict[str, Any]) -> int:
    result = conn.execute(insert(Expense).values(**row))
    return int(result.inserted_primary_key[0])
