from typing import Any

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from rental_core.models.search_logs import SearchLog


def insert_search_log(conn: Connection, row: dict[str, Any]) -> int:
    result = conn.execute(insert(SearchLog).values(**row))
    return int(result.inserted_primary_key[0])
