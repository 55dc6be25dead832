"""Append-only writes for journal entries and lines."""

from __future__ import annotations

from typing import Any

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from rental_core.models.ledger import JournalEntry, JournalLine


def insert_journal_entry(
    conn: Connection, header: dict[str, Any], lines: list[dict[str, Any]]
) -> int:
    """
    Insert a journal header and its lines in the caller's transaction.

    There is deliberately no update or delete counterpart: corrections are
    posted as reversing entries.

    Args:
        conn: Active database connection (within transaction)
        header: Column values for journal_entries
        lines: Column values for journal_lines (without journal_entry_id)

    Returns:
        int: The new journal_entry_id
    """
    result = conn.execute(insert(JournalEntry).values(**header))
    journal_entry_id = result.inserted_primary_key[0]

    conn.execute(
        insert(JournalLine),
        [{**line, "journal_entry_id": journal_entry_id} for line in lines],
    )
    return int(journal_entry_id)
