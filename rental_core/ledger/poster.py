"""
Ledger poster: turns LedgerEvents into stored journal entries.

Posting runs inside the caller's transaction so the entry commits or rolls
back together with the business record that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import structlog
from sqlalchemy.engine import Connection

from rental_core.db.readers.ledger import (
    get_account_ids,
    get_entry_lines,
    get_unreversed_entries,
)
from rental_core.db.writers.ledger import insert_journal_entry
from rental_core.errors import IntegrityViolation
from rental_core.ledger.entries import LedgerEvent, LineSpec, check_balanced, reversal_of
from rental_core.metrics import integrity_violations, journal_entries_posted

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PostedEntry:
    journal_entry_id: int
    event: LedgerEvent


def _escalate(event: LedgerEvent, error: IntegrityViolation) -> None:
    integrity_violations.labels(check="journal_balance").inc()
    logger.critical(
        "ledger_integrity_violation",
        event_type=event.event_type,
        source_type=event.source_type,
        source_id=event.source_id,
        error=str(error),
    )


def post(conn: Connection, event: LedgerEvent) -> PostedEntry:
    """
    Store one balanced journal entry for a ledger event.

    Args:
        conn: Active database connection (within transaction)
        event: Event with its lines already built

    Returns:
        PostedEntry: The stored entry id and the event it came from

    Raises:
        IntegrityViolation: if the lines do not balance or reference an
            unknown account. The caller's transaction must abort.
    """
    try:
        check_balanced(event.lines)
        account_ids = get_account_ids(conn, (line.account_code for line in event.lines))
        missing = {line.account_code for line in event.lines} - account_ids.keys()
        if missing:
            raise IntegrityViolation(f"Unknown or inactive accounts: {sorted(missing)}")
    except IntegrityViolation as e:
        _escalate(event, e)
        raise

    journal_entry_id = insert_journal_entry(
        conn,
        header={
            "entry_date": event.entry_date,
            "memo": event.memo,
            "event_type": event.event_type,
            "source_type": event.source_type,
            "source_id": event.source_id,
            "reverses_entry_id": event.reverses_entry_id,
        },
        lines=[
            {
                "account_id": account_ids[line.account_code],
                "property_id": line.property_id,
                "description": line.description,
                "debit": line.debit,
                "credit": line.credit,
            }
            for line in event.lines
        ],
    )

    journal_entries_posted.labels(event_type=event.event_type).inc()
    logger.info(
        "journal_entry_posted",
        journal_entry_id=journal_entry_id,
        event_type=event.event_type,
        source_type=event.source_type,
        source_id=event.source_id,
        lines=len(event.lines),
    )
    return PostedEntry(journal_entry_id=journal_entry_id, event=event)


def reverse_entries_for(
    conn: Connection,
    source_type: str,
    source_id: int,
    entry_date: date,
    memo: Optional[str] = None,
) -> list[PostedEntry]:
    """
    Post a reversing entry for every not-yet-reversed entry of a source.

    Returns:
        list[PostedEntry]: The reversing entries, empty if nothing was posted
    """
    posted = []
    for entry in get_unreversed_entries(conn, source_type, source_id):
        lines = tuple(
            LineSpec(
                account_code=line["account_code"],
                debit=line["debit"],
                credit=line["credit"],
                property_id=line["property_id"],
                description=line["description"],
            )
            for line in get_entry_lines(conn, entry["journal_entry_id"])
        )
        original = LedgerEvent(
            event_type=entry["event_type"],
            entry_date=entry["entry_date"],
            source_type=source_type,
            source_id=source_id,
            lines=lines,
            memo=entry["memo"],
        )
        reversal = reversal_of(entry["journal_entry_id"], original, entry_date, memo)
        posted.append(post(conn, reversal))
    return posted
