from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection
from sqlalchemy.orm import aliased

from rental_core.models.ledger import Account, JournalEntry, JournalLine
from rental_core.utils.money import money_or_zero


def get_account_ids(conn: Connection, codes: Iterable[str]) -> dict[str, int]:
    """
    Map active account codes to account ids.

    Args:
        conn: Active database connection
        codes: Account codes to look up

    Returns:
        dict[str, int]: code -> account_id for every code found
    """
    rows = conn.execute(
        select(Account.code, Account.account_id)
        .where(Account.code.in_(set(codes)))
        .where(Account.is_active == True)  # noqa: E712
    ).all()
    return {code: account_id for code, account_id in rows}


def get_unreversed_entries(
    conn: Connection, source_type: str, source_id: int
) -> list[dict[str, Any]]:
    """
    Return entries of a source that are neither reversals nor already reversed.

    Ordered by journal_entry_id so reversals are posted in the original order.
    """
    reversal = aliased(JournalEntry)
    stmt = (
        select(JournalEntry)
        .outerjoin(reversal, reversal.reverses_entry_id == JournalEntry.journal_entry_id)
        .where(JournalEntry.source_type == source_type)
        .where(JournalEntry.source_id == source_id)
        .where(JournalEntry.reverses_entry_id.is_(None))
        .where(reversal.journal_entry_id.is_(None))
        .order_by(JournalEntry.journal_entry_id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_entry_lines(conn: Connection, journal_entry_id: int) -> list[dict[str, Any]]:
    """Return the lines of an entry with their account code."""
    stmt = (
        select(
            JournalLine.journal_line_id,
            Account.code.label("account_code"),
            JournalLine.property_id,
            JournalLine.description,
            JournalLine.debit,
            JournalLine.credit,
        )
        .join(Account, Account.account_id == JournalLine.account_id)
        .where(JournalLine.journal_entry_id == journal_entry_id)
        .order_by(JournalLine.journal_line_id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_entries(
    conn: Connection, source_type: Optional[str] = None, source_id: Optional[int] = None
) -> list[dict[str, Any]]:
    stmt = select(JournalEntry).order_by(JournalEntry.journal_entry_id)
    if source_type is not None:
        stmt = stmt.where(JournalEntry.source_type == source_type)
    if source_id is not None:
        stmt = stmt.where(JournalEntry.source_id == source_id)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_entry_totals(conn: Connection) -> dict[int, tuple[Decimal, Decimal]]:
    """Return (debit, credit) totals per journal entry."""
    rows = conn.execute(
        select(
            JournalLine.journal_entry_id,
            func.sum(JournalLine.debit).label("debit"),
            func.sum(JournalLine.credit).label("credit"),
        ).group_by(JournalLine.journal_entry_id)
    ).all()
    return {
        entry_id: (money_or_zero(debit), money_or_zero(credit)) for entry_id, debit, credit in rows
    }


def trial_balance(
    conn: Connection, property_id: Optional[int] = None
) -> list[dict[str, Any]]:
    """
    Debit and credit totals per account.

    Args:
        conn: Active database connection
        property_id: Restrict to lines tagged with this property

    Returns:
        list[dict]: One row per account with code, name, type, debit, credit, balance
            (balance = debit - credit)
    """
    stmt = (
        select(
            Account.code,
            Account.name,
            Account.type,
            func.sum(JournalLine.debit).label("debit"),
            func.sum(JournalLine.credit).label("credit"),
        )
        .join(JournalLine, JournalLine.account_id == Account.account_id)
        .group_by(Account.code, Account.name, Account.type)
        .order_by(Account.code)
    )
    if property_id is not None:
        stmt = stmt.where(JournalLine.property_id == property_id)

    result = []
    for code, name, account_type, debit, credit in conn.execute(stmt).all():
        debit = money_or_zero(debit)
        credit = money_or_zero(credit)
        result.append(
            {
                "code": code,
                "name": name,
                "type": account_type,
                "debit": debit,
                "credit": credit,
                "balance": debit - credit,
            }
        )
    return result
