"""
Pure builders for balanced journal entries.

Every builder derives its debit side from its credit side (or the other way
round) so an entry is balanced by construction. check_balanced() is still run
by the poster before anything reaches storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from rental_core.errors import IntegrityViolation
from rental_core.ledger import accounts
from rental_core.utils.money import ZERO

BOOKING_CONFIRMED = "booking_confirmed"
PAYMENT_RECEIVED = "payment_received"
REFUND_ISSUED = "refund_issued"
EXPENSE_RECORDED = "expense_recorded"
TAX_FILED = "tax_filed"
TAX_PAID = "tax_paid"
REVERSAL = "reversal"

SOURCE_RESERVATION = "reservation"
SOURCE_ALLOCATION = "payment_allocation"
SOURCE_EXPENSE = "expense"
SOURCE_TAX_RETURN = "tax_return"


@dataclass(frozen=True)
class LineSpec:
    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    property_id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class LedgerEvent:
    """A business event translated into the lines of one journal entry."""

    event_type: str
    entry_date: date
    source_type: str
    source_id: int
    lines: tuple[LineSpec, ...] = field(default_factory=tuple)
    memo: Optional[str] = None
    reverses_entry_id: Optional[int] = None


def check_balanced(lines: Sequence[LineSpec]) -> None:
    """
    Verify line shape and that debits equal credits.

    Raises:
        IntegrityViolation: on an empty entry, a negative amount, a line with
            both or neither side set, or an imbalance
    """
    if not lines:
        raise IntegrityViolation("Journal entry has no lines")
    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        if line.debit < 0 or line.credit < 0:
            raise IntegrityViolation(f"Negative amount on account {line.account_code}")
        if (line.debit > 0) == (line.credit > 0):
            raise IntegrityViolation(
                f"Line on account {line.account_code} must carry exactly one of debit or credit"
            )
        total_debit += line.debit
        total_credit += line.credit
    if total_debit != total_credit:
        raise IntegrityViolation(
            f"Journal entry does not balance: debit={total_debit} credit={total_credit}"
        )


def _credit(code: str, amount: Decimal, property_id: Optional[int], description: str) -> LineSpec:
    return LineSpec(
        account_code=code, credit=amount, property_id=property_id, description=description
    )


def _debit(code: str, amount: Decimal, property_id: Optional[int], description: str) -> LineSpec:
    return LineSpec(
        account_code=code, debit=amount, property_id=property_id, description=description
    )


def _balance_with_debit(
    credits: Iterable[LineSpec], code: str, property_id: Optional[int], description: str
) -> tuple[LineSpec, ...]:
    credit_lines = tuple(line for line in credits if line.credit > 0)
    total = sum((line.credit for line in credit_lines), ZERO)
    if total == 0:
        return ()
    return (_debit(code, total, property_id, description),) + credit_lines


def booking_confirmed(
    reservation_id: int,
    property_id: int,
    entry_date: date,
    rental_amount: Decimal,
    fee_amount: Decimal,
    tax_amount: Decimal,
) -> LedgerEvent:
    """Recognize a confirmed booking: Dr receivable / Cr income and tax payable."""
    credits = (
        _credit(accounts.RENTAL_INCOME, rental_amount, property_id, "Nightly rent"),
        _credit(accounts.FEE_INCOME, fee_amount, property_id, "Cleaning and service fees"),
        _credit(accounts.TAX_PAYABLE, tax_amount, property_id, "Occupancy taxes collected"),
    )
    return LedgerEvent(
        event_type=BOOKING_CONFIRMED,
        entry_date=entry_date,
        source_type=SOURCE_RESERVATION,
        source_id=reservation_id,
        lines=_balance_with_debit(
            credits, accounts.ACCOUNTS_RECEIVABLE, property_id, "Amount due from guest"
        ),
        memo=f"Reservation {reservation_id} confirmed",
    )


def payment_received(
    allocation_id: int, reservation_id: int, property_id: int, entry_date: date, amount: Decimal
) -> LedgerEvent:
    return LedgerEvent(
        event_type=PAYMENT_RECEIVED,
        entry_date=entry_date,
        source_type=SOURCE_ALLOCATION,
        source_id=allocation_id,
        lines=(
            _debit(accounts.CASH, amount, None, "Payment received"),
            _credit(accounts.ACCOUNTS_RECEIVABLE, amount, property_id, "Guest payment applied"),
        ),
        memo=f"Payment applied to reservation {reservation_id}",
    )


def refund_issued(
    allocation_id: int, reservation_id: int, property_id: int, entry_date: date, amount: Decimal
) -> LedgerEvent:
    return LedgerEvent(
        event_type=REFUND_ISSUED,
        entry_date=entry_date,
        source_type=SOURCE_ALLOCATION,
        source_id=allocation_id,
        lines=(
            _debit(accounts.ACCOUNTS_RECEIVABLE, amount, property_id, "Refund owed to guest"),
            _credit(accounts.CASH, amount, None, "Refund paid out"),
        ),
        memo=f"Refund applied to reservation {reservation_id}",
    )


def expense_recorded(
    expense_id: int, property_id: int, category: str, entry_date: date, amount: Decimal
) -> LedgerEvent:
    return LedgerEvent(
        event_type=EXPENSE_RECORDED,
        entry_date=entry_date,
        source_type=SOURCE_EXPENSE,
        source_id=expense_id,
        lines=(
            _debit(accounts.EXPENSE_ACCOUNTS[category], amount, property_id, f"{category} expense"),
            _credit(accounts.CASH, amount, None, "Expense paid"),
        ),
        memo=f"Expense {expense_id} ({category})",
    )


def tax_filed(tax_return_id: int, tax_name: str, entry_date: date, amount: Decimal) -> LedgerEvent:
    return LedgerEvent(
        event_type=TAX_FILED,
        entry_date=entry_date,
        source_type=SOURCE_TAX_RETURN,
        source_id=tax_return_id,
        lines=(
            _debit(accounts.TAX_PAYABLE, amount, None, f"{tax_name} declared"),
            _credit(accounts.TAX_REMITTANCE_DUE, amount, None, f"{tax_name} due to authority"),
        ),
        memo=f"Tax return {tax_return_id} filed",
    )


def tax_paid(tax_return_id: int, tax_name: str, entry_date: date, amount: Decimal) -> LedgerEvent:
    return LedgerEvent(
        event_type=TAX_PAID,
        entry_date=entry_date,
        source_type=SOURCE_TAX_RETURN,
        source_id=tax_return_id,
        lines=(
            _debit(accounts.TAX_REMITTANCE_DUE, amount, None, f"{tax_name} remitted"),
            _credit(accounts.CASH, amount, None, f"{tax_name} payment"),
        ),
        memo=f"Tax return {tax_return_id} paid",
    )


def reversal_of(
    journal_entry_id: int,
    original: LedgerEvent,
    entry_date: date,
    memo: Optional[str] = None,
) -> LedgerEvent:
    """Mirror an entry: every debit becomes a credit of the same amount and vice versa."""
    swapped = tuple(
        replace(line, debit=line.credit, credit=line.debit) for line in original.lines
    )
    return LedgerEvent(
        event_type=REVERSAL,
        entry_date=entry_date,
        source_type=original.source_type,
        source_id=original.source_id,
        lines=swapped,
        memo=memo or f"Reversal of journal entry {journal_entry_id}",
        reverses_entry_id=journal_entry_id,
    )
