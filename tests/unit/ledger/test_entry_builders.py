"""
Unit tests for journal entry builders and the balance check.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from rental_core.errors import IntegrityViolation
from rental_core.ledger import accounts, entries
from rental_core.ledger.entries import LineSpec, check_balanced

ENTRY_DATE = date(2026, 7, 1)


def _totals(event: entries.LedgerEvent) -> tuple[Decimal, Decimal]:
    return (
        sum((line.debit for line in event.lines), Decimal("0")),
        sum((line.credit for line in event.lines), Decimal("0")),
    )


@pytest.mark.unit
def test_booking_confirmed_debits_receivable_for_the_full_total() -> None:
    event = entries.booking_confirmed(
        reservation_id=10,
        property_id=3,
        entry_date=ENTRY_DATE,
        rental_amount=Decimal("450.00"),
        fee_amount=Decimal("60.00"),
        tax_amount=Decimal("51.00"),
    )

    check_balanced(event.lines)
    by_code = {line.account_code: line for line in event.lines}
    assert by_code[accounts.ACCOUNTS_RECEIVABLE].debit == Decimal("561.00")
    assert by_code[accounts.RENTAL_INCOME].credit == Decimal("450.00")
    assert by_code[accounts.FEE_INCOME].credit == Decimal("60.00")
    assert by_code[accounts.TAX_PAYABLE].credit == Decimal("51.00")
    assert all(line.property_id == 3 for line in event.lines)
    assert (event.source_type, event.source_id) == (entries.SOURCE_RESERVATION, 10)


@pytest.mark.unit
def test_booking_confirmed_drops_zero_lines() -> None:
    """No fees and no tax leaves a two-line entry."""
    zero = Decimal("0")
    event = entries.booking_confirmed(1, 1, ENTRY_DATE, Decimal("300.00"), zero, zero)

    assert [line.account_code for line in event.lines] == [
        accounts.ACCOUNTS_RECEIVABLE,
        accounts.RENTAL_INCOME,
    ]


@pytest.mark.unit
def test_free_booking_has_no_lines() -> None:
    event = entries.booking_confirmed(1, 1, ENTRY_DATE, Decimal("0"), Decimal("0"), Decimal("0"))

    assert event.lines == ()


@pytest.mark.unit
@pytest.mark.parametrize(
    "event",
    [
        entries.payment_received(5, 1, 2, ENTRY_DATE, Decimal("300.00")),
        entries.refund_issued(6, 1, 2, ENTRY_DATE, Decimal("50.00")),
        entries.expense_recorded(7, 2, "cleaning", ENTRY_DATE, Decimal("80.00")),
        entries.tax_filed(8, "VAT", ENTRY_DATE, Decimal("120.00")),
        entries.tax_paid(8, "VAT", ENTRY_DATE, Decimal("120.00")),
    ],
    ids=["payment", "refund", "expense", "tax_filed", "tax_paid"],
)
def test_builders_produce_balanced_entries(event: entries.LedgerEvent) -> None:
    check_balanced(event.lines)

    debit, credit = _totals(event)
    assert debit == credit > 0


@pytest.mark.unit
def test_expense_is_attributed_to_its_property_and_category() -> None:
    event = entries.expense_recorded(7, 2, "maintenance", ENTRY_DATE, Decimal("80.00"))

    expense_line = event.lines[0]
    assert expense_line.account_code == accounts.EXPENSE_ACCOUNTS["maintenance"]
    assert expense_line.debit == Decimal("80.00")
    assert expense_line.property_id == 2


@pytest.mark.unit
def test_reversal_swaps_every_side_and_points_at_original() -> None:
    original = entries.booking_confirmed(
        10, 3, ENTRY_DATE, Decimal("300.00"), Decimal("20.00"), Decimal("32.00")
    )

    reversal = entries.reversal_of(99, original, date(2026, 7, 3))

    assert reversal.event_type == entries.REVERSAL
    assert reversal.reverses_entry_id == 99
    assert (reversal.source_type, reversal.source_id) == (original.source_type, original.source_id)
    for before, after in zip(original.lines, reversal.lines):
        assert (after.debit, after.credit) == (before.credit, before.debit)
        assert after.account_code == before.account_code
    check_balanced(reversal.lines)


@pytest.mark.unit
@pytest.mark.parametrize(
    "lines,message",
    [
        ((), "no lines"),
        (
            (
                LineSpec(accounts.CASH, debit=Decimal("10.00")),
                LineSpec(accounts.RENTAL_INCOME, credit=Decimal("9.99")),
            ),
            "does not balance",
        ),
        (
            (
                LineSpec(accounts.CASH, debit=Decimal("10.00"), credit=Decimal("10.00")),
            ),
            "exactly one",
        ),
        (
            (
                LineSpec(accounts.CASH, debit=Decimal("-5.00")),
                LineSpec(accounts.RENTAL_INCOME, credit=Decimal("-5.00")),
            ),
            "Negative",
        ),
    ],
    ids=["empty", "unbalanced", "both_sides", "negative"],
)
def test_check_balanced_rejects_malformed_entries(
    lines: tuple[LineSpec, ...], message: str
) -> None:
    with pytest.raises(IntegrityViolation, match=message):
        check_balanced(lines)
