"""
Read-only reporting projections.

Everything here is derived from committed rows: reservation night snapshots
of confirmed or completed reservations, recorded expenses and search logs.
Monthly figures are keyed by the first day of the calendar month the night
(or expense) falls in.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import extract, func, select
from sqlalchemy.engine import Connection

from rental_core.config import REPORTING_WINDOW_DAYS
from rental_core.errors import ValidationError
from rental_core.models.expenses import Expense
from rental_core.models.reservations import BOOKED_STATUSES, Reservation, ReservationNight
from rental_core.models.search_logs import SearchLog
from rental_core.utils.dates import month_start
from rental_core.utils.money import ZERO, money_or_zero


def _window_start(as_of: date, days: int) -> date:
    if days < 1:
        raise ValidationError(f"days must be positive, got {days}")
    return as_of - timedelta(days=days)


def top_searched_properties(
    conn: Connection, as_of: date, days: int = REPORTING_WINDOW_DAYS
) -> list[dict[str, Any]]:
    """
    Rank properties by search clicks in the window (as_of - days, as_of].

    Returns:
        list[dict]: property_id and clicks, most clicked first
    """
    since = datetime.combine(_window_start(as_of, days), time.min, tzinfo=timezone.utc)
    until = datetime.combine(as_of + timedelta(days=1), time.min, tzinfo=timezone.utc)
    clicks = func.count(SearchLog.search_id).label("clicks")
    result = conn.execute(
        select(SearchLog.clicked_property_id.label("property_id"), clicks)
        .where(SearchLog.clicked_property_id.is_not(None))
        .where(SearchLog.searched_at >= since)
        .where(SearchLog.searched_at < until)
        .group_by(SearchLog.clicked_property_id)
        .order_by(clicks.desc(), SearchLog.clicked_property_id)
    )
    return [{"property_id": row.property_id, "clicks": row.clicks} for row in result]


def top_booked_properties(
    conn: Connection, as_of: date, days: int = REPORTING_WINDOW_DAYS
) -> list[dict[str, Any]]:
    """
    Rank properties by booked nights with stay dates in (as_of - days, as_of].

    Returns:
        list[dict]: property_id and nights_booked, most booked first
    """
    nights = func.count(ReservationNight.reservation_night_id).label("nights_booked")
    result = conn.execute(
        select(ReservationNight.property_id, nights)
        .join(Reservation, Reservation.reservation_id == ReservationNight.reservation_id)
        .where(Reservation.status.in_(BOOKED_STATUSES))
        .where(ReservationNight.stay_date > _window_start(as_of, days))
        .where(ReservationNight.stay_date <= as_of)
        .group_by(ReservationNight.property_id)
        .order_by(nights.desc(), ReservationNight.property_id)
    )
    return [
        {"property_id": row.property_id, "nights_booked": row.nights_booked} for row in result
    ]


def _month_columns(column: Any) -> tuple[Any, Any]:
    return extract("year", column).label("year"), extract("month", column).label("month")


def property_revenue(
    conn: Connection, property_id: Optional[int] = None
) -> list[dict[str, Any]]:
    """
    Revenue per property and month from frozen night snapshots.

    Returns:
        list[dict]: property_id, month, revenue_excl_tax, tax_collected,
            revenue_incl_tax; ordered by property then month
    """
    year, month = _month_columns(ReservationNight.stay_date)
    stmt = (
        select(
            ReservationNight.property_id,
            year,
            month,
            func.sum(
                ReservationNight.nightly_price
                + ReservationNight.cleaning_fee
                + ReservationNight.service_fee
            ).label("revenue_excl_tax"),
            func.sum(ReservationNight.tax_amount).label("tax_collected"),
        )
        .join(Reservation, Reservation.reservation_id == ReservationNight.reservation_id)
        .where(Reservation.status.in_(BOOKED_STATUSES))
        .group_by(ReservationNight.property_id, year, month)
        .order_by(ReservationNight.property_id, year, month)
    )
    if property_id is not None:
        stmt = stmt.where(ReservationNight.property_id == property_id)

    rows = []
    for row in conn.execute(stmt):
        excl = money_or_zero(row.revenue_excl_tax)
        tax = money_or_zero(row.tax_collected)
        rows.append(
            {
                "property_id": row.property_id,
                "month": month_start(row.year, row.month),
                "revenue_excl_tax": excl,
                "tax_collected": tax,
                "revenue_incl_tax": excl + tax,
            }
        )
    return rows


def property_expense(
    conn: Connection, property_id: Optional[int] = None
) -> list[dict[str, Any]]:
    """Expense per property and month, ordered by property then month."""
    year, month = _month_columns(Expense.expense_date)
    stmt = (
        select(Expense.property_id, year, month, func.sum(Expense.amount).label("total_expense"))
        .group_by(Expense.property_id, year, month)
        .order_by(Expense.property_id, year, month)
    )
    if property_id is not None:
        stmt = stmt.where(Expense.property_id == property_id)

    return [
        {
            "property_id": row.property_id,
            "month": month_start(row.year, row.month),
            "total_expense": money_or_zero(row.total_expense),
        }
        for row in conn.execute(stmt)
    ]


def property_pnl(conn: Connection, property_id: Optional[int] = None) -> list[dict[str, Any]]:
    """
    Profit and loss per property and month.

    Rows come from the revenue projection; expenses are matched on the same
    property and month, so a month with expenses but no booked nights does
    not appear.

    Returns:
        list[dict]: property_id, month, revenue_excl_tax, tax_collected,
            total_expense, profit_before_tax
    """
    expenses = {
        (row["property_id"], row["month"]): row["total_expense"]
        for row in property_expense(conn, property_id)
    }
    rows = []
    for revenue in property_revenue(conn, property_id):
        expense = expenses.get((revenue["property_id"], revenue["month"]), ZERO)
        rows.append(
            {
                "property_id": revenue["property_id"],
                "month": revenue["month"],
                "revenue_excl_tax": revenue["revenue_excl_tax"],
                "tax_collected": revenue["tax_collected"],
                "total_expense": expense,
                "profit_before_tax": revenue["revenue_excl_tax"] - expense,
            }
        )
    return rows
