"""
Default chart of accounts.

Codes are stable identifiers used by the entry builders; account_id values
are looked up per transaction.
"""

from __future__ import annotations

import structlog
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection

from rental_core.models.ledger import Account

logger = structlog.get_logger(__name__)

CASH = "1000"
ACCOUNTS_RECEIVABLE = "1100"
TAX_PAYABLE = "2100"
TAX_REMITTANCE_DUE = "2200"
OWNER_EQUITY = "3000"
RENTAL_INCOME = "4000"
FEE_INCOME = "4100"

EXPENSE_ACCOUNTS: dict[str, str] = {
    "cleaning": "5000",
    "maintenance": "5100",
    "utilities": "5200",
    "supplies": "5300",
    "tax": "5400",
    "insurance": "5500",
    "other": "5600",
}

CHART_OF_ACCOUNTS: tuple[tuple[str, str, str], ...] = (
    (CASH, "Cash", "asset"),
    (ACCOUNTS_RECEIVABLE, "Accounts Receivable", "asset"),
    (TAX_PAYABLE, "Tax Payable", "tax"),
    (TAX_REMITTANCE_DUE, "Tax Remittance Due", "tax"),
    (OWNER_EQUITY, "Owner Equity", "equity"),
    (RENTAL_INCOME, "Rental Income", "income"),
    (FEE_INCOME, "Cleaning and Service Fee Income", "income"),
    (EXPENSE_ACCOUNTS["cleaning"], "Cleaning Expense", "expense"),
    (EXPENSE_ACCOUNTS["maintenance"], "Maintenance Expense", "expense"),
    (EXPENSE_ACCOUNTS["utilities"], "Utilities Expense", "expense"),
    (EXPENSE_ACCOUNTS["supplies"], "Supplies Expense", "expense"),
    (EXPENSE_ACCOUNTS["tax"], "Property Tax Expense", "expense"),
    (EXPENSE_ACCOUNTS["insurance"], "Insurance Expense", "expense"),
    (EXPENSE_ACCOUNTS["other"], "Other Operating Expense", "expense"),
)


def seed_chart_of_accounts(conn: Connection) -> int:
    """
    Insert any default account that is not present yet.

    Existing accounts (matched by code) are left untouched, so renamed or
    deactivated accounts survive a re-seed.

    Returns:
        int: Number of accounts inserted
    """
    existing = set(conn.execute(select(Account.code)).scalars().all())
    rows = [
        {"code": code, "name": name, "type": account_type, "is_active": True}
        for code, name, account_type in CHART_OF_ACCOUNTS
        if code not in existing
    ]
    if rows:
        conn.execute(insert(Account), rows)
    logger.info("chart_of_accounts_seeded", inserted=len(rows), existing=len(existing))
    return len(rows)
