"""SQLAlchemy models for the double-entry ledger."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType

ACCOUNT_TYPES = ("asset", "liability", "equity", "income", "expense", "tax")


class Account(Base):
    """Chart of accounts entry."""

    __tablename__ = "accounts"

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(120), nullable=False)
    type = Column(Enum(*ACCOUNT_TYPES, name="account_type"), nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text("TRUE"))


class JournalEntry(Base):
    """
    Immutable journal header.

    source_type/source_id point at the business record that produced the entry
    (reservation, payment_allocation, expense, tax_return). Corrections are new
    entries with reverses_entry_id set, never edits.
    """

    __tablename__ = "journal_entries"
    __table_args__ = (Index("idx_je_source", "source_type", "source_id"),)

    journal_entry_id = Column(IdType, primary_key=True, autoincrement=True)
    entry_date = Column(Date, nullable=False)
    memo = Column(String(255), nullable=True)
    event_type = Column(String(40), nullable=False)
    source_type = Column(String(40), nullable=False)
    source_id = Column(IdType, nullable=False)
    reverses_entry_id = Column(
        IdType,
        ForeignKey("journal_entries.journal_entry_id", ondelete="RESTRICT"),
        nullable=True,
        unique=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class JournalLine(Base):
    """Debit or credit line of a journal entry, optionally tagged to a property."""

    __tablename__ = "journal_lines"
    __table_args__ = (
        CheckConstraint("NOT (debit > 0 AND credit > 0)", name="ck_jl_one_side"),
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_jl_non_negative"),
    )

    journal_line_id = Column(IdType, primary_key=True, autoincrement=True)
    journal_entry_id = Column(
        IdType,
        ForeignKey("journal_entries.journal_entry_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id = Column(
        Integer, ForeignKey("accounts.account_id", ondelete="RESTRICT"), nullable=False
    )
    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="SET NULL"), nullable=True
    )
    description = Column(String(255), nullable=True)
    debit = Column(Numeric(14, 2), nullable=False, server_default="0")
    credit = Column(Numeric(14, 2), nullable=False, server_default="0")
