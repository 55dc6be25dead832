from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType

EXPENSE_CATEGORIES = (
    "cleaning",
    "maintenance",
    "utilities",
    "supplies",
    "tax",
    "insurance",
    "other",
)


class Expense(Base):
    """Property-level operating cost (cash out), independent of reservations."""

    __tablename__ = "expenses"
    __table_args__ = (Index("idx_exp_prop_date", "property_id", "expense_date"),)

    expense_id = Column(IdType, primary_key=True, autoincrement=True)
    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="CASCADE"), nullable=False
    )
    vendor_name = Column(String(150), nullable=True)
    category = Column(Enum(*EXPENSE_CATEGORIES, name="expense_category"), nullable=False)
    description = Column(String(255), nullable=True)
    expense_date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, server_default="USD")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
