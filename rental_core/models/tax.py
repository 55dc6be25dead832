from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
    text,
)

from rental_core.models.base import Base, IdType


class TaxRule(Base):
    """
    Named tax for a location over a validity window.

    effective_to is inclusive; NULL means open-ended. rate is a fraction for
    percentage rules (0.1200 = 12%) and an absolute per-night amount otherwise.
    """

    __tablename__ = "tax_rules"
    __table_args__ = (
        UniqueConstraint("location_id", "tax_name", "effective_from", name="uq_tax_rule"),
        CheckConstraint("rate >= 0", name="ck_tr_rate"),
    )

    tax_rule_id = Column(IdType, primary_key=True, autoincrement=True)
    location_id = Column(
        IdType, ForeignKey("locations.location_id", ondelete="CASCADE"), nullable=False
    )
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    tax_name = Column(String(120), nullable=False)
    rate = Column(Numeric(7, 4), nullable=False)
    is_percentage = Column(Boolean, nullable=False, server_default=text("TRUE"))


class TaxReturn(Base):
    """Filed return for a jurisdiction and period. Only paid_on is set after filing."""

    __tablename__ = "tax_returns"
    __table_args__ = (CheckConstraint("period_start <= period_end", name="ck_taxret_period"),)

    tax_return_id = Column(IdType, primary_key=True, autoincrement=True)
    location_id = Column(
        IdType, ForeignKey("locations.location_id", ondelete="CASCADE"), nullable=False
    )
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    tax_name = Column(String(120), nullable=False)
    declared_amount = Column(Numeric(14, 2), nullable=False)
    filed_on = Column(Date, nullable=False)
    paid_on = Column(Date, nullable=True)
    reference_no = Column(String(120), nullable=True)
