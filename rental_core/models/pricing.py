"""SQLAlchemy models for the seasonal and per-day pricing layers."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType


class SeasonalRate(Base):
    """
    Date-range nightly price for a property, inclusive on both ends.

    Ranges of different rows may overlap; the resolver breaks ties by
    creation order (highest seasonal_price_id wins).
    """

    __tablename__ = "seasonal_prices"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_sp_range"),
        CheckConstraint("price_per_night >= 0", name="ck_sp_price"),
        Index("idx_sp_range", "property_id", "start_date", "end_date"),
    )

    seasonal_price_id = Column(IdType, primary_key=True, autoincrement=True)
    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="CASCADE"), nullable=False
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PriceOverride(Base):
    """Single-day price for a property; highest priority layer."""

    __tablename__ = "price_overrides"
    __table_args__ = (
        UniqueConstraint("property_id", "stay_date", name="uq_override"),
        CheckConstraint("price_per_night >= 0", name="ck_po_price"),
    )

    override_id = Column(IdType, primary_key=True, autoincrement=True)
    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="CASCADE"), nullable=False
    )
    stay_date = Column(Date, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
