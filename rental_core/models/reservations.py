# models/reservations.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    Computed,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType

PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
COMPLETED = "completed"

RESERVATION_STATUSES = (PENDING, CONFIRMED, CANCELLED, COMPLETED)

# Statuses whose nights count as sold (reporting, revenue)
BOOKED_STATUSES = (CONFIRMED, COMPLETED)


class Reservation(Base):
    """
    ORM model for a booking header.

    check_out is exclusive. subtotal_amount, tax_amount and total_amount are a
    cache of the reservation_nights sum and are only written by the booking
    engine in the same transaction that inserts the nights.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_in < check_out", name="ck_resv_dates"),
        Index("idx_resv_property_dates", "property_id", "check_in", "check_out"),
        Index("idx_resv_guest_dates", "guest_id", "check_in", "check_out"),
    )

    reservation_id = Column(IdType, primary_key=True, autoincrement=True)
    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="CASCADE"), nullable=False
    )
    guest_id = Column(
        IdType, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guests = Column(Integer, nullable=True)
    status = Column(
        Enum(*RESERVATION_STATUSES, name="reservation_status"),
        nullable=False,
        server_default=PENDING,
    )
    subtotal_amount = Column(Numeric(12, 2), nullable=False, server_default="0")
    tax_amount = Column(Numeric(12, 2), nullable=False, server_default="0")
    total_amount = Column(Numeric(12, 2), nullable=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ReservationNight(Base):
    """
    Price snapshot for one reserved night.

    Rows are written once at booking time and never updated; later changes to
    the base price, seasonal rates, overrides or tax rules do not reach them.
    """

    __tablename__ = "reservation_nights"
    __table_args__ = (
        UniqueConstraint("reservation_id", "stay_date", name="uq_resv_night"),
        Index("idx_rn_property_date", "property_id", "stay_date"),
    )

    reservation_night_id = Column(IdType, primary_key=True, autoincrement=True)
    reservation_id = Column(
        IdType, ForeignKey("reservations.reservation_id", ondelete="CASCADE"), nullable=False
    )
    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="CASCADE"), nullable=False
    )
    stay_date = Column(Date, nullable=False)
    nightly_price = Column(Numeric(10, 2), nullable=False)
    cleaning_fee = Column(Numeric(10, 2), nullable=False, server_default="0")
    service_fee = Column(Numeric(10, 2), nullable=False, server_default="0")
    tax_rate_applied = Column(Numeric(16, 12), nullable=False, server_default="0")
    tax_amount = Column(Numeric(10, 2), nullable=False, server_default="0")
    total_for_night = Column(
        Numeric(10, 2),
        Computed("nightly_price + cleaning_fee + service_fee + tax_amount", persisted=True),
    )
