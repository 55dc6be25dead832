from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType

PAYMENT_METHODS = ("credit_card", "debit_card", "paypal", "mobile_money", "bank_transfer")

PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"
PAYMENT_REFUNDED = "refunded"

PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_COMPLETED, PAYMENT_FAILED, PAYMENT_REFUNDED)


class Payment(Base):
    """
    ORM model for money received from (positive amount) or refunded to
    (negative amount) a payer.

    Status transitions are supplied by the payment gateway collaborator.
    """

    __tablename__ = "payments"
    __table_args__ = (Index("idx_pay_status", "status", "created_at"),)

    payment_id = Column(IdType, primary_key=True, autoincrement=True)
    payer_user_id = Column(
        IdType, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    method = Column(Enum(*PAYMENT_METHODS, name="payment_method"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, server_default="USD")
    status = Column(
        Enum(*PAYMENT_STATUSES, name="payment_status"),
        nullable=False,
        server_default=PAYMENT_PENDING,
    )
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PaymentAllocation(Base):
    """
    Portion of a payment applied to one reservation.

    amount_applied is negative for allocations of a refund payment.
    """

    __tablename__ = "payment_allocations"
    __table_args__ = (UniqueConstraint("payment_id", "reservation_id", name="uq_pay_res"),)

    allocation_id = Column(IdType, primary_key=True, autoincrement=True)
    payment_id = Column(
        IdType, ForeignKey("payments.payment_id", ondelete="CASCADE"), nullable=False
    )
    reservation_id = Column(
        IdType,
        ForeignKey("reservations.reservation_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount_applied = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
