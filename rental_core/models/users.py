"""SQLAlchemy model for hosts, guests and admins."""

from sqlalchemy import Column, DateTime, Enum, String
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType

USER_TYPES = ("host", "guest", "admin")


class User(Base):
    """
    ORM model for platform users.

    Account management lives with an external collaborator; rows exist here so
    properties, reservations, payments and search logs can reference a person.
    """

    __tablename__ = "users"

    user_id = Column(IdType, primary_key=True, autoincrement=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(120), nullable=False, unique=True)
    phone = Column(String(25), nullable=True)
    password_hash = Column(String(255), nullable=False)
    user_type = Column(
        Enum(*USER_TYPES, name="user_type"), nullable=False, server_default="guest"
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
