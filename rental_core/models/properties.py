from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType


class Property(Base):
    """
    ORM model for a rentable unit listed by a host.

    base_price_per_night is the lowest pricing layer. Changing it never alters
    reservation nights that were already snapshotted.
    """

    __tablename__ = "properties"
    __table_args__ = (
        CheckConstraint("base_price_per_night > 0", name="ck_prop_base_price"),
        CheckConstraint("max_guests >= 1", name="ck_prop_max_guests"),
    )

    property_id = Column(IdType, primary_key=True, autoincrement=True)
    host_id = Column(
        IdType, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    location_id = Column(
        IdType, ForeignKey("locations.location_id", ondelete="RESTRICT"), nullable=False
    )
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    address_line = Column(String(255), nullable=True)
    max_guests = Column(Integer, nullable=False)
    base_price_per_night = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, server_default="USD")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Amenity(Base):
    """Catalog entry such as WiFi, Parking or Pool."""

    __tablename__ = "amenities"

    amenity_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), nullable=False, unique=True)
    icon = Column(String(80), nullable=True)


class PropertyAmenity(Base):
    __tablename__ = "property_amenities"

    property_id = Column(
        IdType, ForeignKey("properties.property_id", ondelete="CASCADE"), primary_key=True
    )
    amenity_id = Column(
        Integer, ForeignKey("amenities.amenity_id", ondelete="CASCADE"), primary_key=True
    )
