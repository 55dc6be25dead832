"""SQLAlchemy model for the normalized location hierarchy (tax jurisdiction)."""

from sqlalchemy import Column, Numeric, String, UniqueConstraint

from rental_core.models.base import Base, IdType


class Location(Base):
    """
    ORM model for a country -> region -> city -> neighborhood location.

    Optional parts are stored as empty strings so the natural key stays unique
    (NULLs never collide in a unique index).
    """

    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint(
            "country", "region", "city", "neighborhood", "postal_code", name="uq_loc"
        ),
    )

    location_id = Column(IdType, primary_key=True, autoincrement=True)
    country = Column(String(100), nullable=False)
    region = Column(String(100), nullable=False, server_default="")
    city = Column(String(100), nullable=False)
    neighborhood = Column(String(120), nullable=False, server_default="")
    postal_code = Column(String(20), nullable=False, server_default="")
    latitude = Column(Numeric(9, 6), nullable=True)
    longitude = Column(Numeric(9, 6), nullable=True)
