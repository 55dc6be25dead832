from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from rental_core.models.base import Base, IdType


class SearchLog(Base):
    """
    Search performed by a (possibly anonymous) user.

    Written by the search collaborator; read by the popularity projection.
    clicked_property_id is a plain identifier, not a foreign key.
    """

    __tablename__ = "search_logs"

    search_id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(IdType, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    searched_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    check_in = Column(Date, nullable=True)
    check_out = Column(Date, nullable=True)
    guests = Column(Integer, nullable=True)
    city = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    keywords = Column(String(255), nullable=True)
    shown_property_ids = Column(JSON, nullable=True)
    clicked_property_id = Column(IdType, nullable=True, index=True)
