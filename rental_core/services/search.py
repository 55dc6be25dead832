"""Search log writer used by the popularity report."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from rental_core.db.readers.registry import user_exists
from rental_core.db.writers.search_logs import insert_search_log
from rental_core.errors import NotFound, ValidationError
from rental_core.services._validation import require_date_order
from rental_core.utils.dates import utc_now

logger = structlog.get_logger(__name__)


def record_search(
    engine: Engine,
    user_id: Optional[int] = None,
    city: Optional[str] = None,
    region: Optional[str] = None,
    country: Optional[str] = None,
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    guests: Optional[int] = None,
    keywords: Optional[str] = None,
    shown_property_ids: Optional[list[int]] = None,
    clicked_property_id: Optional[int] = None,
    searched_at: Optional[datetime] = None,
) -> int:
    """
    Log one search and, optionally, the listing the user clicked.

    Anonymous searches have no user_id. The clicked property id is stored as
    given and is not checked against the properties table.

    Returns:
        int: New search_id
    """
    if check_in is not None and check_out is not None:
        require_date_order(check_in, check_out, "check_in", "check_out", strict=True)
    if guests is not None and guests < 1:
        raise ValidationError(f"guests must be positive, got {guests}")

    with engine.begin() as conn:
        if user_id is not None and not user_exists(conn, user_id):
            raise NotFound("User", user_id)
        search_id = insert_search_log(
            conn,
            {
                "user_id": user_id,
                "searched_at": searched_at or utc_now(),
                "check_in": check_in,
                "check_out": check_out,
                "guests": guests,
                "city": city,
                "region": region,
                "country": country,
                "keywords": keywords,
                "shown_property_ids": list(shown_property_ids) if shown_property_ids else None,
                "clicked_property_id": clicked_property_id,
            },
        )

    logger.debug("search_recorded", search_id=search_id, clicked_property_id=clicked_property_id)
    return search_id
