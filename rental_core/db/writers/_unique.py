"""Translate unique-key collisions from the driver into Conflict errors."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError

from rental_core.errors import Conflict


@contextmanager
def unique_or_conflict(message: str) -> Iterator[None]:
    """
    Wrap an insert whose only expected constraint failure is a unique key.

    The pre-insert existence checks in the writers cover the common case; this
    catches two writers racing past the check at the same time.

    Example:
        >>> with unique_or_conflict("Override already exists"):
        ...     conn.execute(insert(PriceOverride).values(**row))
    """
    try:
        yield
    except IntegrityError as e:
        raise Conflict(message) from e
