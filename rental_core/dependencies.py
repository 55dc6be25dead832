"""
FastAPI dependency injection providers.

Dependencies can be overridden in tests using app.dependency_overrides, e.g.
to point the readiness probe at an in-memory database.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy.engine import Engine

from rental_core.db.engine import engine


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine
    """
    yield engine
