"""
SQLAlchemy engine singleton with production-ready connection pooling.

Server databases get a sized pool; SQLite (local runs, tests) keeps the
dialect's default pool because it rejects the sizing arguments.
"""

from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from rental_core.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")


def _pool_options(url: str) -> dict[str, Any]:
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_size": 10,  # Number of connections to maintain in the pool
        "max_overflow": 20,  # Additional connections when pool is exhausted
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }


engine: Engine = create_engine(
    DATABASE_URL,
    future=True,
    echo=False,
    **_pool_options(DATABASE_URL),
)


def check_engine_health(target: Engine | None = None) -> bool:
    """
    Check if database engine is healthy and connections are working.

    Used by the /ready endpoint to verify database connectivity before
    allowing traffic to the service.

    Args:
        target: Engine to probe (defaults to the module singleton)

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with (target or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
