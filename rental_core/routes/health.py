"""
Health and readiness check endpoints for Kubernetes probes.

Health checks are used by container orchestration platforms to determine
if the application should be restarted or if it can receive traffic.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from rental_core.db.engine import check_engine_health
from rental_core.dependencies import get_db_engine
from rental_core.schemas.health import HealthStatus, ReadinessStatus

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthStatus)
def health_check() -> HealthStatus:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return HealthStatus()


@router.get(
    "/ready",
    response_model=ReadinessStatus,
    responses={503: {"model": ReadinessStatus}},
)
def readiness_check(engine: Engine = Depends(get_db_engine)) -> ReadinessStatus | JSONResponse:
    """
    Readiness probe endpoint.

    Returns 200 if the database is reachable, 503 otherwise.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"database": "ok"}}
    """
    if check_engine_health(engine):
        return ReadinessStatus(status="ready", checks={"database": "ok"})

    logger.error("readiness_check_failed", reason="database_not_accessible")
    return JSONResponse(
        status_code=503,
        content=ReadinessStatus(status="not ready", checks={"database": "failed"}).model_dump(),
    )
