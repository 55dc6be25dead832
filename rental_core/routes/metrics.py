"""
Prometheus metrics endpoint for monitoring and observability.

Example:
    GET /metrics

    Response:
        # HELP rental_reservations_created_total Total number of reservations created
        # TYPE rental_reservations_created_total counter
        rental_reservations_created_total 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

# Register the domain collectors with the default registry
import rental_core.metrics  # noqa: F401

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Prometheus metrics endpoint.

    Returns:
        Response: Metrics in Prometheus text exposition format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
