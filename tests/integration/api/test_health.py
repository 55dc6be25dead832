"""
Integration tests for health and readiness endpoints.
"""

from __future__ import annotations

from typing import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from rental_core.dependencies import get_db_engine
from rental_core.main import app


@pytest.fixture
def client(db_engine: Engine) -> Generator[TestClient, None, None]:
    """Test client whose readiness probe targets the in-memory test database."""
    app.dependency_overrides[get_db_engine] = lambda: db_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.mark.integration
def test_health_endpoint_returns_ok(client: TestClient) -> None:
    """Test that /health endpoint returns 200 with status ok."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
def test_readiness_endpoint_returns_ready_when_db_accessible(client: TestClient) -> None:
    """Test that /ready endpoint returns 200 when database is accessible."""
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok"}}


@pytest.mark.integration
def test_readiness_endpoint_returns_503_when_db_not_accessible(client: TestClient) -> None:
    """Test that /ready endpoint returns 503 when database is not accessible."""
    with patch("rental_core.routes.health.check_engine_health") as mock_health:
        mock_health.return_value = False

        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "not ready", "checks": {"database": "failed"}}


@pytest.mark.integration
def test_health_endpoint_always_returns_ok_even_if_db_down(client: TestClient) -> None:
    """/health only reports that the process is up; /ready covers dependencies."""
    with patch("rental_core.routes.health.check_engine_health", return_value=False):
        response = client.get("/health")

    assert response.status_code == 200


@pytest.mark.integration
def test_responses_carry_request_id(client: TestClient) -> None:
    response = client.get("/health")

    assert "X-Request-ID" in response.headers
