"""
Unit tests for metrics endpoint.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rental_core.main import app
from rental_core.metrics import (
    allocations,
    booking_duration,
    booking_failures,
    journal_entries_posted,
    reservations_created,
)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)


@pytest.mark.unit
def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    """Test that /metrics endpoint returns Prometheus text format."""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


@pytest.mark.unit
def test_metrics_endpoint_contains_domain_metrics(client: TestClient) -> None:
    """Test that /metrics exposes booking, allocation and ledger metrics."""
    reservations_created.inc()
    booking_failures.labels(reason="conflict").inc()
    booking_duration.observe(0.02)
    allocations.labels(kind="receipt", status="applied").inc()
    journal_entries_posted.labels(event_type="booking_confirmed").inc()

    body = client.get("/metrics").text

    assert "rental_reservations_created_total" in body
    assert 'rental_booking_failures_total{reason="conflict"}' in body
    assert "rental_booking_duration_seconds_bucket" in body
    assert 'rental_payment_allocations_total{kind="receipt",status="applied"}' in body
    assert 'rental_journal_entries_posted_total{event_type="booking_confirmed"}' in body


@pytest.mark.unit
def test_metrics_endpoint_lists_integrity_counter(client: TestClient) -> None:
    """Integrity and tax-gap counters are registered even before they fire."""
    body = client.get("/metrics").text

    assert "rental_integrity_violations_total" in body
    assert "rental_tax_policy_gaps_total" in body
