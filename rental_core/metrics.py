"""
Prometheus metrics for bookings, payment allocation and ledger posting.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from rental_core.metrics import booking_duration, reservations_created
    >>> with booking_duration.time():
    ...     reservation = create_reservation(engine, ...)
    ...     reservations_created.inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

reservations_created = Counter(
    "rental_reservations_created_total",
    "Total number of reservations created",
)

booking_failures = Counter(
    "rental_booking_failures_total",
    "Booking attempts rejected or aborted",
    ["reason"],
)
"""
Counter for failed bookings.

Labels:
    reason: validation, conflict, policy_gap or integrity
"""

booking_duration = Histogram(
    "rental_booking_duration_seconds",
    "Duration of the booking transaction in seconds",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)

reservation_transitions = Counter(
    "rental_reservation_transitions_total",
    "Reservation status transitions",
    ["status"],
)

# =============================================================================
# Pricing / Tax Metrics
# =============================================================================

tax_policy_gaps = Counter(
    "rental_tax_policy_gaps_total",
    "Nights priced with no applicable tax rule (taxed at zero)",
)

# =============================================================================
# Payment Metrics
# =============================================================================

allocations = Counter(
    "rental_payment_allocations_total",
    "Payment allocations attempted",
    ["kind", "status"],
)
"""
Counter for allocations.

Labels:
    kind: receipt or refund
    status: applied or rejected
"""

# =============================================================================
# Ledger Metrics
# =============================================================================

journal_entries_posted = Counter(
    "rental_journal_entries_posted_total",
    "Journal entries written to the ledger",
    ["event_type"],
)

integrity_violations = Counter(
    "rental_integrity_violations_total",
    "Internal invariant breaches detected before commit",
    ["check"],
)
"""Any increment here is a defect and should page an operator."""
