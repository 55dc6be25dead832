"""
Error taxonomy for the rental core.

Only ValidationError, Conflict and OverAllocation (and their subclasses) are
meant to reach an end-user caller. PolicyGap and IntegrityViolation indicate a
policy hole or a system defect and are escalated to an operator.
"""

from __future__ import annotations

from decimal import Decimal


class RentalCoreError(Exception):
    """Base class for every error raised by rental_core."""


class ValidationError(RentalCoreError):
    """Malformed input, raised before any transaction starts."""


class NotFound(ValidationError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class Conflict(RentalCoreError):
    """Requested state collides with existing data (dates, unique keys)."""


class InvalidTransition(Conflict):
    """A status change the state machine does not allow."""

    def __init__(self, entity: str, entity_id: int, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"{entity} {entity_id} cannot move from '{current}' to '{target}'")


class OverAllocation(RentalCoreError):
    """A payment or refund allocation exceeds what is owed or available."""

    def __init__(self, message: str, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(f"{message} (requested={requested}, available={available})")


class PolicyGap(RentalCoreError):
    """No price could be resolved for a night."""


class IntegrityViolation(RentalCoreError):
    """An internal invariant was breached (e.g. an unbalanced journal entry)."""
