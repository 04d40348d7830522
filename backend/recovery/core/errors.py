"""Domain errors raised by the recovery engine.

Services raise these instead of ``HTTPException`` so they stay usable from the
worker process; the API layer renders them with a single exception handler.
"""
from __future__ import annotations

from typing import Optional


class RecoveryError(Exception):
    """Base class for recoverable engine errors."""

    status_code = 400
    error_code = "RECOVERY_ERROR"

    def __init__(self, detail: str, *, field: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.field = field

    @property
    def code(self) -> str:
        if self.field:
            return f"{self.error_code}_{self.field.upper()}"
        return self.error_code


class ValidationError(RecoveryError):
    """Malformed duration, reminder time, catalog key or note."""

    status_code = 422
    error_code = "VALIDATION_ERROR"


class ConflictError(RecoveryError):
    """Operation clashes with the current plan state (e.g. duplicate active plan)."""

    status_code = 409
    error_code = "CONFLICT"


class OutOfRangeError(RecoveryError):
    """Check-in date falls outside the plan window."""

    status_code = 422
    error_code = "OUT_OF_RANGE"


class NotFoundError(RecoveryError):
    """Plan does not exist or belongs to another user."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: object):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource


class StoreUnavailableError(RecoveryError):
    """Transient persistence failure; idempotent callers may retry."""

    status_code = 503
    error_code = "STORE_UNAVAILABLE"
