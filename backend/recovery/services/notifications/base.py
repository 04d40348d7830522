"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"


@dataclass
class NotificationResult:
    status: str
    reason: str


class NotificationService:
    """Base interface for notification providers."""

    def request_permission(self, *, user_id: UUID) -> str:
        """Return ``"granted"`` or ``"denied"`` for push delivery to ``user_id``."""
        raise NotImplementedError

    def notify_checkin_due(
        self,
        *,
        user_id: UUID,
        plan_id: UUID,
        day: date,
        request_id: str | None,
    ) -> NotificationResult:
        raise NotImplementedError
