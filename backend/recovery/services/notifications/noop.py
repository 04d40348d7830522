"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from recovery.core.config import settings
from recovery.services.notifications.base import (
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    NotificationResult,
    NotificationService,
)


logger = logging.getLogger(__name__)


class NoopNotificationService(NotificationService):
    def request_permission(self, *, user_id: UUID) -> str:
        granted = settings.notifications_enabled
        logger.debug("Permission (noop) user=%s granted=%s", user_id, granted)
        return PERMISSION_GRANTED if granted else PERMISSION_DENIED

    def notify_checkin_due(
        self,
        *,
        user_id: UUID,
        plan_id: UUID,
        day: date,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info(
            "Notification queued (noop) checkin_due user=%s plan=%s day=%s",
            user_id,
            plan_id,
            day,
        )
        return NotificationResult(status="noop", reason="notification provider is noop")
