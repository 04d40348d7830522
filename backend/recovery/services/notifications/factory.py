"""Notification service factory."""
from __future__ import annotations

from functools import lru_cache

from recovery.core.config import settings
from recovery.services.notifications.base import NotificationService
from recovery.services.notifications.noop import NoopNotificationService


@lru_cache
def get_notification_service() -> NotificationService:
    provider = settings.notifications_provider.lower()
    if provider == "noop":
        return NoopNotificationService()
    # TODO: add a web-push provider once VAPID keys are provisioned.
    return NoopNotificationService()
