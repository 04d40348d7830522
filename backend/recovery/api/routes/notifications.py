"""Notification configuration routes."""
from __future__ import annotations

from fastapi import APIRouter, Request

from recovery.core.config import settings
from recovery.observability.tracing import trace


router = APIRouter()


@router.get("/notifications/config", tags=["notifications"])
def get_notifications_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace(
        "notifications.config",
        metadata={"provider": settings.notifications_provider},
        request_id=request_id,
    ):
        return {
            "enabled": settings.notifications_enabled,
            "provider": settings.notifications_provider,
            "reminder_store": settings.reminder_store_provider,
            "request_id": request_id or "",
        }
