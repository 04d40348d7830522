"""Turn fired reminders into notification requests and audit rows."""
from __future__ import annotations

import logging
from time import perf_counter

from sqlalchemy.orm import Session

from recovery.core.config import settings
from recovery.db.models.action_log import ActionLog
from recovery.observability.metrics import log_metric
from recovery.observability.tracing import trace
from recovery.services.notifications.base import NotificationResult
from recovery.services.notifications.factory import get_notification_service
from recovery.services.reminders.scheduler import FirePrompt


logger = logging.getLogger(__name__)


def notify_checkin_prompt(db: Session, prompt: FirePrompt, request_id: str | None) -> NotificationResult:
    """Request a push for ``prompt`` when allowed and record the outcome.

    The in-app prompt is surfaced by the caller regardless; this only decides
    whether a push request goes out.
    """
    if not settings.notifications_enabled:
        result = NotificationResult(status="skipped", reason="notifications disabled")
    elif not prompt.push_enabled:
        result = NotificationResult(status="skipped", reason="permission denied")
    elif prompt.user_id is None:
        result = NotificationResult(status="skipped", reason="reminder has no user")
    else:
        result = _send(prompt, request_id)
    _record_notification_log(db, prompt, result=result, request_id=request_id)
    return result


def _send(prompt: FirePrompt, request_id: str | None) -> NotificationResult:
    service = get_notification_service()
    start = perf_counter()
    with trace(
        "notifications.checkin_prompt",
        metadata={"provider": settings.notifications_provider, "day": prompt.day.isoformat()},
        user_id=str(prompt.user_id),
        plan_id=str(prompt.plan_id),
        request_id=request_id,
    ):
        result = service.notify_checkin_due(
            user_id=prompt.user_id,
            plan_id=prompt.plan_id,
            day=prompt.day,
            request_id=request_id,
        )
    duration_ms = (perf_counter() - start) * 1000
    log_metric("notifications.sent", 1, metadata={"provider": settings.notifications_provider})
    log_metric("notifications.duration_ms", duration_ms, metadata={"provider": settings.notifications_provider})
    return result


def _record_notification_log(
    db: Session,
    prompt: FirePrompt,
    *,
    result: NotificationResult,
    request_id: str | None,
) -> None:
    if prompt.user_id is None:
        logger.debug("Skipping notification log for plan %s without user", prompt.plan_id)
        return
    if result.status == "skipped":
        log_metric("notifications.skipped", 1, metadata={"reason": result.reason})
    entry = ActionLog(
        user_id=prompt.user_id,
        plan_id=prompt.plan_id,
        action_type="notification_checkin_prompt",
        action_payload={
            "day": prompt.day.isoformat(),
            "provider": settings.notifications_provider,
            "result": result.__dict__,
            "request_id": request_id or "",
        },
        reason="Notification dispatched" if result.status != "skipped" else "Notification skipped",
    )
    db.add(entry)
    db.commit()
