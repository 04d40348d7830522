"""Reminder status and tick API routes."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from recovery.api.deps import get_now, get_plan_store, get_reminder_scheduler
from recovery.api.routes.plans import serialize_reminder_state
from recovery.api.schemas.reminder import (
    ReminderArmRequest,
    ReminderPromptPayload,
    ReminderStatusResponse,
    ReminderTickRequest,
    ReminderTickResponse,
)
from recovery.core.errors import ConflictError
from recovery.core.timeutils import date_key
from recovery.db.deps import get_db
from recovery.observability.metrics import log_metric
from recovery.observability.tracing import trace
from recovery.services.job_runner import run_reminder_tick
from recovery.services.notifications.factory import get_notification_service
from recovery.services.plan_lifecycle import get_owned_plan, is_active
from recovery.services.plan_store import PlanStore
from recovery.services.reminders.scheduler import ReminderScheduler

router = APIRouter()


@router.get("/plans/{plan_id}/reminder", response_model=ReminderStatusResponse, tags=["reminders"])
def get_reminder_endpoint(
    plan_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    store: PlanStore = Depends(get_plan_store),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
    now: datetime = Depends(get_now),
) -> ReminderStatusResponse:
    request_id = getattr(http_request.state, "request_id", None)
    get_owned_plan(store, plan_id, user_id)
    state = scheduler.get_state(plan_id)
    phase = scheduler.phase(plan_id, date_key(now))
    return ReminderStatusResponse(
        plan_id=plan_id,
        phase=phase.value,
        state=serialize_reminder_state(state),
        request_id=request_id or "",
    )


@router.post("/plans/{plan_id}/reminder", response_model=ReminderStatusResponse, tags=["reminders"])
def arm_reminder_endpoint(
    plan_id: UUID,
    payload: ReminderArmRequest,
    http_request: Request,
    store: PlanStore = Depends(get_plan_store),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
    now: datetime = Depends(get_now),
) -> ReminderStatusResponse:
    """Re-arm the reminder of an active plan, e.g. after notification permission changed."""
    request_id = getattr(http_request.state, "request_id", None)
    plan = get_owned_plan(store, plan_id, payload.user_id)
    today = date_key(now)
    if not is_active(plan, today):
        raise ConflictError("Reminders can only be armed for active plans")
    with trace("reminder.arm", user_id=str(payload.user_id), plan_id=str(plan_id), request_id=request_id):
        state = scheduler.arm(plan, permission=get_notification_service())
    return ReminderStatusResponse(
        plan_id=plan_id,
        phase=scheduler.phase(plan_id, today).value,
        state=serialize_reminder_state(state),
        request_id=request_id or "",
    )


@router.post("/reminders/tick", response_model=ReminderTickResponse, tags=["reminders"])
def tick_reminders_endpoint(
    http_request: Request,
    payload: ReminderTickRequest | None = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ReminderTickResponse:
    """Run one reminder tick and return the prompts the client should surface."""
    request_id = getattr(http_request.state, "request_id", None)
    params = payload or ReminderTickRequest()
    plan_ids = [params.plan_id] if params.plan_id else None
    with trace("reminder.tick", metadata={"scoped": bool(plan_ids)}, request_id=request_id):
        result = run_reminder_tick(db, now, plan_ids=plan_ids, request_id=request_id)

    log_metric("reminder.tick.fired", result.prompts_fired)
    return ReminderTickResponse(
        reminders_checked=result.reminders_checked,
        prompts_fired=result.prompts_fired,
        reminders_expired=result.reminders_expired,
        prompts=[
            ReminderPromptPayload(plan_id=prompt.plan_id, day=prompt.day, push_enabled=prompt.push_enabled)
            for prompt in result.prompts
        ],
        request_id=request_id or "",
    )
