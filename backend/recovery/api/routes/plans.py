"""Plan lifecycle API routes."""
from __future__ import annotations

import logging
from datetime import datetime
from time import perf_counter
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from recovery.api.deps import get_now, get_plan_store, get_reminder_scheduler
from recovery.api.schemas.plan import (
    PlanActionRequest,
    PlanCreateRequest,
    PlanListResponse,
    PlanPayload,
    PlanResponse,
    PlanSummaryResponse,
)
from recovery.api.schemas.reminder import ReminderStatePayload
from recovery.core.config import settings
from recovery.core.errors import StoreUnavailableError
from recovery.core.timeutils import date_key
from recovery.db.models.plan import RecoveryPlan
from recovery.observability.metrics import log_metric
from recovery.observability.tracing import trace
from recovery.services import plan_lifecycle
from recovery.services.adherence import PlanSummary
from recovery.services.notifications.factory import get_notification_service
from recovery.services.plan_store import PlanStore
from recovery.services.reminders.scheduler import ReminderScheduler, ReminderState

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED, tags=["plans"])
def start_plan_endpoint(
    payload: PlanCreateRequest,
    http_request: Request,
    store: PlanStore = Depends(get_plan_store),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
    now: datetime = Depends(get_now),
) -> PlanResponse:
    """Start a plan today and arm its daily reminder."""
    request_id = getattr(http_request.state, "request_id", None)
    reminder_time = payload.daily_reminder_time or settings.default_reminder_time
    metadata: Dict[str, Any] = {
        "route": "/plans",
        "addiction_key": payload.addiction_key,
        "duration_days": payload.duration_days,
        "daily_reminder_time": reminder_time,
    }

    start = perf_counter()
    success = False
    try:
        with trace("plan.start", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            plan = plan_lifecycle.start_plan(
                store,
                user_id=payload.user_id,
                addiction_key=payload.addiction_key,
                duration_days=payload.duration_days,
                daily_reminder_time=reminder_time,
                today=date_key(now),
            )
            reminder = _arm_reminder(scheduler, plan)
            success = True
    except Exception:
        store.rollback()
        raise
    finally:
        latency_ms = (perf_counter() - start) * 1000
        metric_metadata = {"addiction_key": payload.addiction_key}
        log_metric("plan.start.success", 1 if success else 0, metadata=metric_metadata)
        log_metric("plan.start.latency_ms", latency_ms, metadata=metric_metadata)
        if success:
            log_metric("plan.start.reminder_armed", 1 if reminder else 0, metadata=metric_metadata)

    return PlanResponse(
        **serialize_plan(plan).model_dump(),
        reminder=serialize_reminder_state(reminder),
        request_id=request_id or "",
    )


@router.get("/plans/current", response_model=PlanListResponse, tags=["plans"])
def list_current_plans_endpoint(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the plans"),
    addiction_key: Optional[str] = Query(default=None),
    store: PlanStore = Depends(get_plan_store),
    now: datetime = Depends(get_now),
) -> PlanListResponse:
    """List active plans, newest first, marking lapsed ones completed on the way."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "plan.list_current",
        metadata={"addiction_key": addiction_key},
        user_id=str(user_id),
        request_id=request_id,
    ):
        plans = plan_lifecycle.list_current_plans(
            store,
            user_id=user_id,
            addiction_key=addiction_key,
            today=date_key(now),
        )
    log_metric("plan.list_current.count", len(plans), metadata={"user_id": str(user_id)})
    return PlanListResponse(
        user_id=user_id,
        plans=[serialize_plan(plan) for plan in plans],
        request_id=request_id or "",
    )


@router.post("/plans/{plan_id}/complete", response_model=PlanSummaryResponse, tags=["plans"])
def complete_plan_endpoint(
    plan_id: UUID,
    payload: PlanActionRequest,
    http_request: Request,
    store: PlanStore = Depends(get_plan_store),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
    now: datetime = Depends(get_now),
) -> PlanSummaryResponse:
    """Finish a plan early, store its summary and stop its reminder."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("plan.complete", user_id=str(payload.user_id), plan_id=str(plan_id), request_id=request_id):
            summary = plan_lifecycle.complete_plan(
                store,
                plan_id=plan_id,
                user_id=payload.user_id,
                today=date_key(now),
            )
            _disarm_reminder(scheduler, plan_id)
    except Exception:
        store.rollback()
        raise
    log_metric("plan.complete.success_rate", summary.success_rate, metadata={"plan_id": str(plan_id)})
    return _summary_response(plan_id, summary, request_id)


@router.post("/plans/{plan_id}/cancel", response_model=PlanResponse, tags=["plans"])
def cancel_plan_endpoint(
    plan_id: UUID,
    payload: PlanActionRequest,
    http_request: Request,
    store: PlanStore = Depends(get_plan_store),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
) -> PlanResponse:
    """Abandon a plan; its reminder stops firing immediately."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("plan.cancel", user_id=str(payload.user_id), plan_id=str(plan_id), request_id=request_id):
            plan = plan_lifecycle.cancel_plan(store, plan_id=plan_id, user_id=payload.user_id)
            _disarm_reminder(scheduler, plan_id)
    except Exception:
        store.rollback()
        raise
    log_metric("plan.cancel.success", 1, metadata={"plan_id": str(plan_id)})
    return PlanResponse(**serialize_plan(plan).model_dump(), reminder=None, request_id=request_id or "")


@router.get("/plans/{plan_id}/summary", response_model=PlanSummaryResponse, tags=["plans"])
def get_summary_endpoint(
    plan_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    store: PlanStore = Depends(get_plan_store),
    now: datetime = Depends(get_now),
) -> PlanSummaryResponse:
    """Final summary of a completed plan."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("plan.summary", user_id=str(user_id), plan_id=str(plan_id), request_id=request_id):
            summary = plan_lifecycle.get_final_summary(
                store,
                plan_id=plan_id,
                user_id=user_id,
                today=date_key(now),
            )
    except Exception:
        store.rollback()
        raise
    return _summary_response(plan_id, summary, request_id)


def _arm_reminder(scheduler: ReminderScheduler, plan: RecoveryPlan) -> Optional[ReminderState]:
    # The plan is already committed; a reminder-store outage leaves it unarmed until re-armed.
    try:
        return scheduler.arm(plan, permission=get_notification_service())
    except StoreUnavailableError:
        logger.warning("Plan %s started without a reminder; store unavailable", plan.id)
        return None


def _disarm_reminder(scheduler: ReminderScheduler, plan_id: UUID) -> None:
    # Leftover state is cleared by the next tick once the plan is no longer active.
    try:
        scheduler.disarm(plan_id)
    except StoreUnavailableError:
        logger.warning("Reminder for plan %s left armed; store unavailable", plan_id)


def serialize_plan(plan: RecoveryPlan) -> PlanPayload:
    return PlanPayload(
        id=plan.id,
        user_id=plan.user_id,
        addiction_key=plan.addiction_key,
        start_date=plan.start_date,
        duration_days=plan.duration_days,
        end_date=plan.end_date,
        daily_reminder_time=plan.daily_reminder_time,
        status=plan.status,
    )


def serialize_reminder_state(state: Optional[ReminderState]) -> Optional[ReminderStatePayload]:
    if state is None:
        return None
    return ReminderStatePayload(
        plan_id=state.plan_id,
        daily_reminder_time=state.daily_reminder_time,
        end_date=state.end_date,
        last_fired_date=state.last_fired_date,
        push_enabled=state.push_enabled,
    )


def _summary_response(plan_id: UUID, summary: PlanSummary, request_id: Optional[str]) -> PlanSummaryResponse:
    return PlanSummaryResponse(plan_id=plan_id, **summary.to_dict(), request_id=request_id or "")
