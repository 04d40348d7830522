"""Check-in and progress API routes."""
from __future__ import annotations

from datetime import datetime
from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from recovery.api.deps import get_now, get_plan_store
from recovery.api.routes.plans import serialize_plan
from recovery.api.schemas.checkin import (
    AdherenceSummaryPayload,
    CheckInCreateRequest,
    CheckInPayload,
    CheckInResponse,
    ProgressResponse,
)
from recovery.core.timeutils import date_key
from recovery.db.models.checkin import PlanCheckIn
from recovery.observability.metrics import log_metric
from recovery.observability.tracing import trace
from recovery.services.checkin_recorder import get_progress, record_checkin
from recovery.services.plan_store import PlanStore

router = APIRouter()


@router.post("/plans/{plan_id}/checkins", response_model=CheckInResponse, tags=["checkins"])
def record_checkin_endpoint(
    plan_id: UUID,
    payload: CheckInCreateRequest,
    http_request: Request,
    store: PlanStore = Depends(get_plan_store),
    now: datetime = Depends(get_now),
) -> CheckInResponse:
    """Record today's check-in; a second call on the same day replaces the first."""
    request_id = getattr(http_request.state, "request_id", None)
    today = date_key(now)
    start = perf_counter()
    try:
        with trace(
            "checkin.record",
            metadata={"followed_steps": payload.followed_steps, "day": today.isoformat()},
            user_id=str(payload.user_id),
            plan_id=str(plan_id),
            request_id=request_id,
        ):
            checkin = record_checkin(
                store,
                plan_id=plan_id,
                user_id=payload.user_id,
                today=today,
                followed_steps=payload.followed_steps,
                notes=payload.notes,
            )
    except Exception:
        store.rollback()
        raise

    latency_ms = (perf_counter() - start) * 1000
    log_metric("checkin.record.followed", 1 if payload.followed_steps else 0, metadata={"plan_id": str(plan_id)})
    log_metric("checkin.record.latency_ms", latency_ms, metadata={"plan_id": str(plan_id)})
    return CheckInResponse(**_serialize_checkin(checkin).model_dump(), request_id=request_id or "")


@router.get("/plans/{plan_id}/progress", response_model=ProgressResponse, tags=["checkins"])
def get_progress_endpoint(
    plan_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    store: PlanStore = Depends(get_plan_store),
    now: datetime = Depends(get_now),
) -> ProgressResponse:
    """Check-in history plus adherence and streak as of today."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("checkin.progress", user_id=str(user_id), plan_id=str(plan_id), request_id=request_id):
        plan, checkins, summary = get_progress(store, plan_id=plan_id, user_id=user_id, today=date_key(now))

    log_metric("checkin.progress.adherence", summary.adherence, metadata={"plan_id": str(plan_id)})
    return ProgressResponse(
        plan=serialize_plan(plan),
        checkins=[_serialize_checkin(checkin) for checkin in checkins],
        summary=AdherenceSummaryPayload(**summary.to_dict()),
        request_id=request_id or "",
    )


def _serialize_checkin(checkin: PlanCheckIn) -> CheckInPayload:
    return CheckInPayload(
        id=checkin.id,
        plan_id=checkin.plan_id,
        checkin_date=checkin.checkin_date,
        followed_steps=bool(checkin.followed_steps),
        notes=checkin.notes,
    )
