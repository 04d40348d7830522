"""Operational endpoints for the reminder worker."""
from __future__ import annotations

from datetime import datetime
from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from recovery.api.deps import get_now
from recovery.api.schemas.jobs import JobRunRequest, JobRunResponse
from recovery.core.config import settings
from recovery.db.deps import get_db
from recovery.observability.metrics import log_metric
from recovery.observability.tracing import trace
from recovery.services.job_runner import run_reminder_tick

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "reminder_tick_seconds": settings.reminder_tick_seconds,
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = getattr(request.state, "request_id", None)
    plan_ids = [payload.plan_id] if payload.plan_id else None
    start = perf_counter()
    with trace("jobs.run_now", metadata={"job": payload.job}, request_id=request_id):
        result = run_reminder_tick(db, now, plan_ids=plan_ids, request_id=request_id)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.run_now.success", 1, metadata={"job": payload.job})
    log_metric("jobs.run_now.latency_ms", latency_ms, metadata={"job": payload.job})

    return JobRunResponse(
        job=payload.job,
        reminders_checked=result.reminders_checked,
        prompts_fired=result.prompts_fired,
        reminders_expired=result.reminders_expired,
        request_id=request_id or "",
    )
