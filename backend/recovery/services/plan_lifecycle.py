"""Plan creation, lazy completion and lookup."""
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from recovery.core.errors import ConflictError, NotFoundError, ValidationError
from recovery.core.timeutils import parse_clock_label, plan_end_date
from recovery.db.models.plan import PLAN_ACTIVE, PLAN_CANCELED, PLAN_COMPLETED, RecoveryPlan
from recovery.db.models.plan_summary import PlanSummaryRecord
from recovery.services.adherence import PlanSummary, finalize
from recovery.services.catalog import get_entry
from recovery.services.plan_store import PlanStore
from recovery.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

MAX_DURATION_DAYS = 365


def derived_status(plan: RecoveryPlan, today: date) -> str:
    # Explicit completion and cancellation are terminal; otherwise the window decides.
    if plan.status in (PLAN_CANCELED, PLAN_COMPLETED):
        return plan.status
    if today > plan.end_date:
        return PLAN_COMPLETED
    return PLAN_ACTIVE


def is_active(plan: RecoveryPlan, today: date) -> bool:
    return derived_status(plan, today) == PLAN_ACTIVE


def refresh_status(store: PlanStore, plans: List[RecoveryPlan], today: date) -> List[RecoveryPlan]:
    """Persist ``completed`` on plans whose window has closed."""
    changed = []
    for plan in plans:
        status = derived_status(plan, today)
        if status != plan.status:
            logger.info("Plan %s lapsed on %s; marking completed", plan.id, plan.end_date)
            plan.status = status
            changed.append(plan)
    if changed:
        store.save_plans(changed)
        store.commit()
    return plans


def get_owned_plan(store: PlanStore, plan_id: UUID, user_id: UUID) -> RecoveryPlan:
    plan = store.get_plan(plan_id)
    if plan is None or plan.user_id != user_id:
        raise NotFoundError("Plan", plan_id)
    return plan


def start_plan(
    store: PlanStore,
    *,
    user_id: UUID,
    addiction_key: str,
    duration_days: Optional[int],
    daily_reminder_time: str,
    today: date,
) -> RecoveryPlan:
    """Create an active plan starting ``today``.

    ``duration_days=None`` falls back to the catalog's suggested length. A
    second active plan for the same behavior is rejected with ``ConflictError``;
    plans whose window already closed are marked completed first, so they never
    block a restart.
    """
    entry = get_entry(addiction_key)
    days = entry.suggested_duration_days if duration_days is None else duration_days
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValidationError("duration_days must be a positive integer", field="duration_days")
    if days > MAX_DURATION_DAYS:
        raise ValidationError(f"duration_days must be at most {MAX_DURATION_DAYS}", field="duration_days")
    parse_clock_label(daily_reminder_time)

    existing = refresh_status(store, store.list_plans(user_id, entry.key), today)
    if any(plan.status == PLAN_ACTIVE for plan in existing):
        raise ConflictError(f"An active {entry.key} plan already exists; complete or cancel it first")

    get_or_create_user(store.db, user_id)
    plan = RecoveryPlan(
        user_id=user_id,
        addiction_key=entry.key,
        start_date=today,
        duration_days=days,
        end_date=plan_end_date(today, days),
        daily_reminder_time=daily_reminder_time,
        status=PLAN_ACTIVE,
    )
    store.add_plan(plan)
    store.log_action(
        user_id=user_id,
        plan_id=plan.id,
        action_type="plan_started",
        payload={
            "addiction_key": entry.key,
            "start_date": plan.start_date.isoformat(),
            "end_date": plan.end_date.isoformat(),
            "duration_days": days,
            "daily_reminder_time": daily_reminder_time,
        },
        reason="User started a recovery plan",
    )
    store.commit()
    logger.info("Started %s plan %s for user %s (%s days)", entry.key, plan.id, user_id, days)
    return plan


def get_current_plan(
    store: PlanStore,
    *,
    user_id: UUID,
    today: date,
    addiction_key: Optional[str] = None,
) -> Optional[RecoveryPlan]:
    """Most recently started non-canceled plan, with its status brought up to date."""
    plans = [plan for plan in store.list_plans(user_id, addiction_key) if plan.status != PLAN_CANCELED]
    if not plans:
        return None
    refresh_status(store, plans[:1], today)
    return plans[0]


def list_current_plans(
    store: PlanStore,
    *,
    user_id: UUID,
    today: date,
    addiction_key: Optional[str] = None,
) -> List[RecoveryPlan]:
    plans = refresh_status(store, store.list_plans(user_id, addiction_key), today)
    return [plan for plan in plans if plan.status == PLAN_ACTIVE]


def _persist_summary(store: PlanStore, plan: RecoveryPlan) -> PlanSummaryRecord:
    summary = finalize(plan, store.list_checkins(plan.id))
    record = PlanSummaryRecord(plan_id=plan.id, **summary.to_dict())
    try:
        store.add_summary(record)
    except IntegrityError:
        # Finalized concurrently; the stored summary wins.
        store.rollback()
        existing = store.get_summary(plan.id)
        if existing is None:
            raise
        if plan.status != PLAN_COMPLETED:
            plan.status = PLAN_COMPLETED
            store.save_plans([plan])
        logger.info("Plan %s was finalized by another request", plan.id)
        return existing
    store.log_action(
        user_id=plan.user_id,
        plan_id=plan.id,
        action_type="plan_completed",
        payload={"summary": summary.to_dict()},
        reason="Plan finished",
    )
    return record


def summary_from_record(record: PlanSummaryRecord) -> PlanSummary:
    return PlanSummary(
        success_rate=record.success_rate,
        longest_streak=record.longest_streak,
        total_days=record.total_days,
        completed_days=record.completed_days,
        missed_days=record.missed_days,
        suggestions=list(record.suggestions or []),
    )


def complete_plan(store: PlanStore, *, plan_id: UUID, user_id: UUID, today: date) -> PlanSummary:
    """Close a plan now and store its final summary; repeat calls return the stored one."""
    plan = get_owned_plan(store, plan_id, user_id)
    if plan.status == PLAN_CANCELED:
        raise ConflictError("Canceled plans cannot be completed")
    record = store.get_summary(plan.id)
    if record is None:
        plan.status = PLAN_COMPLETED
        store.save_plans([plan])
        record = _persist_summary(store, plan)
        store.commit()
        logger.info("Plan %s completed on %s", plan.id, today)
    elif plan.status != PLAN_COMPLETED:
        plan.status = PLAN_COMPLETED
        store.save_plans([plan])
        store.commit()
    return summary_from_record(record)


def cancel_plan(store: PlanStore, *, plan_id: UUID, user_id: UUID) -> RecoveryPlan:
    plan = get_owned_plan(store, plan_id, user_id)
    if plan.status == PLAN_CANCELED:
        return plan
    if plan.status == PLAN_COMPLETED:
        raise ConflictError("Completed plans cannot be canceled")
    plan.status = PLAN_CANCELED
    store.save_plans([plan])
    store.log_action(
        user_id=user_id,
        plan_id=plan.id,
        action_type="plan_canceled",
        payload={"end_date": plan.end_date.isoformat()},
        reason="User abandoned the plan",
    )
    store.commit()
    logger.info("Plan %s canceled by user %s", plan.id, user_id)
    return plan


def get_final_summary(store: PlanStore, *, plan_id: UUID, user_id: UUID, today: date) -> PlanSummary:
    """Stored summary of a finished plan, finalizing lapsed plans on first read."""
    plan = get_owned_plan(store, plan_id, user_id)
    refresh_status(store, [plan], today)
    record = store.get_summary(plan.id)
    if record is not None:
        return summary_from_record(record)
    if plan.status != PLAN_COMPLETED:
        raise ConflictError("Final summary is available once the plan is completed")
    record = _persist_summary(store, plan)
    store.commit()
    return summary_from_record(record)
