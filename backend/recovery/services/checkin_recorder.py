"""Daily check-in recording with one row per plan and day."""
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from recovery.core.errors import ConflictError, OutOfRangeError, ValidationError
from recovery.db.models.checkin import PlanCheckIn
from recovery.db.models.plan import PLAN_ACTIVE, RecoveryPlan
from recovery.services.adherence import AdherenceSummary, summarize
from recovery.services.plan_lifecycle import get_owned_plan, refresh_status
from recovery.services.plan_store import PlanStore

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 500


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    trimmed = notes.strip()
    if len(trimmed) > MAX_NOTE_LENGTH:
        raise ValidationError(f"notes must be {MAX_NOTE_LENGTH} characters or less", field="notes")
    return trimmed or None


def record_checkin(
    store: PlanStore,
    *,
    plan_id: UUID,
    user_id: UUID,
    today: date,
    followed_steps: bool,
    notes: Optional[str] = None,
) -> PlanCheckIn:
    """Upsert today's check-in for the plan.

    A repeat submission on the same day replaces ``followed_steps`` and
    ``notes``. Store failures propagate to the caller; nothing is retried here.
    """
    plan = get_owned_plan(store, plan_id, user_id)
    if today < plan.start_date or today > plan.end_date:
        raise OutOfRangeError(
            f"{today.isoformat()} is outside the plan window "
            f"{plan.start_date.isoformat()}..{plan.end_date.isoformat()}"
        )
    if plan.status != PLAN_ACTIVE:
        raise ConflictError(f"Check-ins are closed for {plan.status} plans")
    cleaned = _clean_notes(notes)

    checkin = store.get_checkin(plan.id, today)
    created = checkin is None
    if created:
        checkin = PlanCheckIn(plan_id=plan.id, checkin_date=today, followed_steps=followed_steps, notes=cleaned)
        try:
            store.add_checkin(checkin)
        except IntegrityError:
            # Lost a same-day race; the other writer's row is updated instead.
            store.rollback()
            created = False
            checkin = store.get_checkin(plan.id, today)
            if checkin is None:
                raise
    if not created:
        checkin.followed_steps = followed_steps
        checkin.notes = cleaned

    store.log_action(
        user_id=user_id,
        plan_id=plan.id,
        action_type="checkin_recorded" if created else "checkin_updated",
        payload={
            "checkin_date": today.isoformat(),
            "followed_steps": followed_steps,
            "note_length": len(cleaned) if cleaned else 0,
        },
        reason="Daily check-in",
    )
    store.commit()
    logger.info(
        "Check-in %s for plan %s on %s (followed=%s)",
        "created" if created else "updated",
        plan.id,
        today,
        followed_steps,
    )
    return checkin


def get_progress(
    store: PlanStore,
    *,
    plan_id: UUID,
    user_id: UUID,
    today: date,
) -> Tuple[RecoveryPlan, List[PlanCheckIn], AdherenceSummary]:
    plan = get_owned_plan(store, plan_id, user_id)
    refresh_status(store, [plan], today)
    checkins = store.list_checkins(plan.id)
    return plan, checkins, summarize(plan, checkins, today)
