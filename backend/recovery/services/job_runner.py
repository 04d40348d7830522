"""Batch runner for the daily reminder tick."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from recovery.core.timeutils import date_key
from recovery.db.models.plan import PLAN_ACTIVE, RecoveryPlan
from recovery.services.notifications.hooks import notify_checkin_prompt
from recovery.services.reminders.factory import get_reminder_store
from recovery.services.reminders.scheduler import FirePrompt, ReminderScheduler
from recovery.services.reminders.store import KeyValueStore


logger = logging.getLogger(__name__)


@dataclass
class ReminderTickResult:
    reminders_checked: int = 0
    prompts_fired: int = 0
    reminders_expired: int = 0
    prompts: List[FirePrompt] = field(default_factory=list)


def run_reminder_tick(
    db: Session,
    now: datetime,
    *,
    plan_ids: Optional[Iterable[UUID]] = None,
    store: Optional[KeyValueStore] = None,
    request_id: str | None = None,
) -> ReminderTickResult:
    """Tick every armed reminder (or just ``plan_ids``) and dispatch the prompts that fire."""
    scheduler = ReminderScheduler(store or get_reminder_store(db))
    ids = list(dict.fromkeys(plan_ids)) if plan_ids is not None else scheduler.armed_plan_ids()
    result = ReminderTickResult()
    today = date_key(now)
    for plan_id in ids:
        plan = db.get(RecoveryPlan, plan_id)
        if plan is None or (plan.status != PLAN_ACTIVE and today <= plan.end_date):
            # Orphaned state; the plan was removed, canceled or completed early without a disarm.
            scheduler.disarm(plan_id)
            continue
        outcome = scheduler.tick(plan_id, now)
        result.reminders_checked += 1
        if isinstance(outcome, FirePrompt):
            result.prompts_fired += 1
            result.prompts.append(outcome)
            try:
                notify_checkin_prompt(db, outcome, request_id)
            except Exception:  # pragma: no cover - provider failure must not stop the batch
                db.rollback()
                logger.exception("Check-in notification failed for plan %s", plan_id)
        elif outcome.expired:
            result.reminders_expired += 1
    logger.debug(
        "Reminder tick at %s: checked=%s fired=%s expired=%s",
        now.isoformat(),
        result.reminders_checked,
        result.prompts_fired,
        result.reminders_expired,
    )
    return result
