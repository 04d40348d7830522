"""Request-scoped dependencies shared by the plan routes."""
from __future__ import annotations

from datetime import datetime

from fastapi import Depends
from sqlalchemy.orm import Session

from recovery.core.config import settings
from recovery.core.timeutils import local_now
from recovery.db.deps import get_db
from recovery.services.plan_store import PlanStore
from recovery.services.reminders.factory import get_reminder_store
from recovery.services.reminders.scheduler import ReminderScheduler


def get_now() -> datetime:
    """Current time in the scheduler timezone; tests override this to pin the clock."""
    return local_now(settings.scheduler_timezone)


def get_plan_store(db: Session = Depends(get_db)) -> PlanStore:
    return PlanStore(db)


def get_reminder_scheduler(db: Session = Depends(get_db)) -> ReminderScheduler:
    return ReminderScheduler(get_reminder_store(db))
