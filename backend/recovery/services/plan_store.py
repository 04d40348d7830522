"""Persistence boundary for plans, check-ins and final summaries."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from recovery.core.errors import StoreUnavailableError
from recovery.db.models.action_log import ActionLog
from recovery.db.models.checkin import PlanCheckIn
from recovery.db.models.plan import RecoveryPlan
from recovery.db.models.plan_summary import PlanSummaryRecord

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(db: Session, operation: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError:
        raise
    except DBAPIError as exc:
        db.rollback()
        logger.warning("Plan store %s failed: %s", operation, exc)
        raise StoreUnavailableError(f"Plan store unavailable during {operation}") from exc


class PlanStore:
    """Narrow read/write interface over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    # plans

    def get_plan(self, plan_id: UUID) -> Optional[RecoveryPlan]:
        with _store_errors(self.db, "get_plan"):
            return self.db.get(RecoveryPlan, plan_id)

    def list_plans(self, user_id: UUID, addiction_key: Optional[str] = None) -> List[RecoveryPlan]:
        """Plans for a user, most recently started first."""
        with _store_errors(self.db, "list_plans"):
            query = self.db.query(RecoveryPlan).filter(RecoveryPlan.user_id == user_id)
            if addiction_key:
                query = query.filter(RecoveryPlan.addiction_key == addiction_key)
            return query.order_by(desc(RecoveryPlan.start_date), desc(RecoveryPlan.created_at)).all()

    def add_plan(self, plan: RecoveryPlan) -> RecoveryPlan:
        with _store_errors(self.db, "add_plan"):
            self.db.add(plan)
            self.db.flush()
            return plan

    def save_plans(self, plans: List[RecoveryPlan]) -> None:
        with _store_errors(self.db, "save_plans"):
            for plan in plans:
                self.db.add(plan)
            self.db.flush()

    # check-ins

    def get_checkin(self, plan_id: UUID, checkin_date: date) -> Optional[PlanCheckIn]:
        with _store_errors(self.db, "get_checkin"):
            return (
                self.db.query(PlanCheckIn)
                .filter(PlanCheckIn.plan_id == plan_id, PlanCheckIn.checkin_date == checkin_date)
                .one_or_none()
            )

    def list_checkins(self, plan_id: UUID) -> List[PlanCheckIn]:
        with _store_errors(self.db, "list_checkins"):
            return (
                self.db.query(PlanCheckIn)
                .filter(PlanCheckIn.plan_id == plan_id)
                .order_by(PlanCheckIn.checkin_date.asc())
                .all()
            )

    def add_checkin(self, checkin: PlanCheckIn) -> PlanCheckIn:
        with _store_errors(self.db, "add_checkin"):
            self.db.add(checkin)
            self.db.flush()
            return checkin

    # summaries

    def get_summary(self, plan_id: UUID) -> Optional[PlanSummaryRecord]:
        with _store_errors(self.db, "get_summary"):
            return (
                self.db.query(PlanSummaryRecord)
                .filter(PlanSummaryRecord.plan_id == plan_id)
                .one_or_none()
            )

    def add_summary(self, record: PlanSummaryRecord) -> PlanSummaryRecord:
        with _store_errors(self.db, "add_summary"):
            self.db.add(record)
            self.db.flush()
            return record

    # audit trail

    def log_action(
        self,
        *,
        user_id: UUID,
        plan_id: Optional[UUID],
        action_type: str,
        payload: dict,
        reason: Optional[str] = None,
    ) -> ActionLog:
        entry = ActionLog(
            user_id=user_id,
            plan_id=plan_id,
            action_type=action_type,
            action_payload=payload,
            reason=reason,
        )
        with _store_errors(self.db, "log_action"):
            self.db.add(entry)
        return entry

    def commit(self) -> None:
        with _store_errors(self.db, "commit"):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
