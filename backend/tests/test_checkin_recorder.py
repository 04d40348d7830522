from __future__ import annotations

from datetime import date, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recovery.core.errors import ConflictError, OutOfRangeError, ValidationError
from recovery.db.models.action_log import ActionLog
from recovery.db.models.checkin import PlanCheckIn
from recovery.db.models.plan import RecoveryPlan
from recovery.db.models.plan_summary import PlanSummaryRecord
from recovery.db.models.reminder_kv import ReminderKV
from recovery.db.models.user import User
from recovery.services.checkin_recorder import get_progress, record_checkin
from recovery.services.plan_lifecycle import cancel_plan, start_plan
from recovery.services.plan_store import PlanStore

D = date(2026, 3, 2)


def _session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_fk(conn, record):  # pragma: no cover
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    for model in (User, RecoveryPlan, PlanCheckIn, PlanSummaryRecord, ReminderKV, ActionLog):
        model.__table__.create(bind=engine)
    return TestingSession


@pytest.fixture()
def store():
    Session = _session()
    session = Session()
    try:
        yield PlanStore(session)
    finally:
        session.close()


@pytest.fixture()
def plan(store):
    return start_plan(
        store,
        user_id=uuid4(),
        addiction_key="alcohol",
        duration_days=5,
        daily_reminder_time="21:30",
        today=D,
    )


def _checkin(store, plan, offset, followed=True, notes=None):
    return record_checkin(
        store,
        plan_id=plan.id,
        user_id=plan.user_id,
        today=D + timedelta(days=offset),
        followed_steps=followed,
        notes=notes,
    )


def test_same_day_checkin_is_upserted(store, plan) -> None:
    first = _checkin(store, plan, 0, followed=True)
    second = _checkin(store, plan, 0, followed=False, notes="  rough evening  ")

    assert second.id == first.id
    rows = store.db.query(PlanCheckIn).filter(PlanCheckIn.plan_id == plan.id).all()
    assert len(rows) == 1
    assert rows[0].followed_steps is False
    assert rows[0].notes == "rough evening"
    actions = [
        log.action_type
        for log in store.db.query(ActionLog).filter(ActionLog.plan_id == plan.id).order_by(ActionLog.created_at).all()
    ]
    assert actions.count("checkin_recorded") == 1
    assert actions.count("checkin_updated") == 1


def test_checkin_after_end_date_is_out_of_range(store, plan) -> None:
    with pytest.raises(OutOfRangeError):
        _checkin(store, plan, 10)
    assert store.db.query(PlanCheckIn).count() == 0


def test_checkin_before_start_is_out_of_range(store, plan) -> None:
    with pytest.raises(OutOfRangeError):
        _checkin(store, plan, -1)


def test_checkin_on_last_day_is_accepted(store, plan) -> None:
    checkin = _checkin(store, plan, 4)
    assert checkin.checkin_date == D + timedelta(days=4)


def test_notes_are_validated(store, plan) -> None:
    with pytest.raises(ValidationError):
        _checkin(store, plan, 0, notes="x" * 501)
    assert _checkin(store, plan, 0, notes="   ").notes is None


def test_canceled_plan_rejects_checkins(store, plan) -> None:
    cancel_plan(store, plan_id=plan.id, user_id=plan.user_id)
    with pytest.raises(ConflictError):
        _checkin(store, plan, 1)


def test_progress_matches_five_day_scenario(store, plan) -> None:
    for offset in range(3):
        _checkin(store, plan, offset)

    loaded, checkins, summary = get_progress(store, plan_id=plan.id, user_id=plan.user_id, today=D + timedelta(days=4))

    assert loaded.id == plan.id
    assert [c.checkin_date for c in checkins] == [D, D + timedelta(days=1), D + timedelta(days=2)]
    assert summary.total_days == 5
    assert summary.completed_days == 3
    assert summary.adherence == 60
    assert summary.streak == 0
