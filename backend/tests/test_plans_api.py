from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recovery.api.deps import get_now
from recovery.core.errors import StoreUnavailableError
from recovery.db.deps import get_db
from recovery.db.models.action_log import ActionLog
from recovery.db.models.checkin import PlanCheckIn
from recovery.db.models.plan import RecoveryPlan
from recovery.db.models.plan_summary import PlanSummaryRecord
from recovery.db.models.reminder_kv import ReminderKV
from recovery.db.models.user import User
from recovery.main import app
from recovery.services.reminders.store import SqlKeyValueStore

START = datetime(2026, 3, 2, 8, 0)


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    for model in (User, RecoveryPlan, PlanCheckIn, PlanSummaryRecord, ReminderKV, ActionLog):
        model.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    clock = {"now": START}
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock["now"]
    with TestClient(app) as test_client:
        yield test_client, clock
    app.dependency_overrides.clear()


def _start_plan(test_client: TestClient, user_id: UUID, **overrides) -> dict:
    body = {
        "user_id": str(user_id),
        "addiction_key": "nicotine",
        "duration_days": 5,
        "daily_reminder_time": "09:00",
    }
    body.update(overrides)
    response = test_client.post("/plans", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _checkin(test_client: TestClient, plan: dict, followed: bool = True, notes: str | None = None):
    return test_client.post(
        f"/plans/{plan['id']}/checkins",
        json={"user_id": plan["user_id"], "followed_steps": followed, "notes": notes},
    )


def test_start_plan_returns_window_and_reminder(client):
    test_client, _ = client
    user_id = uuid4()

    data = _start_plan(test_client, user_id)

    assert data["start_date"] == "2026-03-02"
    assert data["end_date"] == "2026-03-06"
    assert data["status"] == "active"
    assert data["addiction_key"] == "nicotine"
    assert data["reminder"]["daily_reminder_time"] == "09:00"
    assert data["reminder"]["last_fired_date"] is None
    assert data["request_id"]


def test_start_plan_defaults_from_catalog_and_settings(client):
    test_client, _ = client

    data = _start_plan(test_client, uuid4(), addiction_key=" Sugar ", duration_days=None, daily_reminder_time=None)

    assert data["addiction_key"] == "sugar"
    assert data["duration_days"] == 30
    assert data["daily_reminder_time"] == "09:00"


def test_start_plan_rejects_duplicate_and_bad_input(client):
    test_client, _ = client
    user_id = uuid4()
    _start_plan(test_client, user_id)

    duplicate = test_client.post(
        "/plans",
        json={"user_id": str(user_id), "addiction_key": "nicotine", "duration_days": 10},
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error_code"] == "CONFLICT"

    bad_time = test_client.post(
        "/plans",
        json={"user_id": str(user_id), "addiction_key": "alcohol", "daily_reminder_time": "25:00"},
    )
    assert bad_time.status_code == 422
    assert bad_time.json()["error_code"] == "VALIDATION_ERROR_DAILY_REMINDER_TIME"

    bad_duration = test_client.post(
        "/plans",
        json={"user_id": str(user_id), "addiction_key": "alcohol", "duration_days": 0},
    )
    assert bad_duration.status_code == 422
    assert bad_duration.json()["error_code"] == "VALIDATION_ERROR_DURATION_DAYS"

    unknown = test_client.post("/plans", json={"user_id": str(user_id), "addiction_key": "gambling"})
    assert unknown.status_code == 422
    assert unknown.json()["error_code"] == "VALIDATION_ERROR_ADDICTION_KEY"


def test_checkins_progress_and_final_summary(client):
    test_client, clock = client
    user_id = uuid4()
    plan = _start_plan(test_client, user_id)

    first = _checkin(test_client, plan, followed=False)
    again = _checkin(test_client, plan, followed=True, notes="Skipped the usual break")
    assert first.status_code == 200
    assert again.json()["id"] == first.json()["id"]
    assert again.json()["followed_steps"] is True
    for offset in (1, 2):
        clock["now"] = START + timedelta(days=offset)
        assert _checkin(test_client, plan).status_code == 200

    clock["now"] = START + timedelta(days=4)
    progress = test_client.get(f"/plans/{plan['id']}/progress", params={"user_id": str(user_id)})
    assert progress.status_code == 200
    body = progress.json()
    assert len(body["checkins"]) == 3
    assert body["summary"] == {"total_days": 5, "completed_days": 3, "adherence": 60, "streak": 0}

    early = test_client.get(f"/plans/{plan['id']}/summary", params={"user_id": str(user_id)})
    assert early.status_code == 409

    clock["now"] = START + timedelta(days=10)
    late = _checkin(test_client, plan)
    assert late.status_code == 422
    assert late.json()["error_code"] == "OUT_OF_RANGE"

    current = test_client.get("/plans/current", params={"user_id": str(user_id)})
    assert current.status_code == 200
    assert current.json()["plans"] == []

    summary = test_client.get(f"/plans/{plan['id']}/summary", params={"user_id": str(user_id)})
    assert summary.status_code == 200
    data = summary.json()
    assert data["success_rate"] == 60
    assert data["completed_days"] == 3
    assert data["missed_days"] == 2
    assert data["longest_streak"] == 3
    assert data["suggestions"]


def test_current_plans_filter_by_key(client):
    test_client, _ = client
    user_id = uuid4()
    nicotine = _start_plan(test_client, user_id)
    alcohol = _start_plan(test_client, user_id, addiction_key="alcohol")

    everything = test_client.get("/plans/current", params={"user_id": str(user_id)}).json()
    only_alcohol = test_client.get(
        "/plans/current", params={"user_id": str(user_id), "addiction_key": "alcohol"}
    ).json()

    assert {plan["id"] for plan in everything["plans"]} == {nicotine["id"], alcohol["id"]}
    assert [plan["id"] for plan in only_alcohol["plans"]] == [alcohol["id"]]


def test_complete_early_and_cancel(client):
    test_client, _ = client
    user_id = uuid4()
    plan = _start_plan(test_client, user_id)
    other = _start_plan(test_client, user_id, addiction_key="alcohol")
    _checkin(test_client, plan)

    completed = test_client.post(f"/plans/{plan['id']}/complete", json={"user_id": str(user_id)})
    assert completed.status_code == 200
    assert completed.json()["completed_days"] == 1
    assert completed.json()["success_rate"] == 20

    closed = _checkin(test_client, plan)
    assert closed.status_code == 409

    canceled = test_client.post(f"/plans/{other['id']}/cancel", json={"user_id": str(user_id)})
    assert canceled.status_code == 200
    assert canceled.json()["status"] == "canceled"
    assert canceled.json()["reminder"] is None

    cancel_completed = test_client.post(f"/plans/{plan['id']}/cancel", json={"user_id": str(user_id)})
    assert cancel_completed.status_code == 409


def test_plans_of_other_users_are_not_found(client):
    test_client, _ = client
    plan = _start_plan(test_client, uuid4())
    stranger = str(uuid4())

    progress = test_client.get(f"/plans/{plan['id']}/progress", params={"user_id": stranger})
    checkin = test_client.post(
        f"/plans/{plan['id']}/checkins", json={"user_id": stranger, "followed_steps": True}
    )

    assert progress.status_code == 404
    assert progress.json()["error_code"] == "NOT_FOUND"
    assert checkin.status_code == 404


def test_note_length_is_validated(client):
    test_client, _ = client
    plan = _start_plan(test_client, uuid4())

    response = _checkin(test_client, plan, notes="x" * 501)

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR_NOTES"


def test_catalog_lists_behaviors(client):
    test_client, _ = client

    response = test_client.get("/catalog")

    assert response.status_code == 200
    entries = {entry["key"]: entry for entry in response.json()["entries"]}
    assert set(entries) == {"nicotine", "alcohol", "sugar", "social_media", "fast_food"}
    assert entries["nicotine"]["suggested_duration_days"] == 60
    assert entries["alcohol"]["guidelines"]


def test_reminder_outage_does_not_fail_plan_start(client, monkeypatch):
    test_client, _ = client
    user_id = uuid4()

    def unavailable(self, key, value):
        raise StoreUnavailableError("Reminder store unavailable during set")

    with monkeypatch.context() as patch:
        patch.setattr(SqlKeyValueStore, "set", unavailable)
        data = _start_plan(test_client, user_id, addiction_key="sugar")

    assert data["status"] == "active"
    assert data["reminder"] is None
    reminder = test_client.get(f"/plans/{data['id']}/reminder", params={"user_id": str(user_id)})
    assert reminder.json()["phase"] == "unarmed"

    rearm = test_client.post(f"/plans/{data['id']}/reminder", json={"user_id": str(user_id)})
    assert rearm.status_code == 200
    assert rearm.json()["phase"] == "armed"

    retry = test_client.post("/plans", json={"user_id": str(user_id), "addiction_key": "sugar"})
    assert retry.status_code == 409


def test_reminder_outage_does_not_fail_cancel(client, monkeypatch):
    test_client, clock = client
    plan = _start_plan(test_client, uuid4())

    def unavailable(self, key):
        raise StoreUnavailableError("Reminder store unavailable during delete")

    with monkeypatch.context() as patch:
        patch.setattr(SqlKeyValueStore, "delete", unavailable)
        canceled = test_client.post(f"/plans/{plan['id']}/cancel", json={"user_id": plan["user_id"]})

    assert canceled.status_code == 200
    assert canceled.json()["status"] == "canceled"
    clock["now"] = START + timedelta(hours=1)
    assert test_client.post("/reminders/tick").json()["prompts_fired"] == 0
    reminder = test_client.get(f"/plans/{plan['id']}/reminder", params={"user_id": plan["user_id"]})
    assert reminder.json()["phase"] == "unarmed"
