"""Daily check-in reminder state machine.

Each armed plan owns one ``ReminderState`` record in a key-value store. A tick
compares the wall clock with the plan's reminder time and fires at most once per
calendar day; once the plan window has passed the record is deleted and every
later tick is a no-op.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union
from uuid import UUID

from recovery.core.errors import StoreUnavailableError
from recovery.core.timeutils import clock_label, date_key
from recovery.services.reminders.store import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "reminder:"


class PermissionCapability(Protocol):
    def request_permission(self, *, user_id: UUID) -> str:
        """Return ``"granted"`` or ``"denied"``."""


class ReminderPhase(str, Enum):
    UNARMED = "unarmed"
    ARMED = "armed"
    FIRED = "fired"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ReminderState:
    plan_id: UUID
    user_id: Optional[UUID]
    daily_reminder_time: str
    end_date: date
    last_fired_date: Optional[date] = None
    push_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_id": str(self.plan_id),
            "user_id": str(self.user_id) if self.user_id else None,
            "daily_reminder_time": self.daily_reminder_time,
            "end_date": self.end_date.isoformat(),
            "last_fired_date": self.last_fired_date.isoformat() if self.last_fired_date else None,
            "push_enabled": self.push_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReminderState":
        last_fired = data.get("last_fired_date")
        user_id = data.get("user_id")
        return cls(
            plan_id=UUID(data["plan_id"]),
            user_id=UUID(user_id) if user_id else None,
            daily_reminder_time=data["daily_reminder_time"],
            end_date=date.fromisoformat(data["end_date"]),
            last_fired_date=date.fromisoformat(last_fired) if last_fired else None,
            push_enabled=bool(data.get("push_enabled", False)),
        )


@dataclass(frozen=True)
class FirePrompt:
    plan_id: UUID
    user_id: Optional[UUID]
    day: date
    push_enabled: bool

    fired = True


@dataclass(frozen=True)
class NoOp:
    plan_id: UUID
    reason: str

    fired = False

    @property
    def expired(self) -> bool:
        return self.reason == "expired"


TickResult = Union[FirePrompt, NoOp]


def state_key(plan_id: UUID) -> str:
    return f"{KEY_PREFIX}{plan_id}"


class ReminderScheduler:
    """Arms, ticks and disarms per-plan reminders over a ``KeyValueStore``."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def arm(self, plan, permission: Optional[PermissionCapability] = None) -> ReminderState:
        """Persist reminder state for ``plan``.

        Push delivery is enabled only when ``permission`` grants it; a denial or
        a failing capability still arms the reminder for in-app prompts. Re-arming
        keeps the last fired day so a restart cannot repeat today's prompt.
        """
        push_enabled = False
        if permission is not None:
            try:
                push_enabled = permission.request_permission(user_id=plan.user_id) == "granted"
            except Exception:
                logger.warning("Notification permission request failed for plan %s", plan.id, exc_info=True)
        if not push_enabled:
            logger.info("Reminder for plan %s armed for in-app prompts only", plan.id)

        key = state_key(plan.id)
        while True:
            entry = self.store.get_entry(key)
            previous = ReminderState.from_dict(entry[0]) if entry else None
            state = ReminderState(
                plan_id=plan.id,
                user_id=plan.user_id,
                daily_reminder_time=plan.daily_reminder_time,
                end_date=plan.end_date,
                last_fired_date=previous.last_fired_date if previous else None,
                push_enabled=push_enabled,
            )
            if entry is None:
                self.store.set(key, state.to_dict())
                break
            # A tick that fired meanwhile bumps the version; re-read so its day is kept.
            if self.store.compare_and_set(key, state.to_dict(), expected_version=entry[1]):
                break
        logger.info(
            "Armed reminder for plan %s at %s until %s",
            plan.id,
            state.daily_reminder_time,
            state.end_date,
        )
        return state

    def disarm(self, plan_id: UUID) -> None:
        self.store.delete(state_key(plan_id))
        logger.info("Disarmed reminder for plan %s", plan_id)

    def get_state(self, plan_id: UUID) -> Optional[ReminderState]:
        raw = self.store.get(state_key(plan_id))
        return ReminderState.from_dict(raw) if raw else None

    def armed_plan_ids(self) -> List[UUID]:
        return [UUID(key[len(KEY_PREFIX):]) for key in self.store.keys(KEY_PREFIX)]

    def phase(self, plan_id: UUID, today: date) -> ReminderPhase:
        state = self.get_state(plan_id)
        if state is None:
            return ReminderPhase.UNARMED
        if today > state.end_date:
            return ReminderPhase.EXPIRED
        if state.last_fired_date == today:
            return ReminderPhase.FIRED
        return ReminderPhase.ARMED

    def tick(self, plan_id: UUID, now: datetime) -> TickResult:
        today = date_key(now)
        key = state_key(plan_id)
        try:
            entry = self.store.get_entry(key)
        except StoreUnavailableError:
            logger.warning("Reminder tick for plan %s skipped; state unreadable", plan_id)
            return NoOp(plan_id, "store_unavailable")
        if entry is None:
            return NoOp(plan_id, "unarmed")
        raw, version = entry
        state = ReminderState.from_dict(raw)

        if today > state.end_date:
            try:
                self.store.delete(key)
                logger.info("Reminder for plan %s expired after %s", plan_id, state.end_date)
            except StoreUnavailableError:
                logger.warning("Could not clear expired reminder for plan %s; retrying next tick", plan_id)
            return NoOp(plan_id, "expired")

        if clock_label(now) != state.daily_reminder_time:
            return NoOp(plan_id, "not_due")
        if state.last_fired_date == today:
            return NoOp(plan_id, "already_fired")

        fired = ReminderState(
            plan_id=state.plan_id,
            user_id=state.user_id,
            daily_reminder_time=state.daily_reminder_time,
            end_date=state.end_date,
            last_fired_date=today,
            push_enabled=state.push_enabled,
        )
        try:
            won = self.store.compare_and_set(key, fired.to_dict(), expected_version=version)
        except StoreUnavailableError:
            # Not fired; the next tick inside the same minute tries again.
            logger.warning("Reminder state write failed for plan %s; prompt deferred", plan_id)
            return NoOp(plan_id, "store_unavailable")
        if not won:
            # Another tick or a re-arm wrote first; the next tick re-reads the state.
            logger.info("Reminder tick for plan %s lost a concurrent write", plan_id)
            return NoOp(plan_id, "contended")

        logger.info("Reminder due for plan %s on %s", plan_id, today)
        return FirePrompt(plan_id=plan_id, user_id=state.user_id, day=today, push_enabled=state.push_enabled)

    def tick_all(self, now: datetime) -> List[TickResult]:
        try:
            plan_ids = self.armed_plan_ids()
        except StoreUnavailableError:
            logger.warning("Reminder tick skipped; armed plans could not be listed")
            return []
        return [self.tick(plan_id, now) for plan_id in plan_ids]
