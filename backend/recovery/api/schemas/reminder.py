"""Schemas for reminder state and ticks."""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class ReminderStatePayload(BaseModel):
    plan_id: UUID
    daily_reminder_time: str
    end_date: date
    last_fired_date: Optional[date]
    push_enabled: bool


class ReminderStatusResponse(BaseModel):
    plan_id: UUID
    phase: Literal["unarmed", "armed", "fired", "expired"]
    state: Optional[ReminderStatePayload]
    request_id: str


class ReminderArmRequest(BaseModel):
    user_id: UUID


class ReminderTickRequest(BaseModel):
    plan_id: Optional[UUID] = None


class ReminderPromptPayload(BaseModel):
    plan_id: UUID
    day: date
    push_enabled: bool
    title: str = "Daily check-in"
    message: str = "Did you follow your plan steps today?"


class ReminderTickResponse(BaseModel):
    reminders_checked: int
    prompts_fired: int
    reminders_expired: int
    prompts: List[ReminderPromptPayload]
    request_id: str
