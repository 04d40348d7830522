"""Schemas for plan lifecycle endpoints."""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from recovery.api.schemas.reminder import ReminderStatePayload


class PlanCreateRequest(BaseModel):
    user_id: UUID
    addiction_key: str = Field(..., min_length=1, max_length=50)
    duration_days: Optional[int] = None
    daily_reminder_time: Optional[str] = None

    @field_validator("addiction_key")
    @classmethod
    def normalize_key(cls, value: str) -> str:
        return value.strip().lower()


class PlanActionRequest(BaseModel):
    user_id: UUID


class PlanPayload(BaseModel):
    id: UUID
    user_id: UUID
    addiction_key: str
    start_date: date
    duration_days: int
    end_date: date
    daily_reminder_time: str
    status: Literal["active", "completed", "canceled"]


class PlanResponse(PlanPayload):
    reminder: Optional[ReminderStatePayload] = None
    request_id: str


class PlanListResponse(BaseModel):
    user_id: UUID
    plans: List[PlanPayload]
    request_id: str


class PlanSummaryResponse(BaseModel):
    plan_id: UUID
    success_rate: int
    longest_streak: int
    total_days: int
    completed_days: int
    missed_days: int
    suggestions: List[str]
    request_id: str
