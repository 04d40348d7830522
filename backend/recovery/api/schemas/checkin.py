"""Schemas for check-ins and progress."""
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from recovery.api.schemas.plan import PlanPayload


class CheckInCreateRequest(BaseModel):
    user_id: UUID
    followed_steps: bool
    notes: Optional[str] = None


class CheckInPayload(BaseModel):
    id: UUID
    plan_id: UUID
    checkin_date: date
    followed_steps: bool
    notes: Optional[str]


class CheckInResponse(CheckInPayload):
    request_id: str


class AdherenceSummaryPayload(BaseModel):
    total_days: int
    completed_days: int
    adherence: int
    streak: int


class ProgressResponse(BaseModel):
    plan: PlanPayload
    checkins: List[CheckInPayload]
    summary: AdherenceSummaryPayload
    request_id: str
