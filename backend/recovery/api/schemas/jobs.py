"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    job: Literal["reminder_tick"] = "reminder_tick"
    plan_id: Optional[UUID] = None


class JobRunResponse(BaseModel):
    job: str
    reminders_checked: int
    prompts_fired: int
    reminders_expired: int
    request_id: str
