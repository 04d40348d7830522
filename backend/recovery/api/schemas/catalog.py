"""Schemas for the behavior catalog."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel


class CatalogEntryPayload(BaseModel):
    key: str
    name: str
    suggested_duration_days: int
    risks: List[str]
    guidelines: List[str]


class CatalogResponse(BaseModel):
    entries: List[CatalogEntryPayload]
    request_id: str
