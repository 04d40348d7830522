"""Behavior catalog API route."""
from __future__ import annotations

from fastapi import APIRouter, Request

from recovery.api.schemas.catalog import CatalogEntryPayload, CatalogResponse
from recovery.services.catalog import list_entries

router = APIRouter()


@router.get("/catalog", response_model=CatalogResponse, tags=["catalog"])
def list_catalog(request: Request) -> CatalogResponse:
    request_id = getattr(request.state, "request_id", None)
    entries = [
        CatalogEntryPayload(
            key=entry.key,
            name=entry.name,
            suggested_duration_days=entry.suggested_duration_days,
            risks=list(entry.risks),
            guidelines=list(entry.guidelines),
        )
        for entry in list_entries()
    ]
    return CatalogResponse(entries=entries, request_id=request_id or "")
