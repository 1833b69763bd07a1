"""
app/schemas/inventory_sync.py

Response schemas for inventory sync endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class InventorySyncSummaryResponse(BaseModel):
    """
    API response model for one completed sync.
    """

    inserted: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class InventorySyncFailureResponse(BaseModel):
    kind: str
    state: str | None = None
    message: str


class InventorySyncErrorResponse(BaseModel):
    """
    Error body for a failed sync, as raised through ``HTTPException``.
    """

    detail: InventorySyncFailureResponse


class SyncRunResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    trigger: str
    status: str
    attempt: int
    inserted: int | None = None
    updated: int | None = None
    total: int | None = None
    failure_kind: str | None = None
    failed_state: str | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime


class SyncRunListResponse(BaseModel):
    runs: list[SyncRunResponse] = Field(default_factory=list)
