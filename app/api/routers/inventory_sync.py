"""
app/api/routers/inventory_sync.py

Inventory sheet sync HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_inventory_sync_service
from app.domain.sync_errors import InventorySyncError, SyncInProgressError
from app.schemas.inventory_sync import (
    InventorySyncErrorResponse,
    InventorySyncSummaryResponse,
    SyncRunListResponse,
    SyncRunResponse,
)
from app.services.inventory_sync_service import InventorySyncService
from db.models.sync_run import SyncRunTrigger

router = APIRouter(tags=["inventory-sync"])


def _status_for(exc: InventorySyncError) -> int:
    if isinstance(exc, SyncInProgressError):
        return status.HTTP_409_CONFLICT
    if exc.retriable:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_422_UNPROCESSABLE_ENTITY


@router.post(
    "/inventory-sync",
    response_model=InventorySyncSummaryResponse,
    responses={
        status.HTTP_409_CONFLICT: {"model": InventorySyncErrorResponse},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": InventorySyncErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": InventorySyncErrorResponse},
    },
)
def run_inventory_sync(
    sync_service: InventorySyncService = Depends(get_inventory_sync_service),
) -> InventorySyncSummaryResponse:
    """
    Run one inventory sync synchronously and return its counts.
    """

    try:
        summary = sync_service.run(trigger=SyncRunTrigger.MANUAL)
    except InventorySyncError as exc:
        raise HTTPException(
            status_code=_status_for(exc),
            detail=exc.to_dict(),
        ) from exc

    return InventorySyncSummaryResponse(
        inserted=summary.inserted,
        updated=summary.updated,
        total=summary.total,
    )


@router.get("/inventory-sync/runs", response_model=SyncRunListResponse)
def list_inventory_sync_runs(
    limit: int = Query(default=20, ge=1, le=200),
    run_status: str | None = Query(default=None, alias="status", description="Optional status filter"),
    sync_service: InventorySyncService = Depends(get_inventory_sync_service),
) -> SyncRunListResponse:
    runs = sync_service.list_runs(limit=limit, status=run_status)
    return SyncRunListResponse(runs=[SyncRunResponse.model_validate(run) for run in runs])
