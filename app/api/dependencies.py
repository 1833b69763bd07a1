"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.services.inventory_sync_service import InventorySyncService


def get_inventory_sync_service(request: Request) -> InventorySyncService:
    """
    Return the sync service built during application startup.
    """

    service = getattr(request.app.state, "inventory_sync_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inventory sync service is not initialized.",
        )
    return service
