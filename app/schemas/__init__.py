"""
app/schemas package marker.
"""

from app.schemas.inventory_sync import (
    InventorySyncErrorResponse,
    InventorySyncFailureResponse,
    InventorySyncSummaryResponse,
    SyncRunListResponse,
    SyncRunResponse,
)

__all__ = [
    "InventorySyncErrorResponse",
    "InventorySyncFailureResponse",
    "InventorySyncSummaryResponse",
    "SyncRunListResponse",
    "SyncRunResponse",
]
