"""
app/services package marker.
"""

from app.services.inventory_sync_service import (
    InventorySyncService,
    build_inventory_sync_service,
)
from app.services.inventory_sync_workflow import InventorySyncWorkflow, LoggingStepRunner

__all__ = [
    "InventorySyncService",
    "InventorySyncWorkflow",
    "LoggingStepRunner",
    "build_inventory_sync_service",
]
