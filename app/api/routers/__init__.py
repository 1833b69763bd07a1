"""
app/api/routers package marker.
"""

from app.api.routers.inventory_sync import router as inventory_sync_router

__all__ = [
    "inventory_sync_router",
]
