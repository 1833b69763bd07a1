"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.product import Product
from db.models.sync_run import SyncRun, SyncRunStatus, SyncRunTrigger

__all__ = [
    "Product",
    "SyncRun",
    "SyncRunStatus",
    "SyncRunTrigger",
]
