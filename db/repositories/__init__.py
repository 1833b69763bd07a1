"""
Repository layer exports.
"""

from db.repositories.sync_run_repository import SyncRunRepository

__all__ = [
    "SyncRunRepository",
]
