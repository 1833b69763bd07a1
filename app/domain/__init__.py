"""
app/domain package marker.
"""

from app.domain.inventory import (
    BatchUpsertResult,
    FeedSnapshot,
    ProductRecord,
    RowOutcome,
    SyncSummary,
    UpsertOutcome,
    ValidationReport,
)
from app.domain.sync_errors import (
    BatchWriteError,
    EmptyFeedError,
    FailureKind,
    FeedLayoutError,
    FetchError,
    InventorySyncError,
    SyncInProgressError,
    SyncState,
)

__all__ = [
    "BatchUpsertResult",
    "BatchWriteError",
    "EmptyFeedError",
    "FailureKind",
    "FeedLayoutError",
    "FeedSnapshot",
    "FetchError",
    "InventorySyncError",
    "ProductRecord",
    "RowOutcome",
    "SyncInProgressError",
    "SyncState",
    "SyncSummary",
    "UpsertOutcome",
    "ValidationReport",
]
