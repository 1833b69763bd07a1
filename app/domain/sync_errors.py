"""
app/domain/sync_errors.py

Failure taxonomy for the inventory sync workflow.

Every failure carries an explicit ``kind``. Callers (scheduler, API, CLI)
decide whether to re-attempt by reading ``kind``, never by matching the
exception class.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Sequence


class FailureKind(str, Enum):
    RETRIABLE = "retriable"
    NON_RETRIABLE = "non_retriable"


class SyncState(str, Enum):
    FETCHING = "fetching"
    VALIDATING = "validating"
    UPSERTING = "upserting"
    COMPLETED = "completed"
    FAILED = "failed"


class InventorySyncError(RuntimeError):
    """
    Base class for classified sync failures.
    """

    default_kind: FailureKind = FailureKind.RETRIABLE

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind | None = None,
        state: SyncState | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.state = state

    @property
    def retriable(self) -> bool:
        return self.kind is FailureKind.RETRIABLE

    def to_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind.value,
            "state": self.state.value if self.state else None,
            "message": self.message,
        }


class FetchError(InventorySyncError):
    """
    The external feed was unreachable or returned a malformed response.
    """


class FeedLayoutError(InventorySyncError):
    """
    The feed's header row does not match the configured column layout.
    """

    default_kind = FailureKind.NON_RETRIABLE

    def __init__(
        self,
        message: str,
        *,
        state: SyncState | None = None,
        mismatches: Sequence[Any] = (),
    ) -> None:
        super().__init__(message, state=state)
        self.mismatches = tuple(mismatches)


class EmptyFeedError(InventorySyncError):
    """
    The feed produced zero valid records. A definitive no-op, never retried.
    """

    default_kind = FailureKind.NON_RETRIABLE


class BatchWriteError(InventorySyncError):
    """
    A batch could not be written. ``kind`` separates transient store errors
    from data-integrity violations.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind,
        batch_index: int | None = None,
        batch_size: int | None = None,
        state: SyncState | None = None,
    ) -> None:
        super().__init__(message, kind=kind, state=state)
        self.batch_index = batch_index
        self.batch_size = batch_size


class SyncInProgressError(InventorySyncError):
    """
    Another sync is still running in this process. Try again later.
    """
