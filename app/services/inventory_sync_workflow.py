"""
app/services/inventory_sync_workflow.py

Linear fetch -> validate -> upsert workflow for the product inventory feed.

States
------
    fetching -> validating -> upserting -> completed
    any step -> failed(kind)

The workflow never re-attempts anything itself. Every failure leaves as an
``InventorySyncError`` whose ``kind`` tells the caller (scheduler, API, CLI)
whether running the whole workflow again can help. There is no partial
result: either every batch was written and a ``SyncSummary`` is returned,
or an error is raised. Batches committed before a failure stay committed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, Sequence, TypeVar

from app.domain.inventory import FeedSnapshot, ProductRecord, SyncSummary, ValidationReport
from app.domain.sync_errors import (
    BatchWriteError,
    EmptyFeedError,
    FailureKind,
    FetchError,
    InventorySyncError,
    SyncState,
)
from app.repositories.product_repository import ProductStore
from app.services.batch_partitioner import DEFAULT_BATCH_SIZE, partition
from app.services.result_aggregator import ResultAggregator
from app.validators.product_row_validator import ProductRowValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")

STEP_FETCH = "fetch-sheet-data"
STEP_VALIDATE = "validate-products"
STEP_UPSERT = "upsert-products"


class RowFeed(Protocol):
    def fetch_snapshot(self) -> FeedSnapshot:
        ...


class StepRunner(Protocol):
    def run(self, name: str, fn: Callable[[], T]) -> T:
        ...


class LoggingStepRunner:
    """
    Runs each step inline and logs its duration.
    """

    def run(self, name: str, fn: Callable[[], T]) -> T:
        logger.info("Sync step starting step=%s", name)
        started = time.monotonic()
        try:
            result = fn()
        except Exception:
            logger.warning(
                "Sync step failed step=%s duration_ms=%.0f",
                name,
                (time.monotonic() - started) * 1000,
            )
            raise
        logger.info(
            "Sync step completed step=%s duration_ms=%.0f",
            name,
            (time.monotonic() - started) * 1000,
        )
        return result


class InventorySyncWorkflow:
    """
    Reconciles the inventory feed into the products table.
    """

    def __init__(
        self,
        *,
        feed: RowFeed,
        store: ProductStore,
        validator: ProductRowValidator | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        step_runner: StepRunner | None = None,
    ) -> None:
        self._feed = feed
        self._store = store
        self._validator = validator or ProductRowValidator()
        self._batch_size = batch_size
        self._steps = step_runner or LoggingStepRunner()

    def run(self) -> SyncSummary:
        """
        Execute one full sync and return its summary.

        Raises:
            FetchError:       feed unreachable or malformed (retriable).
            FeedLayoutError:  header does not match the layout (non-retriable).
            EmptyFeedError:   no valid records (non-retriable).
            BatchWriteError:  a batch write failed (kind set by the store).
        """

        state = SyncState.FETCHING
        try:
            snapshot = self._steps.run(STEP_FETCH, self._fetch)

            state = SyncState.VALIDATING
            report = self._steps.run(STEP_VALIDATE, lambda: self._validate(snapshot))

            state = SyncState.UPSERTING
            summary = self._steps.run(STEP_UPSERT, lambda: self._upsert(report.records))
        except InventorySyncError as exc:
            if exc.state is None:
                exc.state = state
            logger.error(
                "Inventory sync failed state=%s kind=%s error=%s",
                exc.state.value,
                exc.kind.value,
                exc.message,
            )
            raise

        logger.info(
            "Inventory sync completed state=%s inserted=%s updated=%s total=%s",
            SyncState.COMPLETED.value,
            summary.inserted,
            summary.updated,
            summary.total,
        )
        return summary

    def _fetch(self) -> FeedSnapshot:
        try:
            return self._feed.fetch_snapshot()
        except InventorySyncError:
            raise
        except Exception as exc:
            raise FetchError(
                f"Feed fetch failed: {exc}",
                state=SyncState.FETCHING,
            ) from exc

    def _validate(self, snapshot: FeedSnapshot) -> ValidationReport:
        self._validator.validate_header(snapshot.header)
        report = self._validator.validate_rows(snapshot.rows)
        logger.info(
            "Feed validated rows=%s valid=%s skipped=%s duplicates=%s",
            len(snapshot.rows),
            len(report.records),
            report.skipped_rows,
            report.duplicate_rows,
        )
        if not report.records:
            raise EmptyFeedError(
                f"Feed produced no valid records ({len(snapshot.rows)} raw rows).",
                state=SyncState.VALIDATING,
            )
        return report

    def _upsert(self, records: Sequence[ProductRecord]) -> SyncSummary:
        batches = partition(records, self._batch_size)
        aggregator = ResultAggregator()

        for index, batch in enumerate(batches):
            logger.info(
                "Processing batch %s/%s size=%s",
                index + 1,
                len(batches),
                len(batch),
            )
            try:
                result = self._store.upsert_batch(batch, batch_index=index)
            except BatchWriteError as exc:
                logger.error(
                    "Batch write failed batch=%s/%s committed_batches=%s kind=%s",
                    index + 1,
                    len(batches),
                    index,
                    exc.kind.value,
                )
                raise
            except Exception as exc:
                raise BatchWriteError(
                    f"Batch {index} upsert failed: {exc}",
                    kind=FailureKind.RETRIABLE,
                    batch_index=index,
                    batch_size=len(batch),
                    state=SyncState.UPSERTING,
                ) from exc
            aggregator.add(result)

        return aggregator.summary()
