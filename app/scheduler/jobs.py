"""
app/scheduler/jobs.py

APScheduler-based periodic inventory sync.

Schedule
--------
  inventory_sync        every INVENTORY_SYNC_INTERVAL_MINUTES (default 15)
  inventory_sync_retry  one-off, INVENTORY_SYNC_RETRY_DELAY_SECONDS after a
                        retriable failure, at most INVENTORY_SYNC_MAX_RETRIES
                        times in a row

Retry policy
------------
The workflow itself never retries. This module reads the ``kind`` of the
raised ``InventorySyncError``: retriable failures get a delayed re-run of the
whole workflow, non-retriable failures are logged and left for an operator.
A later successful run cancels any pending retry.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from app.domain.inventory import SyncSummary
from app.domain.sync_errors import InventorySyncError, SyncInProgressError
from app.services.inventory_sync_service import InventorySyncService
from db.models.sync_run import SyncRunTrigger

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "inventory_sync"
RETRY_JOB_ID = "inventory_sync_retry"


# ---------------------------------------------------------------------------
# Job: Inventory sync
# ---------------------------------------------------------------------------


class InventorySyncJob:
    """
    Scheduler-facing wrapper that runs one sync and schedules its retries.
    """

    def __init__(
        self,
        *,
        service: InventorySyncService,
        max_retries: int = 3,
        retry_delay_seconds: int = 60,
    ) -> None:
        self._service = service
        self._max_retries = max(0, max_retries)
        self._retry_delay_seconds = max(1, retry_delay_seconds)
        self._scheduler: BaseScheduler | None = None

    def bind(self, scheduler: BaseScheduler) -> None:
        self._scheduler = scheduler

    def run(self, attempt: int = 1, trigger: str = SyncRunTrigger.SCHEDULE) -> SyncSummary | None:
        """
        Run one attempt. Returns the summary, or None when the attempt failed.
        """

        logger.info("Scheduler: inventory_sync starting attempt=%s trigger=%s", attempt, trigger)
        try:
            summary = self._service.run(trigger=trigger, attempt=attempt)
        except InventorySyncError as exc:
            self._handle_failure(exc, attempt)
            return None

        self._cancel_pending_retry()
        logger.info(
            "Scheduler: inventory_sync complete attempt=%s inserted=%s updated=%s total=%s",
            attempt,
            summary.inserted,
            summary.updated,
            summary.total,
        )
        return summary

    def _handle_failure(self, exc: InventorySyncError, attempt: int) -> None:
        if isinstance(exc, SyncInProgressError):
            logger.info("Scheduler: inventory_sync skipped, previous run still in progress")
            return

        state = exc.state.value if exc.state else None
        if not exc.retriable:
            logger.error(
                "Scheduler: inventory_sync failed, not retrying attempt=%s state=%s error=%s",
                attempt,
                state,
                exc.message,
            )
            return

        retries_used = attempt - 1
        if retries_used >= self._max_retries:
            logger.error(
                "Scheduler: inventory_sync retries exhausted attempt=%s max_retries=%s "
                "state=%s error=%s",
                attempt,
                self._max_retries,
                state,
                exc.message,
            )
            return

        self._schedule_retry(next_attempt=attempt + 1, state=state, error=exc.message)

    def _schedule_retry(self, *, next_attempt: int, state: str | None, error: str) -> None:
        if self._scheduler is None:
            logger.warning(
                "Scheduler: inventory_sync retry not scheduled, no scheduler bound "
                "next_attempt=%s error=%s",
                next_attempt,
                error,
            )
            return

        run_date = datetime.now(tz=timezone.utc) + timedelta(seconds=self._retry_delay_seconds)
        self._scheduler.add_job(
            self.run,
            trigger="date",
            run_date=run_date,
            kwargs={"attempt": next_attempt, "trigger": SyncRunTrigger.RETRY},
            id=RETRY_JOB_ID,
            name="Inventory sync retry",
            replace_existing=True,
            misfire_grace_time=self._retry_delay_seconds,
        )
        logger.warning(
            "Scheduler: inventory_sync retry scheduled next_attempt=%s/%s "
            "delay_seconds=%s state=%s error=%s",
            next_attempt,
            self._max_retries + 1,
            self._retry_delay_seconds,
            state,
            error,
        )

    def _cancel_pending_retry(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.get_job(RETRY_JOB_ID) is not None:
            self._scheduler.remove_job(RETRY_JOB_ID)
            logger.info("Scheduler: inventory_sync pending retry cancelled")


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(job: InventorySyncJob, *, interval_minutes: int = 15) -> BackgroundScheduler:
    """
    Build the scheduler and register the periodic sync.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        job.run,
        trigger="interval",
        minutes=max(1, interval_minutes),
        id=SYNC_JOB_ID,
        name="Inventory sheet sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=300,
    )
    job.bind(scheduler)
    return scheduler
