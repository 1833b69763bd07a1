"""
tests/test_scheduler_jobs.py

Pytest unit tests for the inventory sync scheduler job.

A recording stand-in replaces the APScheduler instance for the retry policy
tests; ``build_scheduler`` is checked against a real, never-started
``BackgroundScheduler``.
"""

from __future__ import annotations

from typing import Any

import pytest

from app.domain.inventory import SyncSummary
from app.domain.sync_errors import (
    BatchWriteError,
    EmptyFeedError,
    FailureKind,
    FetchError,
    InventorySyncError,
    SyncInProgressError,
    SyncState,
)
from app.scheduler.jobs import RETRY_JOB_ID, SYNC_JOB_ID, InventorySyncJob, build_scheduler
from db.models.sync_run import SyncRunTrigger


class ScriptedService:
    """Returns or raises the queued outcomes in order."""

    def __init__(self, outcomes: list[SyncSummary | InventorySyncError]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[str, int]] = []

    def run(self, *, trigger: str, attempt: int) -> SyncSummary:
        self.calls.append((trigger, attempt))
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, InventorySyncError):
            raise outcome
        return outcome


class RecordingScheduler:
    def __init__(self) -> None:
        self.jobs: dict[str, dict[str, Any]] = {}
        self.removed: list[str] = []

    def add_job(self, func: Any, **kwargs: Any) -> None:
        self.jobs[kwargs["id"]] = {"func": func, **kwargs}

    def get_job(self, job_id: str) -> dict[str, Any] | None:
        return self.jobs.get(job_id)

    def remove_job(self, job_id: str) -> None:
        self.removed.append(job_id)
        self.jobs.pop(job_id)


def _job(service: ScriptedService, max_retries: int = 3) -> tuple[InventorySyncJob, RecordingScheduler]:
    job = InventorySyncJob(service=service, max_retries=max_retries, retry_delay_seconds=30)  # type: ignore[arg-type]
    scheduler = RecordingScheduler()
    job.bind(scheduler)  # type: ignore[arg-type]
    return job, scheduler


def _retriable() -> FetchError:
    return FetchError("sheets unavailable", state=SyncState.FETCHING)


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    def test_success_returns_summary_without_retry(self) -> None:
        summary = SyncSummary(inserted=1, updated=0, total=1)
        job, scheduler = _job(ScriptedService([summary]))

        assert job.run() == summary
        assert RETRY_JOB_ID not in scheduler.jobs

    def test_retriable_failure_schedules_retry(self) -> None:
        job, scheduler = _job(ScriptedService([_retriable()]))

        assert job.run() is None

        retry = scheduler.jobs[RETRY_JOB_ID]
        assert retry["trigger"] == "date"
        assert retry["kwargs"] == {"attempt": 2, "trigger": SyncRunTrigger.RETRY}
        assert retry["replace_existing"] is True

    def test_non_retriable_failure_is_not_retried(self) -> None:
        error = EmptyFeedError("no rows", state=SyncState.VALIDATING)
        job, scheduler = _job(ScriptedService([error]))

        assert job.run() is None
        assert scheduler.jobs == {}

    def test_non_retriable_batch_failure_is_not_retried(self) -> None:
        error = BatchWriteError("constraint", kind=FailureKind.NON_RETRIABLE, batch_index=0)
        job, scheduler = _job(ScriptedService([error]))

        job.run()

        assert scheduler.jobs == {}

    def test_retries_stop_after_max_retries(self) -> None:
        service = ScriptedService([_retriable() for _ in range(4)])
        job, scheduler = _job(service, max_retries=3)

        for attempt in range(1, 5):
            scheduler.jobs.clear()
            job.run(attempt=attempt, trigger=SyncRunTrigger.RETRY)
            if attempt < 4:
                assert scheduler.jobs[RETRY_JOB_ID]["kwargs"]["attempt"] == attempt + 1

        assert RETRY_JOB_ID not in scheduler.jobs
        assert [attempt for _, attempt in service.calls] == [1, 2, 3, 4]

    def test_zero_max_retries_never_schedules(self) -> None:
        job, scheduler = _job(ScriptedService([_retriable()]), max_retries=0)

        job.run()

        assert scheduler.jobs == {}

    def test_success_cancels_pending_retry(self) -> None:
        summary = SyncSummary(inserted=0, updated=2, total=2)
        job, scheduler = _job(ScriptedService([_retriable(), summary]))

        job.run()
        assert RETRY_JOB_ID in scheduler.jobs

        job.run()

        assert scheduler.removed == [RETRY_JOB_ID]
        assert RETRY_JOB_ID not in scheduler.jobs

    def test_in_progress_is_skipped_without_retry(self) -> None:
        job, scheduler = _job(ScriptedService([SyncInProgressError("busy")]))

        assert job.run() is None
        assert scheduler.jobs == {}

    def test_unbound_job_does_not_fail_on_retriable_error(self) -> None:
        job = InventorySyncJob(service=ScriptedService([_retriable()]))  # type: ignore[arg-type]

        assert job.run() is None

    def test_scheduled_trigger_and_attempt_are_passed_to_service(self) -> None:
        service = ScriptedService([SyncSummary()])
        job, _ = _job(service)

        job.run()

        assert service.calls == [(SyncRunTrigger.SCHEDULE, 1)]


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


class TestBuildScheduler:
    def test_registers_interval_job(self) -> None:
        job = InventorySyncJob(service=ScriptedService([]))  # type: ignore[arg-type]

        scheduler = build_scheduler(job, interval_minutes=15)

        registered = scheduler.get_job(SYNC_JOB_ID)
        assert registered is not None
        assert registered.max_instances == 1
        assert registered.coalesce is True
        assert registered.trigger.interval.total_seconds() == 15 * 60

    @pytest.mark.parametrize("minutes", [0, -3])
    def test_interval_is_at_least_one_minute(self, minutes: int) -> None:
        job = InventorySyncJob(service=ScriptedService([]))  # type: ignore[arg-type]

        scheduler = build_scheduler(job, interval_minutes=minutes)

        assert scheduler.get_job(SYNC_JOB_ID).trigger.interval.total_seconds() == 60
