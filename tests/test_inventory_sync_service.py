"""
tests/test_inventory_sync_service.py

Pytest unit tests for InventorySyncService: one-at-a-time execution and
sync_runs bookkeeping. The repository is swapped for a recorder so no
database is needed.
"""

from __future__ import annotations

import threading
import uuid
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

import app.services.inventory_sync_service as service_module
from app.domain.inventory import SyncSummary
from app.domain.sync_errors import (
    EmptyFeedError,
    FailureKind,
    SyncInProgressError,
    SyncState,
)
from app.services.inventory_sync_service import InventorySyncService
from db.models.sync_run import SyncRunTrigger


class StubWorkflow:
    def __init__(self, outcome: SyncSummary | Exception) -> None:
        self._outcome = outcome
        self.calls = 0

    def run(self) -> SyncSummary:
        self.calls += 1
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


class BlockingWorkflow:
    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()

    def run(self) -> SyncSummary:
        self.started.set()
        self.release.wait(timeout=5)
        return SyncSummary()


class _FakeSession:
    def __enter__(self) -> "_FakeSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def begin(self) -> "_FakeSession":
        return self

    def close(self) -> None:
        return None


class RecordingRunRepository:
    events: list[tuple[str, dict[str, Any]]] = []
    fail_on_start = False

    def __init__(self, session: Any) -> None:
        self._session = session

    def start_run(self, *, trigger: str, attempt: int = 1) -> Any:
        if self.fail_on_start:
            raise OperationalError("INSERT", {}, Exception("db down"))
        run_id = uuid.uuid4()
        self.events.append(("start", {"trigger": trigger, "attempt": attempt, "id": run_id}))
        return type("Run", (), {"id": run_id})()

    def mark_completed(self, **kwargs: Any) -> None:
        self.events.append(("completed", kwargs))

    def mark_failed(self, **kwargs: Any) -> None:
        self.events.append(("failed", kwargs))


@pytest.fixture()
def run_repository(monkeypatch: pytest.MonkeyPatch) -> type[RecordingRunRepository]:
    RecordingRunRepository.events = []
    RecordingRunRepository.fail_on_start = False
    monkeypatch.setattr(service_module, "SyncRunRepository", RecordingRunRepository)
    return RecordingRunRepository


def _service(workflow: Any) -> InventorySyncService:
    return InventorySyncService(workflow=workflow, session_factory=_FakeSession)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Run bookkeeping
# ---------------------------------------------------------------------------


class TestRunRecording:
    def test_success_is_recorded(self, run_repository: type[RecordingRunRepository]) -> None:
        summary = SyncSummary(inserted=2, updated=1, total=3)

        result = _service(StubWorkflow(summary)).run(trigger=SyncRunTrigger.SCHEDULE, attempt=2)

        assert result == summary
        kinds = [kind for kind, _ in run_repository.events]
        assert kinds == ["start", "completed"]
        start, completed = run_repository.events[0][1], run_repository.events[1][1]
        assert start["trigger"] == SyncRunTrigger.SCHEDULE
        assert start["attempt"] == 2
        assert completed == {"run_id": start["id"], "inserted": 2, "updated": 1, "total": 3}

    def test_failure_is_recorded_and_reraised(self, run_repository: type[RecordingRunRepository]) -> None:
        error = EmptyFeedError("no rows", state=SyncState.VALIDATING)

        with pytest.raises(EmptyFeedError):
            _service(StubWorkflow(error)).run()

        kind, failed = run_repository.events[-1]
        assert kind == "failed"
        assert failed["failure_kind"] == FailureKind.NON_RETRIABLE.value
        assert failed["failed_state"] == SyncState.VALIDATING.value
        assert failed["error_message"] == "no rows"

    def test_unexpected_error_is_recorded_as_retriable(
        self,
        run_repository: type[RecordingRunRepository],
    ) -> None:
        with pytest.raises(KeyError):
            _service(StubWorkflow(KeyError("boom"))).run()

        kind, failed = run_repository.events[-1]
        assert kind == "failed"
        assert failed["failure_kind"] == FailureKind.RETRIABLE.value

    def test_recording_failure_does_not_change_result(
        self,
        run_repository: type[RecordingRunRepository],
    ) -> None:
        run_repository.fail_on_start = True
        summary = SyncSummary(inserted=1, updated=0, total=1)

        assert _service(StubWorkflow(summary)).run() == summary
        assert run_repository.events == []

    def test_without_session_factory_nothing_is_recorded(self) -> None:
        service = InventorySyncService(workflow=StubWorkflow(SyncSummary()))  # type: ignore[arg-type]

        assert service.run() == SyncSummary()
        assert service.list_runs() == []


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestSingleFlight:
    def test_concurrent_run_is_rejected(self) -> None:
        workflow = BlockingWorkflow()
        service = InventorySyncService(workflow=workflow)  # type: ignore[arg-type]
        worker = threading.Thread(target=service.run)
        worker.start()
        try:
            assert workflow.started.wait(timeout=5)
            assert service.is_running

            with pytest.raises(SyncInProgressError) as exc_info:
                service.run()
            assert exc_info.value.kind is FailureKind.RETRIABLE
        finally:
            workflow.release.set()
            worker.join(timeout=5)

        assert not service.is_running

    def test_lock_is_released_after_failure(self) -> None:
        workflow = StubWorkflow(EmptyFeedError("no rows"))
        service = InventorySyncService(workflow=workflow)  # type: ignore[arg-type]

        for _ in range(2):
            with pytest.raises(EmptyFeedError):
                service.run()

        assert workflow.calls == 2
