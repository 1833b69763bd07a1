"""
Repository for inventory sync run lifecycle persistence and lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.sync_run import SyncRun, SyncRunStatus


class SyncRunRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def start_run(self, *, trigger: str, attempt: int = 1) -> SyncRun:
        run = SyncRun(
            trigger=trigger,
            attempt=attempt,
            status=SyncRunStatus.RUNNING,
            started_at=datetime.now(timezone.utc),
        )
        self._session.add(run)
        self._session.flush()
        return run

    def get_run(self, run_id: uuid.UUID) -> SyncRun | None:
        return self._session.get(SyncRun, run_id)

    def list_runs(self, *, limit: int = 50, status: str | None = None) -> list[SyncRun]:
        stmt: Select[tuple[SyncRun]] = select(SyncRun)
        if status:
            stmt = stmt.where(SyncRun.status == status)

        stmt = stmt.order_by(SyncRun.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_completed(
        self,
        *,
        run_id: uuid.UUID,
        inserted: int,
        updated: int,
        total: int,
    ) -> SyncRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = SyncRunStatus.COMPLETED
        run.completed_at = datetime.now(timezone.utc)
        run.inserted = inserted
        run.updated = updated
        run.total = total
        run.failure_kind = None
        run.failed_state = None
        run.error_message = None
        return run

    def mark_failed(
        self,
        *,
        run_id: uuid.UUID,
        failure_kind: str,
        failed_state: str | None,
        error_message: str,
    ) -> SyncRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = SyncRunStatus.FAILED
        run.completed_at = datetime.now(timezone.utc)
        run.failure_kind = failure_kind
        run.failed_state = failed_state
        run.error_message = error_message[:2000]
        return run
