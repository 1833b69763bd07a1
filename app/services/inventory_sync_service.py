"""
app/services/inventory_sync_service.py

Single entry point for running the inventory sync from the scheduler, the
API and the CLI.

Only one run executes at a time per process. Every attempt is recorded in
``sync_runs``; a failure to write that record is logged and never changes
the outcome of the sync itself.
"""

from __future__ import annotations

import logging
import threading
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import (
    ExternalHTTPSettings,
    GoogleSheetsSettings,
    InventorySyncSettings,
    get_external_http_settings,
    get_google_sheets_settings,
    get_inventory_sync_settings,
)
from app.connectors.google_sheets_connector import GoogleSheetsConnector
from app.domain.inventory import SyncSummary
from app.domain.sync_errors import FailureKind, InventorySyncError, SyncInProgressError
from app.mappers.product_row_mapper import ProductRowMapper, get_feed_layout
from app.repositories.product_repository import ProductRepository
from app.services.inventory_sync_workflow import InventorySyncWorkflow
from app.validators.product_row_validator import ProductRowValidator
from db.models.sync_run import SyncRun, SyncRunTrigger
from db.repositories.sync_run_repository import SyncRunRepository
from db.session import session_scope

logger = logging.getLogger(__name__)


class InventorySyncService:
    def __init__(
        self,
        *,
        workflow: InventorySyncWorkflow,
        session_factory: sessionmaker[Session] | None = None,
    ) -> None:
        self._workflow = workflow
        self._session_factory = session_factory
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run(self, *, trigger: str = SyncRunTrigger.MANUAL, attempt: int = 1) -> SyncSummary:
        """
        Run the workflow once and record the attempt.

        Raises ``SyncInProgressError`` when another run holds the lock, and
        re-raises every workflow failure unchanged.
        """

        if not self._lock.acquire(blocking=False):
            raise SyncInProgressError("An inventory sync is already running.")

        try:
            run_id = self._record_start(trigger=trigger, attempt=attempt)
            try:
                summary = self._workflow.run()
            except InventorySyncError as exc:
                self._record_failure(
                    run_id,
                    failure_kind=exc.kind.value,
                    failed_state=exc.state.value if exc.state else None,
                    error_message=exc.message,
                )
                raise
            except Exception as exc:
                self._record_failure(
                    run_id,
                    failure_kind=FailureKind.RETRIABLE.value,
                    failed_state=None,
                    error_message=f"{exc.__class__.__name__}: {exc}",
                )
                raise

            self._record_success(run_id, summary)
            return summary
        finally:
            self._lock.release()

    def list_runs(self, *, limit: int = 50, status: str | None = None) -> list[SyncRun]:
        if self._session_factory is None:
            return []
        with session_scope(self._session_factory) as session:
            return SyncRunRepository(session).list_runs(limit=limit, status=status)

    def _record_start(self, *, trigger: str, attempt: int) -> uuid.UUID | None:
        if self._session_factory is None:
            return None
        try:
            with self._session_factory() as session, session.begin():
                run = SyncRunRepository(session).start_run(trigger=trigger, attempt=attempt)
                run_id = run.id
        except SQLAlchemyError:
            logger.exception("Sync run record not written trigger=%s attempt=%s", trigger, attempt)
            return None
        logger.info("Sync run started run_id=%s trigger=%s attempt=%s", run_id, trigger, attempt)
        return run_id

    def _record_success(self, run_id: uuid.UUID | None, summary: SyncSummary) -> None:
        if self._session_factory is None or run_id is None:
            return
        try:
            with self._session_factory() as session, session.begin():
                SyncRunRepository(session).mark_completed(
                    run_id=run_id,
                    inserted=summary.inserted,
                    updated=summary.updated,
                    total=summary.total,
                )
        except SQLAlchemyError:
            logger.exception("Sync run completion not recorded run_id=%s", run_id)

    def _record_failure(
        self,
        run_id: uuid.UUID | None,
        *,
        failure_kind: str,
        failed_state: str | None,
        error_message: str,
    ) -> None:
        if self._session_factory is None or run_id is None:
            return
        try:
            with self._session_factory() as session, session.begin():
                SyncRunRepository(session).mark_failed(
                    run_id=run_id,
                    failure_kind=failure_kind,
                    failed_state=failed_state,
                    error_message=error_message,
                )
        except SQLAlchemyError:
            logger.exception("Sync run failure not recorded run_id=%s", run_id)


def build_inventory_sync_service(
    session_factory: sessionmaker[Session],
    *,
    sync_settings: InventorySyncSettings | None = None,
    sheets_settings: GoogleSheetsSettings | None = None,
    http_settings: ExternalHTTPSettings | None = None,
) -> InventorySyncService:
    """
    Wire the Sheets feed, the product store and the workflow into a service.
    """

    sync_settings = sync_settings or get_inventory_sync_settings()
    feed = GoogleSheetsConnector(
        settings=sheets_settings or get_google_sheets_settings(),
        http_settings=http_settings or get_external_http_settings(),
    )
    validator = ProductRowValidator(ProductRowMapper(get_feed_layout(sync_settings.feed_layout)))
    workflow = InventorySyncWorkflow(
        feed=feed,
        store=ProductRepository(session_factory),
        validator=validator,
        batch_size=sync_settings.batch_size,
    )
    return InventorySyncService(workflow=workflow, session_factory=session_factory)
