"""
app/repositories/product_repository.py

Batched insert-or-update of feed records into the products table.

Each batch is one PostgreSQL ``INSERT ... ON CONFLICT (uuid) DO UPDATE``
statement in its own transaction. The statement itself reports which rows
were inserted and which hit the conflict branch (``xmax = 0`` only holds for
a freshly inserted tuple), so no existence check is issued beforehand.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from sqlalchemy import Boolean, func, literal_column
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import (
    DBAPIError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from app.domain.inventory import BatchUpsertResult, ProductRecord, RowOutcome, UpsertOutcome
from app.domain.sync_errors import BatchWriteError, FailureKind, SyncState
from db.models.product import Product

logger = logging.getLogger(__name__)

CONFLICT_COLUMN = "uuid"
UPDATE_COLUMNS: tuple[str, ...] = (
    "sku",
    "name",
    "ready_for_sale",
    "stock_count",
    "price",
    "short_desc",
)

_RETRIABLE_ERRORS: tuple[type[SQLAlchemyError], ...] = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
)


class ProductStore(ABC):
    """
    Store abstraction for one-batch product upserts.
    """

    @abstractmethod
    def upsert_batch(
        self,
        batch: Sequence[ProductRecord],
        *,
        batch_index: int | None = None,
    ) -> BatchUpsertResult:
        """
        Write the whole batch atomically and classify every row.

        Raises ``BatchWriteError`` tagged retriable or non-retriable.
        """


def classify_store_error(exc: BaseException) -> FailureKind:
    """
    Map a SQLAlchemy failure onto the retry classification.

    Lost connections, pool exhaustion and statement timeouts are transient.
    Everything else (constraint violations, malformed values, SQL errors)
    would fail the same way on retry.
    """

    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return FailureKind.RETRIABLE
    if isinstance(exc, _RETRIABLE_ERRORS):
        return FailureKind.RETRIABLE
    return FailureKind.NON_RETRIABLE


def build_upsert_statement(batch: Sequence[ProductRecord]) -> Insert:
    """
    Build the single insert-or-update statement for one batch.
    """

    stmt = insert(Product).values([record.to_row() for record in batch])
    set_columns = {column: stmt.excluded[column] for column in UPDATE_COLUMNS}
    set_columns["updated_at"] = func.now()
    return stmt.on_conflict_do_update(
        index_elements=[CONFLICT_COLUMN],
        set_=set_columns,
    ).returning(
        Product.uuid,
        literal_column("(xmax = 0)", Boolean).label("inserted"),
    )


class ProductRepository(ProductStore):
    """
    PostgreSQL-backed product store.

    Borrows one pooled connection per batch and returns it as soon as the
    batch's transaction ends.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def upsert_batch(
        self,
        batch: Sequence[ProductRecord],
        *,
        batch_index: int | None = None,
    ) -> BatchUpsertResult:
        if not batch:
            return BatchUpsertResult(inserted=0, updated=0, total=0)

        stmt = build_upsert_statement(batch)
        try:
            with self._session_factory() as session, session.begin():
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            kind = classify_store_error(exc)
            logger.error(
                "Product batch upsert failed batch_index=%s size=%s kind=%s error=%s",
                batch_index,
                len(batch),
                kind.value,
                exc,
            )
            raise BatchWriteError(
                f"Batch {batch_index} upsert failed: {exc.__class__.__name__}",
                kind=kind,
                batch_index=batch_index,
                batch_size=len(batch),
                state=SyncState.UPSERTING,
            ) from exc

        outcomes = [
            RowOutcome(
                unique_id=row.uuid,
                outcome=UpsertOutcome.INSERTED if row.inserted else UpsertOutcome.UPDATED,
            )
            for row in rows
        ]
        return BatchUpsertResult.from_outcomes(outcomes)
