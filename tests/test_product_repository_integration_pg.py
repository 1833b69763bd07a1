from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import delete, select

from app.domain.inventory import FeedSnapshot, ProductRecord, SyncSummary
from app.domain.sync_errors import BatchWriteError, FailureKind
from app.repositories.product_repository import ProductRepository
from app.services.inventory_sync_service import InventorySyncService
from app.services.inventory_sync_workflow import InventorySyncWorkflow
from db.config import DatabaseSettings
from db.models.product import Product
from db.models.sync_run import SyncRun, SyncRunStatus, SyncRunTrigger
from db.session import build_session_factory, create_db_engine
from it_pg_utils import assert_table_exists, create_tables, require_it_db_url


@pytest.fixture(scope="module")
def session_factory():
    engine = create_db_engine(DatabaseSettings(url=require_it_db_url()))
    create_tables(engine)
    with engine.connect() as conn:
        assert_table_exists(conn, "products")
        assert_table_exists(conn, "sync_runs")
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def prefix(session_factory):
    value = f"it-{uuid4().hex[:8]}-"
    yield value
    with session_factory() as session, session.begin():
        session.execute(delete(Product).where(Product.uuid.startswith(value)))


def _record(unique_id: str, quantity: int = 1, price: str = "1.00") -> ProductRecord:
    return ProductRecord(
        unique_id=unique_id,
        sku=f"SKU-{unique_id}",
        name="Widget",
        available=True,
        quantity=quantity,
        unit_price=Decimal(price),
        description="integration",
    )


class _Feed:
    def __init__(self, rows: list[list[str]]) -> None:
        self._rows = rows

    def fetch_snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(rows=self._rows)


def test_insert_then_update_is_classified_by_database(session_factory, prefix) -> None:
    repository = ProductRepository(session_factory)
    unique_id = f"{prefix}a"

    first = repository.upsert_batch([_record(unique_id, quantity=5)], batch_index=0)
    second = repository.upsert_batch([_record(unique_id, quantity=8, price="2.50")], batch_index=0)

    assert (first.inserted, first.updated, first.total) == (1, 0, 1)
    assert (second.inserted, second.updated, second.total) == (0, 1, 1)

    with session_factory() as session:
        product = session.scalars(select(Product).where(Product.uuid == unique_id)).one()
        assert product.stock_count == 8
        assert product.price == Decimal("2.50")
        assert product.updated_at >= product.created_at


def test_mixed_batch_counts(session_factory, prefix) -> None:
    repository = ProductRepository(session_factory)
    repository.upsert_batch([_record(f"{prefix}0"), _record(f"{prefix}1")])

    result = repository.upsert_batch([_record(f"{prefix}{i}") for i in range(4)])

    assert (result.inserted, result.updated, result.total) == (2, 2, 4)


def test_duplicate_key_in_one_batch_is_non_retriable(session_factory, prefix) -> None:
    repository = ProductRepository(session_factory)

    with pytest.raises(BatchWriteError) as exc_info:
        repository.upsert_batch([_record(f"{prefix}dup"), _record(f"{prefix}dup")])

    assert exc_info.value.kind is FailureKind.NON_RETRIABLE


def test_out_of_range_price_rolls_back_whole_batch(session_factory, prefix) -> None:
    repository = ProductRepository(session_factory)

    with pytest.raises(BatchWriteError):
        repository.upsert_batch([_record(f"{prefix}ok"), _record(f"{prefix}big", price="100000000000.00")])

    with session_factory() as session:
        assert session.scalars(select(Product).where(Product.uuid == f"{prefix}ok")).first() is None


def test_long_text_cells_are_stored(session_factory, prefix) -> None:
    repository = ProductRepository(session_factory)
    unique_id = f"{prefix}" + "x" * 300

    result = repository.upsert_batch([_record(unique_id)])

    assert result.inserted == 1


def test_recorded_run_through_service(session_factory, prefix) -> None:
    rows = [[f"{prefix}{i}", "SKU", "Widget", "Y", "2", "3.50", ""] for i in range(3)]
    workflow = InventorySyncWorkflow(feed=_Feed(rows), store=ProductRepository(session_factory))
    service = InventorySyncService(workflow=workflow, session_factory=session_factory)

    summary = service.run(trigger=SyncRunTrigger.MANUAL)

    assert summary == SyncSummary(inserted=3, updated=0, total=3)
    latest = service.list_runs(limit=1)[0]
    assert latest.status == SyncRunStatus.COMPLETED
    assert latest.total == 3

    with session_factory() as session, session.begin():
        session.execute(delete(SyncRun).where(SyncRun.id == latest.id))
