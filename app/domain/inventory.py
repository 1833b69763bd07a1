"""
app/domain/inventory.py

Domain models used by the inventory feed reconciliation flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

# Bound per record in one upsert statement: uuid, sku, name, ready_for_sale,
# stock_count, price, short_desc. updated_at is set by the database clock.
FIELDS_PER_RECORD = 7


@dataclass(frozen=True)
class ProductRecord:
    """
    One validated feed row destined for the products table.
    """

    unique_id: str
    sku: str
    name: str
    available: bool
    quantity: int
    unit_price: Decimal
    description: str

    def to_row(self) -> dict[str, object]:
        """
        Column payload for the products table, keyed by column name.
        """

        return {
            "uuid": self.unique_id,
            "sku": self.sku,
            "name": self.name,
            "ready_for_sale": self.available,
            "stock_count": self.quantity,
            "price": self.unit_price,
            "short_desc": self.description,
        }


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass(frozen=True)
class RowOutcome:
    unique_id: str
    outcome: UpsertOutcome


@dataclass(frozen=True)
class BatchUpsertResult:
    """
    Counts and per-row classification for one written batch.
    """

    inserted: int
    updated: int
    total: int
    outcomes: tuple[RowOutcome, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes: list[RowOutcome] | tuple[RowOutcome, ...]) -> BatchUpsertResult:
        inserted = sum(1 for row in outcomes if row.outcome is UpsertOutcome.INSERTED)
        return cls(
            inserted=inserted,
            updated=len(outcomes) - inserted,
            total=len(outcomes),
            outcomes=tuple(outcomes),
        )


@dataclass(frozen=True)
class SyncSummary:
    """
    End-of-run counters. ``total`` always equals ``inserted + updated``.
    """

    inserted: int = 0
    updated: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"inserted": self.inserted, "updated": self.updated, "total": self.total}


@dataclass(frozen=True)
class ValidationReport:
    """
    Output of feed row validation: records to write plus what was dropped.
    """

    records: list[ProductRecord] = field(default_factory=list)
    skipped_rows: int = 0
    duplicate_rows: int = 0


@dataclass(frozen=True)
class FeedSnapshot:
    """
    Raw rows as read from the external feed, with the header row when fetched.
    """

    rows: list[list[str]]
    header: list[str] | None = None
