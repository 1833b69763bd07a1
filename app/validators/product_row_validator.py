"""
app/validators/product_row_validator.py

Row-level normalization and filtering for the inventory feed.

Nothing here raises on bad cell values: numeric fields fall back to zero and
rows without a unique id are dropped and counted. Values the products table
cannot hold count as parse failures.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

from app.domain.inventory import ProductRecord, ValidationReport
from app.mappers.product_row_mapper import ProductRowMapper

logger = logging.getLogger(__name__)

PRICE_QUANTUM = Decimal("0.01")
ZERO_PRICE = Decimal("0.00")

# Bounds of the products.stock_count (INTEGER) and products.price
# (NUMERIC(12, 2)) columns.
MAX_QUANTITY = 2**31 - 1
PRICE_CEILING = Decimal("1e10")


class ProductRowValidator:
    """
    Turns raw positional feed rows into ``ProductRecord`` values.
    """

    def __init__(self, mapper: ProductRowMapper | None = None) -> None:
        self._mapper = mapper or ProductRowMapper()

    @property
    def mapper(self) -> ProductRowMapper:
        return self._mapper

    def validate_header(self, header: Sequence[Any] | None) -> None:
        """
        Check the feed header against the column layout, if one was fetched.
        """

        self._mapper.validate_header(header)

    def validate_rows(
        self,
        raw_rows: Iterable[Sequence[Any]],
        *,
        collapse_duplicates: bool = True,
    ) -> ValidationReport:
        """
        Normalize every row and drop rows without a unique id.

        With ``collapse_duplicates`` a repeated id keeps only its last row,
        placed where the id first appeared. One upsert statement cannot
        touch the same key twice, so the workflow always collapses.
        """

        records: list[ProductRecord] = []
        skipped_rows = 0

        for row_number, raw_row in enumerate(raw_rows, start=1):
            record = self.parse_row(raw_row)
            if record is None:
                skipped_rows += 1
                logger.debug("Feed row skipped row_number=%s reason=missing_uuid", row_number)
                continue
            records.append(record)

        if skipped_rows:
            logger.warning("Feed rows skipped without uuid count=%s", skipped_rows)

        duplicate_rows = 0
        if collapse_duplicates:
            records, duplicate_rows = self._collapse_duplicates(records)

        return ValidationReport(
            records=records,
            skipped_rows=skipped_rows,
            duplicate_rows=duplicate_rows,
        )

    @staticmethod
    def _collapse_duplicates(records: list[ProductRecord]) -> tuple[list[ProductRecord], int]:
        by_unique_id: dict[str, ProductRecord] = {}
        for record in records:
            if record.unique_id in by_unique_id:
                logger.warning("Feed row overrides earlier row uuid=%s", record.unique_id)
            by_unique_id[record.unique_id] = record
        return list(by_unique_id.values()), len(records) - len(by_unique_id)

    def parse_row(self, raw_row: Sequence[Any]) -> ProductRecord | None:
        """
        Normalize one raw row. Returns None when the unique id is empty.
        """

        mapped = {name: value.strip() for name, value in self._mapper.map_row(raw_row).items()}
        unique_id = mapped["uuid"]
        if not unique_id:
            return None

        return ProductRecord(
            unique_id=unique_id,
            sku=mapped["sku"],
            name=mapped["name"],
            available=self._parse_ready_flag(mapped["ready_for_sale"]),
            quantity=self._parse_quantity(mapped["stock_count"]),
            unit_price=self._parse_price(mapped["price"]),
            description=mapped["short_desc"],
        )

    def _parse_ready_flag(self, value: str) -> bool:
        return value.lower() == self._mapper.layout.ready_sentinel.lower()

    @staticmethod
    def _parse_quantity(value: str) -> int:
        if "e" in value.lower():
            return 0
        try:
            parsed = Decimal(value)
        except (InvalidOperation, ValueError):
            return 0
        if not parsed.is_finite() or parsed < 0 or parsed != parsed.to_integral_value():
            return 0
        if parsed > MAX_QUANTITY:
            return 0
        return int(parsed)

    @staticmethod
    def _parse_price(value: str) -> Decimal:
        try:
            parsed = Decimal(value)
        except (InvalidOperation, ValueError):
            return ZERO_PRICE
        if not parsed.is_finite() or parsed < 0:
            return ZERO_PRICE
        try:
            quantized = abs(parsed).quantize(PRICE_QUANTUM)
        except InvalidOperation:
            return ZERO_PRICE
        if quantized >= PRICE_CEILING:
            return ZERO_PRICE
        return quantized
