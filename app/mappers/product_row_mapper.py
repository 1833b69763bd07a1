"""
app/mappers/product_row_mapper.py

Named-field decoding of positional inventory feed rows.

Feed rows arrive as plain lists of cell values. Which column holds which
field is declared once per layout version in ``PRODUCT_FEED_LAYOUTS``; a
change in the sheet's column order is a new entry there, not a code change
in the validator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from app.domain.sync_errors import FeedLayoutError, SyncState

PRODUCT_FIELDS: tuple[str, ...] = (
    "uuid",
    "sku",
    "name",
    "ready_for_sale",
    "stock_count",
    "price",
    "short_desc",
)


@dataclass(frozen=True)
class ColumnMismatch:
    """
    One header position that does not match the layout.
    """

    code: str
    field_name: str
    position: int
    actual: str | None = None


def normalize_header(header: str) -> str:
    """
    Normalize a column label for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class FeedLayout:
    """
    Column index and expected header label for every product field.
    """

    version: str
    columns: Mapping[str, int]
    headers: Mapping[str, str]
    ready_sentinel: str = "Y"

    @property
    def width(self) -> int:
        return max(self.columns.values()) + 1


PRODUCT_FEED_LAYOUTS: dict[str, FeedLayout] = {
    # Sheet1!A:H, column H is unused.
    "v1": FeedLayout(
        version="v1",
        columns={
            "uuid": 0,
            "sku": 1,
            "name": 2,
            "ready_for_sale": 3,
            "stock_count": 4,
            "price": 5,
            "short_desc": 6,
        },
        headers={
            "uuid": "uuid",
            "sku": "sku",
            "name": "name",
            "ready_for_sale": "ready_for_sale",
            "stock_count": "stock_count",
            "price": "price",
            "short_desc": "short_desc",
        },
    ),
}


def get_feed_layout(version: str) -> FeedLayout:
    layout = PRODUCT_FEED_LAYOUTS.get(version.strip().lower())
    if layout is None:
        allowed = ", ".join(sorted(PRODUCT_FEED_LAYOUTS))
        raise ValueError(f"Unknown feed layout '{version}'. Allowed layouts: {allowed}.")
    return layout


class ProductRowMapper:
    """
    Decodes raw feed rows into field-name dictionaries for one layout.
    """

    def __init__(self, layout: FeedLayout | None = None) -> None:
        self._layout = layout or PRODUCT_FEED_LAYOUTS["v1"]
        missing = [name for name in PRODUCT_FIELDS if name not in self._layout.columns]
        if missing:
            raise ValueError(
                f"Feed layout '{self._layout.version}' does not map fields: {', '.join(missing)}."
            )

    @property
    def layout(self) -> FeedLayout:
        return self._layout

    def map_row(self, raw_row: Sequence[Any]) -> dict[str, str]:
        """
        Pick every mapped field out of a positional row.

        Short rows are tolerated: absent trailing positions decode as "".
        """

        mapped: dict[str, str] = {}
        for field_name, index in self._layout.columns.items():
            value = raw_row[index] if index < len(raw_row) else None
            mapped[field_name] = "" if value is None else str(value)
        return mapped

    def validate_header(self, header: Sequence[Any] | None) -> None:
        """
        Check a fetched header row against the layout.

        No header means nothing to check. Any missing or mislabeled column
        raises ``FeedLayoutError`` listing every mismatch.
        """

        if header is None:
            return

        errors: list[ColumnMismatch] = []
        for field_name, index in self._layout.columns.items():
            expected = self._layout.headers.get(field_name, field_name)
            if index >= len(header):
                errors.append(
                    ColumnMismatch(code="column_missing", field_name=field_name, position=index)
                )
                continue

            actual = "" if header[index] is None else str(header[index])
            if normalize_header(actual) != normalize_header(expected):
                errors.append(
                    ColumnMismatch(
                        code="column_mislabeled",
                        field_name=field_name,
                        position=index,
                        actual=actual,
                    )
                )

        if errors:
            details = "; ".join(
                f"{error.field_name}@{error.position} {error.code} ({error.actual!r})"
                for error in errors
            )
            raise FeedLayoutError(
                f"Feed header does not match layout '{self._layout.version}': {details}",
                state=SyncState.VALIDATING,
                mismatches=errors,
            )
