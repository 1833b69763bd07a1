from __future__ import annotations

import unittest

from app.domain.sync_errors import FailureKind, FeedLayoutError, SyncState
from app.mappers.product_row_mapper import (
    PRODUCT_FEED_LAYOUTS,
    FeedLayout,
    ProductRowMapper,
    get_feed_layout,
    normalize_header,
)

V1_HEADER = ["uuid", "sku", "name", "ready_for_sale", "stock_count", "price", "short_desc"]


class TestProductRowMapper(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = ProductRowMapper()

    def test_maps_positional_row_to_named_fields(self) -> None:
        mapped = self.mapper.map_row(["u1", "SKU-1", "Widget", "Y", "5", "9.99", "desc", "ignored"])

        self.assertEqual(
            mapped,
            {
                "uuid": "u1",
                "sku": "SKU-1",
                "name": "Widget",
                "ready_for_sale": "Y",
                "stock_count": "5",
                "price": "9.99",
                "short_desc": "desc",
            },
        )

    def test_short_row_maps_missing_cells_to_empty(self) -> None:
        mapped = self.mapper.map_row(["u1"])

        self.assertEqual(mapped["uuid"], "u1")
        self.assertEqual(mapped["short_desc"], "")
        self.assertEqual(mapped["price"], "")

    def test_none_and_non_string_cells(self) -> None:
        mapped = self.mapper.map_row(["u1", None, "Widget", "Y", 5, 9.5, None])

        self.assertEqual(mapped["sku"], "")
        self.assertEqual(mapped["stock_count"], "5")
        self.assertEqual(mapped["price"], "9.5")
        self.assertEqual(mapped["short_desc"], "")

    def test_layout_must_map_every_field(self) -> None:
        layout = FeedLayout(version="broken", columns={"uuid": 0}, headers={})

        with self.assertRaises(ValueError):
            ProductRowMapper(layout)

    def test_reordered_layout(self) -> None:
        layout = FeedLayout(
            version="v2",
            columns={
                "short_desc": 0,
                "uuid": 1,
                "sku": 2,
                "name": 3,
                "ready_for_sale": 4,
                "stock_count": 5,
                "price": 6,
            },
            headers={},
        )

        mapped = ProductRowMapper(layout).map_row(["desc", "u1", "SKU-1", "Widget", "Y", "5", "9.99"])

        self.assertEqual(mapped["uuid"], "u1")
        self.assertEqual(mapped["short_desc"], "desc")

    def test_v1_layout_width(self) -> None:
        self.assertEqual(PRODUCT_FEED_LAYOUTS["v1"].width, 7)


class TestHeaderValidation(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = ProductRowMapper()

    def test_matching_header_passes(self) -> None:
        self.mapper.validate_header(V1_HEADER)

    def test_header_match_ignores_case_and_punctuation(self) -> None:
        self.mapper.validate_header(
            ["UUID", "SKU", "Name", "Ready For Sale", "stock-count", "Price", "Short Desc", "Notes"]
        )

    def test_none_header_is_skipped(self) -> None:
        self.mapper.validate_header(None)

    def test_mislabeled_and_missing_columns_are_all_reported(self) -> None:
        header = ["uuid", "sku", "title", "ready_for_sale", "stock_count"]

        with self.assertRaises(FeedLayoutError) as ctx:
            self.mapper.validate_header(header)

        error = ctx.exception
        self.assertEqual(error.kind, FailureKind.NON_RETRIABLE)
        self.assertEqual(error.state, SyncState.VALIDATING)
        codes = {(mismatch.field_name, mismatch.code) for mismatch in error.mismatches}
        self.assertEqual(
            codes,
            {
                ("name", "column_mislabeled"),
                ("price", "column_missing"),
                ("short_desc", "column_missing"),
            },
        )

    def test_empty_header_reports_every_column(self) -> None:
        with self.assertRaises(FeedLayoutError) as ctx:
            self.mapper.validate_header([])

        self.assertEqual(len(ctx.exception.mismatches), 7)


class TestLayoutRegistry(unittest.TestCase):
    def test_lookup_is_case_insensitive(self) -> None:
        self.assertIs(get_feed_layout(" V1 "), PRODUCT_FEED_LAYOUTS["v1"])

    def test_unknown_layout_raises(self) -> None:
        with self.assertRaises(ValueError):
            get_feed_layout("v99")

    def test_normalize_header(self) -> None:
        self.assertEqual(normalize_header(" Ready_For Sale "), "readyforsale")


if __name__ == "__main__":
    unittest.main()
