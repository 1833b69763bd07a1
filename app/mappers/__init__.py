"""
app/mappers package marker.
"""

from app.mappers.product_row_mapper import (
    PRODUCT_FEED_LAYOUTS,
    PRODUCT_FIELDS,
    ColumnMismatch,
    FeedLayout,
    ProductRowMapper,
    get_feed_layout,
)

__all__ = [
    "PRODUCT_FEED_LAYOUTS",
    "PRODUCT_FIELDS",
    "ColumnMismatch",
    "FeedLayout",
    "ProductRowMapper",
    "get_feed_layout",
]
