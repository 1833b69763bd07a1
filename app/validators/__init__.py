"""
app/validators package marker.
"""

from app.validators.product_row_validator import ProductRowValidator

__all__ = [
    "ProductRowValidator",
]
