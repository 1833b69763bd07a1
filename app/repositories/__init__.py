"""
app/repositories package marker.
"""

from app.repositories.product_repository import ProductRepository, ProductStore

__all__ = [
    "ProductRepository",
    "ProductStore",
]
