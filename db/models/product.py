"""
db/models/product.py

Target table for the inventory feed reconciliation.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

PRODUCT_UUID_CONSTRAINT = "uq_products_uuid"


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Stable natural key from the inventory feed",
    )
    sku: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    name: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    ready_for_sale: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    stock_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        server_default=text("0"),
    )
    short_desc: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))

    __table_args__ = (
        UniqueConstraint("uuid", name=PRODUCT_UUID_CONSTRAINT),
    )
