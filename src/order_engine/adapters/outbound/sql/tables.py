from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

# Catalog tables are owned elsewhere; the engine only reads names and
# decrements variants.quantity.
products = Table(
    "products",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)

variants = Table(
    "variants",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("mrp", Numeric(12, 2), nullable=False),
    Column("discount_price", Numeric(12, 2), nullable=True),
    Column("quantity", Integer, nullable=False, default=0),
    Column("is_active", Boolean, nullable=False, default=True),
    CheckConstraint("quantity >= 0", name="ck_variants_quantity_non_negative"),
)

product_variant_mapping = Table(
    "product_variant_mapping",
    metadata,
    Column("product_id", String(36), ForeignKey("products.id"), primary_key=True),
    Column("variant_id", String(36), ForeignKey("variants.id"), primary_key=True),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("status", String(32), nullable=False),
    Column("order_total", Numeric(12, 2), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_orders_created_at", "created_at"),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "order_id",
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("variant_id", String(36), ForeignKey("variants.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    CheckConstraint("price > 0", name="ck_order_items_price_positive"),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)
