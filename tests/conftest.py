"""Pytest fixtures: one temporary SQLite database per test."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, insert, select

from order_engine.adapters.outbound.sql.engine import (
    READ_ONLY,
    create_engine_from_settings,
)
from order_engine.adapters.outbound.sql.tables import (
    create_schema,
    order_items,
    orders,
    product_variant_mapping,
    products,
    variants,
)
from order_engine.bootstrap import build_usecases
from order_engine.config import Settings
from order_engine.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
)


class Catalog:
    """Seeds products/variants and peeks at the tables behind the engine."""

    def __init__(self, engine):
        self.engine = engine

    def add_variant(
        self,
        quantity: int,
        name: str = "Default",
        product: str = "T-Shirt",
        mrp: str = "10.00",
        active: bool = True,
    ) -> str:
        product_id = str(uuid.uuid4())
        variant_id = str(uuid.uuid4())
        with self.engine.begin() as conn:
            conn.execute(insert(products).values(id=product_id, name=product))
            conn.execute(
                insert(variants).values(
                    id=variant_id,
                    name=name,
                    mrp=Decimal(mrp),
                    quantity=quantity,
                    is_active=active,
                )
            )
            conn.execute(
                insert(product_variant_mapping).values(
                    product_id=product_id, variant_id=variant_id
                )
            )
        return variant_id

    def quantity(self, variant_id: str) -> int:
        with self.engine.connect().execution_options(**READ_ONLY) as conn:
            return conn.execute(
                select(variants.c.quantity).where(variants.c.id == variant_id)
            ).scalar_one()

    def order_count(self) -> int:
        with self.engine.connect().execution_options(**READ_ONLY) as conn:
            return conn.execute(select(func.count()).select_from(orders)).scalar_one()

    def item_count(self) -> int:
        with self.engine.connect().execution_options(**READ_ONLY) as conn:
            return conn.execute(
                select(func.count()).select_from(order_items)
            ).scalar_one()


def make_command(*lines, total=None, timeout_seconds=None) -> PlaceOrderCommand:
    """lines: (variant_id, quantity, price) tuples; total defaults to the line sum."""
    if total is None:
        total = sum((Decimal(str(p)) * q for _, q, p in lines), Decimal("0"))
    return PlaceOrderCommand(
        lines=tuple(
            PlaceOrderLine(variant_id=v, quantity=q, unit_price=Decimal(str(p)))
            for v, q, p in lines
        ),
        total=Decimal(str(total)),
        timeout_seconds=timeout_seconds,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'orders.db'}",
        max_attempts=3,
        retry_backoff=0.01,
    )


@pytest.fixture
def engine(settings):
    engine = create_engine_from_settings(settings)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def catalog(engine) -> Catalog:
    return Catalog(engine)


@pytest.fixture
def usecases(settings, engine):
    return build_usecases(settings, engine)
