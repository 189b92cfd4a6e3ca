from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
from uuid import UUID

from returns.result import Failure, Result, Success
from sqlalchemy import func, insert, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from order_engine.adapters.outbound.sql.engine import READ_ONLY
from order_engine.adapters.outbound.sql.errors import to_transaction_failure
from order_engine.adapters.outbound.sql.tables import (
    order_items,
    orders,
    product_variant_mapping,
    products,
    variants,
)
from order_engine.core.domain.model.errors import OrderNotFound, PlaceOrderError
from order_engine.core.domain.model.order import (
    Money,
    Order,
    OrderId,
    OrderItem,
    OrderStatus,
    VariantId,
)
from order_engine.core.ports.outbound.orders import OrderPage, OrderReader, OrderWriter

logger = logging.getLogger(__name__)


@dataclass
class SqlOrderWriter(OrderWriter):
    conn: Connection

    def add_header(self, order: Order) -> Result[OrderId, PlaceOrderError]:
        stmt = insert(orders).values(
            id=str(order.order_id.value),
            status=order.status.value,
            order_total=order.total.amount,
            created_at=order.created_at,
        )
        try:
            self.conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("order insert failed")
            return Failure(to_transaction_failure(exc, "insert order"))
        return Success(order.order_id)

    def add_items(
        self, order_id: OrderId, items: Sequence[OrderItem]
    ) -> Result[None, PlaceOrderError]:
        if not items:
            return Success(None)

        rows = [
            {
                "order_id": str(order_id.value),
                "variant_id": it.variant_id.value,
                "quantity": it.quantity,
                "price": it.unit_price.amount,
            }
            for it in items
        ]
        try:
            self.conn.execute(insert(order_items), rows)
        except SQLAlchemyError as exc:
            logger.exception("order items insert failed")
            return Failure(to_transaction_failure(exc, "batch insert order items"))
        return Success(None)


# one product name per variant even if the mapping lists several products
_product_name = (
    select(products.c.name)
    .join(
        product_variant_mapping,
        product_variant_mapping.c.product_id == products.c.id,
    )
    .where(product_variant_mapping.c.variant_id == order_items.c.variant_id)
    .order_by(products.c.name)
    .limit(1)
    .scalar_subquery()
)

_items_query = (
    select(
        order_items.c.order_id,
        order_items.c.variant_id,
        order_items.c.quantity,
        order_items.c.price,
        variants.c.name.label("variant_name"),
        _product_name.label("product_name"),
    )
    .select_from(order_items.outerjoin(variants, variants.c.id == order_items.c.variant_id))
    .order_by(order_items.c.order_id, order_items.c.id)
)


@dataclass
class SqlOrderReader(OrderReader):
    engine: Engine

    def get(self, order_id: OrderId) -> Result[Order, PlaceOrderError]:
        key = str(order_id.value)
        try:
            with self.engine.connect().execution_options(**READ_ONLY) as conn:
                header = conn.execute(
                    select(orders).where(orders.c.id == key)
                ).first()
                if header is None:
                    return Failure(OrderNotFound(message="order not found", order_id=key))
                items = _fetch_items(conn, [key])
        except SQLAlchemyError as exc:
            logger.exception("order fetch failed: %s", key)
            return Failure(to_transaction_failure(exc, "fetch order"))

        return Success(_to_order(header, items.get(key, [])))

    def list(
        self, offset: int, limit: int, search: str | None = None
    ) -> Result[OrderPage, PlaceOrderError]:
        count_stmt = select(func.count()).select_from(orders)
        page_stmt = (
            select(orders)
            .order_by(orders.c.created_at.desc(), orders.c.id.desc())
            .limit(limit)
            .offset(offset)
        )
        if search:
            pattern = "%" + _escape_like(search) + "%"
            matching = (
                select(order_items.c.order_id)
                .join(
                    product_variant_mapping,
                    product_variant_mapping.c.variant_id == order_items.c.variant_id,
                )
                .join(products, products.c.id == product_variant_mapping.c.product_id)
                .where(products.c.name.ilike(pattern, escape="\\"))
                .distinct()
            )
            count_stmt = select(func.count()).select_from(matching.subquery())
            page_stmt = page_stmt.where(orders.c.id.in_(matching))

        try:
            with self.engine.connect().execution_options(**READ_ONLY) as conn:
                total = conn.execute(count_stmt).scalar_one()
                headers = conn.execute(page_stmt).all()
                items = _fetch_items(conn, [h.id for h in headers]) if headers else {}
        except SQLAlchemyError as exc:
            logger.exception("order listing failed")
            return Failure(to_transaction_failure(exc, "fetch orders"))

        return Success(
            OrderPage(
                orders=tuple(_to_order(h, items.get(h.id, [])) for h in headers),
                total=total,
            )
        )


def _fetch_items(conn: Connection, order_ids: List[str]) -> Dict[str, List[OrderItem]]:
    grouped: Dict[str, List[OrderItem]] = {}
    rows = conn.execute(_items_query.where(order_items.c.order_id.in_(order_ids)))
    for row in rows:
        grouped.setdefault(row.order_id, []).append(
            OrderItem(
                variant_id=VariantId(row.variant_id),
                quantity=row.quantity,
                unit_price=Money.of(row.price),
                variant_name=row.variant_name,
                product_name=row.product_name,
            )
        )
    return grouped


def _to_order(header: Any, items: List[OrderItem]) -> Order:
    return Order(
        order_id=OrderId(UUID(header.id)),
        status=OrderStatus(header.status),
        items=tuple(items),
        total=Money.of(header.order_total),
        created_at=header.created_at,
    )


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
