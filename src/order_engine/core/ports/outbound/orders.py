from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.domain.model.order import Order, OrderId, OrderItem


@dataclass(frozen=True)
class OrderPage:
    orders: Sequence[Order]
    total: int


class OrderWriter(Protocol):
    def add_header(self, order: Order) -> Result[OrderId, PlaceOrderError]: ...

    def add_items(
        self, order_id: OrderId, items: Sequence[OrderItem]
    ) -> Result[None, PlaceOrderError]: ...


class OrderReader(Protocol):
    def get(self, order_id: OrderId) -> Result[Order, PlaceOrderError]: ...

    def list(
        self, offset: int, limit: int, search: str | None = None
    ) -> Result[OrderPage, PlaceOrderError]:
        """`total` counts every matching order, not just the returned page."""
        ...
