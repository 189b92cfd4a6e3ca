from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.domain.model.order import Money, OrderId, OrderStatus


@dataclass(frozen=True)
class GetOrderQuery:
    order_id: str  # UUID string


@dataclass(frozen=True)
class OrderLineView:
    variant_id: str
    quantity: int
    unit_price: Money
    subtotal: Money
    variant_name: str | None
    product_name: str | None


@dataclass(frozen=True)
class OrderView:
    order_id: OrderId
    status: OrderStatus
    total: Money
    lines: Sequence[OrderLineView]


class GetOrderUseCase(Protocol):
    def get_order(self, query: GetOrderQuery) -> Result[OrderView, PlaceOrderError]: ...
