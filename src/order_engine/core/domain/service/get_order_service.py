from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from returns.result import Failure, Result

from order_engine.core.domain.model.errors import PlaceOrderError, ValidationError
from order_engine.core.domain.model.order import Order, OrderId
from order_engine.core.ports.inbound.get_order import (
    GetOrderQuery,
    GetOrderUseCase,
    OrderLineView,
    OrderView,
)
from order_engine.core.ports.outbound.orders import OrderReader


@dataclass(frozen=True)
class GetOrderDeps:
    orders: OrderReader


@dataclass(frozen=True)
class GetOrderService(GetOrderUseCase):
    deps: GetOrderDeps

    def get_order(self, query: GetOrderQuery) -> Result[OrderView, PlaceOrderError]:
        try:
            oid = OrderId(UUID(query.order_id))
        except (ValueError, AttributeError, TypeError):
            return Failure(ValidationError(message="order_id must be a valid UUID"))

        return self.deps.orders.get(oid).map(to_view)


def to_view(order: Order) -> OrderView:
    lines = tuple(
        OrderLineView(
            variant_id=li.variant_id.value,
            quantity=li.quantity,
            unit_price=li.unit_price,
            subtotal=li.subtotal(),
            variant_name=li.variant_name,
            product_name=li.product_name,
        )
        for li in order.items
    )
    return OrderView(
        order_id=order.order_id,
        status=order.status,
        total=order.total,
        lines=lines,
    )
