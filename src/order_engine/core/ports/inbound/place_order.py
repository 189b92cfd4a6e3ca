from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from returns.result import Result

from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.domain.model.order import Money, OrderId, OrderStatus


@dataclass(frozen=True)
class PlaceOrderLine:
    variant_id: str
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class PlaceOrderCommand:
    lines: Sequence[PlaceOrderLine]
    total: Decimal
    timeout_seconds: float | None = None  # overrides the configured deadline


@dataclass(frozen=True)
class ReceiptLine:
    variant_id: str
    quantity: int
    unit_price: Money


@dataclass(frozen=True)
class OrderReceipt:
    order_id: OrderId
    status: OrderStatus
    total: Money
    lines: Sequence[ReceiptLine]


class PlaceOrderUseCase(Protocol):
    def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[OrderReceipt, PlaceOrderError]: ...
