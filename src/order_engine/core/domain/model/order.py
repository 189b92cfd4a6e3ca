from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Tuple
from uuid import UUID, uuid4

_CENTS = Decimal("0.01")


class OrderStatus(str, Enum):
    ACCEPTED = "Accepted"


@dataclass(frozen=True)
class OrderId:
    value: UUID

    @staticmethod
    def new() -> "OrderId":
        return OrderId(uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VariantId:
    value: str


@dataclass(frozen=True)
class Money:
    amount: Decimal

    @staticmethod
    def of(amount: Decimal | int | float | str) -> "Money":
        dec = Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
        return Money(dec)

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def __mul__(self, n: int) -> "Money":
        return Money(
            (self.amount * Decimal(n)).quantize(_CENTS, rounding=ROUND_HALF_UP)
        )


@dataclass(frozen=True)
class OrderItem:
    variant_id: VariantId
    quantity: int
    unit_price: Money
    # filled in on read
    variant_name: str | None = None
    product_name: str | None = None

    def subtotal(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    status: OrderStatus
    items: Tuple[OrderItem, ...]
    total: Money
    created_at: datetime

    def items_total(self) -> Money:
        return fold_money(it.subtotal() for it in self.items)


def fold_money(values: Iterable[Money]) -> Money:
    total = Money.of(0)
    for v in values:
        total = total + v
    return total


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
