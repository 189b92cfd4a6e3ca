from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.domain.model.pagination import PageMeta
from order_engine.core.ports.inbound.get_order import OrderView


@dataclass(frozen=True)
class ListOrdersQuery:
    page: int | None = None  # 1-based
    limit: int | None = None
    search: str | None = None  # substring of a product name


@dataclass(frozen=True)
class OrderListView:
    orders: Sequence[OrderView]
    metadata: PageMeta


class ListOrdersUseCase(Protocol):
    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[OrderListView, PlaceOrderError]: ...
