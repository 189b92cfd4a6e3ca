from __future__ import annotations

from dataclasses import dataclass

from returns.result import Result

from order_engine.config import Settings
from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.domain.model.pagination import PageMeta, PageRequest
from order_engine.core.domain.service.get_order_service import to_view
from order_engine.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
    OrderListView,
)
from order_engine.core.ports.outbound.orders import OrderPage, OrderReader


@dataclass(frozen=True)
class ListOrdersDeps:
    orders: OrderReader
    settings: Settings


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    deps: ListOrdersDeps

    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[OrderListView, PlaceOrderError]:
        page = PageRequest.normalize(
            query.page,
            query.limit,
            default_limit=self.deps.settings.default_page_size,
            max_limit=self.deps.settings.max_page_size,
        )
        search = (query.search or "").strip() or None

        def to_list_view(result: OrderPage) -> OrderListView:
            return OrderListView(
                orders=tuple(to_view(o) for o in result.orders),
                metadata=PageMeta.build(result.total, page),
            )

        return self.deps.orders.list(page.offset, page.limit, search=search).map(
            to_list_view
        )
