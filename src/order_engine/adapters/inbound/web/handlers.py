"""Base (unversioned) handlers for every HTTP operation.

Version-specific behaviour is added by registering an override for the same
operation name with `registry.register(op, version="v2")`.
"""
from __future__ import annotations

from fastapi import Response
from returns.result import Success

from order_engine.adapters.inbound.web.schemas import (
    HealthResponse,
    OrderDetailsResponse,
    OrderListResponse,
    OrderReceiptResponse,
    PlaceOrderRequest,
    meta_to_response,
    receipt_to_response,
    view_to_response,
)
from order_engine.adapters.inbound.web.versioning import HandlerRegistry
from order_engine.core.ports.inbound.get_order import GetOrderQuery, GetOrderUseCase
from order_engine.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from order_engine.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)

HEALTH = "health"
PLACE_ORDER = "place_order"
GET_ORDER = "get_order"
LIST_ORDERS = "list_orders"


def health(version: str) -> HealthResponse:
    return HealthResponse(status="ok", version=version)


def place_order(
    uc: PlaceOrderUseCase, version: str, req: PlaceOrderRequest, response: Response
) -> OrderReceiptResponse:
    cmd = PlaceOrderCommand(
        lines=tuple(
            PlaceOrderLine(
                variant_id=ln.variant_id,
                quantity=ln.quantity,
                unit_price=ln.price,
            )
            for ln in req.items
        ),
        total=req.total,
    )
    result = uc.place_order(cmd)

    if isinstance(result, Success):
        body = receipt_to_response(result.unwrap())
        response.headers["Location"] = f"/api/{version}/orders/{body.id}"
        return body

    raise result.failure()


def get_order(uc: GetOrderUseCase, order_id: str) -> OrderDetailsResponse:
    result = uc.get_order(GetOrderQuery(order_id=order_id))

    if isinstance(result, Success):
        return view_to_response(result.unwrap())

    raise result.failure()


def list_orders(
    uc: ListOrdersUseCase, page: int | None, limit: int | None, search: str | None
) -> OrderListResponse:
    result = uc.list_orders(ListOrdersQuery(page=page, limit=limit, search=search))

    if isinstance(result, Success):
        listing = result.unwrap()
        return OrderListResponse(
            orders=[view_to_response(v) for v in listing.orders],
            metadata=meta_to_response(listing.metadata),
        )

    raise result.failure()


def build_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    registry.add(HEALTH, health)
    registry.add(PLACE_ORDER, place_order)
    registry.add(GET_ORDER, get_order)
    registry.add(LIST_ORDERS, list_orders)
    return registry
