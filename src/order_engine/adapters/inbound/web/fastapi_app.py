from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_engine.adapters.inbound.web import handlers
from order_engine.adapters.inbound.web.schemas import (
    ErrorResponse,
    HealthResponse,
    OrderDetailsResponse,
    OrderListResponse,
    OrderReceiptResponse,
    PlaceOrderRequest,
)
from order_engine.adapters.inbound.web.versioning import HandlerRegistry
from order_engine.config import Settings
from order_engine.core.domain.model.errors import (
    InsufficientInventory,
    OrderNotFound,
    PlaceOrderError,
    TransactionConflict,
    TransactionFailure,
    ValidationError,
)
from order_engine.core.ports.inbound.get_order import GetOrderUseCase
from order_engine.core.ports.inbound.list_orders import ListOrdersUseCase
from order_engine.core.ports.inbound.place_order import PlaceOrderUseCase

logger = logging.getLogger(__name__)


def _map_error_to_http(err: PlaceOrderError) -> tuple[int, ErrorResponse]:
    if isinstance(err, ValidationError):
        return 400, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, OrderNotFound):
        return 404, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, InsufficientInventory):
        return 409, ErrorResponse(type=type(err).__name__, message=str(err))

    # storage faults stay opaque
    if isinstance(err, TransactionConflict):
        return 503, ErrorResponse(
            type="TransactionFailure", message="service busy, retry the request"
        )

    if isinstance(err, TransactionFailure):
        return 500, ErrorResponse(type="TransactionFailure", message="internal server error")

    return 500, ErrorResponse(type="InternalError", message="internal server error")


def create_app(
    place_order_uc: PlaceOrderUseCase,
    get_order_uc: GetOrderUseCase,
    list_orders_uc: ListOrdersUseCase,
    settings: Settings,
    registry: HandlerRegistry | None = None,
) -> FastAPI:
    dispatcher = (registry or handlers.build_registry()).build(
        settings.accepted_versions
    )
    app = FastAPI(title="order_engine")

    # --- exception handlers -------------------------------------------------

    @app.exception_handler(PlaceOrderError)
    async def handle_domain_error(_: Request, exc: PlaceOrderError) -> JSONResponse:
        status, body = _map_error_to_http(exc)
        if status >= 500:
            logger.error("request failed: %s", exc)
        return JSONResponse(status_code=status, content=body.model_dump())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="RequestValidationError",
            message="invalid request",
            details=jsonable_encoder(exc.errors()),
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error", exc_info=exc)
        body = ErrorResponse(type="InternalError", message="internal server error")
        return JSONResponse(status_code=500, content=body.model_dump())

    # --- routes ---------------------------------------------------------------

    @app.get("/api/{version}/health", response_model=HealthResponse)
    def health(version: str) -> Any:
        return dispatcher.resolve(version, handlers.HEALTH)(version)

    @app.post(
        "/api/{version}/orders",
        response_model=OrderReceiptResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    def place_order(version: str, req: PlaceOrderRequest, response: Response) -> Any:
        handler = dispatcher.resolve(version, handlers.PLACE_ORDER)
        return handler(place_order_uc, version, req, response)

    @app.get(
        "/api/{version}/orders",
        response_model=OrderListResponse,
        responses={
            400: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    def list_orders(
        version: str,
        page: int | None = Query(None),
        limit: int | None = Query(None),
        search: str | None = Query(None),
    ) -> Any:
        handler = dispatcher.resolve(version, handlers.LIST_ORDERS)
        return handler(list_orders_uc, page, limit, search)

    @app.get(
        "/api/{version}/orders/{order_id}",
        response_model=OrderDetailsResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    def get_order(version: str, order_id: str) -> Any:
        handler = dispatcher.resolve(version, handlers.GET_ORDER)
        return handler(get_order_uc, order_id)

    return app
