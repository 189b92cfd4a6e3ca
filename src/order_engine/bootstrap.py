from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from order_engine.adapters.inbound.web.fastapi_app import create_app
from order_engine.adapters.outbound.sql.engine import create_engine_from_settings
from order_engine.adapters.outbound.sql.orders import SqlOrderReader
from order_engine.adapters.outbound.sql.tables import create_schema
from order_engine.adapters.outbound.sql.unit_of_work import SqlUnitOfWorkFactory
from order_engine.config import Settings
from order_engine.core.domain.service.get_order_service import (
    GetOrderDeps,
    GetOrderService,
)
from order_engine.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from order_engine.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)


@dataclass(frozen=True)
class UseCases:
    place_order: PlaceOrderService
    get_order: GetOrderService
    list_orders: ListOrdersService


def build_engine(settings: Settings) -> Engine:
    engine = create_engine_from_settings(settings)
    if settings.create_schema:
        create_schema(engine)
    return engine


def build_usecases(settings: Settings, engine: Engine) -> UseCases:
    reader = SqlOrderReader(engine)

    place_order = PlaceOrderService(
        PlaceOrderDeps(uow=SqlUnitOfWorkFactory(engine), settings=settings)
    )
    get_order = GetOrderService(GetOrderDeps(orders=reader))
    list_orders = ListOrdersService(ListOrdersDeps(orders=reader, settings=settings))

    return UseCases(
        place_order=place_order, get_order=get_order, list_orders=list_orders
    )


def build_app(settings: Settings, engine: Engine | None = None) -> FastAPI:
    usecases = build_usecases(settings, engine or build_engine(settings))
    return create_app(
        usecases.place_order, usecases.get_order, usecases.list_orders, settings
    )


def create_asgi_app() -> FastAPI:
    # uvicorn factory entry point; the environment is read exactly once here
    return build_app(Settings.from_env())
