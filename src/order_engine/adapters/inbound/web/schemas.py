from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from order_engine.core.domain.model.pagination import PageMeta
from order_engine.core.ports.inbound.get_order import OrderView
from order_engine.core.ports.inbound.place_order import OrderReceipt

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class PlaceOrderLineIn(BaseModel):
    variant_id: str = Field(min_length=1, examples=["0b6c3c8e-3f0e-4e43-9d1c-0a4e8b8f6f10"])
    quantity: int = Field(gt=0, examples=[2])
    price: Decimal = Field(gt=0, examples=["10.00"])


class PlaceOrderRequest(BaseModel):
    items: list[PlaceOrderLineIn] = Field(min_length=1)
    total: Decimal = Field(gt=0, examples=["20.00"])


class ReceiptLineOut(BaseModel):
    variant_id: str
    quantity: int
    price: str


class OrderReceiptResponse(BaseModel):
    id: str
    status: str
    total: str
    items: list[ReceiptLineOut]


class OrderLineOut(BaseModel):
    variant_id: str
    quantity: int
    price: str
    subtotal: str
    variant_name: str | None = None
    product_name: str | None = None


class OrderDetailsResponse(BaseModel):
    id: str
    status: str
    total: str
    items: list[OrderLineOut]


class PageMetaOut(BaseModel):
    total: int
    per_page: int
    current_page: int
    next: int | None = None
    prev: int | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderDetailsResponse]
    metadata: PageMetaOut


class HealthResponse(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    type: str
    message: str
    details: list[dict[str, Any]] | None = None


# ---- Mapping helpers -------------------------------------------------------


def receipt_to_response(receipt: OrderReceipt) -> OrderReceiptResponse:
    return OrderReceiptResponse(
        id=str(receipt.order_id.value),
        status=receipt.status.value,
        total=str(receipt.total.amount),
        items=[
            ReceiptLineOut(
                variant_id=ln.variant_id,
                quantity=ln.quantity,
                price=str(ln.unit_price.amount),
            )
            for ln in receipt.lines
        ],
    )


def view_to_response(view: OrderView) -> OrderDetailsResponse:
    return OrderDetailsResponse(
        id=str(view.order_id.value),
        status=view.status.value,
        total=str(view.total.amount),
        items=[
            OrderLineOut(
                variant_id=ln.variant_id,
                quantity=ln.quantity,
                price=str(ln.unit_price.amount),
                subtotal=str(ln.subtotal.amount),
                variant_name=ln.variant_name,
                product_name=ln.product_name,
            )
            for ln in view.lines
        ],
    )


def meta_to_response(meta: PageMeta) -> PageMetaOut:
    return PageMetaOut(
        total=meta.total,
        per_page=meta.per_page,
        current_page=meta.current_page,
        next=meta.next,
        prev=meta.prev,
    )
