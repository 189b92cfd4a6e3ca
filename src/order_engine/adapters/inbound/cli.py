from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

from returns.result import Success

from order_engine.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)


def run_cli(usecase: PlaceOrderUseCase, raw: str) -> int:
    """
    raw: JSON string.
    Example:
      {"total":"25.00",
       "items":[{"variant_id":"<uuid>","quantity":2,"price":"10.00"},
                {"variant_id":"<uuid>","quantity":1,"price":"5.00"}]}
    """
    try:
        payload = json.loads(raw)
        cmd = _parse_command(payload)
    except (ValueError, KeyError, TypeError, ArithmeticError) as e:
        print(f"invalid_input: {e}")
        return 2

    result = usecase.place_order(cmd)

    if isinstance(result, Success):
        receipt = result.unwrap()
        print(
            "[ok]",
            {
                "id": str(receipt.order_id.value),
                "status": receipt.status.value,
                "total": str(receipt.total.amount),
            },
        )
        return 0

    err = result.failure()
    print("[ng]", str(err))
    return 1


def _parse_command(payload: dict[str, Any]) -> PlaceOrderCommand:
    lines = tuple(
        PlaceOrderLine(
            variant_id=str(x["variant_id"]),
            quantity=int(x["quantity"]),
            unit_price=Decimal(str(x["price"])),
        )
        for x in payload.get("items", [])
    )
    return PlaceOrderCommand(lines=lines, total=Decimal(str(payload.get("total", "0"))))
