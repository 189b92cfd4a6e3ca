from __future__ import annotations

from types import TracebackType
from typing import Callable, Protocol

from returns.result import Result

from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.ports.outbound.inventory import InventoryLedger
from order_engine.core.ports.outbound.orders import OrderWriter


class UnitOfWork(Protocol):
    """
    One storage transaction. Leaving the `with` block without a successful
    `commit()` discards every write made through `inventory` and `orders`.

    `__enter__` raises `TransactionFailure` (or `TransactionConflict`) when the
    transaction cannot be opened.
    """

    inventory: InventoryLedger
    orders: OrderWriter

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    def commit(self) -> Result[None, PlaceOrderError]: ...

    def rollback(self) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
