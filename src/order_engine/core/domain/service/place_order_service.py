from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import partial
from typing import Callable, Mapping, Tuple

from returns.pipeline import flow
from returns.pointfree import bind, map_
from returns.result import Failure, Result, Success

from order_engine.config import Settings
from order_engine.core.domain.model.errors import (
    DeadlineExceeded,
    InsufficientInventory,
    PlaceOrderError,
    TransactionConflict,
    ValidationError,
)
from order_engine.core.domain.model.order import (
    Money,
    Order,
    OrderId,
    OrderItem,
    OrderStatus,
    VariantId,
    now_utc,
)
from order_engine.core.domain.service.availability import (
    evaluate,
    requested_quantities,
)
from order_engine.core.ports.inbound.place_order import (
    OrderReceipt,
    PlaceOrderCommand,
    PlaceOrderUseCase,
    ReceiptLine,
)
from order_engine.core.ports.outbound.inventory import DecrementReport
from order_engine.core.ports.outbound.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaceOrderDeps:
    uow: UnitOfWorkFactory
    settings: Settings


@dataclass(frozen=True)
class Deadline:
    expires_at: float | None

    @staticmethod
    def after(seconds: float | None) -> "Deadline":
        if not seconds:
            return Deadline(None)
        return Deadline(time.monotonic() + seconds)

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return self.expires_at - time.monotonic()

    def expired(self) -> bool:
        left = self.remaining()
        return left is not None and left <= 0


@dataclass(frozen=True)
class TransactionContext:
    order: Order
    uow: UnitOfWork
    deadline: Deadline
    requested: Mapping[str, int]


Step = Callable[[TransactionContext], Result[TransactionContext, PlaceOrderError]]


@dataclass(frozen=True)
class PlaceOrderService(PlaceOrderUseCase):
    deps: PlaceOrderDeps

    def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[OrderReceipt, PlaceOrderError]:
        settings = self.deps.settings
        timeout = (
            command.timeout_seconds
            if command.timeout_seconds is not None
            else settings.transaction_timeout
        )
        deadline = Deadline.after(timeout)

        return flow(
            command,
            _validate_command,
            bind(_build_order),
            bind(partial(_check_total, enforce=settings.enforce_total_match)),
            bind(lambda order: self._place_with_retry(order, deadline)),
            map_(_to_receipt),
        )

    def _place_with_retry(
        self, order: Order, deadline: Deadline
    ) -> Result[Order, PlaceOrderError]:
        settings = self.deps.settings
        attempt = 1
        while True:
            result = self._run_once(order, deadline)
            if not _is_retryable(result) or attempt >= settings.max_attempts:
                return result

            delay = settings.retry_backoff * attempt
            left = deadline.remaining()
            if left is not None and left <= delay:
                return result

            logger.warning(
                "order %s: conflict on attempt %d/%d, retrying in %.3fs: %s",
                order.order_id,
                attempt,
                settings.max_attempts,
                delay,
                result.failure(),
            )
            time.sleep(delay)
            attempt += 1

    def _run_once(
        self, order: Order, deadline: Deadline
    ) -> Result[Order, PlaceOrderError]:
        # Begin -> Evaluate -> Decrement -> WriteHeader -> WriteItems -> Commit;
        # any Failure aborts the whole unit of work.
        try:
            with self.deps.uow() as uow:
                ctx = TransactionContext(
                    order=order,
                    uow=uow,
                    deadline=deadline,
                    requested=requested_quantities(order.items),
                )
                result = flow(
                    ctx,
                    _guarded(_evaluate),
                    bind(_guarded(_decrement)),
                    bind(_guarded(_write_header)),
                    bind(_guarded(_write_items)),
                    bind(_guarded(_commit)),
                )
                if isinstance(result, Failure):
                    uow.rollback()
        except PlaceOrderError as err:
            result = Failure(err)

        if isinstance(result, Success):
            logger.info(
                "order %s committed: %d line(s), total=%s",
                order.order_id,
                len(order.items),
                order.total.amount,
            )
            return Success(order)

        err = result.failure()
        if isinstance(err, InsufficientInventory):
            logger.info("order %s rejected: %s", order.order_id, err)
        else:
            logger.warning("order %s aborted: %s", order.order_id, err)
        return Failure(err)


# ---- transaction steps -----------------------------------------------------


def _guarded(step: Step) -> Step:
    def run(ctx: TransactionContext) -> Result[TransactionContext, PlaceOrderError]:
        if ctx.deadline.expired():
            name = step.__name__.lstrip("_")
            return Failure(DeadlineExceeded(f"deadline exceeded before {name}"))
        return step(ctx)

    return run


def _evaluate(ctx: TransactionContext) -> Result[TransactionContext, PlaceOrderError]:
    def check(remaining: Mapping[str, int]) -> Result[TransactionContext, PlaceOrderError]:
        report = evaluate(ctx.requested, remaining)
        if report.satisfiable:
            return Success(ctx)
        return Failure(
            InsufficientInventory(
                "insufficient inventory for one or more items",
                variant_ids=report.variant_ids(),
            )
        )

    return ctx.uow.inventory.remaining(tuple(ctx.requested)).bind(check)


def _decrement(ctx: TransactionContext) -> Result[TransactionContext, PlaceOrderError]:
    def verify(report: DecrementReport) -> Result[TransactionContext, PlaceOrderError]:
        # a line the guarded update did not touch counts as insufficient stock
        if report.fully_applied:
            return Success(ctx)
        return Failure(
            InsufficientInventory(
                "inventory changed before it could be reserved",
                variant_ids=report.rejected,
            )
        )

    return ctx.uow.inventory.decrement(ctx.requested).bind(verify)


def _write_header(
    ctx: TransactionContext,
) -> Result[TransactionContext, PlaceOrderError]:
    return ctx.uow.orders.add_header(ctx.order).map(lambda _: ctx)


def _write_items(
    ctx: TransactionContext,
) -> Result[TransactionContext, PlaceOrderError]:
    return ctx.uow.orders.add_items(ctx.order.order_id, ctx.order.items).map(
        lambda _: ctx
    )


def _commit(ctx: TransactionContext) -> Result[TransactionContext, PlaceOrderError]:
    return ctx.uow.commit().map(lambda _: ctx)


def _is_retryable(result: Result[Order, PlaceOrderError]) -> bool:
    return isinstance(result, Failure) and isinstance(
        result.failure(), TransactionConflict
    )


# ---- pure helpers ----------------------------------------------------------


def _validate_command(
    cmd: PlaceOrderCommand,
) -> Result[PlaceOrderCommand, PlaceOrderError]:
    if not cmd.lines:
        return Failure(ValidationError("at least one line item is required"))

    for i, ln in enumerate(cmd.lines):
        if not ln.variant_id.strip():
            return Failure(ValidationError(f"lines[{i}].variant_id is required"))
        if ln.quantity <= 0:
            return Failure(ValidationError(f"lines[{i}].quantity must be > 0"))
        price = _decimal(ln.unit_price)
        # prices are stored in cents; anything that rounds to 0.00 is no price
        if price is None or Money.of(price).amount <= 0:
            return Failure(ValidationError(f"lines[{i}].unit_price must be > 0"))

    total = _decimal(cmd.total)
    if total is None or Money.of(total).amount <= 0:
        return Failure(ValidationError("total must be > 0"))
    if cmd.timeout_seconds is not None and cmd.timeout_seconds <= 0:
        return Failure(ValidationError("timeout_seconds must be > 0"))

    return Success(cmd)


def _decimal(value: object) -> Decimal | None:
    try:
        dec = Decimal(str(value))
    except InvalidOperation:
        return None
    return dec if dec.is_finite() else None


def _check_total(order: Order, enforce: bool) -> Result[Order, PlaceOrderError]:
    expected = order.items_total()
    if not enforce or order.total == expected:
        return Success(order)
    return Failure(
        ValidationError(
            f"total {order.total.amount} does not match "
            f"sum of line items {expected.amount}"
        )
    )


def _build_order(cmd: PlaceOrderCommand) -> Result[Order, PlaceOrderError]:
    items: Tuple[OrderItem, ...] = tuple(
        OrderItem(
            variant_id=VariantId(ln.variant_id.strip()),
            quantity=ln.quantity,
            unit_price=Money.of(ln.unit_price),
        )
        for ln in cmd.lines
    )
    order = Order(
        order_id=OrderId.new(),
        status=OrderStatus.ACCEPTED,
        items=items,
        total=Money.of(cmd.total),
        created_at=now_utc(),
    )
    return Success(order)


def _to_receipt(order: Order) -> OrderReceipt:
    return OrderReceipt(
        order_id=order.order_id,
        status=order.status,
        total=order.total,
        lines=tuple(
            ReceiptLine(
                variant_id=it.variant_id.value,
                quantity=it.quantity,
                unit_price=it.unit_price,
            )
            for it in order.items
        ),
    )
