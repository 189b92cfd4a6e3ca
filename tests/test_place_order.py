"""Tests for the order-creation transaction against a real SQLite store."""
import time
from decimal import Decimal

from returns.result import Failure, Success

from conftest import make_command
from order_engine.adapters.outbound.sql.engine import create_engine_from_settings
from order_engine.adapters.outbound.sql.inventory import SqlInventoryLedger
from order_engine.adapters.outbound.sql.orders import SqlOrderWriter
from order_engine.adapters.outbound.sql.unit_of_work import (
    SqlUnitOfWork,
    SqlUnitOfWorkFactory,
)
from order_engine.bootstrap import build_usecases
from order_engine.config import Settings
from order_engine.core.domain.model.errors import (
    DeadlineExceeded,
    InsufficientInventory,
    TransactionConflict,
    TransactionFailure,
    ValidationError,
)
from order_engine.core.domain.model.order import Money, OrderStatus
from order_engine.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)
from order_engine.core.ports.inbound.get_order import GetOrderQuery


def _service(settings, uow_factory) -> PlaceOrderService:
    return PlaceOrderService(PlaceOrderDeps(uow=uow_factory, settings=settings))


def test_round_trip(usecases, catalog):
    a = catalog.add_variant(quantity=10, name="Red / M", product="T-Shirt")
    b = catalog.add_variant(quantity=10, name="Blue / L", product="Hoodie")

    result = usecases.place_order.place_order(
        make_command((a, 2, 10.0), (b, 1, 5.0), total=25.0)
    )

    assert isinstance(result, Success)
    receipt = result.unwrap()
    assert receipt.status is OrderStatus.ACCEPTED
    assert receipt.total == Money.of("25.00")

    view = usecases.get_order.get_order(
        GetOrderQuery(order_id=str(receipt.order_id.value))
    ).unwrap()
    assert view.total.amount == Decimal("25.00")
    assert len(view.lines) == 2
    lines = {ln.variant_id: ln for ln in view.lines}
    assert lines[a].quantity == 2
    assert lines[a].unit_price.amount == Decimal("10.00")
    assert lines[a].variant_name == "Red / M"
    assert lines[a].product_name == "T-Shirt"
    assert lines[b].quantity == 1
    assert lines[b].unit_price.amount == Decimal("5.00")
    assert lines[b].product_name == "Hoodie"

    assert catalog.quantity(a) == 8
    assert catalog.quantity(b) == 9


def test_ordering_exact_remaining_quantity_then_one_more(usecases, catalog):
    vid = catalog.add_variant(quantity=3)

    first = usecases.place_order.place_order(make_command((vid, 3, "4.00")))
    assert isinstance(first, Success)
    assert catalog.quantity(vid) == 0

    second = usecases.place_order.place_order(make_command((vid, 1, "4.00")))
    assert isinstance(second, Failure)
    err = second.failure()
    assert isinstance(err, InsufficientInventory)
    assert err.variant_ids == (vid,)
    assert catalog.quantity(vid) == 0
    assert catalog.order_count() == 1


def test_basket_with_one_unsatisfiable_line_changes_nothing(usecases, catalog):
    a = catalog.add_variant(quantity=5)
    b = catalog.add_variant(quantity=1)

    result = usecases.place_order.place_order(
        make_command((a, 2, "3.00"), (b, 3, "3.00"))
    )

    assert isinstance(result, Failure)
    assert isinstance(result.failure(), InsufficientInventory)
    assert result.failure().variant_ids == (b,)
    assert catalog.quantity(a) == 5
    assert catalog.quantity(b) == 1
    assert catalog.order_count() == 0
    assert catalog.item_count() == 0


def test_repeated_variant_lines_are_checked_together(usecases, catalog):
    vid = catalog.add_variant(quantity=3)

    result = usecases.place_order.place_order(
        make_command((vid, 2, "1.00"), (vid, 2, "1.00"))
    )

    assert isinstance(result.failure(), InsufficientInventory)
    assert catalog.quantity(vid) == 3


def test_unknown_and_inactive_variants_are_unavailable(usecases, catalog):
    inactive = catalog.add_variant(quantity=50, active=False)
    unknown = "6f1c1a52-8d1e-4a4b-9c55-0d7d2f0f8a11"

    result = usecases.place_order.place_order(
        make_command((inactive, 1, "2.00"), (unknown, 1, "2.00"))
    )

    assert isinstance(result, Failure)
    assert set(result.failure().variant_ids) == {inactive, unknown}
    assert catalog.quantity(inactive) == 50


def test_failed_item_write_rolls_back_the_decrement(settings, engine, catalog):
    class FailingItemsWriter(SqlOrderWriter):
        def add_items(self, order_id, items):
            return Failure(TransactionFailure("could not batch insert order items"))

    class FailingItemsUnitOfWork(SqlUnitOfWork):
        orders_cls = FailingItemsWriter

    vid = catalog.add_variant(quantity=4)
    service = _service(settings, lambda: FailingItemsUnitOfWork(engine))

    result = service.place_order(make_command((vid, 2, "5.00")))

    assert isinstance(result, Failure)
    assert isinstance(result.failure(), TransactionFailure)
    assert catalog.quantity(vid) == 4
    assert catalog.order_count() == 0
    assert catalog.item_count() == 0


def test_guarded_decrement_rejects_stale_availability(settings, engine, catalog):
    # the availability read is bypassed; only the guarded write stands
    class StaleReadLedger(SqlInventoryLedger):
        def remaining(self, variant_ids):
            return Success({vid: 1_000_000 for vid in variant_ids})

    class StaleReadUnitOfWork(SqlUnitOfWork):
        inventory_cls = StaleReadLedger

    a = catalog.add_variant(quantity=5)
    b = catalog.add_variant(quantity=1)
    service = _service(settings, lambda: StaleReadUnitOfWork(engine))

    result = service.place_order(make_command((a, 2, "1.00"), (b, 3, "1.00")))

    assert isinstance(result, Failure)
    err = result.failure()
    assert isinstance(err, InsufficientInventory)
    assert err.variant_ids == (b,)
    # a's row was updated by the batch and must have been rolled back
    assert catalog.quantity(a) == 5
    assert catalog.quantity(b) == 1
    assert catalog.order_count() == 0


class _ConflictingUnitOfWork:
    def __enter__(self):
        raise TransactionConflict("could not begin transaction: storage conflict")

    def __exit__(self, *exc):
        return None


class _FlakyFactory:
    def __init__(self, engine, failures: int):
        self.engine = engine
        self.failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            return _ConflictingUnitOfWork()
        return SqlUnitOfWork(self.engine)


def test_conflicts_are_retried(settings, engine, catalog):
    vid = catalog.add_variant(quantity=2)
    factory = _FlakyFactory(engine, failures=2)

    result = _service(settings, factory).place_order(make_command((vid, 1, "1.00")))

    assert isinstance(result, Success)
    assert factory.calls == 3
    assert catalog.quantity(vid) == 1


def test_conflicts_give_up_after_max_attempts(settings, engine, catalog):
    vid = catalog.add_variant(quantity=2)
    factory = _FlakyFactory(engine, failures=10)

    result = _service(settings, factory).place_order(make_command((vid, 1, "1.00")))

    assert isinstance(result.failure(), TransactionConflict)
    assert factory.calls == settings.max_attempts
    assert catalog.quantity(vid) == 2


def test_insufficient_inventory_is_not_retried(settings, engine, catalog):
    vid = catalog.add_variant(quantity=0)
    factory = _FlakyFactory(engine, failures=0)

    result = _service(settings, factory).place_order(make_command((vid, 1, "1.00")))

    assert isinstance(result.failure(), InsufficientInventory)
    assert factory.calls == 1


def test_deadline_aborts_without_effects(settings, engine, catalog):
    class SlowLedger(SqlInventoryLedger):
        def remaining(self, variant_ids):
            time.sleep(0.2)
            return super().remaining(variant_ids)

    class SlowUnitOfWork(SqlUnitOfWork):
        inventory_cls = SlowLedger

    vid = catalog.add_variant(quantity=5)
    service = _service(settings, lambda: SlowUnitOfWork(engine))

    result = service.place_order(make_command((vid, 1, "1.00"), timeout_seconds=0.05))

    assert isinstance(result.failure(), DeadlineExceeded)
    assert catalog.quantity(vid) == 5
    assert catalog.order_count() == 0


def test_total_must_match_line_items(usecases, catalog):
    vid = catalog.add_variant(quantity=5)

    result = usecases.place_order.place_order(
        make_command((vid, 2, "10.00"), total="25.00")
    )

    assert isinstance(result.failure(), ValidationError)
    assert "does not match" in str(result.failure())
    assert catalog.quantity(vid) == 5


def test_total_is_stored_as_supplied_when_check_is_off(engine, catalog):
    settings = Settings(database_url=str(engine.url), enforce_total_match=False)
    usecases = build_usecases(settings, engine)
    vid = catalog.add_variant(quantity=5)

    receipt = usecases.place_order.place_order(
        make_command((vid, 1, "10.00"), total="99.00")
    ).unwrap()

    view = usecases.get_order.get_order(
        GetOrderQuery(order_id=str(receipt.order_id.value))
    ).unwrap()
    assert view.total.amount == Decimal("99.00")


def test_malformed_baskets_are_rejected_before_storage(usecases, catalog):
    vid = catalog.add_variant(quantity=5)
    place = usecases.place_order.place_order

    assert isinstance(place(make_command(total="1.00")).failure(), ValidationError)
    assert isinstance(
        place(make_command((vid, 0, "1.00"), total="1.00")).failure(), ValidationError
    )
    assert isinstance(
        place(make_command((vid, 1, "-1.00"), total="1.00")).failure(), ValidationError
    )
    assert isinstance(
        place(make_command((" ", 1, "1.00"))).failure(), ValidationError
    )
    assert catalog.order_count() == 0


def test_row_by_row_decrement_and_rollback_on_exit(engine, catalog):
    a = catalog.add_variant(quantity=5)
    b = catalog.add_variant(quantity=1)

    with SqlUnitOfWork(engine) as uow:
        assert uow.inventory._decrement_each({a: 2, b: 3}) == {a}
        report = uow.inventory.decrement({b: 1}).unwrap()
        assert report.fully_applied

    # never committed
    assert catalog.quantity(a) == 5
    assert catalog.quantity(b) == 1


def test_sub_cent_prices_are_rejected_before_storage(usecases, catalog):
    vid = catalog.add_variant(quantity=5)

    result = usecases.place_order.place_order(
        make_command((vid, 1, "0.001"), total="0.001")
    )

    assert isinstance(result.failure(), ValidationError)
    assert "unit_price" in str(result.failure())
    assert catalog.quantity(vid) == 5
    assert catalog.order_count() == 0


def test_total_rounding_to_zero_is_rejected(usecases, catalog):
    vid = catalog.add_variant(quantity=5)

    result = usecases.place_order.place_order(
        make_command((vid, 1, "1.00"), total="0.004")
    )

    assert isinstance(result.failure(), ValidationError)
    assert str(result.failure()) == "total must be > 0"


def test_unreachable_database_is_a_transaction_failure(tmp_path):
    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'missing' / 'dir' / 'orders.db'}",
        retry_backoff=0.01,
    )
    engine = create_engine_from_settings(settings)
    try:
        service = _service(settings, SqlUnitOfWorkFactory(engine))
        result = service.place_order(
            make_command(("6f1c1a52-8d1e-4a4b-9c55-0d7d2f0f8a11", 1, "1.00"))
        )
    finally:
        engine.dispose()

    assert isinstance(result, Failure)
    err = result.failure()
    assert isinstance(err, TransactionFailure)
    assert not isinstance(err, TransactionConflict)
    assert str(err) == "could not begin transaction"
