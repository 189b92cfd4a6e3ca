from __future__ import annotations

import logging
from types import TracebackType
from typing import ClassVar

from returns.result import Failure, Result, Success
from sqlalchemy.engine import Connection, Engine, RootTransaction
from sqlalchemy.exc import SQLAlchemyError

from order_engine.adapters.outbound.sql.errors import to_transaction_failure
from order_engine.adapters.outbound.sql.inventory import SqlInventoryLedger
from order_engine.adapters.outbound.sql.orders import SqlOrderWriter
from order_engine.core.domain.model.errors import PlaceOrderError, TransactionFailure
from order_engine.core.ports.outbound.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlUnitOfWork(UnitOfWork):
    inventory_cls: ClassVar[type[SqlInventoryLedger]] = SqlInventoryLedger
    orders_cls: ClassVar[type[SqlOrderWriter]] = SqlOrderWriter

    inventory: SqlInventoryLedger
    orders: SqlOrderWriter

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._conn: Connection | None = None
        self._tx: RootTransaction | None = None

    def __enter__(self) -> "SqlUnitOfWork":
        conn: Connection | None = None
        try:
            conn = self._engine.connect()
            self._tx = conn.begin()
        except SQLAlchemyError as exc:
            if conn is not None:
                conn.close()
            logger.warning("could not begin transaction: %s", exc)
            raise to_transaction_failure(exc, "begin transaction") from exc
        self._conn = conn
        self.inventory = self.inventory_cls(conn)
        self.orders = self.orders_cls(conn)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            self.rollback()
        finally:
            if self._conn is not None:
                self._conn.close()
            self._conn = None
            self._tx = None

    def commit(self) -> Result[None, PlaceOrderError]:
        if self._tx is None or not self._tx.is_active:
            return Failure(TransactionFailure("transaction is not active"))
        try:
            self._tx.commit()
        except SQLAlchemyError as exc:
            logger.exception("commit failed")
            return Failure(to_transaction_failure(exc, "commit transaction"))
        return Success(None)

    def rollback(self) -> None:
        if self._tx is not None and self._tx.is_active:
            try:
                self._tx.rollback()
            except SQLAlchemyError:
                # the connection is discarded on close either way
                logger.exception("rollback failed")


class SqlUnitOfWorkFactory:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def __call__(self) -> SqlUnitOfWork:
        return SqlUnitOfWork(self._engine)
