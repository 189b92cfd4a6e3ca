from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection, Mapping

from returns.result import Failure, Result, Success
from sqlalchemy import case, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from order_engine.adapters.outbound.sql.errors import to_transaction_failure
from order_engine.adapters.outbound.sql.tables import variants
from order_engine.core.domain.model.errors import PlaceOrderError
from order_engine.core.ports.outbound.inventory import DecrementReport, InventoryLedger

logger = logging.getLogger(__name__)


@dataclass
class SqlInventoryLedger(InventoryLedger):
    conn: Connection

    def remaining(
        self, variant_ids: Collection[str]
    ) -> Result[Mapping[str, int], PlaceOrderError]:
        if not variant_ids:
            return Success({})

        # row locks are held until the unit of work ends (ignored on SQLite,
        # where BEGIN IMMEDIATE already serialises writers); the id order
        # keeps lock acquisition deadlock-free between overlapping baskets
        stmt = (
            select(variants.c.id, variants.c.quantity)
            .where(variants.c.id.in_(sorted(variant_ids)))
            .where(variants.c.is_active.is_(True))
            .order_by(variants.c.id)
            .with_for_update()
        )
        try:
            rows = self.conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.exception("inventory read failed")
            return Failure(to_transaction_failure(exc, "check inventory availability"))
        return Success({row.id: row.quantity for row in rows})

    def decrement(
        self, requested: Mapping[str, int]
    ) -> Result[DecrementReport, PlaceOrderError]:
        if not requested:
            return Success(DecrementReport(requested={}, applied=frozenset()))

        try:
            if self.conn.dialect.update_returning:
                applied = self._decrement_batch(requested)
            else:
                applied = self._decrement_each(requested)
        except SQLAlchemyError as exc:
            logger.exception("inventory decrement failed")
            return Failure(to_transaction_failure(exc, "batch update inventory"))

        report = DecrementReport(requested=dict(requested), applied=frozenset(applied))
        if not report.fully_applied:
            logger.info("guarded decrement skipped variants %s", report.rejected)
        return Success(report)

    def _decrement_batch(self, requested: Mapping[str, int]) -> set[str]:
        # UPDATE variants SET quantity = quantity - <req>
        # WHERE id IN (...) AND is_active AND quantity >= <req> RETURNING id
        wanted = case(dict(requested), value=variants.c.id)
        stmt = (
            update(variants)
            .where(variants.c.id.in_(sorted(requested)))
            .where(variants.c.is_active.is_(True))
            .where(variants.c.quantity >= wanted)
            .values(quantity=variants.c.quantity - wanted)
            .returning(variants.c.id)
        )
        return {row.id for row in self.conn.execute(stmt)}

    def _decrement_each(self, requested: Mapping[str, int]) -> set[str]:
        applied: set[str] = set()
        for variant_id in sorted(requested):
            qty = requested[variant_id]
            stmt = (
                update(variants)
                .where(variants.c.id == variant_id)
                .where(variants.c.is_active.is_(True))
                .where(variants.c.quantity >= qty)
                .values(quantity=variants.c.quantity - qty)
            )
            if self.conn.execute(stmt).rowcount == 1:
                applied.add(variant_id)
        return applied
