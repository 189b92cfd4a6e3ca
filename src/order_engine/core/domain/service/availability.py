"""Basket sufficiency checks.

Both the availability read and the guarded decrement work on the basket
folded by variant: two lines for the same variant must be covered by the
remaining quantity together, not one at a time.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Tuple

from order_engine.core.domain.model.order import OrderItem


@dataclass(frozen=True)
class LineShortfall:
    variant_id: str
    requested: int
    remaining: int | None  # None: unknown or inactive variant


@dataclass(frozen=True)
class AvailabilityReport:
    shortfalls: Tuple[LineShortfall, ...]

    @property
    def satisfiable(self) -> bool:
        return not self.shortfalls

    def variant_ids(self) -> tuple[str, ...]:
        return tuple(s.variant_id for s in self.shortfalls)


def requested_quantities(items: Iterable[OrderItem]) -> dict[str, int]:
    requested: dict[str, int] = {}
    for it in items:
        key = it.variant_id.value
        requested[key] = requested.get(key, 0) + it.quantity
    return requested


def evaluate(
    requested: Mapping[str, int], remaining: Mapping[str, int]
) -> AvailabilityReport:
    shortfalls = tuple(
        LineShortfall(variant_id=vid, requested=qty, remaining=remaining.get(vid))
        for vid, qty in requested.items()
        if vid not in remaining or remaining[vid] < qty
    )
    return AvailabilityReport(shortfalls=shortfalls)
