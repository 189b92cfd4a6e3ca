from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Mapping, Protocol

from returns.result import Result

from order_engine.core.domain.model.errors import PlaceOrderError


@dataclass(frozen=True)
class DecrementReport:
    requested: Mapping[str, int]
    applied: frozenset[str]

    @property
    def rejected(self) -> tuple[str, ...]:
        return tuple(vid for vid in self.requested if vid not in self.applied)

    @property
    def fully_applied(self) -> bool:
        return not self.rejected


class InventoryLedger(Protocol):
    """
    Remaining quantity per variant. Only ever changed through `decrement`,
    which must re-check `quantity >= requested` in the same write.
    """

    def remaining(
        self, variant_ids: Collection[str]
    ) -> Result[Mapping[str, int], PlaceOrderError]:
        """Remaining quantity of the active variants among `variant_ids`."""
        ...

    def decrement(
        self, requested: Mapping[str, int]
    ) -> Result[DecrementReport, PlaceOrderError]: ...
