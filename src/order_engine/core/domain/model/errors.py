from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class PlaceOrderError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(eq=False)
class ValidationError(PlaceOrderError):
    pass


@dataclass(eq=False)
class UnsupportedVersion(ValidationError):
    version: str

    def __str__(self) -> str:  # pragma: no cover
        return f"unsupported_version: {self.version} ({self.message})"


@dataclass(eq=False)
class InsufficientInventory(PlaceOrderError):
    variant_ids: tuple[str, ...]

    def __str__(self) -> str:  # pragma: no cover
        ids = ",".join(self.variant_ids)
        return f"insufficient_inventory: variants={ids} ({self.message})"


@dataclass(eq=False)
class OrderNotFound(PlaceOrderError):
    order_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"order_not_found: {self.order_id} ({self.message})"


@dataclass(eq=False)
class TransactionFailure(PlaceOrderError):
    """The unit of work did not commit. Nothing it wrote is visible."""


@dataclass(eq=False)
class TransactionConflict(TransactionFailure):
    """Lock timeout, busy database or serialization failure; safe to retry."""


@dataclass(eq=False)
class DeadlineExceeded(TransactionFailure):
    pass
