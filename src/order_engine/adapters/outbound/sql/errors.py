from __future__ import annotations

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeout

from order_engine.core.domain.model.errors import (
    TransactionConflict,
    TransactionFailure,
)

# serialization_failure, deadlock_detected, lock_not_available
_RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}
_RETRYABLE_SQLITE_MESSAGES = ("database is locked", "database is busy")


def is_retryable(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, PoolTimeout):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    if isinstance(exc, OperationalError):
        text = str(orig).lower()
        return any(m in text for m in _RETRYABLE_SQLITE_MESSAGES)
    return False


def to_transaction_failure(exc: SQLAlchemyError, action: str) -> TransactionFailure:
    # the driver message stays in the logs, never in the error itself
    if is_retryable(exc):
        return TransactionConflict(f"could not {action}: storage conflict")
    return TransactionFailure(f"could not {action}")
