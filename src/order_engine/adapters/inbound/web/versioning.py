"""Per-API-version handler lookup.

Handlers are registered per operation, either as the base implementation
(`version=None`) or as an override for one version. `build()` resolves every
(accepted version, operation) pair once at startup: a version uses its own
override if it has one, else the newest override of an older accepted
version, else the base handler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from order_engine.core.domain.model.errors import UnsupportedVersion

Handler = Callable[..., Any]


class HandlerRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[Tuple[str | None, str], Handler] = {}

    def register(
        self, operation: str, version: str | None = None
    ) -> Callable[[Handler], Handler]:
        def decorator(fn: Handler) -> Handler:
            self.add(operation, fn, version=version)
            return fn

        return decorator

    def add(self, operation: str, handler: Handler, version: str | None = None) -> None:
        key = (_normalize(version) if version else None, operation)
        if key in self._handlers:
            raise ValueError(f"handler already registered: {key}")
        self._handlers[key] = handler

    def build(self, accepted_versions: Sequence[str]) -> "Dispatcher":
        versions = tuple(_normalize(v) for v in accepted_versions)
        operations = sorted({op for _, op in self._handlers})

        table: Dict[Tuple[str, str], Handler] = {}
        for i, version in enumerate(versions):
            chain = versions[: i + 1]
            for op in operations:
                handler = self._lookup(chain, op)
                if handler is None:
                    raise LookupError(f"no handler for {op!r} in version {version!r}")
                table[(version, op)] = handler
        return Dispatcher(versions=versions, table=table)

    def _lookup(self, chain: Sequence[str], operation: str) -> Handler | None:
        for version in reversed(chain):
            handler = self._handlers.get((version, operation))
            if handler is not None:
                return handler
        return self._handlers.get((None, operation))


@dataclass(frozen=True)
class Dispatcher:
    versions: Tuple[str, ...]
    table: Mapping[Tuple[str, str], Handler]

    def resolve(self, version: str, operation: str) -> Handler:
        key = (_normalize(version), operation)
        if key[0] not in self.versions:
            raise UnsupportedVersion(
                message="given version is not supported by the system",
                version=version,
            )
        try:
            return self.table[key]
        except KeyError:
            raise LookupError(f"unknown operation: {operation!r}") from None


def _normalize(version: str) -> str:
    return version.strip().lower()
