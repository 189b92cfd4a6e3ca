from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

ENV_PREFIX = "ORDER_ENGINE_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration. Built once at startup (`from_env`) and handed
    to the components that need it; nothing else reads the environment.
    """

    database_url: str = "sqlite:///./order_engine.db"
    db_busy_timeout: float = 30.0
    db_pool_size: int = 5
    create_schema: bool = True

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    accepted_versions: tuple[str, ...] = ("v1",)

    default_page_size: int = 10
    max_page_size: int = 100

    enforce_total_match: bool = True
    max_attempts: int = 3
    retry_backoff: float = 0.05
    transaction_timeout: float = 10.0  # seconds, 0 disables the deadline

    def __post_init__(self) -> None:
        if not self.accepted_versions:
            raise ValueError("accepted_versions must not be empty")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.default_page_size <= 0 or self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must be in 1..max_page_size")
        if self.transaction_timeout < 0:
            raise ValueError("transaction_timeout must be >= 0")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            raw = env.get(ENV_PREFIX + name)
            if raw is None or not raw.strip():
                return None
            return raw.strip()

        defaults = cls()
        versions = get("ACCEPTED_VERSIONS")
        return cls(
            database_url=get("DATABASE_URL") or defaults.database_url,
            db_busy_timeout=_float(get("DB_BUSY_TIMEOUT"), defaults.db_busy_timeout),
            db_pool_size=_int(get("DB_POOL_SIZE"), defaults.db_pool_size),
            create_schema=_bool(get("CREATE_SCHEMA"), defaults.create_schema),
            host=get("HOST") or defaults.host,
            port=_int(get("PORT"), defaults.port),
            log_level=(get("LOG_LEVEL") or defaults.log_level).upper(),
            accepted_versions=(
                tuple(v.strip().lower() for v in versions.split(",") if v.strip())
                if versions
                else defaults.accepted_versions
            ),
            default_page_size=_int(
                get("DEFAULT_PAGE_SIZE"), defaults.default_page_size
            ),
            max_page_size=_int(get("MAX_PAGE_SIZE"), defaults.max_page_size),
            enforce_total_match=_bool(
                get("ENFORCE_TOTAL_MATCH"), defaults.enforce_total_match
            ),
            max_attempts=_int(get("MAX_ATTEMPTS"), defaults.max_attempts),
            retry_backoff=_float(get("RETRY_BACKOFF"), defaults.retry_backoff),
            transaction_timeout=_float(
                get("TRANSACTION_TIMEOUT"), defaults.transaction_timeout
            ),
        )


def _int(raw: str | None, default: int) -> int:
    return default if raw is None else int(raw)


def _float(raw: str | None, default: float) -> float:
    return default if raw is None else float(raw)


def _bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    value = raw.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"not a boolean: {raw!r}")
