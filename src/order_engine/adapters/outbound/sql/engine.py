from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from order_engine.config import Settings

logger = logging.getLogger(__name__)

# execution options for connections that only read; on SQLite they open a
# deferred transaction and never take the write lock
READ_ONLY: dict[str, Any] = {"sqlite_begin": "DEFERRED"}


def create_engine_from_settings(settings: Settings) -> Engine:
    url = make_url(settings.database_url)
    backend = url.get_backend_name()

    if backend == "sqlite":
        engine = create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.db_busy_timeout,
            },
        )
        _use_immediate_transactions(engine)
    else:
        engine = create_engine(
            url,
            connect_args=server_connect_args(backend, settings),
            pool_size=settings.db_pool_size,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
        )

    logger.info("database engine ready: %s", url.render_as_string(hide_password=True))
    return engine


def server_connect_args(backend: str, settings: Settings) -> dict[str, Any]:
    """Session settings for client/server backends."""
    if backend != "postgresql":
        return {}
    # a row lock wait longer than this fails with SQLSTATE 55P03
    lock_timeout_ms = int(settings.db_busy_timeout * 1000)
    return {"options": f"-c lock_timeout={lock_timeout_ms}"}


def _use_immediate_transactions(engine: Engine) -> None:
    """
    Every transaction takes the SQLite write lock at BEGIN unless the
    connection carries the `READ_ONLY` options; waiting writers are bounded
    by the busy timeout.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        mode = conn.get_execution_options().get("sqlite_begin", "IMMEDIATE")
        conn.exec_driver_sql(f"BEGIN {mode}")
