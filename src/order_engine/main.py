from __future__ import annotations

import argparse
import logging

import uvicorn

from order_engine.adapters.inbound.cli import run_cli
from order_engine.adapters.outbound.sql.engine import create_engine_from_settings
from order_engine.adapters.outbound.sql.tables import create_schema
from order_engine.bootstrap import build_app, build_engine, build_usecases
from order_engine.config import Settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="order-engine")
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("serve", help="run the HTTP API")
    sub.add_parser("init-db", help="create the database tables")
    place = sub.add_parser("place", help="place one order from a JSON document")
    place.add_argument("payload", help='e.g. \'{"total":"5.00","items":[...]}\'')
    args = p.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings)

    if args.command == "serve":
        uvicorn.run(
            build_app(settings),
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0

    if args.command == "init-db":
        engine = create_engine_from_settings(settings)
        create_schema(engine)
        engine.dispose()
        return 0

    engine = build_engine(settings)
    try:
        return run_cli(build_usecases(settings, engine).place_order, args.payload)
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
