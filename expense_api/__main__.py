"""Command-line entry point running the expense service."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import replace

import uvicorn

from . import database
from .config import Settings
from .logging import ROOT_LOGGER, setup_logger
from .server import create_app

DESCRIPTION = "Expense Record Service"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense-api", description=DESCRIPTION)
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: %(default)s)")
    parser.add_argument("--log-level", default=None, help="Override EXPENSES_LOG_LEVEL")
    parser.add_argument("--json-logs", action="store_true", help="Also write JSON audit logs")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create the database tables and exit without serving",
    )
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    settings = base or Settings.from_env()
    if args.log_level:
        settings = replace(settings, log_level=args.log_level.strip().upper())
    if args.json_logs:
        settings = replace(settings, json_logs=True)
    return settings


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint for running the API server."""

    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)

    if args.init_db:
        log = setup_logger(
            ROOT_LOGGER,
            json_format=settings.json_logs,
            level=settings.log_level,
            log_dir=settings.log_dir,
        )
        engine = database.build_engine(settings.database_url)
        try:
            database.init_db(engine)
        finally:
            engine.dispose()
        log.info("Database initialised at %s", engine.url.render_as_string())
        return 0

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
