"""
Command line entry point.

    python -m dokodemo                 # применить миграции и запустить сервер
    python -m dokodemo --migrate-only  # применить миграции и выйти
"""

import argparse
import asyncio
import sys

import uvicorn

from .core.config import settings
from .core.database import create_engine
from .core.errors import MigrationError
from .core.logging import get_logger, setup_logging
from .core.migrations import run_migrations

logger = get_logger("dokodemo")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dokodemo", description="Dokodemo Door API server")
    parser.add_argument(
        "--migrate-only",
        action="store_true",
        help="apply pending database migrations and exit",
    )
    parser.add_argument("--host", default=settings.BIND_HOST, help="bind address")
    parser.add_argument("--port", type=int, default=settings.BIND_PORT, help="bind port")
    return parser.parse_args(argv)


async def migrate() -> None:
    engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    try:
        await run_migrations(engine)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
        database_echo=settings.DATABASE_ECHO,
    )

    try:
        asyncio.run(migrate())
    except MigrationError as e:
        logger.critical("Refusing to start: %s", e.message)
        return 1

    if args.migrate_only:
        return 0

    # Схема уже мигрирована, lifespan повторно проверит её (no-op)
    uvicorn.run("dokodemo.main:app", host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
