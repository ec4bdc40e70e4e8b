"""Alembic environment for the dokodemo schema.

Обычно миграции запускает dokodemo.core.migrations.run_migrations(): он
открывает транзакцию и передаёт соединение через config.attributes. Запуск
через `alembic upgrade head` тоже работает - тогда соединение создаётся из
настроек приложения.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

config = context.config

if config.config_file_name is not None and not config.attributes.get("connection"):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Миграции написаны руками под каждый движок, autogenerate не используется
target_metadata = None


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


def do_run_locked_migrations(connection: Connection) -> None:
    from dokodemo.core.flavors import flavor_for

    flavor_for(connection).acquire_migration_lock(connection)
    do_run_migrations(connection)


async def run_async_migrations() -> None:
    """Create an engine from application settings and run migrations on it."""
    from dokodemo.core.config import settings
    from dokodemo.core.database import create_engine

    engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    try:
        async with engine.begin() as connection:
            await connection.run_sync(do_run_locked_migrations)
    finally:
        await engine.dispose()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is None:
        asyncio.run(run_async_migrations())
    else:
        do_run_migrations(connection)


if context.is_offline_mode():
    # Шаг backfill читает данные из таблицы entries, SQL-скрипт без БД его не выразит
    raise RuntimeError("Offline (--sql) mode is not supported, run migrations against a database")

run_migrations_online()
