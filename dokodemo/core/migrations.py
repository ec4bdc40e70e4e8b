"""
Schema/Migration runner.

Запускается до того, как сервер начнёт принимать запросы (lifespan в main.py
или `python -m dokodemo --migrate-only`). Все ожидающие ревизии применяются на
одном соединении в одной транзакции: либо схема мигрирована целиком, либо
процесс не стартует.
"""

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from .errors import MigrationError
from .flavors import flavor_for
from .logging import get_logger

logger = get_logger(__name__)

SCRIPT_LOCATION = "dokodemo:migrations"


def alembic_config(connection: Connection | None = None) -> Config:
    """
    Собрать конфигурацию Alembic без alembic.ini.

    Args:
        connection: Открытое соединение; env.py выполнит миграции на нём
    """
    config = Config()
    config.set_main_option("script_location", SCRIPT_LOCATION)
    if connection is not None:
        config.attributes["connection"] = connection
    return config


def _upgrade(connection: Connection, revision: str) -> None:
    flavor_for(connection).acquire_migration_lock(connection)
    command.upgrade(alembic_config(connection), revision)


def schema_revision(connection: Connection) -> str | None:
    """Ревизия Alembic на этом соединении (None для пустой базы)."""
    return MigrationContext.configure(connection).get_current_revision()


async def current_revision(engine: AsyncEngine) -> str | None:
    """Вернуть применённую ревизию (None для пустой базы)."""
    async with engine.connect() as conn:
        return await conn.run_sync(schema_revision)


async def run_migrations(engine: AsyncEngine, revision: str = "head") -> str | None:
    """
    Применить все ожидающие миграции.

    Повторный запуск на уже мигрированной базе ничего не меняет.

    Args:
        engine: Async engine приложения
        revision: Целевая ревизия (по умолчанию последняя)

    Returns:
        Ревизия после применения

    Raises:
        MigrationError: Любая ошибка (битый legacy JSON, потеря соединения,
            ошибка SQL). Транзакция откатывается.
    """
    dialect = engine.dialect.name
    logger.info("Running migrations", extra={"dialect": dialect, "target": revision})

    try:
        async with engine.begin() as conn:
            before = await conn.run_sync(schema_revision)
            await conn.run_sync(_upgrade, revision)
            after = await conn.run_sync(schema_revision)
    except MigrationError:
        logger.exception("Migration failed", extra={"dialect": dialect})
        raise
    except Exception as e:
        logger.exception("Migration failed", extra={"dialect": dialect})
        raise MigrationError(f"Migration to '{revision}' failed: {e}") from e

    if before == after:
        logger.info("Schema is up to date", extra={"revision": after})
    else:
        logger.info("Migrations applied", extra={"from_revision": before, "to_revision": after})
    return after
