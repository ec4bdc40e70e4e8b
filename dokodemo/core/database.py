"""Database connection and session management."""

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .config import settings
from .flavors import flavor_for_dialect


def _on_sqlite_connect(dbapi_connection, connection_record) -> None:
    # Драйвер сам не начинает транзакцию перед DDL, поэтому BEGIN IMMEDIATE выдаёт
    # _on_sqlite_begin: миграции откатываются целиком, включая CREATE/DROP TABLE
    dbapi_connection.isolation_level = None

    # SQLite проверяет внешние ключи (и выполняет ON DELETE CASCADE) только
    # если PRAGMA включена на каждом новом соединении
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(connection) -> None:
    # Блокировка записи с начала транзакции: конкурентный писатель ждёт
    # busy timeout, а не получает SQLITE_BUSY при переходе от чтения к записи
    connection.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(
    database_url: str, echo: bool = False, pool_size: int = 10
) -> AsyncEngine:
    """
    Создать async engine для PostgreSQL или SQLite.

    Движок выбирается один раз по схеме URL. Неподдерживаемая схема - ошибка
    при старте, а не при первом запросе.

    Args:
        database_url: postgresql+asyncpg://... или sqlite+aiosqlite:///...
        echo: Выводить SQL в логи
        pool_size: Размер пула (только PostgreSQL)

    Raises:
        ValueError: Если движок не поддерживается
    """
    url = make_url(database_url)
    flavor = flavor_for_dialect(url.get_backend_name())

    if flavor.name == "sqlite":
        if url.database in (None, "", ":memory:"):
            # In-memory база живёт, пока живёт соединение - одно на весь процесс
            engine = create_async_engine(
                url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_async_engine(
                url,
                echo=echo,
                connect_args={"timeout": 30},
            )
        event.listen(engine.sync_engine, "connect", _on_sqlite_connect)
        event.listen(engine.sync_engine, "begin", _on_sqlite_begin)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        pool_pre_ping=True,
    )


# Create async engine
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_size=settings.DATABASE_POOL_SIZE,
)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database session.

    Одна сессия = одна транзакция: commit при успехе, rollback при любой ошибке.

    Usage in FastAPI:
        @app.get("/entries")
        async def list_entries(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
