"""
Pytest fixtures для тестов.

Предоставляет:
- bare_engine: пустая SQLite in-memory БД (для тестов миграций)
- test_engine: та же БД, прогнанная через настоящие миграции
- file_engine: мигрированная БД в файле (для конкурентных транзакций)
- test_db: async session поверх test_engine
- test_client: HTTP клиент для тестирования API endpoints
"""

import os

# Приложение не должно трогать файл ./data/dokodemo.db во время тестов
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from dokodemo.core.database import create_engine, get_db  # noqa: E402
from dokodemo.core.migrations import run_migrations  # noqa: E402
from dokodemo.main import app  # noqa: E402

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def bare_engine():
    """
    Async engine без схемы.

    create_engine() из приложения, а не create_async_engine(): так в тестах
    действуют те же PRAGMA foreign_keys и транзакционный DDL, что и в работе.
    StaticPool держит одно соединение - у каждого теста своя in-memory БД.
    """
    engine = create_engine(TEST_DATABASE_URL)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_engine(bare_engine):
    """Engine с применёнными миграциями (схема как в production)."""
    await run_migrations(bare_engine)
    return bare_engine


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """
    Мигрированная SQLite БД в файле, с обычным пулом соединений.

    В отличие от in-memory StaticPool, у каждой сессии своё соединение:
    конкурентные транзакции здесь действительно конкурируют за блокировку.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'dokodemo.db'}")
    await run_migrations(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """
    Async session для работы с тестовой БД.

    Транзакция откатывается после теста.
    """
    TestSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_engine):
    """
    HTTP клиент для тестирования API endpoints.

    get_db подменяется: запросы идут в тестовую БД, по транзакции на запрос.
    """
    TestSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def count_rows():
    """SELECT COUNT(*) для таблицы или ORM модели: await count_rows(db, Tag)."""

    async def _count(session_or_conn, table) -> int:
        result = await session_or_conn.execute(select(func.count()).select_from(table))
        return result.scalar_one()

    return _count


@pytest.fixture
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
