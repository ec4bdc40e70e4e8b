"""
Главный файл FastAPI приложения.

Запуск:
    python -m dokodemo                 # миграции, затем сервер
    python -m dokodemo --migrate-only  # только миграции
    uvicorn dokodemo.main:app --reload

API документация:
    http://localhost:3000/docs       - Swagger UI
    http://localhost:3000/redoc      - ReDoc
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import __version__
from .api import categories_router, entries_router, integrations_router, tags_router
from .api.dependencies import limiter, verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .api.schemas import HealthResponse
from .core.config import settings
from .core.database import engine, get_db
from .core.logging import get_logger, setup_logging
from .core.migrations import run_migrations, schema_revision

setup_logging(
    log_level=settings.LOG_LEVEL,
    log_format=settings.LOG_FORMAT,
    database_echo=settings.DATABASE_ECHO,
)

logger = get_logger(__name__)

APP_START_TIME: float = 0.0  # Will be set on startup


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Превышение лимита запросов в едином формате ErrorResponse."""
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests, limit: {exc.detail}",
                "details": None,
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: миграции (до первого запроса), Shutdown: закрыть пул соединений.

    MigrationError из run_migrations() прерывает старт: сервер не начнёт
    обслуживать запросы на наполовину мигрированной схеме.
    """
    global APP_START_TIME
    APP_START_TIME = time.time()

    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await run_migrations(engine)

    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": __version__,
            "dialect": engine.dialect.name,
            "auth": settings.API_KEY is not None,
        },
    )

    yield

    await engine.dispose()
    logger.info("Application stopped", extra={"uptime_seconds": int(time.time() - APP_START_TIME)})


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Персональный трекер контента: книги, манга, статьи, фильмы, заметки, ссылки.

    * **Entries** - записи со статусом, тегами и категорией (kind)
    * **Categories** - допустимые значения kind, меняются во время работы
    * **Tags** - создаются автоматически при записи
    * **Quick capture / Telegram** - запись из свободного текста
    """,
    version=__version__,
    debug=settings.DEBUG,
)

app.state.limiter = limiter
# slowapi handler имеет специфичный тип, но работает корректно
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ============================================================================
# ROUTERS
# ============================================================================

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(entries_router)
api_v1_router.include_router(categories_router)
api_v1_router.include_router(tags_router)

# dependencies=[Depends(verify_api_key)] - все endpoints роутера требуют авторизации
app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

# Telegram не умеет отправлять X-API-Key, у webhook своя проверка
app.include_router(integrations_router, prefix="/api/v1")

register_error_handlers(app)


# ============================================================================
# ROOT / HEALTH
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "api_version": "v1",
        "docs": "/docs",
        "endpoints": {
            "entries": "/api/v1/entries",
            "quick_capture": "/api/v1/quick-capture",
            "categories": "/api/v1/categories",
            "tags": "/api/v1/tags",
            "telegram": "/api/v1/integrations/telegram/update",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["health"], summary="Health check")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Проверяет подключение к базе данных и версию схемы.

    Пример ответа (200 OK):
    ```json
    {"status": "ok", "database": "connected", "schema_revision": "0002"}
    ```

    При недоступной БД - 503 и "database": "disconnected".
    """
    try:
        await db.execute(text("SELECT 1"))
        connection = await db.connection()
        revision = await connection.run_sync(schema_revision)
    except SQLAlchemyError:
        logger.warning("Health check: database unavailable", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "database": "disconnected", "schema_revision": None},
        )

    return HealthResponse(status="ok", database="connected", schema_revision=revision)
