"""
Dependencies для FastAPI endpoints.

Сервисы создаются на каждый запрос поверх одной сессии БД:
    async def create_entry(
        service: EntryService = Depends(get_entry_service)
    ):
        ...

get_db() открывает транзакцию на весь запрос: commit при успехе, rollback
при любом исключении (в том числе доменном).
"""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..services import CaptureService, CategoryService, EntryService, TagService

# ============================================================================
# RATE LIMITER
# ============================================================================

# key_func определяет по какому ключу группировать запросы (по IP адресу)
limiter = Limiter(key_func=get_remote_address)

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Не выбрасывать ошибку автоматически, мы сами обработаем
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str | None = Depends(api_key_header)) -> str | None:
    """
    Dependency для проверки API ключа.

    Если API_KEY не задан в настройках, проверка отключена (сервис за
    reverse proxy в домашней сети).

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:3000/api/v1/entries
    """
    if settings.API_KEY is None:
        return None

    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(api_key.encode(), settings.API_KEY.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_entry_service(db: AsyncSession = Depends(get_db)) -> EntryService:
    """
    Dependency для EntryService.

    Цепочка зависимостей:
        get_entry_service зависит от get_db
        → FastAPI вызовет get_db()
        → Передаст сессию в get_entry_service()
        → Вернёт EntryService в endpoint
    """
    return EntryService(db)


async def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    """Dependency для CategoryService."""
    return CategoryService(db)


async def get_tag_service(db: AsyncSession = Depends(get_db)) -> TagService:
    """Dependency для TagService."""
    return TagService(db)


async def get_capture_service(db: AsyncSession = Depends(get_db)) -> CaptureService:
    """Dependency для CaptureService (quick capture и Telegram)."""
    return CaptureService(db)
