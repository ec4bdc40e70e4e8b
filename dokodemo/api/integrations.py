"""
Webhook для Telegram бота.

Endpoint не требует X-API-Key: Telegram его не отправляет. Вместо этого
проверяется X-Telegram-Bot-Api-Secret-Token, если задан TELEGRAM_WEBHOOK_SECRET.
"""

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from ..core.config import settings
from ..core.logging import get_logger
from ..services import CaptureService
from .dependencies import get_capture_service, limiter
from .schemas import AcceptedResponse, ErrorResponse, TelegramUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/integrations", tags=["integrations"])


async def verify_telegram_secret(
    secret_token: str | None = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
) -> None:
    """401, если секрет настроен, а заголовок отсутствует или не совпадает."""
    expected = settings.TELEGRAM_WEBHOOK_SECRET
    if expected is None:
        return
    if secret_token is None or not secrets.compare_digest(
        secret_token.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Telegram webhook secret"
        )


@router.post(
    "/telegram/update",
    response_model=AcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Telegram webhook",
    dependencies=[Depends(verify_telegram_secret)],
    responses={
        400: {"model": ErrorResponse, "description": "В update нет сообщения с текстом"},
        401: {"model": ErrorResponse, "description": "Неверный секрет"},
    },
)
@limiter.limit("30/minute")
async def telegram_update(
    request: Request,
    update: TelegramUpdate,
    service: CaptureService = Depends(get_capture_service),
) -> AcceptedResponse:
    """
    Сообщение (или отредактированное сообщение) становится записью kind=note.

    Текст сохраняется в notes, заголовок - первая строка, url - первая ссылка.
    """
    entry = await service.capture_telegram_update(update.model_dump())
    logger.info("Telegram message captured", extra={"entry_id": entry.id, "source": entry.source})
    return AcceptedResponse(entry_id=entry.id)
