"""
API endpoints для работы с записями.

URL структура:
- POST   /entries          - создать запись
- GET    /entries          - список с фильтрами
- GET    /entries/{id}     - одна запись
- PATCH  /entries/{id}     - частичное обновление
- DELETE /entries/{id}     - удалить запись
- POST   /quick-capture    - запись из свободного текста
"""

from fastapi import APIRouter, Depends, Query, status

from ..services import CaptureService, EntryService
from .dependencies import get_capture_service, get_entry_service
from .schemas import (
    EntryCreate,
    EntryResponse,
    EntryUpdate,
    ErrorResponse,
    QuickCaptureRequest,
)

router = APIRouter(tags=["entries"])


# ============================================================================
# CREATE ENTRY
# ============================================================================


@router.post(
    "/entries",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать запись",
    description="""
    Создать новую запись.

    Бизнес-правила:
    - title обязателен
    - kind - имя существующей категории
    - status: planned (по умолчанию), in_progress, completed, dropped
    """,
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}},
)
async def create_entry(
    data: EntryCreate, service: EntryService = Depends(get_entry_service)
) -> EntryResponse:
    """
    Пример запроса:
    ```json
    {"title": "Dune", "kind": "book", "tags": ["sci-fi"]}
    ```
    """
    entry = await service.create_entry(**data.model_dump())
    return EntryResponse.model_validate(entry)


# ============================================================================
# LIST ENTRIES
# ============================================================================


@router.get(
    "/entries",
    response_model=list[EntryResponse],
    summary="Получить список записей",
    responses={400: {"model": ErrorResponse, "description": "Неизвестный статус"}},
)
async def list_entries(
    kind: str | None = Query(None, description="Имя категории"),
    status: str | None = Query(None, description="Статус"),
    tag: str | None = Query(None, description="Имя тега"),
    search: str | None = Query(None, description="Подстрока в title или notes"),
    limit: int = Query(50, description="Максимум записей (1-200)"),
    offset: int = Query(0, description="Сколько пропустить"),
    service: EntryService = Depends(get_entry_service),
) -> list[EntryResponse]:
    """
    Фильтры объединяются через AND, новые записи первыми.

    Примеры запросов:
    ```
    GET /entries?kind=book&status=planned
    GET /entries?tag=sci-fi&search=dune
    GET /entries?limit=20&offset=40
    ```
    """
    entries = await service.list_entries(
        kind=kind, status=status, tag=tag, search=search, limit=limit, offset=offset
    )
    return [EntryResponse.model_validate(e) for e in entries]


# ============================================================================
# GET / UPDATE / DELETE ENTRY
# ============================================================================


@router.get(
    "/entries/{entry_id}",
    response_model=EntryResponse,
    summary="Получить запись",
    responses={404: {"model": ErrorResponse, "description": "Запись не найдена"}},
)
async def get_entry(
    entry_id: str, service: EntryService = Depends(get_entry_service)
) -> EntryResponse:
    entry = await service.get_entry(entry_id)
    return EntryResponse.model_validate(entry)


@router.patch(
    "/entries/{entry_id}",
    response_model=EntryResponse,
    summary="Обновить запись",
    description="Частичное обновление. Переданный tags полностью заменяет прежний набор.",
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        404: {"model": ErrorResponse, "description": "Запись не найдена"},
    },
)
async def update_entry(
    entry_id: str, data: EntryUpdate, service: EntryService = Depends(get_entry_service)
) -> EntryResponse:
    entry = await service.update_entry(entry_id, **data.model_dump(exclude_unset=True))
    return EntryResponse.model_validate(entry)


@router.delete(
    "/entries/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить запись",
    responses={404: {"model": ErrorResponse, "description": "Запись не найдена"}},
)
async def delete_entry(entry_id: str, service: EntryService = Depends(get_entry_service)) -> None:
    await service.delete_entry(entry_id)


# ============================================================================
# QUICK CAPTURE
# ============================================================================


@router.post(
    "/quick-capture",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Быстрая заметка",
    description="Создать запись из текста: title и url выводятся из текста, kind по умолчанию note.",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}},
)
async def quick_capture(
    data: QuickCaptureRequest, service: CaptureService = Depends(get_capture_service)
) -> EntryResponse:
    """
    Пример запроса:
    ```json
    {"text": "Посмотреть доклад https://example.com/talk"}
    ```
    """
    entry = await service.quick_capture(**data.model_dump())
    return EntryResponse.model_validate(entry)
