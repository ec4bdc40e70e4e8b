"""
API endpoints для работы с тегами.

Обычно теги создаются сами при создании/обновлении записи. Здесь - прямое
управление: создать заранее, посмотреть использование, удалить.
"""

from fastapi import APIRouter, Depends, status

from ..services import TagService
from .dependencies import get_tag_service
from .schemas import ErrorResponse, TagCreate, TagResponse, TagWithUsage

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse], summary="Получить все теги")
async def list_tags(service: TagService = Depends(get_tag_service)) -> list[TagResponse]:
    tags = await service.list_tags()
    return [TagResponse.model_validate(t) for t in tags]


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    responses={
        400: {"model": ErrorResponse, "description": "Пустое имя"},
        409: {"model": ErrorResponse, "description": "Тег уже существует"},
    },
)
async def create_tag(data: TagCreate, service: TagService = Depends(get_tag_service)) -> TagResponse:
    tag = await service.create_tag(data.name)
    return TagResponse.model_validate(tag)


@router.get(
    "/usage",
    response_model=list[TagWithUsage],
    summary="Теги с количеством записей",
)
async def list_tags_with_usage(service: TagService = Depends(get_tag_service)) -> list[TagWithUsage]:
    """
    Пример ответа:
    ```json
    [
        {"id": "...", "name": "sci-fi", "usage_count": 12},
        {"id": "...", "name": "unused", "usage_count": 0}
    ]
    ```
    """
    tags_with_usage = await service.list_tags_with_usage()
    return [
        TagWithUsage(id=tag.id, name=tag.name, created_at=tag.created_at, usage_count=count)
        for tag, count in tags_with_usage
    ]


@router.get(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Получить тег",
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def get_tag(tag_id: str, service: TagService = Depends(get_tag_service)) -> TagResponse:
    tag = await service.get_tag(tag_id)
    return TagResponse.model_validate(tag)


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить тег",
    description="Связи с записями удаляются, сами записи остаются.",
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def delete_tag(tag_id: str, service: TagService = Depends(get_tag_service)) -> None:
    await service.delete_tag(tag_id)
