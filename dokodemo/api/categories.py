"""
API endpoints для работы с категориями.

Категория - допустимое значение Entry.kind. Набор меняется во время работы:
новая категория сразу доступна для записей.
"""

from fastapi import APIRouter, Depends, status

from ..services import CategoryService
from .dependencies import get_category_service
from .schemas import CategoryCreate, CategoryResponse, CategoryUpdate, ErrorResponse

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse], summary="Получить все категории")
async def list_categories(
    service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    categories = await service.list_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать категорию",
    responses={
        400: {"model": ErrorResponse, "description": "Пустое имя"},
        409: {"model": ErrorResponse, "description": "Имя уже занято"},
    },
)
async def create_category(
    data: CategoryCreate, service: CategoryService = Depends(get_category_service)
) -> CategoryResponse:
    category = await service.create_category(name=data.name, description=data.description)
    return CategoryResponse.model_validate(category)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Получить категорию",
    responses={404: {"model": ErrorResponse, "description": "Категория не найдена"}},
)
async def get_category(
    category_id: str, service: CategoryService = Depends(get_category_service)
) -> CategoryResponse:
    category = await service.get_category(category_id)
    return CategoryResponse.model_validate(category)


@router.patch(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Обновить категорию",
    responses={
        404: {"model": ErrorResponse, "description": "Категория не найдена"},
        409: {"model": ErrorResponse, "description": "Имя уже занято"},
    },
)
async def update_category(
    category_id: str, data: CategoryUpdate, service: CategoryService = Depends(get_category_service)
) -> CategoryResponse:
    category = await service.update_category(
        category_id, name=data.name, description=data.description
    )
    return CategoryResponse.model_validate(category)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить категорию",
    description="Записи с этим kind остаются, новые с ним создать нельзя.",
    responses={404: {"model": ErrorResponse, "description": "Категория не найдена"}},
)
async def delete_category(
    category_id: str, service: CategoryService = Depends(get_category_service)
) -> None:
    await service.delete_category(category_id)
