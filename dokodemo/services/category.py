"""Category service with business logic."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, NotFoundError, ValidationError, handle_storage_errors
from ..core.identifiers import new_id
from ..core.logging import get_logger
from ..models import Category, utc_now
from ..repositories import CategoryRepository

logger = get_logger(__name__)


class CategoryValidator:
    """
    Проверка Entry.kind по таблице categories.

    Набор категорий меняется во время работы, поэтому каждая проверка - живой
    запрос к БД, без кэша.
    """

    def __init__(self, db: AsyncSession):
        self.category_repo = CategoryRepository(db)

    async def is_valid_category(self, name: str, *, lock: bool = False) -> bool:
        """
        Существует ли категория с таким именем (точное совпадение).

        Args:
            name: Имя категории
            lock: Держать shared lock на строке категории до конца транзакции.
                Используется при создании/изменении записи: удаление категории
                в параллельной транзакции дождётся нашего commit.
        """
        return await self.category_repo.name_exists(name, lock=lock)

    async def ensure_valid(self, name: str, *, lock: bool = False) -> None:
        """
        Raises:
            ValidationError: Если категории нет
        """
        if not await self.is_valid_category(name, lock=lock):
            raise ValidationError(f"invalid kind '{name}': no such category", field="kind")


class CategoryService:
    """Сервис для работы с категориями."""

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса."""
        self.db = db
        self.category_repo = CategoryRepository(db)

    @staticmethod
    def _clean_name(name: str | None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name cannot be empty", field="name")
        return name

    @handle_storage_errors
    async def create_category(self, name: str, description: str = "") -> Category:
        """
        Создать категорию.

        Raises:
            ValidationError: Пустое имя
            ConflictError: Категория с таким именем уже есть

        Бизнес-правила:
        1. Название обязательно (пробелы по краям обрезаются, регистр сохраняется)
        2. Название уникально
        """
        # 1. ВАЛИДАЦИЯ
        name = self._clean_name(name)
        if await self.category_repo.get_by_name(name):
            raise ConflictError("Category", name)

        # 2. СОЗДАНИЕ
        category = Category(
            id=new_id(), name=name, description=description or "", created_at=utc_now()
        )
        try:
            category = await self.category_repo.create(category)
        except IntegrityError as e:
            raise ConflictError("Category", name) from e

        logger.info("Category created", extra={"category_id": category.id, "category": name})
        return category

    @handle_storage_errors
    async def get_category(self, category_id: str) -> Category:
        """
        Raises:
            NotFoundError: Если категория не найдена
        """
        category = await self.category_repo.get_by_id(category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    @handle_storage_errors
    async def list_categories(self) -> list[Category]:
        """Все категории, по имени."""
        return await self.category_repo.list_all()

    @handle_storage_errors
    async def update_category(
        self, category_id: str, name: str | None = None, description: str | None = None
    ) -> Category:
        """
        Изменить имя и/или описание категории.

        Переименование не трогает записи: их kind хранит старое имя.

        Raises:
            NotFoundError: Категория не найдена
            ValidationError: Пустое имя
            ConflictError: Новое имя уже занято
        """
        category = await self.get_category(category_id)

        if name is not None:
            name = self._clean_name(name)
            if name != category.name:
                if await self.category_repo.get_by_name(name):
                    raise ConflictError("Category", name)
                category.name = name

        if description is not None:
            category.description = description

        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ConflictError("Category", category.name) from e
        return category

    @handle_storage_errors
    async def delete_category(self, category_id: str) -> None:
        """
        Удалить категорию.

        Записи с этим kind остаются как есть (kind - строка, не внешний ключ),
        но новые записи с этим kind создать уже нельзя.

        Raises:
            NotFoundError: Если категория не найдена
        """
        if not await self.category_repo.delete(category_id):
            raise NotFoundError("Category", category_id)
        logger.info("Category deleted", extra={"category_id": category_id})
