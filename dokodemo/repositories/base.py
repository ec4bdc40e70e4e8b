"""Base repository with common CRUD operations."""

from typing import Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.flavors import StorageFlavor, flavor_for
from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Репозиторий только читает и пишет строки. Валидация, генерация ID и
    commit/rollback - забота сервиса и get_db().

    Пример использования:
        category_repo = BaseRepository[Category](Category, db_session)
        category = await category_repo.get_by_id("c0000000-0000-0000-0000-000000000001")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy (Entry, Tag, Category)
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    @property
    def flavor(self) -> StorageFlavor:
        """Движок, к которому привязана сессия (PostgreSQL или SQLite)."""
        return flavor_for(self.db.get_bind())

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        Args:
            obj: Экземпляр модели с уже назначенным ID

        Returns:
            Тот же объект после INSERT

        flush() отправляет INSERT в БД (нарушение UNIQUE проявится здесь),
        commit делает get_db() в конце запроса.
        """
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def get_by_id(self, id: str) -> ModelType | None:
        """
        Получить объект по ID.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def delete(self, id: str) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если удалено, False если не найдено

        SQL эквивалент:
            DELETE FROM table WHERE id={id};
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def count(self) -> int:
        """
        Подсчитать количество записей.

        SQL эквивалент:
            SELECT COUNT(*) FROM table;
        """
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
