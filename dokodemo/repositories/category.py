"""Category repository."""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Category
from .base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Репозиторий для категорий (допустимых значений Entry.kind)."""

    def __init__(self, db: AsyncSession):
        super().__init__(Category, db)

    async def get_by_name(self, name: str) -> Category | None:
        """
        Получить категорию по имени (точное совпадение, с учётом регистра).

        SQL эквивалент:
            SELECT * FROM categories WHERE name = {name};
        """
        result = await self.db.execute(select(Category).where(Category.name == name))
        return result.scalar_one_or_none()

    async def name_exists(self, name: str, lock: bool = False) -> bool:
        """
        Проверить, что категория с таким именем существует.

        Args:
            name: Имя категории
            lock: Заблокировать найденную строку до конца транзакции
                (PostgreSQL: FOR SHARE), чтобы параллельное удаление категории
                дождалось записи, которая на неё ссылается

        SQL эквивалент:
            SELECT EXISTS(SELECT 1 FROM categories WHERE name = {name});
            -- или с lock:
            SELECT id FROM categories WHERE name = {name} FOR SHARE;
        """
        if lock:
            stmt = self.flavor.lock_for_share(select(Category.id).where(Category.name == name))
            result = await self.db.execute(stmt)
            return result.first() is not None

        result = await self.db.execute(select(exists().where(Category.name == name)))
        return bool(result.scalar())

    async def list_all(self) -> list[Category]:
        """
        Все категории, отсортированные по имени.

        SQL эквивалент:
            SELECT * FROM categories ORDER BY name;
        """
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())
