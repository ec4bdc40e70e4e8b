"""Tag repository with specific queries."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.identifiers import new_id
from ..core.logging import get_logger
from ..models import Tag, entry_tags, utc_now
from .base import BaseRepository

logger = get_logger(__name__)


class TagRepository(BaseRepository[Tag]):
    """
    Репозиторий для работы с тегами и таблицей связей entry_tags.

    Имя тега уникально. Поиск по имени - точное сравнение с учётом регистра.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Tag, db)

    async def get_by_name(self, name: str) -> Tag | None:
        """
        Получить тег по имени.

        SQL эквивалент:
            SELECT * FROM tags WHERE name = {name};
        """
        result = await self.db.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    async def get_by_names(self, names: list[str]) -> dict[str, Tag]:
        """
        Получить теги по списку имён одним запросом.

        Returns:
            Словарь {имя: тег} только для существующих тегов
        """
        if not names:
            return {}
        result = await self.db.execute(select(Tag).where(Tag.name.in_(names)))
        return {tag.name: tag for tag in result.scalars().all()}

    async def get_or_create_many(self, names: list[str]) -> list[Tag]:
        """
        Массовое получение/создание тегов.

        Args:
            names: Уже очищенные имена (см. clean_tag_names)

        Returns:
            Теги в том же порядке, что и names

        Два конкурентных запроса могут одновременно решить, что тега "x" нет.
        INSERT ... ON CONFLICT DO NOTHING превращает вставку проигравшего в no-op,
        а повторный SELECT возвращает строку победителя - конфликт не доходит
        до вызывающего кода.

        SQL эквивалент:
            SELECT * FROM tags WHERE name IN (...);
            INSERT INTO tags (id, name, created_at) VALUES (...) ON CONFLICT (name) DO NOTHING;
            SELECT * FROM tags WHERE name IN (...);
        """
        if not names:
            return []

        existing = await self.get_by_names(names)
        missing = [name for name in names if name not in existing]
        if not missing:
            return [existing[name] for name in names]

        now = utc_now()
        proposed_ids = {name: new_id() for name in missing}
        await self.db.execute(
            self.flavor.insert_if_absent(Tag.__table__, ["name"]),
            [{"id": proposed_ids[name], "name": name, "created_at": now} for name in missing],
        )

        tags = await self.get_by_names(names)
        reused = [name for name in missing if tags[name].id != proposed_ids[name]]
        if reused:
            logger.info("Tag created concurrently, reusing existing row", extra={"tags": reused})
        return [tags[name] for name in names]

    async def list_all(self) -> list[Tag]:
        """
        Все теги, отсортированные по имени.

        SQL эквивалент:
            SELECT * FROM tags ORDER BY name;
        """
        result = await self.db.execute(select(Tag).order_by(Tag.name))
        return list(result.scalars().all())

    async def list_with_usage(self) -> list[tuple[Tag, int]]:
        """
        Теги с количеством записей, к которым они привязаны.

        SQL эквивалент:
            SELECT tags.*, COUNT(entry_tags.entry_id) as usage_count
            FROM tags
            LEFT JOIN entry_tags ON tags.id = entry_tags.tag_id
            GROUP BY tags.id
            ORDER BY usage_count DESC, tags.name;
        """
        usage_count = func.count(entry_tags.c.entry_id).label("usage_count")
        result = await self.db.execute(
            select(Tag, usage_count)
            .outerjoin(entry_tags, Tag.id == entry_tags.c.tag_id)
            .group_by(Tag.id)
            .order_by(usage_count.desc(), Tag.name)
        )
        return [(row[0], row[1]) for row in result.all()]

    # ========================================================================
    # entry_tags
    # ========================================================================

    async def unlink_all_except(self, entry_id: str, keep_tag_ids: list[str]) -> int:
        """
        Удалить связи записи со всеми тегами, кроме keep_tag_ids.

        SQL эквивалент:
            DELETE FROM entry_tags WHERE entry_id = {entry_id} AND tag_id NOT IN (...);
        """
        stmt = delete(entry_tags).where(entry_tags.c.entry_id == entry_id)
        if keep_tag_ids:
            stmt = stmt.where(entry_tags.c.tag_id.not_in(keep_tag_ids))
        result = await self.db.execute(stmt)
        return result.rowcount

    async def link(self, entry_id: str, tag_ids: list[str]) -> None:
        """
        Привязать теги к записи. Уже существующие связи пропускаются.

        SQL эквивалент:
            INSERT INTO entry_tags (entry_id, tag_id) VALUES (...)
            ON CONFLICT (entry_id, tag_id) DO NOTHING;
        """
        if not tag_ids:
            return
        await self.db.execute(
            self.flavor.insert_if_absent(entry_tags, ["entry_id", "tag_id"]),
            [{"entry_id": entry_id, "tag_id": tag_id} for tag_id in tag_ids],
        )
