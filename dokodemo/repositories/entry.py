"""Entry repository with specific queries."""

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Entry, EntryStatus, Tag
from .base import BaseRepository


class EntryRepository(BaseRepository[Entry]):
    """
    Репозиторий для работы с записями.

    Теги записи всегда читаются из entry_tags (relationship Entry.tags),
    колонка tags_json только пишется.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Entry, db)

    async def get_by_id_full(self, id: str) -> Entry | None:
        """
        Получить запись вместе с тегами (eager loading).

        populate_existing перезаписывает объект в identity map: связи могли
        измениться прямыми INSERT/DELETE в entry_tags внутри той же сессии.

        SQL эквивалент:
            SELECT * FROM entries WHERE id = {id};
            SELECT tags.* FROM tags JOIN entry_tags ON ... WHERE entry_id IN ({id}) ORDER BY name;
        """
        result = await self.db.execute(
            select(Entry)
            .options(selectinload(Entry.tags))
            .where(Entry.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_filtered(
        self,
        kind: str | None = None,
        status: EntryStatus | None = None,
        tag: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Entry]:
        """
        Список записей с фильтрами. Все фильтры объединяются через AND.

        Args:
            kind: Точное имя категории
            status: Статус
            tag: Имя тега (точное совпадение)
            search: Подстрока в title или notes без учёта регистра.
                Символы % и _ ищутся буквально.
            limit: Максимум записей
            offset: Сколько пропустить

        SQL эквивалент:
            SELECT * FROM entries
            WHERE kind = {kind} AND status = {status}
              AND EXISTS (SELECT 1 FROM entry_tags JOIN tags ON ...
                          WHERE entry_tags.entry_id = entries.id AND tags.name = {tag})
              AND (lower(title) LIKE '%{search}%' OR lower(notes) LIKE '%{search}%')
            ORDER BY created_at DESC, id DESC
            LIMIT {limit} OFFSET {offset};

        Фильтр по тегу - EXISTS, а не JOIN, поэтому запись не дублируется.
        """
        query = select(Entry).options(selectinload(Entry.tags))

        if kind is not None:
            query = query.where(Entry.kind == kind)
        if status is not None:
            query = query.where(Entry.status == status)
        if tag is not None:
            query = query.where(Entry.tags.any(Tag.name == tag))
        if search:
            query = query.where(
                or_(
                    Entry.title.icontains(search, autoescape=True),
                    Entry.notes.icontains(search, autoescape=True),
                )
            )

        query = (
            query.order_by(Entry.created_at.desc(), Entry.id.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_tags_json(self, id: str, tags_json: str) -> None:
        """
        Записать legacy JSON массив тегов.

        SQL эквивалент:
            UPDATE entries SET tags_json = {tags_json} WHERE id = {id};
        """
        await self.db.execute(
            update(Entry)
            .where(Entry.id == id)
            .values(tags_json=tags_json)
            .execution_options(synchronize_session=False)
        )
