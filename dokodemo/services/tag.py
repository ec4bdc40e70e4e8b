"""Tag service with business logic."""

import json
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, NotFoundError, ValidationError, handle_storage_errors
from ..core.identifiers import new_id
from ..core.logging import get_logger
from ..models import Tag
from ..repositories import EntryRepository, TagRepository

logger = get_logger(__name__)


def clean_tag_names(names: Iterable[str]) -> list[str]:
    """
    Нормализовать список имён тегов.

    Правила:
    1. Пробелы по краям обрезаются
    2. Пустые имена отбрасываются
    3. Повторы схлопываются, порядок первого появления сохраняется
    4. Регистр значим: "Sci-Fi" и "sci-fi" - разные теги

    Пример:
        clean_tag_names([" a", "b", "", "a ", "B"])  # ["a", "b", "B"]
    """
    return list(dict.fromkeys(name.strip() for name in names if name.strip()))


class TagNormalizer:
    """
    Преобразует список имён тегов в строки tags + entry_tags.

    Junction таблица - источник истины. Legacy колонка entries.tags_json
    записывается тем же списком, чтобы старые читатели видели актуальные теги.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tag_repo = TagRepository(db)
        self.entry_repo = EntryRepository(db)

    async def replace_entry_tags(self, entry_id: str, names: Iterable[str]) -> list[Tag]:
        """
        Полностью заменить набор тегов записи.

        Args:
            entry_id: ID существующей записи
            names: Новые имена (очищаются через clean_tag_names)

        Returns:
            Теги записи после замены

        После вызова связи записи ровно соответствуют очищенному набору имён:
        лишние удалены, недостающие добавлены, общие не тронуты.
        """
        cleaned = clean_tag_names(names)

        # 1. Теги: найти существующие, создать недостающие
        tags = await self.tag_repo.get_or_create_many(cleaned)
        tag_ids = [tag.id for tag in tags]

        # 2. Связи: убрать старые, добавить новые
        removed = await self.tag_repo.unlink_all_except(entry_id, tag_ids)
        await self.tag_repo.link(entry_id, tag_ids)

        # 3. Legacy JSON (dual-write)
        await self.entry_repo.set_tags_json(entry_id, json.dumps(cleaned, ensure_ascii=False))

        logger.debug(
            "Entry tags replaced",
            extra={"entry_id": entry_id, "tags": cleaned, "unlinked": removed},
        )
        return tags


class TagService:
    """Сервис для прямой работы с тегами (CRUD)."""

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса."""
        self.db = db
        self.tag_repo = TagRepository(db)

    @handle_storage_errors
    async def create_tag(self, name: str) -> Tag:
        """
        Создать новый тег.

        Raises:
            ValidationError: Пустое имя
            ConflictError: Тег с таким именем уже есть

        Бизнес-правила:
        1. Название обязательно (пробелы по краям обрезаются)
        2. Название уникально
        """
        # 1. ВАЛИДАЦИЯ: Название не пустое
        name = (name or "").strip()
        if not name:
            raise ValidationError("Tag name cannot be empty", field="name")

        # 2. ВАЛИДАЦИЯ: Проверка уникальности
        if await self.tag_repo.get_by_name(name):
            raise ConflictError("Tag", name)

        # 3. СОЗДАНИЕ (UNIQUE в БД ловит гонку между проверкой и INSERT,
        # транзакция запроса после этого откатывается целиком)
        try:
            tag = await self.tag_repo.create(Tag(id=new_id(), name=name))
        except IntegrityError as e:
            raise ConflictError("Tag", name) from e

        logger.info("Tag created", extra={"tag_id": tag.id, "tag_name": name})
        return tag

    @handle_storage_errors
    async def get_tag(self, tag_id: str) -> Tag:
        """
        Получить тег по ID.

        Raises:
            NotFoundError: Если тег не найден
        """
        tag = await self.tag_repo.get_by_id(tag_id)
        if not tag:
            raise NotFoundError("Tag", tag_id)
        return tag

    @handle_storage_errors
    async def list_tags(self) -> list[Tag]:
        """Все теги, по имени."""
        return await self.tag_repo.list_all()

    @handle_storage_errors
    async def list_tags_with_usage(self) -> list[tuple[Tag, int]]:
        """
        Теги с количеством записей.

        Пример:
            [(Tag('sci-fi'), 12), (Tag('favorite'), 3), (Tag('unused'), 0)]
        """
        return await self.tag_repo.list_with_usage()

    @handle_storage_errors
    async def delete_tag(self, tag_id: str) -> None:
        """
        Удалить тег. Связи с записями удаляются каскадом, сами записи остаются.

        Raises:
            NotFoundError: Если тег не найден
        """
        if not await self.tag_repo.delete(tag_id):
            raise NotFoundError("Tag", tag_id)
        logger.info("Tag deleted", extra={"tag_id": tag_id})
