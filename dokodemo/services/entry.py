"""Entry service with business logic."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError, ValidationError, handle_storage_errors
from ..core.identifiers import new_id
from ..core.logging import get_logger
from ..models import Entry, EntryStatus, utc_now
from ..repositories import EntryRepository
from .category import CategoryValidator
from .tag import TagNormalizer

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200


def parse_status(value: str | EntryStatus) -> EntryStatus:
    """
    Привести строку к EntryStatus.

    Raises:
        ValidationError: Если статус не из списка допустимых
    """
    try:
        return EntryStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in EntryStatus)
        raise ValidationError(
            f"invalid status '{value}', allowed: {allowed}", field="status"
        ) from None


def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Entry title cannot be empty", field="title")
    return title


class EntryService:
    """
    Сервис для работы с записями.

    Координирует три компонента:
    - EntryRepository: строки entries
    - CategoryValidator: kind должен существовать в categories
    - TagNormalizer: теги записи в tags + entry_tags
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса с несколькими компонентами."""
        self.db = db
        self.entry_repo = EntryRepository(db)
        self.categories = CategoryValidator(db)
        self.tags = TagNormalizer(db)

    @handle_storage_errors
    async def create_entry(
        self,
        title: str,
        kind: str,
        status: str | EntryStatus = EntryStatus.PLANNED,
        notes: str = "",
        url: str | None = None,
        source: str = "manual",
        tags: Iterable[str] | None = None,
    ) -> Entry:
        """
        Создать запись.

        Args:
            title: Название (не пустое)
            kind: Имя существующей категории
            status: planned | in_progress | completed | dropped
            notes: Заметки
            url: Ссылка
            source: Откуда пришла запись (manual, quick-capture, telegram:<chat id>)
            tags: Имена тегов (очищаются, повторы схлопываются)

        Returns:
            Созданная запись с тегами, отсортированными по имени

        Raises:
            ValidationError: Пустой title, неизвестный статус или категория.
                В этом случае ничего не записывается.

        Бизнес-правила:
        1. Название обязательно
        2. Статус из фиксированного списка
        3. Категория существует (проверка в той же транзакции, что и INSERT)
        """
        # 1. ВАЛИДАЦИЯ
        title = _clean_title(title)
        status = parse_status(status)
        await self.categories.ensure_valid(kind, lock=True)

        # 2. СОЗДАНИЕ
        now = utc_now()
        entry = Entry(
            id=new_id(),
            title=title,
            kind=kind,
            status=status,
            notes=notes or "",
            url=url,
            source=source or "manual",
            tags_json="[]",
            created_at=now,
            updated_at=now,
        )
        entry = await self.entry_repo.create(entry)

        # 3. КООРДИНАЦИЯ: теги
        await self.tags.replace_entry_tags(entry.id, tags or [])

        logger.info("Entry created", extra={"entry_id": entry.id, "kind": kind})

        # 4. ЗАГРУЗКА: вернуть запись с тегами из entry_tags
        return await self.entry_repo.get_by_id_full(entry.id)

    @handle_storage_errors
    async def get_entry(self, entry_id: str) -> Entry:
        """
        Получить запись с тегами.

        Raises:
            NotFoundError: Если запись не найдена
        """
        entry = await self.entry_repo.get_by_id_full(entry_id)
        if not entry:
            raise NotFoundError("Entry", entry_id)
        return entry

    @handle_storage_errors
    async def list_entries(
        self,
        kind: str | None = None,
        status: str | EntryStatus | None = None,
        tag: str | None = None,
        search: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> list[Entry]:
        """
        Список записей, новые первыми.

        Фильтры объединяются через AND. Неизвестный kind не ошибка: записи
        удалённой категории остаются доступны по фильтру. limit приводится к
        диапазону 1..200, offset - к >= 0.

        Raises:
            ValidationError: Неизвестный статус в фильтре
        """
        return await self.entry_repo.list_filtered(
            kind=kind,
            status=parse_status(status) if status is not None else None,
            tag=tag,
            search=search.strip() if search else None,
            limit=min(max(limit, 1), MAX_LIST_LIMIT),
            offset=max(offset, 0),
        )

    @handle_storage_errors
    async def update_entry(
        self,
        entry_id: str,
        title: str | None = None,
        kind: str | None = None,
        status: str | EntryStatus | None = None,
        notes: str | None = None,
        url: str | None = None,
        source: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> Entry:
        """
        Частичное обновление записи. None означает "не менять".

        Args:
            tags: Новый набор тегов, полностью заменяет старый

        Raises:
            NotFoundError: Запись не найдена (ничего не записывается)
            ValidationError: Пустой title, неизвестный статус или категория

        updated_at никогда не уменьшается: max(сейчас, прежнее значение).
        Конкурентные обновления одной записи - last write wins.
        """
        # 1. ВАЛИДАЦИЯ: запись существует
        entry = await self.entry_repo.get_by_id(entry_id)
        if not entry:
            raise NotFoundError("Entry", entry_id)

        # 2. ВАЛИДАЦИЯ: переданные поля
        if title is not None:
            title = _clean_title(title)
        if status is not None:
            status = parse_status(status)
        if kind is not None:
            await self.categories.ensure_valid(kind, lock=True)

        # 3. ОБНОВЛЕНИЕ
        changes = {
            "title": title,
            "kind": kind,
            "status": status,
            "notes": notes,
            "url": url,
            "source": source,
        }
        for field, value in changes.items():
            if value is not None:
                setattr(entry, field, value)
        entry.updated_at = max(utc_now(), entry.updated_at)
        await self.db.flush()

        # 4. КООРДИНАЦИЯ: теги
        if tags is not None:
            await self.tags.replace_entry_tags(entry_id, tags)

        return await self.entry_repo.get_by_id_full(entry_id)

    @handle_storage_errors
    async def delete_entry(self, entry_id: str) -> None:
        """
        Удалить запись. Связи с тегами удаляются каскадом, теги остаются.

        Raises:
            NotFoundError: Если запись не найдена
        """
        if not await self.entry_repo.delete(entry_id):
            raise NotFoundError("Entry", entry_id)
        logger.info("Entry deleted", extra={"entry_id": entry_id})
