"""
Тесты для Service Layer.

Проверяем бизнес-правила:
- kind проверяется по таблице categories (живой запрос, без кэша)
- Теги записи заменяются целиком
- updated_at не уменьшается
- Каскадное удаление связей
- Уникальность имён при прямом создании
"""

import asyncio
import json
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dokodemo.core.errors import ConflictError, NotFoundError, ValidationError
from dokodemo.models import Entry, EntryStatus, Tag, entry_tags
from dokodemo.services import CategoryService, EntryService, TagService


# ============================================================================
# CATEGORY GATE
# ============================================================================


@pytest.mark.asyncio
async def test_create_entry_with_unknown_kind_rejected(test_db, count_rows):
    """Test: неизвестный kind -> ValidationError, запись и теги не создаются."""
    service = EntryService(test_db)

    with pytest.raises(ValidationError) as exc_info:
        await service.create_entry(title="Episode 1", kind="podcast", tags=["audio"])

    assert exc_info.value.field == "kind"
    assert "podcast" in exc_info.value.message
    assert await count_rows(test_db, Entry) == 0
    assert await count_rows(test_db, Tag) == 0


@pytest.mark.asyncio
async def test_new_category_accepted_immediately(test_db):
    """Test: категория, созданная во время работы, сразу допустима как kind."""
    await CategoryService(test_db).create_category("podcast", "Аудио выпуски")

    entry = await EntryService(test_db).create_entry(title="Episode 1", kind="podcast")

    assert entry.kind == "podcast"
    assert entry.status == EntryStatus.PLANNED
    assert entry.source == "manual"


@pytest.mark.asyncio
async def test_deleted_category_keeps_existing_entries(test_db):
    """Test: после удаления категории старые записи видны, новые не создаются."""
    categories = CategoryService(test_db)
    entries = EntryService(test_db)
    podcast = await categories.create_category("podcast")
    entry = await entries.create_entry(title="Episode 1", kind="podcast")

    await categories.delete_category(podcast.id)

    listed = await entries.list_entries(kind="podcast")
    assert [e.id for e in listed] == [entry.id]

    with pytest.raises(ValidationError):
        await entries.create_entry(title="Episode 2", kind="podcast")

    with pytest.raises(ValidationError):
        await entries.update_entry(entry.id, kind="podcast")


@pytest.mark.asyncio
async def test_category_names_are_case_sensitive(test_db):
    """Test: "Book" не совпадает с "book"."""
    with pytest.raises(ValidationError):
        await EntryService(test_db).create_entry(title="Dune", kind="Book")


# ============================================================================
# ENTRY SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_entry_cleans_tags(test_db):
    """Test: теги очищаются, повторы схлопываются, ответ отсортирован по имени."""
    entry = await EntryService(test_db).create_entry(
        title="  Dune  ", kind="book", tags=["sci-fi", " favorite ", "", "sci-fi"]
    )

    assert entry.title == "Dune"
    assert entry.tag_names == ["favorite", "sci-fi"]
    assert json.loads(entry.tags_json) == ["sci-fi", "favorite"]


@pytest.mark.asyncio
async def test_create_entry_rejects_empty_title_and_bad_status(test_db, count_rows):
    """Test: пустой title и неизвестный статус."""
    service = EntryService(test_db)

    with pytest.raises(ValidationError, match="title"):
        await service.create_entry(title="   ", kind="book")

    with pytest.raises(ValidationError, match="invalid status 'someday'"):
        await service.create_entry(title="Dune", kind="book", status="someday")

    assert await count_rows(test_db, Entry) == 0


@pytest.mark.asyncio
async def test_update_replaces_tag_set(test_db, count_rows):
    """Test: [a, b] -> [b, c]: связь с a удалена, сам тег a остаётся."""
    service = EntryService(test_db)
    entry = await service.create_entry(title="Dune", kind="book", tags=["a", "b"])

    updated = await service.update_entry(entry.id, tags=["b", "c"])

    assert updated.tag_names == ["b", "c"]
    assert json.loads(updated.tags_json) == ["b", "c"]
    assert await count_rows(test_db, Tag) == 3
    assert await count_rows(test_db, entry_tags) == 2


@pytest.mark.asyncio
async def test_update_without_tags_keeps_them(test_db):
    """Test: tags=None означает "не менять", tags=[] - убрать все."""
    service = EntryService(test_db)
    entry = await service.create_entry(title="Dune", kind="book", tags=["a"])

    updated = await service.update_entry(entry.id, status="in_progress")
    assert updated.status == EntryStatus.IN_PROGRESS
    assert updated.tag_names == ["a"]

    updated = await service.update_entry(entry.id, tags=[])
    assert updated.tag_names == []


@pytest.mark.asyncio
async def test_updated_at_never_decreases(test_db):
    """Test: updated_at >= прежнего значения даже если часы "ушли назад"."""
    service = EntryService(test_db)
    entry = await service.create_entry(title="Dune", kind="book")

    # Значение из будущего: сейчас < updated_at
    future = entry.updated_at + timedelta(days=365)
    entry.updated_at = future
    await test_db.flush()

    updated = await service.update_entry(entry.id, notes="перечитать")

    assert updated.updated_at == future
    assert updated.created_at <= updated.updated_at


@pytest.mark.asyncio
async def test_update_missing_entry(test_db):
    """Test: обновление несуществующей записи -> NotFoundError."""
    with pytest.raises(NotFoundError):
        await EntryService(test_db).update_entry("missing", title="x")


@pytest.mark.asyncio
async def test_list_entries_filters(test_db):
    """Test: A{x}, B{x,y}, C{y}: tag=x -> A,B; tag=x + search=B -> B; неизвестный kind -> []."""
    service = EntryService(test_db)
    a = await service.create_entry(title="Alpha", kind="book", tags=["x"])
    b = await service.create_entry(title="Beta", kind="book", tags=["x", "y"])
    await service.create_entry(title="Gamma", kind="movie", tags=["y"])

    assert {e.id for e in await service.list_entries(tag="x")} == {a.id, b.id}
    assert [e.id for e in await service.list_entries(tag="x", search="beta")] == [b.id]
    assert len(await service.list_entries(kind="book")) == 2
    assert await service.list_entries(kind="no-such-kind") == []


@pytest.mark.asyncio
async def test_list_entries_kind_and_tag(test_db):
    """Test: A=book{sci-fi}, B=movie{sci-fi}, C=book{}: kind=book AND tag=sci-fi -> только A."""
    service = EntryService(test_db)
    a = await service.create_entry(title="Dune", kind="book", tags=["sci-fi"])
    await service.create_entry(title="Alien", kind="movie", tags=["sci-fi"])
    await service.create_entry(title="Emma", kind="book")

    found = await service.list_entries(kind="book", tag="sci-fi")

    assert [e.id for e in found] == [a.id]


@pytest.mark.asyncio
async def test_list_entries_validates_status_and_clamps_limit(test_db):
    """Test: неизвестный статус в фильтре -> ValidationError, limit 0 -> 1."""
    service = EntryService(test_db)
    await service.create_entry(title="Alpha", kind="book")
    await service.create_entry(title="Beta", kind="book")

    with pytest.raises(ValidationError):
        await service.list_entries(status="bogus")

    assert len(await service.list_entries(limit=0)) == 1
    assert len(await service.list_entries(limit=1000, offset=-5)) == 2


@pytest.mark.asyncio
async def test_delete_entry_cascades_links(test_db, count_rows):
    """Test: удаление записи удаляет связи, теги остаются."""
    service = EntryService(test_db)
    entry = await service.create_entry(title="Dune", kind="book", tags=["a", "b"])

    await service.delete_entry(entry.id)

    assert await count_rows(test_db, entry_tags) == 0
    assert await count_rows(test_db, Tag) == 2
    with pytest.raises(NotFoundError):
        await service.get_entry(entry.id)
    with pytest.raises(NotFoundError):
        await service.delete_entry(entry.id)


# ============================================================================
# TAG SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_delete_tag_cascades_links(test_db):
    """Test: удаление тега отвязывает его от записей, записи остаются."""
    entries = EntryService(test_db)
    tags = TagService(test_db)
    entry = await entries.create_entry(title="Dune", kind="book", tags=["a", "b"])
    tag_a = next(tag for tag in entry.tags if tag.name == "a")

    await tags.delete_tag(tag_a.id)

    assert (await entries.get_entry(entry.id)).tag_names == ["b"]


@pytest.mark.asyncio
async def test_create_duplicate_tag(test_db):
    """Test: прямое создание существующего тега -> ConflictError."""
    service = TagService(test_db)
    tag = await service.create_tag(" favorite ")

    assert tag.name == "favorite"
    with pytest.raises(ConflictError):
        await service.create_tag("favorite")
    with pytest.raises(ValidationError):
        await service.create_tag("  ")


@pytest.mark.asyncio
async def test_tag_usage(test_db):
    """Test: usage_count по связям entry_tags."""
    entries = EntryService(test_db)
    await entries.create_entry(title="Alpha", kind="book", tags=["x"])
    await entries.create_entry(title="Beta", kind="book", tags=["x", "y"])
    await TagService(test_db).create_tag("unused")

    usage = [(tag.name, count) for tag, count in await TagService(test_db).list_tags_with_usage()]

    assert usage == [("x", 2), ("y", 1), ("unused", 0)]


# ============================================================================
# CATEGORY SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_duplicate_category(test_db):
    """Test: seeded категория "book" уже есть -> ConflictError."""
    with pytest.raises(ConflictError) as exc_info:
        await CategoryService(test_db).create_category("book")

    assert exc_info.value.code == "ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_rename_category(test_db):
    """Test: переименование меняет допустимый kind, записи хранят старое имя."""
    categories = CategoryService(test_db)
    entries = EntryService(test_db)
    book = next(c for c in await categories.list_categories() if c.name == "book")
    entry = await entries.create_entry(title="Dune", kind="book")

    renamed = await categories.update_category(book.id, name="novel", description="Романы")

    assert renamed.id == book.id
    assert renamed.description == "Романы"
    assert (await entries.get_entry(entry.id)).kind == "book"
    await entries.create_entry(title="Solaris", kind="novel")
    with pytest.raises(ValidationError):
        await entries.create_entry(title="Solaris", kind="book")
    with pytest.raises(ConflictError):
        await categories.update_category(book.id, name="manga")


@pytest.mark.asyncio
async def test_delete_missing_category(test_db):
    """Test: удаление несуществующей категории -> NotFoundError."""
    with pytest.raises(NotFoundError):
        await CategoryService(test_db).delete_category("missing")


# ============================================================================
# CONCURRENT WRITERS
# ============================================================================


@pytest.mark.asyncio
async def test_concurrent_entries_share_new_tag(file_engine, count_rows):
    """Test: две транзакции одновременно создают записи с новым тегом.

    Каждая сессия - отдельное соединение к файлу БД. Обе записи создаются,
    тег существует в одном экземпляре, к нему привязаны обе записи.
    """
    SessionLocal = async_sessionmaker(
        file_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async def create(title: str) -> str:
        async with SessionLocal() as session:
            entry = await EntryService(session).create_entry(
                title=title, kind="book", tags=["brand-new"]
            )
            await session.commit()
            return entry.id

    first, second = await asyncio.gather(create("Dune"), create("Solaris"))

    assert first != second
    async with SessionLocal() as session:
        assert await count_rows(session, Entry) == 2
        assert await count_rows(session, Tag) == 1
        assert await count_rows(session, entry_tags) == 2
        listed = await EntryService(session).list_entries(tag="brand-new")
        assert {e.id for e in listed} == {first, second}
