"""One-time data migration: legacy ``entries.tags_json`` -> ``tags`` + ``entry_tags``."""

import json

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from dokodemo.core.errors import MigrationError
from dokodemo.core.flavors import flavor_for
from dokodemo.core.identifiers import new_id
from dokodemo.core.logging import get_logger
from dokodemo.models.base import utc_now
from dokodemo.services.tag import clean_tag_names

logger = get_logger(__name__)

# Lightweight описания таблиц: миграция не должна зависеть от ORM моделей,
# которые со временем меняются
entries = sa.table(
    "entries",
    sa.column("id", sa.String),
    sa.column("tags_json", sa.Text),
)
tags = sa.table(
    "tags",
    sa.column("id", sa.String),
    sa.column("name", sa.String),
    sa.column("created_at", sa.DateTime),
)
entry_tags = sa.table(
    "entry_tags",
    sa.column("entry_id", sa.String),
    sa.column("tag_id", sa.String),
)


def parse_legacy_tags(entry_id: str, raw: str) -> list[str]:
    """
    Разобрать значение tags_json одной записи.

    Args:
        entry_id: ID записи (для сообщения об ошибке)
        raw: Содержимое колонки, например '["sci-fi", "favorite"]'

    Returns:
        Очищенные имена тегов (см. clean_tag_names)

    Raises:
        MigrationError: Если значение не JSON массив строк
    """
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MigrationError(f"Entry {entry_id}: tags_json is not valid JSON: {e}") from e

    if not isinstance(value, list) or not all(isinstance(name, str) for name in value):
        raise MigrationError(f"Entry {entry_id}: tags_json must be a JSON array of strings")

    return clean_tag_names(value)


def backfill_legacy_tags(connection: Connection) -> int:
    """
    Перенести теги из JSON колонки в нормализованные таблицы.

    Каждое уникальное имя получает одну строку в tags, каждая пара
    (entry, name) - одну строку в entry_tags. Оба INSERT пропускают уже
    существующие строки, поэтому повторный запуск ничего не дублирует.

    SQL эквивалент:
        INSERT INTO tags (id, name, created_at) VALUES (...) ON CONFLICT (name) DO NOTHING;
        INSERT INTO entry_tags (entry_id, tag_id) VALUES (...)
            ON CONFLICT (entry_id, tag_id) DO NOTHING;

    Returns:
        Количество пар (entry, tag), найденных в legacy данных
    """
    flavor = flavor_for(connection)

    rows = connection.execute(
        sa.select(entries.c.id, entries.c.tags_json).where(entries.c.tags_json != "[]")
    ).all()

    pairs: list[tuple[str, str]] = []
    for entry_id, raw in rows:
        pairs.extend((entry_id, name) for name in parse_legacy_tags(entry_id, raw))

    if not pairs:
        logger.info("No legacy tags to backfill", extra={"entries_scanned": len(rows)})
        return 0

    names = list(dict.fromkeys(name for _, name in pairs))
    now = utc_now()
    connection.execute(
        flavor.insert_if_absent(tags, ["name"]),
        [{"id": new_id(), "name": name, "created_at": now} for name in names],
    )

    tag_ids = dict(
        connection.execute(sa.select(tags.c.name, tags.c.id).where(tags.c.name.in_(names))).all()
    )
    connection.execute(
        flavor.insert_if_absent(entry_tags, ["entry_id", "tag_id"]),
        [{"entry_id": entry_id, "tag_id": tag_ids[name]} for entry_id, name in pairs],
    )

    logger.info(
        "Backfilled legacy tags",
        extra={"entries_scanned": len(rows), "tags": len(names), "links": len(pairs)},
    )
    return len(pairs)
