"""Identifier generation shared by both storage engines."""

import uuid

# Категории, которые существовали как фиксированный enum до миграции 0002.
# ID зафиксированы: одно и то же имя получает один и тот же ID в PostgreSQL и
# SQLite, при каждом запуске и на каждом развёртывании.
SEEDED_CATEGORIES: dict[str, str] = {
    "book": "c0000000-0000-0000-0000-000000000001",
    "manga": "c0000000-0000-0000-0000-000000000002",
    "article": "c0000000-0000-0000-0000-000000000003",
    "animation": "c0000000-0000-0000-0000-000000000004",
    "movie": "c0000000-0000-0000-0000-000000000005",
    "series": "c0000000-0000-0000-0000-000000000006",
    "note": "c0000000-0000-0000-0000-000000000007",
    "link": "c0000000-0000-0000-0000-000000000008",
}


def new_id() -> str:
    """
    Сгенерировать новый идентификатор записи (entry, tag, category).

    Returns:
        UUID4 в текстовом виде, например "3f2b1c9e-8d7a-4e5f-9a1b-2c3d4e5f6a7b"

    Текст, а не нативный UUID: колонка TEXT одинаково работает в обоих движках,
    а сравнение на равенство - обычное сравнение строк.
    """
    return str(uuid.uuid4())
