"""
Storage engine flavors.

Всё, что в SQL отличается между PostgreSQL и SQLite, собрано здесь. Репозитории
и миграции не проверяют имя диалекта сами - они берут flavor и вызывают его
методы, поэтому оба движка дают одинаковые пред- и постусловия.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, TableClause, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection
from sqlalchemy.sql.dml import Insert

# Ключ advisory lock для миграций ("doko" в ASCII)
MIGRATION_LOCK_KEY = 0x646F6B6F


class StorageFlavor:
    """Базовый класс: общий контракт для обоих движков."""

    name: str = ""

    def insert_if_absent(self, table: TableClause, conflict_columns: Sequence[str]) -> Insert:
        """
        INSERT, который молча пропускает строки с уже существующим ключом.

        Args:
            table: Таблица (Table или lightweight sa.table())
            conflict_columns: Колонки уникального ключа

        SQL эквивалент:
            INSERT INTO table (...) VALUES (...) ON CONFLICT (conflict_columns) DO NOTHING;
        """
        raise NotImplementedError

    def lock_for_share(self, stmt: Select[Any]) -> Select[Any]:
        """Заблокировать прочитанные строки до конца транзакции (если движок умеет)."""
        return stmt

    def acquire_migration_lock(self, connection: Connection) -> None:
        """Эксклюзивный доступ к схеме на время транзакции миграций."""
        return None


class PostgresFlavor(StorageFlavor):
    name = "postgresql"

    def insert_if_absent(self, table: TableClause, conflict_columns: Sequence[str]) -> Insert:
        return postgresql.insert(table).on_conflict_do_nothing(index_elements=list(conflict_columns))

    def lock_for_share(self, stmt: Select[Any]) -> Select[Any]:
        # SELECT ... FOR SHARE: параллельный DELETE этой строки подождёт нашего commit
        return stmt.with_for_update(read=True)

    def acquire_migration_lock(self, connection: Connection) -> None:
        # Два процесса, стартующих одновременно, выполнят миграции по очереди.
        # Lock снимается автоматически в конце транзакции.
        connection.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": MIGRATION_LOCK_KEY}
        )


class SqliteFlavor(StorageFlavor):
    name = "sqlite"

    def insert_if_absent(self, table: TableClause, conflict_columns: Sequence[str]) -> Insert:
        return sqlite.insert(table).on_conflict_do_nothing(index_elements=list(conflict_columns))


_FLAVORS: dict[str, StorageFlavor] = {
    PostgresFlavor.name: PostgresFlavor(),
    SqliteFlavor.name: SqliteFlavor(),
}

SUPPORTED_DIALECTS = tuple(_FLAVORS)


def flavor_for_dialect(dialect_name: str) -> StorageFlavor:
    """
    Получить flavor по имени диалекта SQLAlchemy.

    Raises:
        ValueError: Если движок не поддерживается
    """
    try:
        return _FLAVORS[dialect_name]
    except KeyError:
        raise ValueError(
            f"Unsupported database engine '{dialect_name}', "
            f"supported: {', '.join(SUPPORTED_DIALECTS)}"
        ) from None


def flavor_for(bind: Any) -> StorageFlavor:
    """
    Получить flavor для Engine/Connection (всё, у чего есть .dialect).

    Пример:
        flavor = flavor_for(session.get_bind())
        stmt = flavor.insert_if_absent(Tag.__table__, ["name"])
    """
    return flavor_for_dialect(bind.dialect.name)
