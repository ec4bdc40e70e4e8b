"""Normalize tags and categories

Revision ID: 0002
Revises: 0001
Create Date: 2026-02-14 18:30:00.000000

Kind становится ссылкой на таблицу categories (CHECK удаляется), теги из
entries.tags_json переносятся в tags + entry_tags.
"""
import re
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from dokodemo.core.flavors import flavor_for
from dokodemo.core.identifiers import SEEDED_CATEGORIES
from dokodemo.migrations.backfill import backfill_legacy_tags
from dokodemo.models.base import utc_now


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, Sequence[str], None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


STATUSES = "'planned', 'in_progress', 'completed', 'dropped'"

# SQLite не умеет DROP CONSTRAINT: таблица пересоздаётся без CHECK на kind.
# Выполняется до создания entry_tags, иначе DROP TABLE entries удалил бы связи каскадом.
SQLITE_REBUILD_ENTRIES = [
    "DROP TABLE IF EXISTS entries_new",
    f"""
    CREATE TABLE entries_new (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        kind TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'planned' CHECK (status IN ({STATUSES})),
        notes TEXT NOT NULL DEFAULT '',
        url TEXT,
        source TEXT NOT NULL DEFAULT 'manual',
        tags_json TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
        updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
    )
    """,
    """
    INSERT INTO entries_new
        (id, title, kind, status, notes, url, source, tags_json, created_at, updated_at)
    SELECT id, title, kind, status, notes, url, source, tags_json, created_at, updated_at
    FROM entries
    """,
    "DROP TABLE entries",
    "ALTER TABLE entries_new RENAME TO entries",
    "CREATE INDEX IF NOT EXISTS idx_entries_created_at ON entries (created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_entries_kind_status ON entries (kind, status)",
]

# Ранние версии писали время в SQLite как "2026-01-05T10:00:00.000Z", а SQLAlchemy
# читает такой текст как aware datetime. Приводим к формату 0001: "2026-01-05 10:00:00.000".
# Значение, которое SQLite не разберёт, станет NULL и остановит миграцию (NOT NULL).
SQLITE_NORMALIZE_TIMESTAMPS = """
    UPDATE entries
    SET created_at = strftime('%Y-%m-%d %H:%M:%f', created_at),
        updated_at = strftime('%Y-%m-%d %H:%M:%f', updated_at)
    WHERE created_at GLOB '*[TZ+]*' OR updated_at GLOB '*[TZ+]*'
"""

# PostgreSQL: TIMESTAMPTZ ранних версий -> TIMESTAMP в UTC, как в 0001
POSTGRES_NAIVE_TIMESTAMP = """
    ALTER TABLE entries
    ALTER COLUMN {column} DROP DEFAULT,
    ALTER COLUMN {column} TYPE TIMESTAMP USING {column} AT TIME ZONE 'utc',
    ALTER COLUMN {column} SET DEFAULT (NOW() AT TIME ZONE 'utc')
"""

KIND_CHECK = re.compile(r"CHECK\s*\(\s*kind\s+IN\b", re.IGNORECASE)

UPGRADE_STEPS: dict[str, list[str]] = {
    "postgresql": [
        "ALTER TABLE entries DROP CONSTRAINT IF EXISTS entries_kind_check",
        """
        CREATE TABLE IF NOT EXISTS categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            description TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc')
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS tags (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc')
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS entry_tags (
            entry_id TEXT NOT NULL REFERENCES entries (id) ON DELETE CASCADE,
            tag_id TEXT NOT NULL REFERENCES tags (id) ON DELETE CASCADE,
            PRIMARY KEY (entry_id, tag_id)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_categories_name ON categories (name)",
        "CREATE INDEX IF NOT EXISTS idx_tags_name ON tags (name)",
        "CREATE INDEX IF NOT EXISTS idx_entry_tags_tag_id ON entry_tags (tag_id)",
    ],
    "sqlite": [
        """
        CREATE TABLE IF NOT EXISTS categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            description TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS tags (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS entry_tags (
            entry_id TEXT NOT NULL REFERENCES entries (id) ON DELETE CASCADE,
            tag_id TEXT NOT NULL REFERENCES tags (id) ON DELETE CASCADE,
            PRIMARY KEY (entry_id, tag_id)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_categories_name ON categories (name)",
        "CREATE INDEX IF NOT EXISTS idx_tags_name ON tags (name)",
        "CREATE INDEX IF NOT EXISTS idx_entry_tags_tag_id ON entry_tags (tag_id)",
    ],
}

categories = sa.table(
    "categories",
    sa.column("id", sa.String),
    sa.column("name", sa.String),
    sa.column("description", sa.Text),
    sa.column("created_at", sa.DateTime),
)


def _sqlite_kind_check_present(bind: sa.Connection) -> bool:
    create_sql = bind.execute(
        sa.text("SELECT sql FROM sqlite_master WHERE type = 'table' AND name = 'entries'")
    ).scalar_one_or_none()
    return create_sql is not None and KIND_CHECK.search(create_sql) is not None


def _postgres_tz_columns(bind: sa.Connection) -> list[str]:
    result = bind.execute(
        sa.text(
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_schema = current_schema() AND table_name = 'entries' "
            "AND data_type = 'timestamp with time zone'"
        )
    )
    return sorted(result.scalars().all())


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    dialect = bind.dialect.name

    if dialect == "sqlite":
        if _sqlite_kind_check_present(bind):
            for statement in SQLITE_REBUILD_ENTRIES:
                op.execute(statement)
        op.execute(SQLITE_NORMALIZE_TIMESTAMPS)
    else:
        for column in _postgres_tz_columns(bind):
            op.execute(POSTGRES_NAIVE_TIMESTAMP.format(column=column))

    for statement in UPGRADE_STEPS[dialect]:
        op.execute(statement)

    now = utc_now()
    bind.execute(
        flavor_for(bind).insert_if_absent(categories, ["name"]),
        [
            {"id": category_id, "name": name, "description": "", "created_at": now}
            for name, category_id in SEEDED_CATEGORIES.items()
        ],
    )

    backfill_legacy_tags(bind)


def downgrade() -> None:
    """Downgrade schema.

    CHECK на kind не восстанавливается: записи с новыми категориями его бы нарушили.
    """
    op.execute("DROP TABLE IF EXISTS entry_tags")
    op.execute("DROP TABLE IF EXISTS tags")
    op.execute("DROP TABLE IF EXISTS categories")
