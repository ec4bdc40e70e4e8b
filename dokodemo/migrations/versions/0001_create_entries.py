"""Create entries table (legacy layout: fixed kinds, tags as JSON)

Revision ID: 0001
Revises:
Create Date: 2026-01-10 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


KINDS = "'book', 'manga', 'article', 'animation', 'movie', 'series', 'note', 'link'"
STATUSES = "'planned', 'in_progress', 'completed', 'dropped'"

# Время хранится как UTC без часового пояса в обоих движках.
# SQLite: текст "YYYY-MM-DD HH:MM:SS.fff" - в этом формате SQLAlchemy читает DateTime.
UPGRADE_STEPS: dict[str, list[str]] = {
    "postgresql": [
        f"""
        CREATE TABLE IF NOT EXISTS entries (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            kind TEXT NOT NULL CONSTRAINT entries_kind_check CHECK (kind IN ({KINDS})),
            status TEXT NOT NULL DEFAULT 'planned'
                CONSTRAINT entries_status_check CHECK (status IN ({STATUSES})),
            notes TEXT NOT NULL DEFAULT '',
            url TEXT,
            source TEXT NOT NULL DEFAULT 'manual',
            tags_json TEXT NOT NULL DEFAULT '[]',
            created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            updated_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc')
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_entries_created_at ON entries (created_at DESC)",
        "CREATE INDEX IF NOT EXISTS idx_entries_kind_status ON entries (kind, status)",
    ],
    "sqlite": [
        f"""
        CREATE TABLE IF NOT EXISTS entries (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            kind TEXT NOT NULL CHECK (kind IN ({KINDS})),
            status TEXT NOT NULL DEFAULT 'planned' CHECK (status IN ({STATUSES})),
            notes TEXT NOT NULL DEFAULT '',
            url TEXT,
            source TEXT NOT NULL DEFAULT 'manual',
            tags_json TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_entries_created_at ON entries (created_at DESC)",
        "CREATE INDEX IF NOT EXISTS idx_entries_kind_status ON entries (kind, status)",
    ],
}


def upgrade() -> None:
    """Upgrade schema."""
    for statement in UPGRADE_STEPS[op.get_bind().dialect.name]:
        op.execute(statement)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS idx_entries_kind_status")
    op.execute("DROP INDEX IF EXISTS idx_entries_created_at")
    op.execute("DROP TABLE IF EXISTS entries")
