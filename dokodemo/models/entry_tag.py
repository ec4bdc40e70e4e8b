"""Entry-Tag junction table."""

from sqlalchemy import Column, ForeignKey, String, Table

from .base import Base

# Many-to-many junction table for entries and tags.
# Удаление entry или tag удаляет связь (ON DELETE CASCADE в обоих движках).
entry_tags = Table(
    "entry_tags",
    Base.metadata,
    Column("entry_id", String, ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True),
)
