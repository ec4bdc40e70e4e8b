"""SQLAlchemy models for Dokodemo Door."""

from .base import Base, TimestampMixin, utc_now
from .category import Category
from .entry import Entry, EntryStatus
from .entry_tag import entry_tags
from .tag import Tag

__all__ = [
    "Base",
    "TimestampMixin",
    "utc_now",
    "Category",
    "Entry",
    "EntryStatus",
    "Tag",
    "entry_tags",
]
