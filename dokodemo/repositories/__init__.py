"""Repository layer for database access."""

from .base import BaseRepository
from .category import CategoryRepository
from .entry import EntryRepository
from .tag import TagRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "EntryRepository",
    "TagRepository",
]
