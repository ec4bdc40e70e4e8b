"""Core application components."""

from .config import Settings, settings
from .errors import (
    ConflictError,
    DokodemoError,
    MigrationError,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "settings",
    "Settings",
    "DokodemoError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
    "MigrationError",
]
