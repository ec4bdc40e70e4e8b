"""API layer - FastAPI endpoints."""

from .categories import router as categories_router
from .entries import router as entries_router
from .integrations import router as integrations_router
from .tags import router as tags_router

__all__ = [
    "categories_router",
    "entries_router",
    "integrations_router",
    "tags_router",
]
