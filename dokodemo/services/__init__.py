"""Service layer for business logic."""

from .capture import CaptureService, extract_url_from_text, summarize_title
from .category import CategoryService, CategoryValidator
from .entry import EntryService, parse_status
from .tag import TagNormalizer, TagService, clean_tag_names

__all__ = [
    "CaptureService",
    "CategoryService",
    "CategoryValidator",
    "EntryService",
    "TagNormalizer",
    "TagService",
    "clean_tag_names",
    "extract_url_from_text",
    "parse_status",
    "summarize_title",
]
