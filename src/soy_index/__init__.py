"""Soy template definition index with change-aware caching."""

from .config import IndexerConfig, Overrides, load_effective_config
from .index import (
    FileFailure,
    QueryReport,
    TemplateLocation,
    TextTemplateMatch,
    find_all_templates_in_text,
)
from .service import TemplateIndexService, create_service

__all__ = [
    "FileFailure",
    "IndexerConfig",
    "Overrides",
    "QueryReport",
    "TemplateIndexService",
    "TemplateLocation",
    "TextTemplateMatch",
    "create_service",
    "find_all_templates_in_text",
    "load_effective_config",
]
