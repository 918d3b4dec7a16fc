"""Template indexing, caching and search package."""

from .blocks import BLOCK_CLOSE_MARKER, LineMap, find_block_end
from .builder import build_file_index, resolve_entry, resolve_index_ranges
from .cache import ChangeAwareCache, LoadedIndex
from .calls import called_name, template_name_at_line
from .markers import find_namespace, qualify_name, scan_template_markers
from .models import (
    CacheEntry,
    FileFailure,
    FileIndex,
    QueryReport,
    TemplateLocation,
    TemplateMarker,
    TemplateRange,
    TextTemplateMatch,
)
from .search import DEFAULT_WILDCARD, SearchSettings, TemplateSearch, find_all_templates_in_text
from .tracker import ChangedPathTracker, ChangeTracker, WatchdogChangeTracker

__all__ = [
    "BLOCK_CLOSE_MARKER",
    "CacheEntry",
    "ChangeAwareCache",
    "ChangeTracker",
    "ChangedPathTracker",
    "DEFAULT_WILDCARD",
    "FileFailure",
    "FileIndex",
    "LineMap",
    "LoadedIndex",
    "QueryReport",
    "SearchSettings",
    "TemplateLocation",
    "TemplateMarker",
    "TemplateRange",
    "TemplateSearch",
    "TextTemplateMatch",
    "WatchdogChangeTracker",
    "build_file_index",
    "called_name",
    "find_all_templates_in_text",
    "find_block_end",
    "find_namespace",
    "qualify_name",
    "resolve_entry",
    "resolve_index_ranges",
    "scan_template_markers",
    "template_name_at_line",
]
