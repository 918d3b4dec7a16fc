"""Per-file template index construction and lazy range resolution."""

from __future__ import annotations

from soy_index.index.blocks import LineMap, find_block_end
from soy_index.index.markers import scan_template_markers
from soy_index.index.models import FileIndex, TemplateEntry, TemplateRange
from soy_index.lexing.base import LineTokenizer


def build_file_index(path: str, text: str) -> FileIndex:
    """Scan text for template markers; block ends are left unresolved."""
    markers = scan_template_markers(text)
    return FileIndex(
        path=path,
        entries={name: tuple(items) for name, items in markers.items()},
    )


def resolve_entry(
    text: str,
    entry: TemplateEntry,
    tokenizer: LineTokenizer,
    line_map: LineMap,
) -> TemplateRange:
    """Resolve one marker to a range; already resolved ranges are returned as-is."""
    if isinstance(entry, TemplateRange):
        return entry
    end_offset = find_block_end(text, entry.start_offset, tokenizer)
    return TemplateRange(
        qualified_name=entry.qualified_name,
        start_offset=entry.start_offset,
        end_offset=end_offset,
        line_start=line_map.line_of(entry.start_offset),
        line_end=line_map.line_of(end_offset),
    )


def resolve_index_ranges(
    index: FileIndex,
    names: tuple[str, ...],
    text: str | None,
    tokenizer: LineTokenizer,
) -> tuple[FileIndex, list[TemplateRange]]:
    """Resolve ranges for the given names only.

    Returns the index with those names memoized (the same object when nothing needed
    resolving) and the ranges in index order. ``text`` may be None only when every
    selected entry is already resolved.
    """
    if index.is_resolved(names):
        resolved = [entry for name in names for entry in index.entries.get(name, ())]
        return index, [entry for entry in resolved if isinstance(entry, TemplateRange)]
    if text is None:
        raise ValueError(f"Text is required to resolve template ranges in {index.path}.")

    line_map = LineMap(text)
    updated = index
    ranges: list[TemplateRange] = []
    for name in names:
        entries = updated.entries.get(name, ())
        name_ranges = tuple(resolve_entry(text, entry, tokenizer, line_map) for entry in entries)
        if name_ranges != entries:
            updated = updated.with_ranges(name, name_ranges)
        ranges.extend(name_ranges)
    return updated, ranges
