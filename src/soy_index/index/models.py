"""Typed models for template index state."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class TemplateMarker:
    """Template start marker found by the scanner."""

    qualified_name: str
    start_offset: int


@dataclass(slots=True, frozen=True)
class TemplateRange:
    """Template marker with its resolved block end and 0-based line span."""

    qualified_name: str
    start_offset: int
    end_offset: int
    line_start: int
    line_end: int


TemplateEntry = TemplateMarker | TemplateRange


@dataclass(slots=True, frozen=True)
class FileIndex:
    """Qualified name to template entries for one file, in discovery order.

    Instances are never mutated. Memoizing resolved ranges produces a new index
    through ``with_ranges`` which the cache swaps in.
    """

    path: str
    entries: dict[str, tuple[TemplateEntry, ...]] = field(default_factory=dict)

    def names(self) -> tuple[str, ...]:
        """Return qualified names in first-occurrence order."""
        return tuple(self.entries.keys())

    def template_count(self) -> int:
        """Return the number of template markers across all names."""
        return sum(len(items) for items in self.entries.values())

    def matching_names(self, name: str, wildcard: str) -> tuple[str, ...]:
        """Return names selected by an exact name or the wildcard."""
        if name == wildcard:
            return self.names()
        if name in self.entries:
            return (name,)
        return ()

    def is_resolved(self, names: tuple[str, ...]) -> bool:
        """Return True when every entry under the given names has a resolved range."""
        return all(
            isinstance(entry, TemplateRange)
            for name in names
            for entry in self.entries.get(name, ())
        )

    def with_ranges(self, name: str, ranges: tuple[TemplateRange, ...]) -> FileIndex:
        """Return a copy of this index with one name's entries replaced."""
        if name not in self.entries:
            raise KeyError(name)
        if len(ranges) != len(self.entries[name]):
            raise ValueError(f"Expected {len(self.entries[name])} ranges for {name!r}.")
        updated = dict(self.entries)
        updated[name] = ranges
        return FileIndex(path=self.path, entries=updated)


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """Cached index plus the disk timestamp of the text it was built from."""

    index: FileIndex
    source_timestamp: int | None


@dataclass(slots=True, frozen=True)
class TemplateLocation:
    """Cross-file query hit, 0-based inclusive line range."""

    path: str
    name: str
    line_start: int
    line_end: int


@dataclass(slots=True, frozen=True)
class TextTemplateMatch:
    """In-buffer query hit, 0-based inclusive line range."""

    name: str
    line_start: int
    line_end: int


@dataclass(slots=True, frozen=True)
class FileFailure:
    """Per-file failure contained by the query engine."""

    path: str
    stage: str
    reason: str


@dataclass(slots=True, frozen=True)
class QueryReport:
    """Query result with diagnostics."""

    name: str
    locations: tuple[TemplateLocation, ...]
    failures: tuple[FileFailure, ...]
    candidate_count: int
    cache_hits: int
    rebuilt: int
