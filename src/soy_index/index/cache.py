"""Change-aware per-file index cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from soy_index.index.builder import build_file_index
from soy_index.index.models import CacheEntry, FileIndex
from soy_index.index.tracker import ChangeTracker
from soy_index.workspace.base import FileStat, SourceStatError, TextSource

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LoadedIndex:
    """Index returned by a cache lookup; text is set only when freshly built."""

    path: str
    index: FileIndex
    text: str | None
    from_cache: bool


class ChangeAwareCache:
    """Keeps one index per path and decides when a stored index is stale.

    An entry is trusted while the tracker has not flagged its path. A flagged path
    is rebuilt when its document is open with unsaved edits or when the disk mtime
    no longer matches the mtime the entry was built against.
    """

    def __init__(self, tracker: ChangeTracker, text_source: TextSource, file_stat: FileStat) -> None:
        self._tracker = tracker
        self._text_source = text_source
        self._file_stat = file_stat
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def get(self, path: str) -> CacheEntry | None:
        """Return the stored entry for path, valid or not."""
        return self._entries.get(path)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries = {}

    async def is_valid(self, path: str) -> bool:
        """Return True when the stored entry may be used as-is.

        Raises SourceStatError when the path is flagged, not dirty, and its disk
        mtime cannot be read.
        """
        entry = self._entries.get(path)
        if entry is None:
            return False
        if not self._tracker.is_changed(path):
            return True
        if self._text_source.is_open_and_dirty(path):
            return False
        stat = await self._file_stat.stat(path)
        return entry.source_timestamp == stat.mtime_ns

    async def rebuild(self, path: str) -> tuple[CacheEntry, str]:
        """Rescan path from its current text and replace its entry wholesale.

        Propagates SourceReadError and SourceStatError from the text source. An
        index built from unsaved buffer text is stamped with no timestamp, so it is
        never mistaken for the disk copy once the buffer is closed.
        """
        timestamp = await self._text_source.get_disk_timestamp(path)
        if self._text_source.is_open_and_dirty(path):
            timestamp = None
        text = await self._text_source.get_text(path)
        entry = CacheEntry(index=build_file_index(path, text), source_timestamp=timestamp)
        self._entries[path] = entry
        logger.debug("indexed %s: %d templates", path, entry.index.template_count())
        return entry, text

    async def load(self, path: str) -> LoadedIndex:
        """Return the cached index when valid, otherwise a freshly built one."""
        try:
            valid = await self.is_valid(path)
        except SourceStatError as error:
            logger.debug("stat failed for %s (%s); rebuilding", path, error.reason)
            valid = False
        if valid:
            entry = self._entries[path]
            return LoadedIndex(path=path, index=entry.index, text=None, from_cache=True)
        entry, text = await self.rebuild(path)
        return LoadedIndex(path=path, index=entry.index, text=text, from_cache=False)

    def swap_index(self, path: str, expected: FileIndex, replacement: FileIndex) -> bool:
        """Store replacement only if the entry still holds expected."""
        entry = self._entries.get(path)
        if entry is None or entry.index is not expected:
            return False
        self._entries[path] = CacheEntry(index=replacement, source_timestamp=entry.source_timestamp)
        return True
