"""Cross-file template lookup and the uncached in-buffer finder."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass

from soy_index.index.blocks import LineMap, find_block_end
from soy_index.index.builder import resolve_index_ranges
from soy_index.index.cache import ChangeAwareCache, LoadedIndex
from soy_index.index.markers import scan_template_markers
from soy_index.index.models import FileFailure, QueryReport, TemplateLocation, TextTemplateMatch
from soy_index.index.tracker import ChangeTracker
from soy_index.lexing.base import LineTokenizer
from soy_index.workspace.base import SourceReadError, SourceStatError, TextSource
from soy_index.workspace.filesystem import has_extension

logger = logging.getLogger(__name__)

DEFAULT_WILDCARD = "*"


@dataclass(slots=True, frozen=True)
class SearchSettings:
    """Engine settings derived from configuration."""

    extension: str = ".soy"
    wildcard: str = DEFAULT_WILDCARD
    max_concurrency: int = 8
    reflag_failed_paths: bool = True


class TemplateSearch:
    """Fans a name query out over candidate files with bounded concurrency.

    Phase one loads every candidate's index (cached or rebuilt) and then resets the
    change tracker once. Phase two resolves block ends only for files holding the
    queried name. Results follow candidate order, then discovery order per file.
    """

    def __init__(
        self,
        *,
        cache: ChangeAwareCache,
        text_source: TextSource,
        tracker: ChangeTracker,
        tokenizer: LineTokenizer,
        settings: SearchSettings | None = None,
    ) -> None:
        self._cache = cache
        self._text_source = text_source
        self._tracker = tracker
        self._tokenizer = tokenizer
        self._settings = settings or SearchSettings()
        if self._settings.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")

    @property
    def settings(self) -> SearchSettings:
        """Return active engine settings."""
        return self._settings

    def filter_candidates(
        self, files: Iterable[str | os.PathLike[str]], include_all_extensions: bool
    ) -> list[str]:
        """Return candidate paths as strings, keeping input order."""
        paths = [os.fspath(item) for item in files]
        if include_all_extensions:
            return paths
        return [path for path in paths if has_extension(path, self._settings.extension)]

    async def query(
        self,
        name: str,
        files: Iterable[str | os.PathLike[str]],
        include_all_extensions: bool = False,
    ) -> QueryReport:
        """Return every range declaring name across files, with per-file diagnostics."""
        candidates = self.filter_candidates(files, include_all_extensions)
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)
        failures: list[FileFailure] = []

        loaded = await asyncio.gather(
            *(self._load_one(path, semaphore) for path in candidates)
        )
        load_failures = [item for item in loaded if isinstance(item, FileFailure)]
        self._tracker.reset()
        if self._settings.reflag_failed_paths:
            for failure in load_failures:
                self._tracker.mark_changed(failure.path)
        failures.extend(load_failures)

        indexed = [item for item in loaded if isinstance(item, LoadedIndex)]
        matched = [
            (item, item.index.matching_names(name, self._settings.wildcard)) for item in indexed
        ]
        matched = [(item, names) for item, names in matched if names]

        resolved = await asyncio.gather(
            *(self._resolve_one(item, names, semaphore) for item, names in matched)
        )
        locations: list[TemplateLocation] = []
        for outcome in resolved:
            if isinstance(outcome, FileFailure):
                failures.append(outcome)
                continue
            locations.extend(outcome)

        return QueryReport(
            name=name,
            locations=tuple(locations),
            failures=tuple(failures),
            candidate_count=len(candidates),
            cache_hits=sum(1 for item in indexed if item.from_cache),
            rebuilt=sum(1 for item in indexed if not item.from_cache),
        )

    async def _load_one(
        self, path: str, semaphore: asyncio.Semaphore
    ) -> LoadedIndex | FileFailure:
        async with semaphore:
            try:
                return await self._cache.load(path)
            except SourceStatError as error:
                logger.warning("skipping %s: %s", path, error.reason)
                return FileFailure(path=path, stage="stat", reason=error.reason)
            except SourceReadError as error:
                logger.warning("skipping %s: %s", path, error.reason)
                return FileFailure(path=path, stage="read", reason=error.reason)

    async def _resolve_one(
        self,
        item: LoadedIndex,
        names: tuple[str, ...],
        semaphore: asyncio.Semaphore,
    ) -> list[TemplateLocation] | FileFailure:
        async with semaphore:
            text = item.text
            if text is None and not item.index.is_resolved(names):
                try:
                    text = await self._text_source.get_text(item.path)
                except SourceReadError as error:
                    logger.warning("skipping %s: %s", item.path, error.reason)
                    return FileFailure(path=item.path, stage="read", reason=error.reason)
            updated, ranges = resolve_index_ranges(item.index, names, text, self._tokenizer)
            if updated is not item.index:
                self._cache.swap_index(item.path, item.index, updated)
            return [
                TemplateLocation(
                    path=item.path,
                    name=template.qualified_name,
                    line_start=template.line_start,
                    line_end=template.line_end,
                )
                for template in ranges
            ]


def find_all_templates_in_text(
    text: str,
    name_or_wildcard: str,
    tokenizer: LineTokenizer,
    wildcard: str = DEFAULT_WILDCARD,
) -> list[TextTemplateMatch]:
    """Return matching templates in text without touching any cache."""
    line_map = LineMap(text)
    results: list[TextTemplateMatch] = []
    for template_name, markers in scan_template_markers(text).items():
        if template_name != name_or_wildcard and name_or_wildcard != wildcard:
            continue
        for marker in markers:
            end_offset = find_block_end(text, marker.start_offset, tokenizer)
            results.append(
                TextTemplateMatch(
                    name=template_name,
                    line_start=line_map.line_of(marker.start_offset),
                    line_end=line_map.line_of(end_offset),
                )
            )
    return results
