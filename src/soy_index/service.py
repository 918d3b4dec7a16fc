"""Template index service: the context object owning cache, tracker and collaborators."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from soy_index.config import IndexerConfig, Overrides, load_effective_config
from soy_index.index import (
    ChangeAwareCache,
    ChangedPathTracker,
    ChangeTracker,
    QueryReport,
    SearchSettings,
    TemplateLocation,
    TemplateSearch,
    TextTemplateMatch,
    WatchdogChangeTracker,
    find_all_templates_in_text,
    template_name_at_line,
)
from soy_index.lexing import LineTokenizer, soy_line_tokenizer
from soy_index.logging import JsonlQueryLogger, QueryEvent, event_from_report
from soy_index.workspace import (
    FileStat,
    FilesystemStat,
    FilesystemTextSource,
    ProjectFileEnumerator,
    ProjectFiles,
    TextSource,
    is_text_file,
)


class TemplateIndexService:
    """Indexes Soy templates across a project and answers name lookups.

    Each instance owns its own cache and change tracker, so independent services do
    not share state.
    """

    def __init__(
        self,
        config: IndexerConfig,
        *,
        text_source: TextSource | None = None,
        file_stat: FileStat | None = None,
        tracker: ChangeTracker | None = None,
        tokenizer: LineTokenizer | None = None,
        enumerator: ProjectFileEnumerator | None = None,
        audit_logger: JsonlQueryLogger | None = None,
    ) -> None:
        self._config = config
        self._text_source: TextSource = text_source or FilesystemTextSource()
        self._file_stat: FileStat = file_stat or FilesystemStat()
        self._tracker: ChangeTracker = tracker or ChangedPathTracker()
        self._tokenizer: LineTokenizer = tokenizer or soy_line_tokenizer()
        self._enumerator: ProjectFileEnumerator = enumerator or ProjectFiles(
            config.project_root, config.index.exclude_globs
        )
        if audit_logger is None and config.audit_log_path is not None:
            audit_logger = JsonlQueryLogger(path=config.audit_log_path)
        self._audit_logger = audit_logger
        self._cache = ChangeAwareCache(self._tracker, self._text_source, self._file_stat)
        self._search = TemplateSearch(
            cache=self._cache,
            text_source=self._text_source,
            tracker=self._tracker,
            tokenizer=self._tokenizer,
            settings=SearchSettings(
                extension=config.index.extension,
                wildcard=config.index.wildcard,
                max_concurrency=config.query.max_concurrency,
                reflag_failed_paths=config.query.reflag_failed_paths,
            ),
        )
        self._query_counter = 0

    @property
    def config(self) -> IndexerConfig:
        """Return the effective configuration."""
        return self._config

    @property
    def cache(self) -> ChangeAwareCache:
        """Return the per-file index cache."""
        return self._cache

    @property
    def tracker(self) -> ChangeTracker:
        """Return the change tracker."""
        return self._tracker

    @property
    def audit_logger(self) -> JsonlQueryLogger | None:
        """Return the query log, if configured."""
        return self._audit_logger

    async def find_templates_by_name(
        self,
        name: str,
        files: Iterable[str | os.PathLike[str]],
        include_all_extensions: bool = False,
    ) -> list[TemplateLocation]:
        """Return every template declaring name across files, in candidate order."""
        report = await self.search(name, files, include_all_extensions)
        return list(report.locations)

    async def search(
        self,
        name: str,
        files: Iterable[str | os.PathLike[str]],
        include_all_extensions: bool = False,
    ) -> QueryReport:
        """Like find_templates_by_name, but also report per-file failures and cache use."""
        report = await self._search.query(name, files, include_all_extensions)
        self._log_report("search", report)
        return report

    async def find_in_project(self, name: str) -> QueryReport:
        """Search every non-binary template file the enumerator lists.

        Raises ProjectEnumerationError when the project cannot be listed.
        """
        files = self._enumerator.list_files(is_text_file)
        report = await self._search.query(name, files, include_all_extensions=False)
        self._log_report("find_in_project", report)
        return report

    def find_all_templates_in_text(self, text: str, name_or_wildcard: str) -> list[TextTemplateMatch]:
        """Return matches in an in-memory buffer without consulting the cache."""
        return find_all_templates_in_text(
            text,
            name_or_wildcard,
            self._tokenizer,
            wildcard=self._config.index.wildcard,
        )

    def template_name_at_line(self, text: str, line: int) -> str | None:
        """Return the qualified template name called on a 0-based line."""
        return template_name_at_line(text, line, self._tokenizer)

    def notify_changed(self, *paths: str | os.PathLike[str]) -> None:
        """Flag paths as changed so the next query re-validates them."""
        for path in paths:
            self._tracker.mark_changed(os.fspath(path))

    def open_document(self, path: str, text: str, *, dirty: bool = False) -> None:
        """Register an open editor buffer."""
        self._document_source().open_document(path, text, dirty=dirty)
        self._tracker.mark_changed(path)

    def update_document(self, path: str, text: str) -> None:
        """Record an unsaved edit to an open buffer."""
        self._document_source().update_document(path, text)
        self._tracker.mark_changed(path)

    def save_document(self, path: str) -> None:
        """Record that an open buffer was written to disk."""
        self._document_source().mark_saved(path)
        self._tracker.mark_changed(path)

    def close_document(self, path: str) -> None:
        """Forget an open buffer; the disk copy applies again."""
        self._document_source().close_document(path)
        self._tracker.mark_changed(path)

    def recent_queries(self, since: str | None = None, limit: int = 50) -> list[QueryEvent]:
        """Return the newest logged queries; empty when no query log is configured."""
        if self._audit_logger is None:
            return []
        return self._audit_logger.recent(since=since, limit=limit)

    def close(self) -> None:
        """Stop filesystem watching when the tracker runs an observer."""
        if isinstance(self._tracker, WatchdogChangeTracker):
            self._tracker.stop()

    def reset_cache(self) -> None:
        """Drop every cached index and change flag."""
        self._cache.clear()
        self._tracker.reset()

    def next_query_id(self) -> str:
        """Return a monotonically increasing query id."""
        self._query_counter += 1
        return f"q-{self._query_counter:06d}"

    def _document_source(self) -> FilesystemTextSource:
        if not isinstance(self._text_source, FilesystemTextSource):
            raise TypeError("Open documents require a FilesystemTextSource text source.")
        return self._text_source

    def _log_report(self, operation: str, report: QueryReport) -> None:
        if self._audit_logger is None:
            return
        self._audit_logger.append(event_from_report(self.next_query_id(), operation, report))


def create_service(
    project_root: str | os.PathLike[str] = ".",
    overrides: Overrides | None = None,
    *,
    text_source: TextSource | None = None,
    file_stat: FileStat | None = None,
    tracker: ChangeTracker | None = None,
    tokenizer: LineTokenizer | None = None,
    enumerator: ProjectFileEnumerator | None = None,
    watch: bool = False,
) -> TemplateIndexService:
    """Create a configured service using defaults -> soy_index.toml -> overrides.

    With watch=True and no explicit tracker, a started WatchdogChangeTracker on the
    project root flags changed files; it reports absolute posix paths, so queries
    should pass paths in that form. Call close() to stop it.
    """
    config = load_effective_config(Path(project_root), overrides)
    if watch and tracker is None:
        watcher = WatchdogChangeTracker(config.project_root)
        watcher.start()
        tracker = watcher
    return TemplateIndexService(
        config,
        text_source=text_source,
        file_stat=file_stat,
        tracker=tracker,
        tokenizer=tokenizer,
        enumerator=enumerator,
    )
