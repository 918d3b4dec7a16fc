"""Filesystem-backed text source, stat provider and project enumeration."""

from __future__ import annotations

import asyncio
import codecs
import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path

from soy_index.workspace.base import (
    FileStatResult,
    PathPredicate,
    ProjectEnumerationError,
    SourceReadError,
    SourceStatError,
)

_BINARY_SNIFF_BYTES = 4096


@dataclass(slots=True, frozen=True)
class OpenDocument:
    """In-memory editor buffer registered with the text source."""

    text: str
    dirty: bool


class FilesystemTextSource:
    """Reads text from disk, overlaid with documents the host reports as open."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._documents: dict[str, OpenDocument] = {}

    def open_document(self, path: str, text: str, *, dirty: bool = False) -> None:
        """Register an open document buffer."""
        self._documents[path] = OpenDocument(text=text, dirty=dirty)

    def update_document(self, path: str, text: str) -> None:
        """Replace an open document's text and mark it dirty."""
        self._documents[path] = OpenDocument(text=text, dirty=True)

    def mark_saved(self, path: str) -> None:
        """Clear the dirty flag of an open document."""
        document = self._documents.get(path)
        if document is not None:
            self._documents[path] = OpenDocument(text=document.text, dirty=False)

    def close_document(self, path: str) -> None:
        """Forget an open document buffer."""
        self._documents.pop(path, None)

    def open_paths(self) -> tuple[str, ...]:
        """Return open document paths in sorted order."""
        return tuple(sorted(self._documents))

    async def get_text(self, path: str) -> str:
        """Return the open buffer text or the file's text on disk."""
        document = self._documents.get(path)
        if document is not None:
            return document.text
        try:
            return await asyncio.to_thread(
                Path(path).read_text, encoding=self._encoding, errors="replace"
            )
        except OSError as error:
            raise SourceReadError(path, error.strerror or str(error)) from error

    async def get_disk_timestamp(self, path: str) -> int | None:
        """Return the on-disk mtime; None for an open document that was never saved."""
        try:
            stat = await asyncio.to_thread(os.stat, path)
        except FileNotFoundError as error:
            if path in self._documents:
                return None
            raise SourceStatError(path, error.strerror or str(error)) from error
        except OSError as error:
            raise SourceStatError(path, error.strerror or str(error)) from error
        return stat.st_mtime_ns

    def is_open_and_dirty(self, path: str) -> bool:
        """Return True when an open buffer holds unsaved edits."""
        document = self._documents.get(path)
        return document is not None and document.dirty


class FilesystemStat:
    """Stat provider using os.stat in a worker thread."""

    async def stat(self, path: str) -> FileStatResult:
        """Return mtime and size or raise SourceStatError."""
        try:
            stat = await asyncio.to_thread(os.stat, path)
        except OSError as error:
            raise SourceStatError(path, error.strerror or str(error)) from error
        return FileStatResult(mtime_ns=stat.st_mtime_ns, size=stat.st_size)


class ProjectFiles:
    """Deterministic project tree walker with directory pruning."""

    def __init__(self, root: Path, exclude_globs: tuple[str, ...] = ()) -> None:
        self._root = root.resolve()
        self._exclude_globs = exclude_globs
        self._excluded_dir_names = _excluded_dir_names(exclude_globs)

    @property
    def root(self) -> Path:
        """Return the resolved project root."""
        return self._root

    def list_files(self, predicate: PathPredicate | None = None) -> list[str]:
        """Return absolute posix paths sorted by their project-relative path."""
        if not self._root.is_dir():
            raise ProjectEnumerationError(str(self._root), "Project root is not a directory.")
        relative_paths: list[str] = []
        stack: list[Path] = [self._root]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as entries:
                    ordered_entries = sorted(entries, key=lambda item: item.name)
            except OSError as error:
                if current == self._root:
                    raise ProjectEnumerationError(str(self._root), str(error)) from error
                continue
            for entry in reversed(ordered_entries):
                full_path = Path(entry.path)
                relative = full_path.relative_to(self._root).as_posix()
                if entry.is_dir(follow_symlinks=False):
                    if entry.name in self._excluded_dir_names and should_exclude(
                        f"{relative}/", self._exclude_globs
                    ):
                        continue
                    stack.append(full_path)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                if should_exclude(relative, self._exclude_globs):
                    continue
                relative_paths.append(relative)
        relative_paths.sort()
        output: list[str] = []
        for relative in relative_paths:
            full = (self._root / relative).as_posix()
            if predicate is not None and not predicate(full):
                continue
            output.append(full)
        return output


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def has_extension(path: str, extension: str) -> bool:
    """Return True when the path's suffix equals extension, ignoring case."""
    return Path(path).suffix.lower() == extension.lower()


def is_binary_file(path: Path) -> bool:
    """Use content sniffing to detect binary files.

    A multi-byte character cut off at the end of a full sample is not an error.
    """
    with path.open("rb") as handle:
        sample = handle.read(_BINARY_SNIFF_BYTES)
    if b"\x00" in sample:
        return True
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(sample, final=len(sample) < _BINARY_SNIFF_BYTES)
    except UnicodeDecodeError:
        return True
    return False


def is_text_file(path: str) -> bool:
    """Project enumeration predicate accepting readable non-binary files."""
    try:
        return not is_binary_file(Path(path))
    except OSError:
        return False


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output
