"""Collaborator protocols for text, stat and project enumeration access."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

PathPredicate = Callable[[str], bool]


class SourceReadError(Exception):
    """Raised when a file's text cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SourceStatError(Exception):
    """Raised when a file's modification time cannot be determined."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ProjectEnumerationError(Exception):
    """Raised when the candidate file set cannot be listed at all."""

    def __init__(self, root: str, reason: str) -> None:
        super().__init__(f"{root}: {reason}")
        self.root = root
        self.reason = reason


@dataclass(slots=True, frozen=True)
class FileStatResult:
    """Subset of stat metadata used for cache validation."""

    mtime_ns: int
    size: int


class TextSource(Protocol):
    """Text and document state provider, usually backed by an editor."""

    async def get_text(self, path: str) -> str:
        """Return current text, preferring an open document over disk."""

    async def get_disk_timestamp(self, path: str) -> int | None:
        """Return the on-disk mtime in nanoseconds, None for never-saved documents."""

    def is_open_and_dirty(self, path: str) -> bool:
        """Return True when the path is open with unsaved edits."""


class FileStat(Protocol):
    """Disk metadata provider."""

    async def stat(self, path: str) -> FileStatResult:
        """Return stat metadata or raise SourceStatError."""


class ProjectFileEnumerator(Protocol):
    """Project file listing provider."""

    def list_files(self, predicate: PathPredicate | None = None) -> list[str]:
        """Return project file paths accepted by predicate in deterministic order."""
