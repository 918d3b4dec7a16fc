"""Tracking of paths changed since the last completed sweep."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer


class ChangeTracker(Protocol):
    """Protocol for change trackers consulted by the cache."""

    def is_changed(self, path: str) -> bool:
        """Return True when path changed since the last reset."""

    def mark_changed(self, path: str) -> None:
        """Flag path as changed."""

    def reset(self) -> None:
        """Forget all flags in one step."""


class ChangedPathTracker:
    """Thread-safe in-memory set of changed paths."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._changed: set[str] = set()

    def is_changed(self, path: str) -> bool:
        """Return True when path changed since the last reset."""
        with self._lock:
            return path in self._changed

    def mark_changed(self, path: str) -> None:
        """Flag path as changed."""
        with self._lock:
            self._changed.add(path)

    def reset(self) -> None:
        """Forget all flags in one step."""
        with self._lock:
            self._changed = set()

    def changed_paths(self) -> tuple[str, ...]:
        """Return flagged paths in sorted order."""
        with self._lock:
            return tuple(sorted(self._changed))


class _ChangeEventHandler(FileSystemEventHandler):
    """Marks every touched file path on a tracker."""

    def __init__(self, tracker: ChangedPathTracker) -> None:
        super().__init__()
        self._tracker = tracker

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type not in {"created", "modified", "deleted", "moved"}:
            return
        self._tracker.mark_changed(_event_path(event.src_path))
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            self._tracker.mark_changed(_event_path(dest_path))


class WatchdogChangeTracker(ChangedPathTracker):
    """Change tracker fed by a watchdog observer on a project root."""

    def __init__(self, root: Path, *, recursive: bool = True) -> None:
        super().__init__()
        self._root = root.resolve()
        self._recursive = recursive
        self._handler = _ChangeEventHandler(self)
        self._observer: Observer | None = None

    @property
    def handler(self) -> FileSystemEventHandler:
        """Return the event handler feeding this tracker."""
        return self._handler

    @property
    def running(self) -> bool:
        """Return True while the observer thread is active."""
        return self._observer is not None

    def start(self) -> None:
        """Start watching the root; a no-op when already running."""
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, str(self._root), recursive=self._recursive)
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        """Stop the observer thread and wait for it to exit."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None

    def __enter__(self) -> WatchdogChangeTracker:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def _event_path(raw: str | bytes) -> str:
    return Path(os.fsdecode(raw)).as_posix()
