from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from soy_index.config import Overrides, apply_overrides, default_config
from soy_index.service import TemplateIndexService
from soy_index.workspace import FileStatResult, SourceReadError, SourceStatError


class MemoryWorkspace:
    """In-memory text source and stat provider with controllable latency."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        self.mtimes: dict[str, int] = {}
        self.dirty: set[str] = set()
        self.unreadable: set[str] = set()
        self.broken_stat: set[str] = set()
        self.delays: dict[str, float] = {}
        self.read_log: list[str] = []
        self.completion_log: list[str] = []
        self.stat_log: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._clock = 0

    def write(self, path: str, text: str, *, mtime: int | None = None) -> None:
        self._clock += 1
        self.files[path] = text
        self.mtimes[path] = mtime if mtime is not None else self._clock * 1_000

    def delete(self, path: str) -> None:
        self.files.pop(path, None)
        self.mtimes.pop(path, None)

    async def get_text(self, path: str) -> str:
        self.read_log.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(path, 0))
        finally:
            self.in_flight -= 1
        if path in self.unreadable or path not in self.files:
            raise SourceReadError(path, "No such file or directory")
        self.completion_log.append(path)
        return self.files[path]

    async def get_disk_timestamp(self, path: str) -> int | None:
        if path not in self.mtimes:
            raise SourceStatError(path, "No such file or directory")
        return self.mtimes[path]

    def is_open_and_dirty(self, path: str) -> bool:
        return path in self.dirty

    async def stat(self, path: str) -> FileStatResult:
        self.stat_log.append(path)
        if path in self.broken_stat or path not in self.mtimes:
            raise SourceStatError(path, "stat failed")
        return FileStatResult(mtime_ns=self.mtimes[path], size=len(self.files.get(path, "")))


@pytest.fixture
def workspace() -> MemoryWorkspace:
    return MemoryWorkspace()


@pytest.fixture
def make_service(tmp_path: Path, workspace: MemoryWorkspace):
    def _make(overrides: Overrides | None = None) -> TemplateIndexService:
        config = apply_overrides(default_config(tmp_path), overrides or Overrides())
        return TemplateIndexService(config, text_source=workspace, file_stat=workspace)

    return _make
