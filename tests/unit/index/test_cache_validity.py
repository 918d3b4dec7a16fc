from __future__ import annotations

import asyncio

import pytest

from soy_index.index import ChangeAwareCache, ChangedPathTracker, build_file_index
from soy_index.workspace import SourceStatError

TEMPLATE = "{namespace ns}\n{template .a}\n{/template}\n"


def _cache(workspace) -> tuple[ChangeAwareCache, ChangedPathTracker]:
    tracker = ChangedPathTracker()
    return ChangeAwareCache(tracker, workspace, workspace), tracker


def test_missing_entry_is_invalid(workspace) -> None:
    cache, _ = _cache(workspace)
    workspace.write("a.soy", TEMPLATE)

    assert asyncio.run(cache.is_valid("a.soy")) is False


def test_unflagged_entry_is_trusted_without_disk_check(workspace) -> None:
    cache, _ = _cache(workspace)
    workspace.write("a.soy", TEMPLATE)
    asyncio.run(cache.rebuild("a.soy"))
    workspace.write("a.soy", "{namespace other}\n")
    workspace.dirty.add("a.soy")

    assert asyncio.run(cache.is_valid("a.soy")) is True
    assert workspace.stat_log == []


def test_flagged_dirty_document_is_invalid_even_with_same_mtime(workspace) -> None:
    cache, tracker = _cache(workspace)
    workspace.write("a.soy", TEMPLATE, mtime=500)
    asyncio.run(cache.rebuild("a.soy"))
    tracker.mark_changed("a.soy")
    workspace.dirty.add("a.soy")

    assert asyncio.run(cache.is_valid("a.soy")) is False
    assert workspace.stat_log == []


def test_flagged_clean_document_with_same_mtime_is_valid(workspace) -> None:
    cache, tracker = _cache(workspace)
    workspace.write("a.soy", TEMPLATE, mtime=500)
    asyncio.run(cache.rebuild("a.soy"))
    tracker.mark_changed("a.soy")

    assert asyncio.run(cache.is_valid("a.soy")) is True
    assert workspace.stat_log == ["a.soy"]


def test_flagged_clean_document_with_new_mtime_is_invalid(workspace) -> None:
    cache, tracker = _cache(workspace)
    workspace.write("a.soy", TEMPLATE, mtime=500)
    asyncio.run(cache.rebuild("a.soy"))
    workspace.write("a.soy", TEMPLATE, mtime=900)
    tracker.mark_changed("a.soy")

    assert asyncio.run(cache.is_valid("a.soy")) is False


def test_stat_failure_propagates_from_validity_check(workspace) -> None:
    cache, tracker = _cache(workspace)
    workspace.write("a.soy", TEMPLATE)
    asyncio.run(cache.rebuild("a.soy"))
    tracker.mark_changed("a.soy")
    workspace.broken_stat.add("a.soy")

    with pytest.raises(SourceStatError):
        asyncio.run(cache.is_valid("a.soy"))


def test_load_rebuilds_after_stat_failure(workspace) -> None:
    cache, tracker = _cache(workspace)
    workspace.write("a.soy", TEMPLATE)
    asyncio.run(cache.rebuild("a.soy"))
    workspace.write("a.soy", "{namespace ns}\n{template .b}\n{/template}\n")
    tracker.mark_changed("a.soy")
    workspace.broken_stat.add("a.soy")

    loaded = asyncio.run(cache.load("a.soy"))

    assert loaded.from_cache is False
    assert loaded.index.names() == ("ns.b",)
    assert loaded.text is not None


def test_load_hit_returns_cached_index_without_text(workspace) -> None:
    cache, _ = _cache(workspace)
    workspace.write("a.soy", TEMPLATE)
    built = asyncio.run(cache.load("a.soy"))

    hit = asyncio.run(cache.load("a.soy"))

    assert built.from_cache is False
    assert hit.from_cache is True
    assert hit.text is None
    assert hit.index is built.index
    assert workspace.read_log == ["a.soy"]


def test_rebuild_replaces_entry_and_stamps_timestamp(workspace) -> None:
    cache, _ = _cache(workspace)
    workspace.write("a.soy", TEMPLATE, mtime=111)
    first, _ = asyncio.run(cache.rebuild("a.soy"))
    workspace.write("a.soy", TEMPLATE, mtime=222)

    second, _ = asyncio.run(cache.rebuild("a.soy"))

    assert first.source_timestamp == 111
    assert second.source_timestamp == 222
    assert cache.get("a.soy") is second
    assert len(cache) == 1


def test_swap_index_only_replaces_expected_index(workspace) -> None:
    cache, _ = _cache(workspace)
    workspace.write("a.soy", TEMPLATE)
    entry, text = asyncio.run(cache.rebuild("a.soy"))
    stale = build_file_index("a.soy", text)
    replacement = build_file_index("a.soy", text)

    assert cache.swap_index("a.soy", stale, replacement) is False
    assert cache.swap_index("a.soy", entry.index, replacement) is True
    assert cache.get("a.soy").index is replacement
    assert cache.get("a.soy").source_timestamp == entry.source_timestamp
    assert cache.swap_index("missing.soy", entry.index, replacement) is False
