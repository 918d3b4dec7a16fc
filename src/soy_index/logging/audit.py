"""Structured JSONL query log."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from pathlib import Path

from soy_index.index.models import QueryReport


@dataclass(slots=True, frozen=True)
class QueryEvent:
    """Summary of a single cross-file query."""

    timestamp: str
    query_id: str
    operation: str
    name: str
    candidate_count: int
    match_count: int
    cache_hits: int
    rebuilt: int
    failures: list[dict[str, str]]


_EVENT_FIELDS = frozenset(item.name for item in fields(QueryEvent))


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def event_from_report(query_id: str, operation: str, report: QueryReport) -> QueryEvent:
    """Build a log event from a query report."""
    return QueryEvent(
        timestamp=utc_timestamp(),
        query_id=query_id,
        operation=operation,
        name=report.name,
        candidate_count=report.candidate_count,
        match_count=len(report.locations),
        cache_hits=report.cache_hits,
        rebuilt=report.rebuilt,
        failures=[
            {"path": failure.path, "stage": failure.stage, "reason": failure.reason}
            for failure in report.failures
        ],
    )


class JsonlQueryLogger:
    """Append-only JSONL query logger and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: QueryEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def recent(self, since: str | None = None, limit: int = 50) -> list[QueryEvent]:
        """Return the newest events in log order, optionally at or after a timestamp.

        Lines that are not query events are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        events: deque[QueryEvent] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                event = _parse_event(line)
                if event is None:
                    continue
                if since is not None and event.timestamp < since:
                    continue
                events.append(event)
        return list(events)


def _parse_event(line: str) -> QueryEvent | None:
    stripped = line.strip()
    if not stripped:
        return None
    try:
        record = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if not isinstance(record, dict) or set(record) != _EVENT_FIELDS:
        return None
    return QueryEvent(**record)
