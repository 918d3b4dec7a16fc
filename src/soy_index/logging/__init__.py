"""Structured logging utilities."""

from .audit import JsonlQueryLogger, QueryEvent, event_from_report, utc_timestamp

__all__ = ["JsonlQueryLogger", "QueryEvent", "event_from_report", "utc_timestamp"]
