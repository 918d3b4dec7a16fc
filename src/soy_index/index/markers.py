"""Regex scan for namespace and template start markers."""

from __future__ import annotations

import re

from soy_index.index.models import TemplateMarker

TEMPLATE_PATTERN = re.compile(r"\{template ([^}/][^\s^}/]+)")
NAMESPACE_PATTERN = re.compile(r"\{namespace ([^}/][^\s]+)(?:\})")


def find_namespace(text: str) -> str:
    """Return the first declared namespace, or an empty string when none is declared."""
    match = NAMESPACE_PATTERN.search(text)
    if match is None:
        return ""
    return match.group(1).strip()


def qualify_name(namespace: str, raw_name: str) -> str:
    """Concatenate namespace and local name without inserting a separator."""
    return namespace + raw_name.strip()


def scan_template_markers(text: str) -> dict[str, list[TemplateMarker]]:
    """Map qualified template name to every start marker declaring it, in text order."""
    namespace = find_namespace(text)
    results: dict[str, list[TemplateMarker]] = {}
    for match in TEMPLATE_PATTERN.finditer(text):
        qualified_name = qualify_name(namespace, match.group(1))
        results.setdefault(qualified_name, []).append(
            TemplateMarker(qualified_name=qualified_name, start_offset=match.start())
        )
    return results
