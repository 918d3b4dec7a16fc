from __future__ import annotations

import pytest

from soy_index.index import (
    TemplateMarker,
    TemplateRange,
    build_file_index,
    resolve_index_ranges,
)
from soy_index.lexing import soy_line_tokenizer

TEXT = "\n".join(
    [
        "{namespace app.views}",
        "{template .header}",
        "  <h1>{$title}</h1>",
        "{/template}",
        "{template .footer}",
        "  <footer/>",
        "{/template}",
        "{template .header}",
        "  <h2>duplicate</h2>",
        "{/template}",
    ]
)


def test_build_leaves_block_ends_unresolved() -> None:
    index = build_file_index("views.soy", TEXT)

    assert index.names() == ("app.views.header", "app.views.footer")
    assert index.template_count() == 3
    assert all(
        isinstance(entry, TemplateMarker) for items in index.entries.values() for entry in items
    )


def test_resolution_only_touches_queried_name() -> None:
    index = build_file_index("views.soy", TEXT)

    updated, ranges = resolve_index_ranges(
        index, ("app.views.header",), TEXT, soy_line_tokenizer()
    )

    assert [(item.line_start, item.line_end) for item in ranges] == [(1, 3), (7, 9)]
    assert updated.is_resolved(("app.views.header",))
    assert not updated.is_resolved(("app.views.footer",))
    assert not index.is_resolved(("app.views.header",))


def test_resolved_index_is_reused_without_text() -> None:
    index = build_file_index("views.soy", TEXT)
    tokenizer = soy_line_tokenizer()
    updated, first = resolve_index_ranges(index, ("app.views.footer",), TEXT, tokenizer)

    again, second = resolve_index_ranges(updated, ("app.views.footer",), None, tokenizer)

    assert again is updated
    assert second == first
    assert isinstance(first[0], TemplateRange)
    assert first[0].end_offset == TEXT.index("{/template}", TEXT.index(".footer")) + 10


def test_unresolved_index_requires_text() -> None:
    index = build_file_index("views.soy", TEXT)

    with pytest.raises(ValueError, match="Text is required"):
        resolve_index_ranges(index, ("app.views.footer",), None, soy_line_tokenizer())


def test_with_ranges_validates_shape() -> None:
    index = build_file_index("views.soy", TEXT)

    with pytest.raises(KeyError):
        index.with_ranges("app.views.missing", ())
    with pytest.raises(ValueError, match="Expected 2 ranges"):
        index.with_ranges("app.views.header", ())


def test_matching_names_supports_wildcard() -> None:
    index = build_file_index("views.soy", TEXT)

    assert index.matching_names("*", "*") == ("app.views.header", "app.views.footer")
    assert index.matching_names("app.views.footer", "*") == ("app.views.footer",)
    assert index.matching_names("app.views.nope", "*") == ()
