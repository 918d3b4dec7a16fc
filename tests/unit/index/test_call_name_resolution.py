from __future__ import annotations

from soy_index.index import template_name_at_line
from soy_index.lexing import soy_line_tokenizer

TEXT = "\n".join(
    [
        "{namespace shop.cart}",
        "",
        "{template .list}",
        "  {call .item}",
        "  {call shop.common.price data=\"all\" /}",
        "  {call .badge/}",
        "  /*",
        "  {call .hidden}",
        "  */",
        "  <p>no call here</p>",
        "{/template}",
    ]
)


def test_relative_call_is_namespaced() -> None:
    assert template_name_at_line(TEXT, 3, soy_line_tokenizer()) == "shop.cart.item"


def test_absolute_call_stops_at_attributes() -> None:
    assert template_name_at_line(TEXT, 4, soy_line_tokenizer()) == "shop.common.price"


def test_self_closing_call() -> None:
    assert template_name_at_line(TEXT, 5, soy_line_tokenizer()) == "shop.cart.badge"


def test_call_inside_block_comment_is_ignored() -> None:
    assert template_name_at_line(TEXT, 7, soy_line_tokenizer()) is None


def test_lines_without_call_or_out_of_range() -> None:
    tokenizer = soy_line_tokenizer()

    assert template_name_at_line(TEXT, 9, tokenizer) is None
    assert template_name_at_line(TEXT, -1, tokenizer) is None
    assert template_name_at_line(TEXT, 400, tokenizer) is None


def test_relative_call_without_namespace() -> None:
    assert template_name_at_line("{call .solo}", 0, soy_line_tokenizer()) == ".solo"
