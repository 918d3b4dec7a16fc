from __future__ import annotations

import pytest

from soy_index.lexing import (
    COMMENT,
    KEYWORD,
    NAME,
    STRING,
    LexedToken,
    TokenizerContractError,
    soy_line_tokenizer,
    validate_line_tokens,
)


def _pairs(tokens: list[LexedToken]) -> list[tuple[str, str]]:
    return [(token.text, token.classification) for token in tokens if token.text.strip()]


def test_command_tags_are_keywords_and_names_are_names() -> None:
    tokenizer = soy_line_tokenizer()
    state = tokenizer.start_state()

    tokens = tokenizer.tokenize("{template .bar}", state)

    assert _pairs(tokens) == [("{template", KEYWORD), (".bar", NAME), ("}", KEYWORD)]
    assert state.stack == ["root"]


def test_close_marker_is_keyword_outside_comments() -> None:
    tokenizer = soy_line_tokenizer()
    tokens = tokenizer.tokenize("{/template}", tokenizer.start_state())

    assert tokens[0] == LexedToken(text="{/template", classification=KEYWORD, start=0, end=10)


def test_line_comment_requires_leading_whitespace() -> None:
    tokenizer = soy_line_tokenizer()
    comment = tokenizer.tokenize("  // {/template}", tokenizer.start_state())
    url = tokenizer.tokenize('<a href="http://example.com">', tokenizer.start_state())

    assert ("// {/template}", COMMENT) in _pairs(comment)
    assert all(token.classification != COMMENT for token in url)


def test_block_comment_state_carries_across_lines() -> None:
    tokenizer = soy_line_tokenizer()
    state = tokenizer.start_state()

    first = tokenizer.tokenize("/* opening", state)
    middle = tokenizer.tokenize("{/template}", state)
    last = tokenizer.tokenize("closing */ {/template}", state)

    assert {token.classification for token in first} == {COMMENT}
    assert {token.classification for token in middle} == {COMMENT}
    assert ("{/template", KEYWORD) in _pairs(last)
    assert state.stack == ["root"]


def test_literal_body_is_string() -> None:
    tokenizer = soy_line_tokenizer()
    tokens = tokenizer.tokenize("{literal}{/template}{/literal}", tokenizer.start_state())

    pairs = _pairs(tokens)
    assert pairs[0] == ("{literal}", KEYWORD)
    assert pairs[-1] == ("{/literal}", KEYWORD)
    assert all(classification == STRING for _, classification in pairs[1:-1])


def test_quoted_tag_attribute_is_string() -> None:
    tokenizer = soy_line_tokenizer()
    tokens = tokenizer.tokenize("{call .x data=\"{/template\" /}", tokenizer.start_state())

    assert ('"{/template"', STRING) in _pairs(tokens)


def test_unclosed_tag_keeps_tag_state_for_next_line() -> None:
    tokenizer = soy_line_tokenizer()
    state = tokenizer.start_state()

    tokenizer.tokenize("{call .foo", state)
    assert state.stack == ["root", "tag"]
    tokenizer.tokenize('  data="all"}', state)
    assert state.stack == ["root"]


def test_tokens_tile_every_line() -> None:
    tokenizer = soy_line_tokenizer()
    state = tokenizer.start_state()
    lines = [
        "{namespace ns.example}",
        "/** Doc comment */",
        "{template .main}",
        "  <div class=\"x\">{$name}</div> // trailing",
        "  {call .other data=\"all\" /}",
        "{/template}",
    ]
    for line in lines:
        validate_line_tokens(line, tokenizer.tokenize(line, state))


def test_validate_line_tokens_rejects_gaps() -> None:
    tokens = [LexedToken(text="ab", classification=KEYWORD, start=0, end=2)]

    with pytest.raises(TokenizerContractError, match="line length"):
        validate_line_tokens("abc", tokens)


def test_empty_line_yields_no_tokens() -> None:
    tokenizer = soy_line_tokenizer()
    state = tokenizer.start_state()

    assert tokenizer.tokenize("", state) == []
    assert state.stack == ["root"]
