"""Resolve the template named by a ``{call}`` command on a given line."""

from __future__ import annotations

from soy_index.index.markers import find_namespace, qualify_name
from soy_index.lexing.base import KEYWORD, LexedToken, LineTokenizer

CALL_MARKER = "{call"
_NAME_TERMINATORS = frozenset({"/", "}", "/}"})


def template_name_at_line(text: str, line: int, tokenizer: LineTokenizer) -> str | None:
    """Return the qualified name called on a 0-based line, or None when there is no call.

    Tokenizer state is carried from the start of the text so that multi-line comments
    and tags above the line are honored. A relative name (leading ``.``) is prefixed
    with the file namespace.
    """
    lines = text.split("\n")
    if line < 0 or line >= len(lines):
        return None
    state = tokenizer.start_state()
    for preceding in lines[:line]:
        tokenizer.tokenize(preceding, state)
    name = called_name(tokenizer.tokenize(lines[line], state))
    if not name:
        return None
    if name.startswith("."):
        return qualify_name(find_namespace(text), name)
    return name


def called_name(tokens: list[LexedToken]) -> str:
    """Concatenate the name tokens following the first call keyword on a line."""
    begin: int | None = None
    parts: list[str] = []
    for index, token in enumerate(tokens):
        if begin is None:
            if token.classification == KEYWORD and token.text == CALL_MARKER:
                begin = index + 2
            continue
        if index < begin:
            continue
        if not token.text.strip() or token.text in _NAME_TERMINATORS:
            break
        parts.append(token.text)
    return "".join(parts)
