"""Token-driven block end resolution and offset to line mapping."""

from __future__ import annotations

from bisect import bisect_right

from soy_index.lexing.base import KEYWORD, LineTokenizer, validate_line_tokens

BLOCK_CLOSE_MARKER = "{/template"


def find_block_end(
    text: str,
    start_offset: int,
    tokenizer: LineTokenizer,
    close_marker: str = BLOCK_CLOSE_MARKER,
) -> int:
    """Return the offset just past the first keyword close marker at or after start_offset.

    Tokenizing starts at ``start_offset`` in the grammar's start state and proceeds one
    line at a time. Only tokens the grammar classifies as keywords count, so a close
    marker inside a comment or string is skipped. Returns ``len(text)`` when no close
    marker is found. Raises TokenizerContractError when a line's tokens do not tile it.
    """
    if start_offset < 0:
        raise ValueError("start_offset must be >= 0")
    length = len(text)
    state = tokenizer.start_state()
    line_start = start_offset
    while line_start < length:
        line_end = text.find("\n", line_start)
        if line_end == -1:
            line_end = length
        line = text[line_start:line_end]
        tokens = tokenizer.tokenize(line, state)
        validate_line_tokens(line, tokens)
        for token in tokens:
            if token.classification == KEYWORD and token.text == close_marker:
                return line_start + token.end
        line_start = line_end + 1
    return length


class LineMap:
    """Offset to 0-based line number lookup for one text."""

    def __init__(self, text: str) -> None:
        starts = [0]
        index = text.find("\n")
        while index != -1:
            starts.append(index + 1)
            index = text.find("\n", index + 1)
        self._line_starts = starts
        self._length = len(text)

    def line_of(self, offset: int) -> int:
        """Return the 0-based line containing offset, clamped to the text bounds."""
        clamped = min(max(offset, 0), self._length)
        return bisect_right(self._line_starts, clamped) - 1
