"""Line tokenizer protocol and token data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

KEYWORD = "keyword"
COMMENT = "comment"
STRING = "string"
NAME = "name"
NUMBER = "number"
OPERATOR = "operator"
PUNCTUATION = "punctuation"
TEXT = "text"
OTHER = "other"

CLASSIFICATIONS = (
    KEYWORD,
    COMMENT,
    STRING,
    NAME,
    NUMBER,
    OPERATOR,
    PUNCTUATION,
    TEXT,
    OTHER,
)


@dataclass(slots=True, frozen=True)
class LexedToken:
    """Single classified token with 0-based column offsets within its line."""

    text: str
    classification: str
    start: int
    end: int


@dataclass(slots=True)
class TokenizerState:
    """Grammar state carried from one line to the next within one file."""

    stack: list[str] = field(default_factory=lambda: ["root"])


class TokenizerContractError(ValueError):
    """Raised when a tokenizer emits tokens that do not tile the input line."""


def validate_line_tokens(line: str, tokens: list[LexedToken]) -> None:
    """Validate that tokens cover the line left to right without gaps."""
    cursor = 0
    for token in tokens:
        if token.classification not in CLASSIFICATIONS:
            raise TokenizerContractError(f"Unknown token classification: {token.classification}")
        if token.start != cursor:
            raise TokenizerContractError(f"Token at column {token.start} expected at {cursor}.")
        if token.end - token.start != len(token.text):
            raise TokenizerContractError("Token offsets must match token text length.")
        if line[token.start : token.end] != token.text:
            raise TokenizerContractError("Token text must match the line content.")
        cursor = token.end
    if cursor != len(line):
        raise TokenizerContractError(f"Tokens end at column {cursor}, line length is {len(line)}.")


class LineTokenizer(Protocol):
    """Protocol implemented by grammar tokenizers."""

    name: str

    def start_state(self) -> TokenizerState:
        """Return the grammar state at the start of a file."""

    def tokenize(self, line: str, state: TokenizerState) -> list[LexedToken]:
        """Tokenize one line without its newline, advancing state in place."""
