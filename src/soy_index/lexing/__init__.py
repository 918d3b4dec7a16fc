"""Grammar tokenizers consumed by the block resolver."""

from .base import (
    CLASSIFICATIONS,
    COMMENT,
    KEYWORD,
    NAME,
    STRING,
    LexedToken,
    LineTokenizer,
    TokenizerContractError,
    TokenizerState,
    validate_line_tokens,
)
from .soy import PygmentsLineTokenizer, SoyLexer, classify_token_type, soy_line_tokenizer

__all__ = [
    "CLASSIFICATIONS",
    "COMMENT",
    "KEYWORD",
    "LexedToken",
    "LineTokenizer",
    "NAME",
    "PygmentsLineTokenizer",
    "STRING",
    "SoyLexer",
    "TokenizerContractError",
    "TokenizerState",
    "classify_token_type",
    "soy_line_tokenizer",
    "validate_line_tokens",
]
