"""Soy (Closure Templates) grammar driven one line at a time through Pygments."""

from __future__ import annotations

from pygments.lexer import ExtendedRegexLexer, LexerContext
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Other,
    Punctuation,
    String,
    Whitespace,
)
from pygments.token import _TokenType

from soy_index.lexing.base import (
    COMMENT,
    KEYWORD,
    NAME,
    NUMBER,
    OPERATOR,
    OTHER,
    PUNCTUATION,
    STRING,
    TEXT,
    LexedToken,
    TokenizerState,
)

_CLASSIFICATION_ORDER = (
    (Keyword, KEYWORD),
    (Comment, COMMENT),
    (String, STRING),
    (Name, NAME),
    (Number, NUMBER),
    (Operator, OPERATOR),
    (Punctuation, PUNCTUATION),
    (Whitespace, TEXT),
)


class SoyLexer(ExtendedRegexLexer):
    """Lexer for Soy template files.

    Command tags (``{template``, ``{/template``, ``{call`` ...) and the closing brace
    of a tag are keywords. Comments, quoted strings inside tags and ``{literal}``
    bodies are classified separately so that command-like text inside them is not
    mistaken for a command.
    """

    name = "Soy"
    aliases = ["soy", "closure-templates"]
    filenames = ["*.soy"]

    tokens = {
        "root": [
            (r"/\*", Comment.Multiline, "comment"),
            (r"(?:^|(?<=\s))//[^\n]*", Comment.Single),
            (r"\{literal\}", Keyword, "literal"),
            (r"\{/?[a-zA-Z]\w*", Keyword, "tag"),
            (r"\{", Punctuation, "tag"),
            (r"[^{/\n]+", Other),
            (r"/", Other),
            (r"\n", Whitespace),
        ],
        "tag": [
            (r"/?\}", Keyword, "#pop"),
            (r"\s+", Whitespace),
            (r"'(?:\\.|[^'\\])*'", String.Single),
            (r'"(?:\\.|[^"\\])*"', String.Double),
            (r"['\"]", String),
            (r"\$[\w.]+", Name.Variable),
            (r"\d+(?:\.\d+)?", Number),
            (r"\.?[a-zA-Z_][\w.]*", Name),
            (r"[^\s}'\"$\w]", Operator),
        ],
        "comment": [
            (r"[^*]+", Comment.Multiline),
            (r"\*/", Comment.Multiline, "#pop"),
            (r"\*", Comment.Multiline),
        ],
        "literal": [
            (r"\{/literal\}", Keyword, "#pop"),
            (r"[^{]+", String.Other),
            (r"\{", String.Other),
        ],
    }


def classify_token_type(token_type: _TokenType) -> str:
    """Map a Pygments token type onto a coarse classification name."""
    for parent, classification in _CLASSIFICATION_ORDER:
        if token_type in parent:
            return classification
    return OTHER


class PygmentsLineTokenizer:
    """Line tokenizer backed by an ExtendedRegexLexer and its context stack."""

    def __init__(self, lexer: ExtendedRegexLexer | None = None, name: str = "soy") -> None:
        self._lexer = lexer or SoyLexer()
        self.name = name

    def start_state(self) -> TokenizerState:
        """Start every file in the root state."""
        return TokenizerState()

    def tokenize(self, line: str, state: TokenizerState) -> list[LexedToken]:
        """Tokenize one line and store the resulting state stack back on state."""
        if not line:
            return []
        context = LexerContext(line, 0, stack=list(state.stack))
        tokens: list[LexedToken] = []
        for start, token_type, value in self._lexer.get_tokens_unprocessed(context=context):
            if not value:
                continue
            tokens.append(
                LexedToken(
                    text=value,
                    classification=classify_token_type(token_type),
                    start=start,
                    end=start + len(value),
                )
            )
        state.stack = list(context.stack)
        return tokens


def soy_line_tokenizer() -> PygmentsLineTokenizer:
    """Build the default Soy line tokenizer."""
    return PygmentsLineTokenizer(SoyLexer(), name="soy")
