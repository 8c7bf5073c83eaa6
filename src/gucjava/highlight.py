"""Pygments lexer for gucjava, driven by the gucjava lexer itself."""

from __future__ import annotations

import re
from collections.abc import Iterator

from pygments.lexer import Lexer
from pygments.token import (
    Comment,
    Error,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
    Whitespace,
    _TokenType,
)

from gucjava.lexer import lex
from gucjava.tokens import (
    CONTEXTUAL_KEYWORDS,
    ERROR_KINDS,
    NUMBER_KINDS,
    RESERVED_KEYWORDS,
    TokenKind,
)

_GAP = re.compile(r"(\s+)|(//[^\n]*)|(/\*[\s\S]*?(?:\*/|\Z))")

_PUNCTUATION = frozenset({
    TokenKind.LPAREN, TokenKind.RPAREN, TokenKind.LBRACE, TokenKind.RBRACE,
    TokenKind.LBRACKET, TokenKind.RBRACKET, TokenKind.SEMICOLON, TokenKind.COMMA,
    TokenKind.DOT, TokenKind.ELLIPSIS, TokenKind.AT, TokenKind.COLON_COLON,
})

_KEYWORD_TYPES = {
    TokenKind.TRUE: Keyword.Constant,
    TokenKind.FALSE: Keyword.Constant,
    TokenKind.NULL: Keyword.Constant,
    TokenKind.BOOLEAN: Keyword.Type,
    TokenKind.BYTE: Keyword.Type,
    TokenKind.CHAR_TYPE: Keyword.Type,
    TokenKind.SHORT: Keyword.Type,
    TokenKind.INT_TYPE: Keyword.Type,
    TokenKind.LONG_TYPE: Keyword.Type,
    TokenKind.FLOAT_TYPE: Keyword.Type,
    TokenKind.DOUBLE_TYPE: Keyword.Type,
    TokenKind.VOID: Keyword.Type,
    TokenKind.PACKAGE: Keyword.Namespace,
    TokenKind.IMPORT: Keyword.Namespace,
    TokenKind.CLASS: Keyword.Declaration,
    TokenKind.INTERFACE: Keyword.Declaration,
    TokenKind.ENUM: Keyword.Declaration,
}


def _number_type(text: str) -> _TokenType:
    prefix = text[:2].lower()
    if prefix == "0x":
        return Number.Hex
    if prefix == "0b":
        return Number.Bin
    if len(text) > 1 and text[0] == "0" and text[1].isdigit():
        return Number.Oct
    return Number.Integer


def _gap_tokens(text: str, begin: int, end: int) -> Iterator[tuple[int, _TokenType, str]]:
    """Split the text between two tokens into whitespace and comments."""
    pos = begin
    while pos < end:
        m = _GAP.match(text, pos, end)
        if m is None:
            yield pos, Text, text[pos:end]
            return
        if m.group(1):
            yield pos, Whitespace, m.group(0)
        elif m.group(2):
            yield pos, Comment.Single, m.group(0)
        else:
            yield pos, Comment.Multiline, m.group(0)
        pos = m.end()


class GucJavaLexer(Lexer):
    """Pygments lexer for the gucjava language."""

    name = "gucjava"
    aliases = ["gucjava", "gj"]
    filenames = ["*.gj"]
    mimetypes = ["text/x-gucjava"]

    def get_tokens_unprocessed(self, text: str) -> Iterator[tuple[int, _TokenType, str]]:
        pos = 0
        previous: TokenKind | None = None
        for tok in lex(text):
            start, end = tok.range.start.offset, tok.range.end.offset
            yield from _gap_tokens(text, pos, start)
            if tok.kind == TokenKind.EOF:
                return
            value = text[start:end]
            yield start, self._token_type(tok.kind, value, previous), value
            pos = end
            previous = tok.kind

    @staticmethod
    def _token_type(kind: TokenKind, value: str, previous: TokenKind | None) -> _TokenType:
        if kind == TokenKind.IDENTIFIER:
            if previous == TokenKind.CLASS:
                return Name.Class
            if previous == TokenKind.AT:
                return Name.Decorator
            if value in CONTEXTUAL_KEYWORDS:
                return Keyword.Pseudo
            return Name
        if kind in NUMBER_KINDS:
            if kind in (TokenKind.FLOAT, TokenKind.DOUBLE):
                return Number.Float
            return _number_type(value)
        if kind == TokenKind.STRING:
            return String.Doc if value.startswith('"""') else String.Double
        if kind == TokenKind.CHAR:
            return String.Char
        if kind in ERROR_KINDS:
            return Error
        if kind.value in RESERVED_KEYWORDS:
            return _KEYWORD_TYPES.get(kind, Keyword)
        if kind in _PUNCTUATION:
            return Punctuation
        return Operator
