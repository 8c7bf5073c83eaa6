"""Token kinds, keyword and symbol tables, and token representation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

from gucjava.source import Range


class TokenKind(Enum):
    """Every kind of token the lexer produces.

    Member values are the spellings shown in token dumps: the literal
    text for keywords and symbols, an upper-case tag otherwise.
    """

    # Lexical errors
    ERROR_UNRECOGNIZED_TOKEN = "ERROR-UNRECOGNIZED-TOKEN"
    ERROR_BAD_STRING_LITERAL = "ERROR-BAD-STRING-LITERAL"
    ERROR_UNSUPPORTED_NUMBER_LITERAL = "ERROR-UNSUPPORTED-NUMBER-LITERAL"
    ERROR_BAD_ESCAPE_SEQUENCE = "ERROR-BAD-ESCAPE-SEQUENCE"
    ERROR_BAD_CHAR_LITERAL = "ERROR-BAD-CHAR-LITERAL"

    # Special
    EOF = "EOF"
    IDENTIFIER = "IDENTIFIER"

    # Literals
    INT = "INT"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    STRING = "STRING"
    CHAR = "CHAR"

    # Reserved keywords (JLS 3.9)
    ABSTRACT = "abstract"
    ASSERT = "assert"
    BOOLEAN = "boolean"
    BREAK = "break"
    BYTE = "byte"
    CASE = "case"
    CATCH = "catch"
    CHAR_TYPE = "char"
    CLASS = "class"
    CONST = "const"
    CONTINUE = "continue"
    DEFAULT = "default"
    DO = "do"
    DOUBLE_TYPE = "double"
    ELSE = "else"
    ENUM = "enum"
    EXTENDS = "extends"
    FINAL = "final"
    FINALLY = "finally"
    FLOAT_TYPE = "float"
    FOR = "for"
    GOTO = "goto"
    IF = "if"
    IMPLEMENTS = "implements"
    IMPORT = "import"
    INSTANCEOF = "instanceof"
    INT_TYPE = "int"
    INTERFACE = "interface"
    LONG_TYPE = "long"
    NATIVE = "native"
    NEW = "new"
    PACKAGE = "package"
    PRIVATE = "private"
    PROTECTED = "protected"
    PUBLIC = "public"
    RETURN = "return"
    SHORT = "short"
    STATIC = "static"
    STRICTFP = "strictfp"
    SUPER = "super"
    SWITCH = "switch"
    SYNCHRONIZED = "synchronized"
    THIS = "this"
    THROW = "throw"
    THROWS = "throws"
    TRANSIENT = "transient"
    TRY = "try"
    VOID = "void"
    VOLATILE = "volatile"
    WHILE = "while"
    UNDERSCORE = "_"

    # Literal words
    TRUE = "true"
    FALSE = "false"
    NULL = "null"

    # Expression keywords
    THEN = "then"

    # Separators
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    SEMICOLON = ";"
    COMMA = ","
    DOT = "."
    ELLIPSIS = "..."
    AT = "@"
    COLON_COLON = "::"

    # Operators
    ASSIGN = "="
    GREATER = ">"
    LESS = "<"
    BANG = "!"
    TILDE = "~"
    QUESTION = "?"
    COLON = ":"
    ARROW = "->"
    FAT_ARROW = "=>"
    EQUAL = "=="
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="
    NOT_EQUAL = "!="
    AND = "&&"
    OR = "||"
    INCREMENT = "++"
    DECREMENT = "--"
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    STAR_STAR = "**"
    SLASH = "/"
    AMP = "&"
    PIPE = "|"
    CARET = "^"
    PERCENT = "%"
    SHIFT_LEFT = "<<"
    SHIFT_RIGHT = ">>"
    SHIFT_RIGHT_UNSIGNED = ">>>"
    PLUS_ASSIGN = "+="
    MINUS_ASSIGN = "-="
    STAR_ASSIGN = "*="
    SLASH_ASSIGN = "/="
    AMP_ASSIGN = "&="
    PIPE_ASSIGN = "|="
    CARET_ASSIGN = "^="
    PERCENT_ASSIGN = "%="
    SHIFT_LEFT_ASSIGN = "<<="
    SHIFT_RIGHT_ASSIGN = ">>="
    SHIFT_RIGHT_UNSIGNED_ASSIGN = ">>>="

    def __str__(self) -> str:
        return self.value


ERROR_KINDS: frozenset[TokenKind] = frozenset({
    TokenKind.ERROR_UNRECOGNIZED_TOKEN,
    TokenKind.ERROR_BAD_STRING_LITERAL,
    TokenKind.ERROR_UNSUPPORTED_NUMBER_LITERAL,
    TokenKind.ERROR_BAD_ESCAPE_SEQUENCE,
    TokenKind.ERROR_BAD_CHAR_LITERAL,
})

NUMBER_KINDS: frozenset[TokenKind] = frozenset({
    TokenKind.INT, TokenKind.LONG, TokenKind.FLOAT, TokenKind.DOUBLE,
})

_KEYWORD_KINDS = [
    kind for kind in TokenKind
    if kind.value[0].isalpha() and kind.value.islower() or kind.value == "_"
]

# Spelling -> kind for every reserved word; identifiers are looked up here.
RESERVED_KEYWORDS: dict[str, TokenKind] = {kind.value: kind for kind in _KEYWORD_KINDS}

# Words that are keywords only in particular declarations; they lex as identifiers.
CONTEXTUAL_KEYWORDS: frozenset[str] = frozenset({
    "exports", "opens", "requires", "uses",
    "module", "permits", "sealed", "var",
    "non-sealed", "provides", "to", "with",
    "open", "record", "transitive", "yield",
})

# Spelling -> kind for separators and operators.
SYMBOLS: dict[str, TokenKind] = {
    kind.value: kind for kind in TokenKind
    if not kind.value[0].isalnum() and kind.value != "_"
}

MAX_SYMBOL_LENGTH = max(len(s) for s in SYMBOLS)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    range: Range
    value: str | int | float | None = None

    @property
    def is_error(self) -> bool:
        return self.kind in ERROR_KINDS


def format_token(token: Token) -> str:
    """Render one line of a token dump, with one-based positions."""
    start = token.range.start
    end = token.range.end
    value = "" if token.value is None else json.dumps(token.value, ensure_ascii=False)
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates from escapes like \uD800 cannot be written as UTF-8.
        value = json.dumps(token.value)
    return (
        f"{start.line + 1}:{start.column + 1} - "
        f"{end.line + 1}:{end.column + 1} - "
        f"{token.kind.value} {value}\n"
    )
