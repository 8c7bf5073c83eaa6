"""Lexer for gucjava source text.

Turns source text into a list of tokens ending in a single EOF token.
Lexing never fails: malformed input becomes error-kind tokens that the
parser and the tooling report as diagnostics.
"""

from __future__ import annotations

from gucjava.source import Position, Range
from gucjava.tokens import (
    MAX_SYMBOL_LENGTH,
    RESERVED_KEYWORDS,
    SYMBOLS,
    Token,
    TokenKind,
)

_SPACE = frozenset(" \t\r\n\x0c")
_DECIMAL_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_OCTAL_DIGITS = frozenset("01234567")

_SIMPLE_ESCAPES = {
    "b": "\b",
    "s": " ",
    "t": "\t",
    "n": "\n",
    "f": "\f",
    "r": "\r",
    '"': '"',
    "'": "'",
    "\\": "\\",
}


class Lexer:
    """Tokenizes gucjava source code."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 0
        self.col = 0
        self.tokens: list[Token] = []
        # Set while scanning a string or char literal that contained a bad escape.
        self._bad_escape = False

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while True:
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            if ch.isalpha() or ch == "_":
                self._lex_identifier()
            elif ch in _DECIMAL_DIGITS or (ch == "." and self._peek(1) in _DECIMAL_DIGITS):
                self._lex_number()
            elif ch == "'":
                self._lex_char()
            elif ch == '"':
                self._lex_string()
            elif not self._lex_symbol():
                self._lex_unrecognized()

        here = self._position()
        self.tokens.append(Token(TokenKind.EOF, Range(here, here)))
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 0
        else:
            self.col += 1
        return ch

    def _position(self) -> Position:
        return Position(self.line, self.col, self.pos)

    def _emit(self, kind: TokenKind, start: Position, value: str | int | float | None = None) -> Token:
        tok = Token(kind, Range(start, self._position()), value)
        self.tokens.append(tok)
        return tok

    # ── Whitespace and comments ──────────────────────────────────

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            ch = self.source[self.pos]
            if ch in _SPACE:
                self._advance()
            elif self.source.startswith("//", self.pos):
                while not self._at_end() and self.source[self.pos] != "\n":
                    self._advance()
            elif self.source.startswith("/*", self.pos):
                self._advance()
                self._advance()
                # An unterminated block comment silently runs to end of text.
                while not self._at_end() and not self.source.startswith("*/", self.pos):
                    self._advance()
                if not self._at_end():
                    self._advance()
                    self._advance()
            else:
                return

    # ── Identifiers and keywords ─────────────────────────────────

    def _lex_identifier(self) -> None:
        start = self._position()
        begin = self.pos
        while not self._at_end() and (self.source[self.pos].isalnum() or self.source[self.pos] == "_"):
            self._advance()
        word = self.source[begin:self.pos]
        kind = RESERVED_KEYWORDS.get(word)
        if kind is not None:
            self._emit(kind, start)
        else:
            self._emit(TokenKind.IDENTIFIER, start, word)

    # ── Numbers ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start = self._position()
        begin = self.pos

        radix = 10
        if self._peek() == "0" and self._peek(1) in ("x", "X"):
            radix = 16
            self._advance()
            self._advance()
        elif self._peek() == "0" and self._peek(1) in ("b", "B"):
            radix = 2
            self._advance()
            self._advance()
        elif self._peek() == "0" and self._peek(1) in _DECIMAL_DIGITS:
            radix = 8
        digits_begin = self.pos

        run = _HEX_DIGITS if radix == 16 else _DECIMAL_DIGITS
        self._consume_digits(run)
        digits = self.source[digits_begin:self.pos]

        floating = False
        if self._peek() == ".":
            floating = True
            self._advance()
            self._consume_digits(_DECIMAL_DIGITS)
        if self._peek() in ("e", "E") and radix != 16:
            floating = True
            self._advance()
            if self._peek() in ("+", "-"):
                self._advance()
            self._consume_digits(_DECIMAL_DIGITS)

        kind = TokenKind.INT
        suffix = self._peek()
        if suffix in ("f", "F") and radix != 16:
            floating = True
            kind = TokenKind.FLOAT
            self._advance()
        elif suffix in ("d", "D") and radix != 16:
            floating = True
            kind = TokenKind.DOUBLE
            self._advance()
        elif suffix in ("l", "L") and not floating:
            kind = TokenKind.LONG
            self._advance()
        elif floating:
            kind = TokenKind.DOUBLE

        text = self.source[begin:self.pos]
        value = self._number_value(text, digits, radix, floating)
        if value is None:
            self._emit(TokenKind.ERROR_UNSUPPORTED_NUMBER_LITERAL, start, text)
        else:
            self._emit(kind, start, value)

    def _consume_digits(self, digits: frozenset[str]) -> None:
        while not self._at_end() and (self.source[self.pos] in digits or self.source[self.pos] == "_"):
            self._advance()

    @staticmethod
    def _number_value(text: str, digits: str, radix: int, floating: bool) -> int | float | None:
        """Convert a scanned literal, or return None if it is not supported."""
        if floating:
            if radix in (16, 2):
                return None
            # A leading zero only marks octal for integral literals.
            body = text.rstrip("fFdD").replace("_", "")
            try:
                return float(body)
            except ValueError:
                return None
        cleaned = digits.replace("_", "")
        if not cleaned:
            return None
        try:
            return int(cleaned, radix)
        except ValueError:
            return None

    # ── Escape sequences ─────────────────────────────────────────

    def _lex_escape_sequence(self) -> str:
        """Decode one escape sequence starting at a backslash.

        Returns the decoded text; a bad escape contributes nothing and
        marks the enclosing literal as bad.
        """
        self._advance()  # skip backslash
        if self._at_end():
            self._bad_escape = True
            return ""
        ch = self.source[self.pos]
        if ch in _SIMPLE_ESCAPES:
            self._advance()
            return _SIMPLE_ESCAPES[ch]
        if ch in _OCTAL_DIGITS:
            begin = self.pos
            while self.pos - begin < 3 and not self._at_end() and self.source[self.pos] in _OCTAL_DIGITS:
                self._advance()
            return chr(int(self.source[begin:self.pos], 8))
        if ch == "u":
            while self._peek() == "u":
                self._advance()
            begin = self.pos
            while self.pos - begin < 4 and not self._at_end() and self.source[self.pos] in _HEX_DIGITS:
                self._advance()
            if self.pos == begin:
                self._bad_escape = True
                return ""
            return chr(int(self.source[begin:self.pos], 16))
        self._advance()
        self._bad_escape = True
        return ""

    # ── Character literals ───────────────────────────────────────

    def _lex_char(self) -> None:
        start = self._position()
        self._bad_escape = False
        self._advance()  # skip opening '
        if self._at_end():
            self._emit(TokenKind.ERROR_BAD_CHAR_LITERAL, start, "")
            return
        if self.source[self.pos] == "'":
            self._advance()
            self._emit(TokenKind.ERROR_BAD_CHAR_LITERAL, start, "")
            return
        if self.source[self.pos] == "\\":
            text = self._lex_escape_sequence()
        else:
            text = self._advance()
        if self._peek() != "'":
            self._emit(TokenKind.ERROR_BAD_CHAR_LITERAL, start, text)
            return
        self._advance()  # skip closing '
        if self._bad_escape:
            self._emit(TokenKind.ERROR_BAD_ESCAPE_SEQUENCE, start, text)
        else:
            self._emit(TokenKind.CHAR, start, text)

    # ── Strings ──────────────────────────────────────────────────

    def _lex_string(self) -> None:
        start = self._position()
        self._bad_escape = False
        block = self.source.startswith('"""', self.pos)
        delimiter = '"""' if block else '"'
        for _ in delimiter:
            self._advance()

        text: list[str] = []
        while not self._at_end() and not self.source.startswith(delimiter, self.pos):
            if self.source[self.pos] == "\\":
                text.append(self._lex_escape_sequence())
            else:
                text.append(self._advance())

        if self._at_end():
            self._emit(TokenKind.ERROR_BAD_STRING_LITERAL, start, "".join(text))
            return
        for _ in delimiter:
            self._advance()

        value = "".join(text)
        if block:
            value = strip_block_indent(value)
        if self._bad_escape:
            self._emit(TokenKind.ERROR_BAD_ESCAPE_SEQUENCE, start, value)
        else:
            self._emit(TokenKind.STRING, start, value)

    # ── Operators and separators ─────────────────────────────────

    def _lex_symbol(self) -> bool:
        start = self._position()
        for length in range(MAX_SYMBOL_LENGTH, 0, -1):
            spelling = self.source[self.pos:self.pos + length]
            if len(spelling) != length:
                # Slice was cut short by the end of the text.
                continue
            kind = SYMBOLS.get(spelling)
            if kind is not None:
                for _ in range(length):
                    self._advance()
                self._emit(kind, start)
                return True
        return False

    def _lex_unrecognized(self) -> None:
        start = self._position()
        begin = self.pos
        while not self._at_end() and self.source[self.pos] not in _SPACE:
            self._advance()
        self._emit(TokenKind.ERROR_UNRECOGNIZED_TOKEN, start, self.source[begin:self.pos])


def strip_block_indent(text: str) -> str:
    """Normalize the body of a triple-quoted string.

    Drops one newline right after the opening quotes, then removes the
    indentation of the first non-blank line from every line.
    """
    if text.startswith("\r\n"):
        text = text[2:]
    elif text.startswith("\n"):
        text = text[1:]
    lines = text.split("\n")
    indent = ""
    for line in lines:
        if line.strip():
            indent = line[:len(line) - len(line.lstrip(" \t"))]
            break
    if not indent:
        return text
    stripped = []
    for line in lines:
        if line.startswith(indent):
            stripped.append(line[len(indent):])
        elif not line.strip():
            stripped.append("")
        else:
            stripped.append(line)
    return "\n".join(stripped)


def lex(text: str) -> list[Token]:
    """Tokenize ``text``; the last token is always EOF."""
    return Lexer(text).lex()
