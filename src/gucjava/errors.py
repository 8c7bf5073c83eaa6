"""Diagnostics, syntax errors and Rust-style colored rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from gucjava.source import Location
from gucjava.tokens import Token, TokenKind


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# Diagnostic codes
UNRECOGNIZED_TOKEN = "E100"
BAD_STRING_LITERAL = "E101"
UNSUPPORTED_NUMBER_LITERAL = "E102"
BAD_ESCAPE_SEQUENCE = "E103"
BAD_CHAR_LITERAL = "E104"
SYNTAX_ERROR = "E200"
NESTING_TOO_DEEP = "E201"

# Error token kind -> (code, message)
LEXICAL_ERRORS: dict[TokenKind, tuple[str, str]] = {
    TokenKind.ERROR_UNRECOGNIZED_TOKEN: (UNRECOGNIZED_TOKEN, "unrecognized token"),
    TokenKind.ERROR_BAD_STRING_LITERAL: (BAD_STRING_LITERAL, "unterminated string literal"),
    TokenKind.ERROR_UNSUPPORTED_NUMBER_LITERAL: (
        UNSUPPORTED_NUMBER_LITERAL, "unsupported number literal",
    ),
    TokenKind.ERROR_BAD_ESCAPE_SEQUENCE: (BAD_ESCAPE_SEQUENCE, "invalid escape sequence in literal"),
    TokenKind.ERROR_BAD_CHAR_LITERAL: (BAD_CHAR_LITERAL, "malformed character literal"),
}

# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class Diagnostic:
    """A located, human-readable description of a lexical or syntax problem."""

    severity: Severity
    code: str
    message: str
    location: Location
    notes: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.location}: {self.severity.value}[{self.code}]: {self.message}"


class ParseError(Exception):
    """A syntax error raised inside the parser.

    Always caught by the nearest recovery boundary, which turns it into
    a Diagnostic and resynchronizes.
    """

    def __init__(
        self,
        location: Location,
        message: str,
        code: str = SYNTAX_ERROR,
        notes: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.location = location
        self.message = message
        self.code = code
        self.notes = notes

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(Severity.ERROR, self.code, self.message, self.location, list(self.notes))


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic, source: str | None = None) -> str:
        """Render one diagnostic; ``source`` supplies the offending line."""
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        rng = diag.location.range
        lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {diag.location}")
        gutter = f"{rng.start.line + 1:>4}"
        lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

        source_line = _line_at(source, rng.start.line) if source is not None else None
        if source_line is not None:
            lines.append(
                f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
            )
            # Underline to the end of the range, or of the line if it spans several.
            if rng.start.line == rng.end.line:
                caret_len = max(1, rng.end.column - rng.start.column)
            else:
                caret_len = max(1, len(source_line) - rng.start.column)
            padding = " " * rng.start.column
            lines.append(
                f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                f"{padding}{self._c(color)}{'^' * caret_len}{self._c(_RESET)}"
            )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


def _line_at(source: str, line: int) -> str | None:
    """Return the zero-indexed line of ``source``, or None if out of range."""
    lines = source.split("\n")
    if 0 <= line < len(lines):
        return lines[line].rstrip("\r")
    return None


def lexical_diagnostics(tokens: list[Token], source_id: str) -> list[Diagnostic]:
    """Report every error-kind token as a diagnostic."""
    diagnostics = []
    for tok in tokens:
        if not tok.is_error:
            continue
        code, message = LEXICAL_ERRORS[tok.kind]
        if tok.kind in (TokenKind.ERROR_UNRECOGNIZED_TOKEN, TokenKind.ERROR_UNSUPPORTED_NUMBER_LITERAL):
            message = f"{message} {tok.value!r}"
        diagnostics.append(
            Diagnostic(Severity.ERROR, code, message, Location(source_id, tok.range))
        )
    return diagnostics
