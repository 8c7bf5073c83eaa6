"""gucjava Language Server: pygls-based LSP over stdio.

Provides parse diagnostics, document symbols for class declarations,
and a hover that shows the token under the cursor in dump format.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from gucjava import __version__
from gucjava.ast_nodes import ClassDeclaration, CompilationUnit
from gucjava.errors import Diagnostic, Severity
from gucjava.lexer import lex
from gucjava.parser import parse_tokens
from gucjava.source import Range
from gucjava.tokens import CONTEXTUAL_KEYWORDS, RESERVED_KEYWORDS, Token, TokenKind, format_token

logger = logging.getLogger(__name__)

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}


def range_to_lsp(rng: Range) -> lsp.Range:
    """Convert a zero-based gucjava Range to an LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=rng.start.line, character=rng.start.column),
        end=lsp.Position(line=rng.end.line, character=rng.end.column),
    )


def _to_lsp_diagnostic(d: Diagnostic) -> lsp.Diagnostic:
    message = d.message
    if d.notes:
        message += "\n" + "\n".join(f"note: {note}" for note in d.notes)
    return lsp.Diagnostic(
        range=range_to_lsp(d.location.range),
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="gucjava",
        code=d.code,
        message=message,
    )


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    root: CompilationUnit | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "gucjava-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, source: str) -> DocumentState:
    """Lex and parse a document, cache the results, and return them."""
    tokens = lex(source)
    root, diagnostics = parse_tokens(uri, tokens)
    ds = DocumentState(
        source=source,
        tokens=tokens,
        root=root,
        diagnostics=[_to_lsp_diagnostic(d) for d in diagnostics],
    )
    logger.debug("analyzed %s: %d diagnostic(s)", uri, len(diagnostics))
    _state[uri] = ds
    return ds


def _token_at(tokens: list[Token], line: int, character: int) -> Token | None:
    """Find the token whose range contains the given zero-based position.

    A cursor sitting right after a token still selects it.
    """
    here = (line, character)
    for tok in tokens:
        if tok.kind == TokenKind.EOF:
            break
        start = (tok.range.start.line, tok.range.start.column)
        end = (tok.range.end.line, tok.range.end.column)
        if start <= here <= end:
            return tok
        if start > here:
            break
    return None


def _describe_token(tok: Token) -> str:
    """Markdown hover text for a token."""
    lines = ["```", format_token(tok).rstrip("\n"), "```"]
    if tok.kind == TokenKind.IDENTIFIER and tok.value in CONTEXTUAL_KEYWORDS:
        lines.append(f"`{tok.value}` is a contextual keyword")
    elif tok.kind.value in RESERVED_KEYWORDS:
        lines.append(f"`{tok.kind.value}` is a reserved keyword")
    elif tok.is_error:
        lines.append("lexical error")
    return "\n".join(lines)


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole document
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=params.text_document.uri,
        diagnostics=[],
    ))


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    tok = _token_at(ds.tokens, params.position.line, params.position.character)
    if tok is None:
        return None
    return lsp.Hover(
        contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=_describe_token(tok)),
        range=range_to_lsp(tok.range),
    )


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.root is None:
        return []
    return [
        _class_to_symbol(decl) for decl in ds.root.declarations
        if isinstance(decl, ClassDeclaration)
    ]


def _class_to_symbol(decl: ClassDeclaration) -> lsp.DocumentSymbol:
    """Convert a class declaration, with its nested classes, to a DocumentSymbol."""
    children = [
        _class_to_symbol(member) for member in decl.body_declarations
        if isinstance(member, ClassDeclaration)
    ]
    modifiers = " ".join(m.kind.value for m in decl.modifiers)
    return lsp.DocumentSymbol(
        name=decl.name.name,
        kind=lsp.SymbolKind.Class,
        range=range_to_lsp(decl.range),
        selection_range=range_to_lsp(decl.name.range),
        detail=modifiers or None,
        children=children if children else None,
    )


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the gucjava language server on stdio."""
    server.start_io()
