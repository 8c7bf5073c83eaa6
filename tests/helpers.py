"""Shared test helpers for the gucjava test suite."""

from __future__ import annotations

from gucjava.ast_nodes import CompilationUnit, Expression, ExpressionStatement
from gucjava.errors import Diagnostic
from gucjava.parser import parse


def parse_ok(source: str) -> CompilationUnit:
    """Parse source, asserting no diagnostics. Returns the root."""
    root, diagnostics = parse("<test>", source)
    assert not diagnostics, [str(d) for d in diagnostics]
    return root


def parse_fails(source: str, code: str) -> list[Diagnostic]:
    """Parse source, asserting the given diagnostic code appears."""
    _, diagnostics = parse("<test>", source)
    matching = [d for d in diagnostics if d.code == code]
    assert matching, f"Expected {code} but got: {[str(d) for d in diagnostics]}"
    return diagnostics


def parse_expr(source: str) -> Expression:
    """Parse a single expression statement and return its expression."""
    root = parse_ok(source + ";")
    assert len(root.declarations) == 1
    stmt = root.declarations[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression
