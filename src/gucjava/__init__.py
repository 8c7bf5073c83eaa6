"""gucjava: a fault-tolerant lexer and parser for a Java-superset language."""

from __future__ import annotations

__version__ = "0.1.0"

from gucjava.lexer import lex
from gucjava.parser import ParseResult, parse

__all__ = ["ParseResult", "__version__", "lex", "parse"]
