"""Parser for gucjava.

Transforms a token stream into an AST using precedence climbing for
expressions and recursive descent for statements and declarations.
Syntax errors never escape: they are caught at block, class-body and
top-level boundaries, recorded as diagnostics, and parsing resumes at
the next synchronization point.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple, TypeVar

from gucjava.ast_nodes import (
    ATTRIBUTE,
    FUNCTION_CALL,
    IF,
    LIST_DISPLAY,
    MAP_DISPLAY,
    SUBSCRIPT,
    Assignment,
    Block,
    BlockKind,
    ClassBodyDeclaration,
    ClassDeclaration,
    CompilationUnit,
    Expression,
    ExpressionStatement,
    FunctionDisplay,
    GeneralIdentifier,
    Identifier,
    ImportDeclaration,
    LiteralExpr,
    LiteralKind,
    Modifier,
    ModifierKind,
    Node,
    Operation,
    QualifiedIdentifier,
    Statement,
    TopLevelDeclaration,
)
from gucjava.errors import (
    NESTING_TOO_DEEP,
    SYNTAX_ERROR,
    Diagnostic,
    ParseError,
    Severity,
    lexical_diagnostics,
)
from gucjava.lexer import lex
from gucjava.source import Location, Position, Range
from gucjava.tokens import Token, TokenKind

T = TypeVar("T")

DEFAULT_MAX_NESTING_DEPTH = 128

# ── Operator precedence ──────────────────────────────────────────

# Lowest to highest; empty levels are reserved for prefix operators.
_PREC_LIST: list[list[TokenKind]] = [
    [],
    [TokenKind.OR],
    [TokenKind.AND],
    [],  # unary '!'
    [TokenKind.EQUAL, TokenKind.NOT_EQUAL, TokenKind.LESS, TokenKind.GREATER,
     TokenKind.LESS_EQUAL, TokenKind.GREATER_EQUAL],
    [TokenKind.SHIFT_LEFT, TokenKind.SHIFT_RIGHT, TokenKind.SHIFT_RIGHT_UNSIGNED],
    [TokenKind.AMP],
    [TokenKind.CARET],
    [TokenKind.PIPE],
    [TokenKind.PLUS, TokenKind.MINUS],
    [TokenKind.STAR, TokenKind.SLASH, TokenKind.PERCENT],
    [],  # unary '-', '+', '~'
    [TokenKind.STAR_STAR],
    [TokenKind.DOT, TokenKind.LPAREN, TokenKind.LBRACKET],
]

PRECEDENCE: dict[TokenKind, int] = {
    kind: level for level, kinds in enumerate(_PREC_LIST) for kind in kinds
}
PREC_UNARY_NOT = PRECEDENCE[TokenKind.AND] + 1
PREC_UNARY_MINUS = PRECEDENCE[TokenKind.STAR] + 1

_RIGHT_ASSOCIATIVE = frozenset({TokenKind.STAR_STAR})

_LITERALS: dict[TokenKind, LiteralKind] = {
    TokenKind.INT: LiteralKind.INT,
    TokenKind.LONG: LiteralKind.LONG,
    TokenKind.FLOAT: LiteralKind.FLOAT,
    TokenKind.DOUBLE: LiteralKind.DOUBLE,
    TokenKind.STRING: LiteralKind.STRING,
    TokenKind.CHAR: LiteralKind.CHAR,
}

_MODIFIERS: dict[TokenKind, ModifierKind] = {
    TokenKind(kind.value): kind for kind in ModifierKind
}


class ParseResult(NamedTuple):
    root: CompilationUnit
    diagnostics: list[Diagnostic]


class Parser:
    """Parses a list of tokens into a CompilationUnit."""

    def __init__(
        self,
        tokens: list[Token],
        source_id: str = "<stdin>",
        *,
        max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
    ) -> None:
        self.tokens = tokens
        self.pos = 0
        self.source_id = source_id
        self.max_depth = max_depth
        self.diagnostics: list[Diagnostic] = []
        self._depth = 0

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _consume(self, kind: TokenKind) -> bool:
        if self._at(kind):
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind) -> Token:
        if self._at(kind):
            return self._advance()
        raise self._error(f"expected {kind.value!r}, got {_describe(self._current())}")

    def _previous_end(self) -> Position:
        """End of the last consumed token, closing parentheses included."""
        return self.tokens[self.pos - 1].range.end

    def _skip_semicolons(self) -> None:
        while self._consume(TokenKind.SEMICOLON):
            pass

    def _error(self, message: str, tok: Token | None = None, code: str = SYNTAX_ERROR) -> ParseError:
        tok = tok or self._current()
        return ParseError(Location(self.source_id, tok.range), message, code)

    # ── Recovery ─────────────────────────────────────────────────

    def _synchronize(self) -> None:
        """Skip to the end of the current statement or enclosing braces."""
        while not self._at_any(TokenKind.EOF, TokenKind.RBRACE, TokenKind.SEMICOLON):
            self._advance()

    def _synchronize_top_level(self, start_pos: int) -> None:
        """Skip past the broken construct to a statement end or line break."""
        if self.pos == start_pos:
            self._advance()
        while not self._at_any(TokenKind.EOF, TokenKind.SEMICOLON):
            previous = self.tokens[self.pos - 1]
            if self._current().range.start.line > previous.range.end.line:
                return
            self._advance()
        self._skip_semicolons()

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> CompilationUnit:
        """Parse the entire token stream into a CompilationUnit."""
        package: GeneralIdentifier | None = None
        imports: list[ImportDeclaration] = []
        declarations: list[TopLevelDeclaration] = []
        first = True

        while not self._at(TokenKind.EOF):
            if self._consume(TokenKind.SEMICOLON):
                continue
            start_pos = self.pos
            try:
                if self._at(TokenKind.PACKAGE):
                    if not first:
                        raise self._error("package declaration must come first")
                    package = self._parse_package_declaration()
                elif self._at(TokenKind.IMPORT):
                    imports.append(self._parse_import_declaration())
                else:
                    declarations.append(self._parse_declaration())
            except ParseError as e:
                self.diagnostics.append(e.to_diagnostic())
                self._synchronize_top_level(start_pos)
            except RecursionError:
                location = Location(self.source_id, self.tokens[start_pos].range)
                self.diagnostics.append(Diagnostic(
                    Severity.ERROR, NESTING_TOO_DEEP, "nesting too deep to parse", location,
                ))
                self._synchronize_top_level(start_pos)
            first = False

        end = self.tokens[-1].range.end
        return CompilationUnit(package, imports, declarations, Range(Position(0, 0, 0), end))

    def _parse_declaration(self) -> TopLevelDeclaration:
        if self._at(TokenKind.CLASS) or self._current().kind in _MODIFIERS:
            return self._parse_class_declaration()
        return self._parse_statement()

    # ── Packages and imports ─────────────────────────────────────

    def _parse_identifier(self) -> Identifier:
        tok = self._expect(TokenKind.IDENTIFIER)
        return Identifier(tok.value, tok.range)

    def _parse_qualified_name(self, *, allow_star: bool = False) -> tuple[GeneralIdentifier, bool]:
        name: GeneralIdentifier = self._parse_identifier()
        while self._consume(TokenKind.DOT):
            if allow_star and self._at(TokenKind.STAR):
                self._advance()
                return name, True
            child = self._parse_identifier()
            name = QualifiedIdentifier(name, child, Range.covering(name.range, child.range))
        return name, False

    def _parse_package_declaration(self) -> GeneralIdentifier:
        self._advance()  # 'package'
        name, _ = self._parse_qualified_name()
        self._expect(TokenKind.SEMICOLON)
        return name

    def _parse_import_declaration(self) -> ImportDeclaration:
        start = self._advance()  # 'import'
        is_static = self._consume(TokenKind.STATIC)
        name, star = self._parse_qualified_name(allow_star=True)
        end = self._expect(TokenKind.SEMICOLON)
        return ImportDeclaration(is_static, name, star, Range.covering(start.range, end.range))

    # ── Classes ──────────────────────────────────────────────────

    def _parse_class_declaration(self) -> ClassDeclaration:
        start = self._current()
        modifiers: list[Modifier] = []
        while self._current().kind in _MODIFIERS:
            tok = self._advance()
            modifiers.append(Modifier(_MODIFIERS[tok.kind], tok.range))
        self._expect(TokenKind.CLASS)
        name = self._parse_identifier()
        members, body_range = self._parse_braced(self._parse_class_member)
        return ClassDeclaration(modifiers, name, members, Range.covering(start.range, body_range))

    def _parse_class_member(self) -> ClassBodyDeclaration:
        if self._at(TokenKind.STATIC) and self._peek(1).kind == TokenKind.LBRACE:
            start = self._advance()  # 'static'
            statements, rng = self._parse_braced(self._parse_statement)
            return Block(BlockKind.STATIC, statements, Range.covering(start.range, rng))
        if self._at(TokenKind.CLASS) or self._current().kind in _MODIFIERS:
            return self._parse_class_declaration()
        return self._parse_statement()

    # ── Blocks and statements ────────────────────────────────────

    def _parse_braced(self, parse_item: Callable[[], T]) -> tuple[list[T], Range]:
        """Parse ``'{' {';'} (item {';'})* '}'``, recovering inside the braces."""
        self._depth += 1
        try:
            self._descend_check()
            start = self._expect(TokenKind.LBRACE)
            items: list[T] = []
            self._skip_semicolons()
            while not self._at_any(TokenKind.EOF, TokenKind.RBRACE):
                try:
                    items.append(parse_item())
                except ParseError as e:
                    self.diagnostics.append(e.to_diagnostic())
                    self._synchronize()
                self._skip_semicolons()
            end = self._expect(TokenKind.RBRACE)
            return items, Range.covering(start.range, end.range)
        finally:
            self._depth -= 1

    def _descend_check(self) -> None:
        if self._depth > self.max_depth:
            tok = self._current()
            raise ParseError(
                Location(self.source_id, tok.range),
                f"nesting deeper than {self.max_depth} levels",
                NESTING_TOO_DEEP,
                notes=("raise [parser] max_nesting_depth in gucjava.toml to allow deeper nesting",),
            )

    def _parse_block(self) -> Block:
        statements, rng = self._parse_braced(self._parse_statement)
        return Block(BlockKind.BLOCK, statements, rng)

    def _parse_statement(self) -> Statement:
        start = self._current()
        if start.kind == TokenKind.LBRACE:
            return self._parse_block()
        if start.kind == TokenKind.IF:
            return self._parse_if_statement()
        expression = self._parse_expression()
        end = self._expect(TokenKind.SEMICOLON)
        return ExpressionStatement(expression, Range.covering(start.range, end.range))

    def _parse_if_statement(self) -> ExpressionStatement:
        start = self._advance()  # 'if'
        condition = self._parse_expression()
        if self._at(TokenKind.THEN):
            operation = self._finish_if_expression(start, condition)
            end = self._expect(TokenKind.SEMICOLON)
            return ExpressionStatement(operation, Range.covering(start.range, end.range))
        operation = self._finish_if_block(start, condition)
        return ExpressionStatement(operation, operation.range)

    def _finish_if_block(self, start: Token, condition: Expression) -> Operation:
        # An else-if chain is read flat, then folded from its last clause.
        clauses: list[tuple[Token, Expression, Block]] = [(start, condition, self._parse_block())]
        other: Node | None = None
        while self._consume(TokenKind.ELSE):
            if not self._at(TokenKind.IF):
                other = self._parse_block()
                break
            nested = self._advance()
            nested_condition = self._parse_expression()
            clauses.append((nested, nested_condition, self._parse_block()))
        if other is None:
            other = LiteralExpr(LiteralKind.NULL, None, clauses[-1][2].range)
        for clause_start, clause_condition, body in reversed(clauses):
            operation = Operation(
                IF, [clause_condition, body, other],
                Range.covering(clause_start.range, other.range),
            )
            other = operation
        return operation

    # ── Precedence-climbing expression parser ────────────────────

    def _parse_expression(self) -> Expression:
        return self._parse_prec(1)

    def _parse_prec(self, precedence: int) -> Expression:
        """Parse a prefix term, then fold in operators binding at least as tightly."""
        self._depth += 1
        try:
            self._descend_check()
            start = self._current().range.start
            expr = self._parse_prefix()
            while precedence <= PRECEDENCE.get(self._current().kind, 0):
                expr = self._parse_infix(expr, start)
            return expr
        finally:
            self._depth -= 1

    def _parse_prefix(self) -> Expression:
        tok = self._current()
        kind = tok.kind

        if kind == TokenKind.IDENTIFIER:
            self._advance()
            identifier = Identifier(tok.value, tok.range)
            if self._consume(TokenKind.ASSIGN):
                value = self._parse_expression()
                return Assignment(identifier, value, Range(tok.range.start, self._previous_end()))
            return identifier

        if kind in _LITERALS:
            self._advance()
            return LiteralExpr(_LITERALS[kind], tok.value, tok.range)
        if kind == TokenKind.NULL:
            self._advance()
            return LiteralExpr(LiteralKind.NULL, None, tok.range)
        if kind in (TokenKind.TRUE, TokenKind.FALSE):
            self._advance()
            return LiteralExpr(LiteralKind.BOOL, kind == TokenKind.TRUE, tok.range)

        if kind == TokenKind.IF:
            self._advance()
            condition = self._parse_expression()
            return self._finish_if_expression(tok, condition)

        if kind in (TokenKind.PLUS, TokenKind.MINUS, TokenKind.TILDE):
            self._advance()
            operand = self._parse_prec(PREC_UNARY_MINUS)
            return Operation(kind.value, [operand], Range(tok.range.start, self._previous_end()))

        if kind == TokenKind.BANG:
            self._advance()
            operand = self._parse_prec(PREC_UNARY_NOT)
            return Operation(kind.value, [operand], Range(tok.range.start, self._previous_end()))

        if kind == TokenKind.LPAREN:
            return self._parse_parenthesized()

        if kind == TokenKind.LBRACKET:
            self._advance()
            elements = self._parse_args_body(TokenKind.RBRACKET)
            end = self._expect(TokenKind.RBRACKET)
            return Operation(LIST_DISPLAY, elements, Range.covering(tok.range, end.range))

        if kind == TokenKind.LBRACE:
            return self._parse_map_display()

        raise self._error(f"expected expression, got {_describe(tok)}")

    def _finish_if_expression(self, start: Token, condition: Expression) -> Operation:
        self._expect(TokenKind.THEN)
        then_value = self._parse_expression()
        self._expect(TokenKind.ELSE)
        else_value = self._parse_expression()
        return Operation(
            IF, [condition, then_value, else_value],
            Range(start.range.start, self._previous_end()),
        )

    def _parse_parenthesized(self) -> Expression:
        open_tok = self._advance()  # (
        if self._looks_like_lambda():
            return self._parse_function_display(open_tok)
        inner = self._parse_expression()
        self._expect(TokenKind.RPAREN)
        return inner

    def _looks_like_lambda(self) -> bool:
        """Scan ahead for ``{IDENTIFIER ','}* ')' '=>'`` and rewind."""
        saved = self.pos
        while self._consume(TokenKind.IDENTIFIER) or self._consume(TokenKind.COMMA):
            pass
        result = self._consume(TokenKind.RPAREN) and self._at(TokenKind.FAT_ARROW)
        self.pos = saved
        return result

    def _parse_function_display(self, open_tok: Token) -> FunctionDisplay:
        parameters: list[Identifier] = []
        while not self._at_any(TokenKind.EOF, TokenKind.RPAREN):
            parameters.append(self._parse_identifier())
            if not self._consume(TokenKind.COMMA):
                break
        self._expect(TokenKind.RPAREN)
        self._expect(TokenKind.FAT_ARROW)
        body: Block | Expression
        if self._at(TokenKind.LBRACE):
            body = self._parse_block()
        else:
            body = self._parse_expression()
        return FunctionDisplay(parameters, body, Range(open_tok.range.start, self._previous_end()))

    def _parse_map_display(self) -> Operation:
        start = self._advance()  # {
        values: list[Node] = []  # key, value, key, value, ...
        while not self._at_any(TokenKind.EOF, TokenKind.RBRACE):
            values.append(self._parse_expression())
            self._expect(TokenKind.COLON)
            values.append(self._parse_expression())
            if not self._consume(TokenKind.COMMA):
                break
        end = self._expect(TokenKind.RBRACE)
        return Operation(MAP_DISPLAY, values, Range.covering(start.range, end.range))

    def _parse_args_body(self, closing: TokenKind) -> list[Node]:
        args: list[Node] = []
        while not self._at_any(TokenKind.EOF, closing):
            args.append(self._parse_expression())
            if not self._consume(TokenKind.COMMA):
                break
        return args

    def _parse_infix(self, lhs: Expression, start: Position) -> Expression:
        tok = self._advance()
        precedence = PRECEDENCE[tok.kind]

        if tok.kind == TokenKind.LPAREN:
            args = self._parse_args_body(TokenKind.RPAREN)
            end = self._expect(TokenKind.RPAREN)
            return Operation(FUNCTION_CALL, [lhs, *args], Range(start, end.range.end))

        if tok.kind == TokenKind.LBRACKET:
            index = self._parse_expression()
            end = self._expect(TokenKind.RBRACKET)
            return Operation(SUBSCRIPT, [lhs, index], Range(start, end.range.end))

        if tok.kind == TokenKind.DOT:
            member = self._parse_identifier()
            return Operation(ATTRIBUTE, [lhs, member], Range(start, member.range.end))

        if tok.kind in _RIGHT_ASSOCIATIVE:
            rhs = self._parse_prec(precedence)
        else:
            rhs = self._parse_prec(precedence + 1)
        return Operation(tok.kind.value, [lhs, rhs], Range(start, self._previous_end()))


def _describe(tok: Token) -> str:
    """Describe a token for an error message."""
    if tok.kind == TokenKind.EOF:
        return "end of input"
    if tok.kind == TokenKind.IDENTIFIER:
        return f"identifier {tok.value!r}"
    if tok.is_error or tok.value is not None:
        return f"{tok.kind.value} {tok.value!r}"
    return repr(tok.kind.value)


def parse(
    source_id: str,
    text: str,
    *,
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> ParseResult:
    """Lex and parse ``text``; never raises for any input.

    Returns the CompilationUnit and every lexical and syntax
    diagnostic, ordered by source position.
    """
    return parse_tokens(source_id, lex(text), max_nesting_depth=max_nesting_depth)


def parse_tokens(
    source_id: str,
    tokens: list[Token],
    *,
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> ParseResult:
    """Parse tokens already produced by ``lex``."""
    parser = Parser(tokens, source_id, max_depth=max_nesting_depth)
    root = parser.parse()
    diagnostics = sorted(
        lexical_diagnostics(tokens, source_id) + parser.diagnostics,
        key=lambda d: d.location.range.start,
    )
    return ParseResult(root, diagnostics)
