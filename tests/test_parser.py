"""Tests for the gucjava parser."""

from __future__ import annotations

from gucjava import parse
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
    ClassDeclaration,
    ExpressionStatement,
    FunctionDisplay,
    Identifier,
    LiteralExpr,
    LiteralKind,
    ModifierKind,
    Operation,
    QualifiedIdentifier,
)
from gucjava.errors import (
    BAD_STRING_LITERAL,
    NESTING_TOO_DEEP,
    SYNTAX_ERROR,
    UNRECOGNIZED_TOKEN,
    Severity,
)
from gucjava.lexer import lex
from gucjava.parser import Parser, parse_tokens
from gucjava.source import Position
from tests.helpers import parse_expr, parse_fails, parse_ok


def shape(node: object) -> object:
    """Reduce an expression to nested tuples for compact comparisons."""
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, LiteralExpr):
        return node.value
    if isinstance(node, Operation):
        return (node.opcode, *(shape(op) for op in node.operands))
    if isinstance(node, Assignment):
        return ("=", node.target.name, shape(node.value))
    return node


class TestParserLiterals:
    def test_int(self):
        e = parse_expr("42")
        assert isinstance(e, LiteralExpr)
        assert e.kind == LiteralKind.INT
        assert e.value == 42

    def test_long(self):
        assert parse_expr("7L").kind == LiteralKind.LONG

    def test_double_and_float(self):
        assert parse_expr("1.5").kind == LiteralKind.DOUBLE
        assert parse_expr("1.5f").kind == LiteralKind.FLOAT

    def test_string_and_char(self):
        s = parse_expr('"hi"')
        assert (s.kind, s.value) == (LiteralKind.STRING, "hi")
        c = parse_expr("'c'")
        assert (c.kind, c.value) == (LiteralKind.CHAR, "c")

    def test_bool(self):
        t = parse_expr("true")
        assert (t.kind, t.value) == (LiteralKind.BOOL, True)
        f = parse_expr("false")
        assert (f.kind, f.value) == (LiteralKind.BOOL, False)

    def test_null(self):
        n = parse_expr("null")
        assert (n.kind, n.value) == (LiteralKind.NULL, None)


class TestParserOperators:
    def test_multiplication_binds_tighter(self):
        assert shape(parse_expr("1 + 2 * 3")) == ("+", 1, ("*", 2, 3))

    def test_left_associative(self):
        assert shape(parse_expr("a - b - c")) == ("-", ("-", "a", "b"), "c")

    def test_power_is_right_associative(self):
        assert shape(parse_expr("a ** b ** c")) == ("**", "a", ("**", "b", "c"))

    def test_unary_minus_below_power(self):
        assert shape(parse_expr("-a ** b")) == ("-", ("**", "a", "b"))

    def test_unary_minus_above_multiplication(self):
        assert shape(parse_expr("-a * b")) == ("*", ("-", "a"), "b")

    def test_not_below_comparison(self):
        assert shape(parse_expr("!a == b")) == ("!", ("==", "a", "b"))

    def test_not_above_and(self):
        assert shape(parse_expr("!a && b")) == ("&&", ("!", "a"), "b")

    def test_or_lowest(self):
        assert shape(parse_expr("a || b && c")) == ("||", "a", ("&&", "b", "c"))

    def test_shift_below_additive(self):
        assert shape(parse_expr("1 << 2 + 3")) == ("<<", 1, ("+", 2, 3))

    def test_bitwise_levels(self):
        assert shape(parse_expr("a & b | c")) == ("&", "a", ("|", "b", "c"))
        assert shape(parse_expr("a ^ b & c")) == ("&", ("^", "a", "b"), "c")

    def test_unary_operators(self):
        assert shape(parse_expr("~x")) == ("~", "x")
        assert shape(parse_expr("+x")) == ("+", "x")

    def test_unary_has_one_operand(self):
        e = parse_expr("-x")
        assert isinstance(e, Operation)
        assert len(e.operands) == 1

    def test_parentheses_return_inner_node(self):
        e = parse_expr("(x)")
        assert isinstance(e, Identifier)

    def test_parenthesized_range_starts_at_paren(self):
        e = parse_expr("(1 + 2) * 3")
        assert shape(e) == ("*", ("+", 1, 2), 3)
        assert e.range.start.offset == 0
        assert e.range.end.offset == 11
        assert e.operands[0].range.start.offset == 1

    def test_binary_range(self):
        e = parse_expr("a + bc")
        assert e.range.start == Position(0, 0, 0)
        assert e.range.end == Position(0, 6, 6)

    def test_range_ends_at_closing_parenthesis(self):
        assert parse_expr("x = (a)").range.end.offset == 7
        assert parse_expr("-(a)").range.end.offset == 4
        assert parse_expr("a + (b)").range.end.offset == 7
        assert parse_expr("x = if a then b else (c)").range.end.offset == 24
        assert parse_expr("() => (a)").range.end.offset == 9

    def test_inner_node_keeps_its_own_range(self):
        e = parse_expr("x = (a)")
        assert e.value.range.start.offset == 5
        assert e.value.range.end.offset == 6


class TestParserPostfix:
    def test_function_call(self):
        assert shape(parse_expr("f(x, 1)")) == (FUNCTION_CALL, "f", "x", 1)

    def test_call_without_arguments(self):
        assert shape(parse_expr("f()")) == (FUNCTION_CALL, "f")

    def test_subscript(self):
        assert shape(parse_expr("a[0]")) == (SUBSCRIPT, "a", 0)

    def test_attribute_chain(self):
        assert shape(parse_expr("a.b.c")) == (ATTRIBUTE, (ATTRIBUTE, "a", "b"), "c")

    def test_method_call(self):
        assert shape(parse_expr("a.b(1)")) == (FUNCTION_CALL, (ATTRIBUTE, "a", "b"), 1)

    def test_postfix_binds_tighter_than_power(self):
        assert shape(parse_expr("a ** f(2)")) == ("**", "a", (FUNCTION_CALL, "f", 2))

    def test_call_range_covers_callee(self):
        e = parse_expr("foo(1)")
        assert e.range.start.offset == 0
        assert e.range.end.offset == 6


class TestParserDisplays:
    def test_list_display(self):
        assert shape(parse_expr("[1, 2, 3]")) == (LIST_DISPLAY, 1, 2, 3)

    def test_empty_list(self):
        assert shape(parse_expr("[]")) == (LIST_DISPLAY,)

    def test_list_trailing_comma(self):
        assert shape(parse_expr("[1, 2,]")) == (LIST_DISPLAY, 1, 2)

    def test_map_display(self):
        e = parse_expr('m = {"a": 1, "b": 2}')
        assert shape(e) == ("=", "m", (MAP_DISPLAY, "a", 1, "b", 2))

    def test_empty_map(self):
        assert shape(parse_expr("m = {}")) == ("=", "m", (MAP_DISPLAY,))

    def test_lambda_with_expression_body(self):
        e = parse_expr("(x, y) => x + y")
        assert isinstance(e, FunctionDisplay)
        assert [p.name for p in e.parameters] == ["x", "y"]
        assert shape(e.body) == ("+", "x", "y")
        assert e.range.start.offset == 0

    def test_lambda_without_parameters(self):
        e = parse_expr("() => 1")
        assert isinstance(e, FunctionDisplay)
        assert e.parameters == []

    def test_lambda_with_block_body(self):
        e = parse_expr("f = (x) => { y = x; }")
        assert isinstance(e, Assignment)
        assert isinstance(e.value, FunctionDisplay)
        assert isinstance(e.value.body, Block)
        assert len(e.value.body.statements) == 1


class TestParserAssignmentAndIf:
    def test_assignment(self):
        e = parse_expr("x = 1 + 2")
        assert isinstance(e, Assignment)
        assert e.target.name == "x"
        assert shape(e.value) == ("+", 1, 2)

    def test_chained_assignment(self):
        assert shape(parse_expr("x = y = 3")) == ("=", "x", ("=", "y", 3))

    def test_if_expression(self):
        assert shape(parse_expr("x = if a then 1 else 2")) == ("=", "x", (IF, "a", 1, 2))

    def test_if_then_statement(self):
        root = parse_ok("if a then b else c;")
        stmt = root.declarations[0]
        assert isinstance(stmt, ExpressionStatement)
        assert shape(stmt.expression) == (IF, "a", "b", "c")
        assert stmt.range.end.offset == 19

    def test_if_block_without_else(self):
        root = parse_ok("if a { b; }")
        stmt = root.declarations[0]
        assert isinstance(stmt, ExpressionStatement)
        op = stmt.expression
        assert op.opcode == IF
        cond, body, other = op.operands
        assert isinstance(body, Block)
        assert isinstance(other, LiteralExpr)
        assert other.kind == LiteralKind.NULL
        assert other.range == body.range
        assert stmt.range == op.range

    def test_if_else_blocks(self):
        root = parse_ok("if a { b; } else { c; }")
        op = root.declarations[0].expression
        assert isinstance(op.operands[2], Block)
        assert op.range.end.offset == 23

    def test_else_if_chain(self):
        root = parse_ok("if a { } else if b { } else { }")
        op = root.declarations[0].expression
        nested = op.operands[2]
        assert isinstance(nested, Operation)
        assert nested.opcode == IF
        assert shape(nested.operands[0]) == "b"
        assert isinstance(nested.operands[2], Block)

    def test_long_else_if_chain(self):
        source = "if a { }" + " else if b { }" * 1200 + " else { c; }"
        root = parse_ok(source)
        assert len(root.declarations) == 1
        op = root.declarations[0].expression
        clauses = 0
        while isinstance(op, Operation):
            assert op.opcode == IF
            assert op.range.end.offset == len(source)
            clauses += 1
            op = op.operands[2]
        assert clauses == 1201
        assert isinstance(op, Block)
        assert len(op.statements) == 1

    def test_else_if_chain_without_final_else(self):
        root = parse_ok("if a { } else if b { x; }")
        nested = root.declarations[0].expression.operands[2]
        body, other = nested.operands[1], nested.operands[2]
        assert other.kind == LiteralKind.NULL
        assert other.range == body.range


class TestParserStatements:
    def test_expression_statement_range_includes_semicolon(self):
        root = parse_ok("x = 1;")
        stmt = root.declarations[0]
        assert stmt.range.start.offset == 0
        assert stmt.range.end.offset == 6

    def test_block(self):
        root = parse_ok("{ a; { b; } }")
        block = root.declarations[0]
        assert isinstance(block, Block)
        assert block.kind == BlockKind.BLOCK
        assert isinstance(block.statements[1], Block)

    def test_empty_statements_skipped(self):
        root = parse_ok(";; x; ;")
        assert len(root.declarations) == 1

    def test_semicolons_inside_blocks(self):
        root = parse_ok("{ ; a;; b; }")
        assert len(root.declarations[0].statements) == 2


class TestParserDeclarations:
    def test_empty_source(self):
        root = parse_ok("")
        assert root.package is None
        assert root.imports == []
        assert root.declarations == []

    def test_root_range_covers_everything(self):
        root = parse_ok("x;\n")
        assert root.range.start == Position(0, 0, 0)
        assert root.range.end == Position(1, 0, 3)

    def test_package(self):
        root = parse_ok("package a.b.c;")
        assert isinstance(root.package, QualifiedIdentifier)
        assert root.package.name == "a.b.c"
        assert root.package.child.name == "c"

    def test_simple_package(self):
        root = parse_ok("package app;")
        assert isinstance(root.package, Identifier)

    def test_imports(self):
        root = parse_ok("import static c.d.E;\nimport f.*;")
        first, second = root.imports
        assert first.is_static
        assert first.identifier.name == "c.d.E"
        assert not first.star
        assert not second.is_static
        assert second.star
        assert second.identifier.name == "f"
        assert second.range.start.line == 1
        assert second.range.end.column == 11

    def test_class(self):
        root = parse_ok("class A { }")
        cls = root.declarations[0]
        assert isinstance(cls, ClassDeclaration)
        assert cls.name.name == "A"
        assert cls.modifiers == []
        assert cls.body_declarations == []
        assert cls.range.end.offset == 11

    def test_class_modifiers(self):
        root = parse_ok("public final class A { }")
        cls = root.declarations[0]
        assert [m.kind for m in cls.modifiers] == [ModifierKind.PUBLIC, ModifierKind.FINAL]
        assert cls.range.start.offset == 0

    def test_class_members(self):
        source = "class A {\n  x = 1;\n  static { y = 2; }\n  private class B { }\n  { z; }\n}"
        cls = parse_ok(source).declarations[0]
        stmt, static_block, nested, block = cls.body_declarations
        assert isinstance(stmt, ExpressionStatement)
        assert isinstance(static_block, Block)
        assert static_block.kind == BlockKind.STATIC
        assert static_block.range.start.line == 2
        assert isinstance(nested, ClassDeclaration)
        assert nested.name.name == "B"
        assert isinstance(block, Block)
        assert block.kind == BlockKind.BLOCK

    def test_full_compilation_unit(self):
        source = (
            "package demo;\n"
            "import java.util.List;\n"
            "class Main {\n"
            "  xs = [1, 2];\n"
            "  total = xs.stream().count();\n"
            "}\n"
        )
        root = parse_ok(source)
        assert root.package.name == "demo"
        assert root.imports[0].identifier.name == "java.util.List"
        assert root.declarations[0].name.name == "Main"


class TestParserRecovery:
    def test_malformed_member_keeps_class(self):
        root, diagnostics = parse("<test>", "class A { x = ; }")
        assert len(diagnostics) >= 1
        cls = root.declarations[0]
        assert isinstance(cls, ClassDeclaration)
        assert cls.name.name == "A"

    def test_diagnostic_location(self):
        _, diagnostics = parse("<test>", "class A { x = ; }")
        d = diagnostics[0]
        assert d.code == SYNTAX_ERROR
        assert d.severity == Severity.ERROR
        assert d.location.source_id == "<test>"
        assert d.location.range.start.column == 14
        assert "expected expression" in d.message

    def test_recovery_inside_class_body(self):
        root, diagnostics = parse("<test>", "class A { x = ; y = 2; }")
        assert len(diagnostics) == 1
        assert len(root.declarations[0].body_declarations) == 1

    def test_recovery_inside_block(self):
        root, diagnostics = parse("<test>", "{ a + ; b; }")
        assert len(diagnostics) == 1
        assert len(root.declarations[0].statements) == 1

    def test_top_level_resumes_after_semicolon(self):
        root, diagnostics = parse("<test>", "x = ;\ny = 1;")
        assert len(diagnostics) == 1
        assert len(root.declarations) == 1
        assert root.declarations[0].expression.target.name == "y"

    def test_top_level_resumes_at_line_break(self):
        root, diagnostics = parse("<test>", "x = = 1\ny = 2;")
        assert len(diagnostics) == 1
        assert shape(root.declarations[0].expression) == ("=", "y", 2)

    def test_package_must_come_first(self):
        diagnostics = parse_fails("x;\npackage a;", SYNTAX_ERROR)
        assert "package declaration must come first" in diagnostics[0].message

    def test_missing_closing_brace(self):
        diagnostics = parse_fails("class A {", SYNTAX_ERROR)
        assert "end of input" in diagnostics[0].message

    def test_missing_semicolon(self):
        diagnostics = parse_fails("x = 1", SYNTAX_ERROR)
        assert "expected ';'" in diagnostics[0].message

    def test_lexical_errors_reported(self):
        _, diagnostics = parse("<test>", "x = #;")
        assert [d.code for d in diagnostics] == [UNRECOGNIZED_TOKEN, SYNTAX_ERROR]

    def test_unterminated_string_reported(self):
        parse_fails('x = "abc', BAD_STRING_LITERAL)

    def test_diagnostics_sorted_by_position(self):
        _, diagnostics = parse("<test>", "a = ;\nb = #;\nc = ;")
        starts = [d.location.range.start for d in diagnostics]
        assert starts == sorted(starts)
        assert len(diagnostics) == 4

    def test_only_unrecognized_bytes(self):
        root, diagnostics = parse("<test>", "$$$ ### `")
        assert root.declarations == []
        assert all(d.code in (UNRECOGNIZED_TOKEN, SYNTAX_ERROR) for d in diagnostics)


class TestParserNesting:
    def test_deep_parentheses(self):
        source = "(" * 1000 + "1" + ")" * 1000 + ";"
        diagnostics = parse_fails(source, NESTING_TOO_DEEP)
        assert len(diagnostics) == 1
        assert diagnostics[0].notes

    def test_deep_blocks(self):
        parse_fails("{" * 500 + "}" * 500, NESTING_TOO_DEEP)

    def test_deep_unary(self):
        parse_fails("~" * 2000 + "1;", NESTING_TOO_DEEP)

    def test_within_limit(self):
        parse_ok("(" * 50 + "1" + ")" * 50 + ";")

    def test_configurable_limit(self):
        _, diagnostics = parse("<test>", "((1));", max_nesting_depth=1)
        assert [d.code for d in diagnostics] == [NESTING_TOO_DEEP]

    def test_recursion_error_is_a_diagnostic(self):
        source = "(" * 5000 + "1" + ")" * 5000 + ";"
        _, diagnostics = parse("<test>", source, max_nesting_depth=10**6)
        assert [d.code for d in diagnostics] == [NESTING_TOO_DEEP]


class TestParserDirect:
    def test_parser_class(self):
        parser = Parser(lex("a = 1;"), "direct")
        root = parser.parse()
        assert parser.diagnostics == []
        assert len(root.declarations) == 1

    def test_parse_tokens_uses_given_tokens(self):
        tokens = lex("x = 1;\n#")
        result = parse_tokens("direct", tokens)
        assert len(result.root.declarations) == 1
        assert UNRECOGNIZED_TOKEN in [d.code for d in result.diagnostics]
        assert result == parse("direct", "x = 1;\n#")

    def test_parse_result_fields(self):
        result = parse("<test>", "x;")
        assert result.root is result[0]
        assert result.diagnostics == []

    def test_idempotent(self):
        source = "class A { x = ; static { y = [1, 2]; } }\nz = (a) => a ** 2;"
        assert parse("<test>", source) == parse("<test>", source)
