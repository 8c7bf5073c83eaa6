"""AST node definitions for gucjava.

Every node carries the Range covering its own delimiters and all of its
children. Literals and blocks are single records tagged by a kind
rather than small class hierarchies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from gucjava.source import Range

# ── Names ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Identifier:
    name: str
    range: Range


@dataclass(frozen=True)
class QualifiedIdentifier:
    parent: GeneralIdentifier
    child: Identifier
    range: Range

    @property
    def name(self) -> str:
        return f"{self.parent.name}.{self.child.name}"


GeneralIdentifier = Union[Identifier, QualifiedIdentifier]


# ── Expressions ──────────────────────────────────────────────────


class LiteralKind(Enum):
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    CHAR = "char"


@dataclass(frozen=True)
class LiteralExpr:
    kind: LiteralKind
    value: None | bool | int | float | str
    range: Range


@dataclass(frozen=True)
class Assignment:
    target: Identifier
    value: Expression
    range: Range


# Opcodes for Operation nodes that are not plain operator spellings.
IF = "IF"
LIST_DISPLAY = "LIST-DISPLAY"
MAP_DISPLAY = "MAP-DISPLAY"
FUNCTION_CALL = "FUNCTION-CALL"
SUBSCRIPT = "SUBSCRIPT"
ATTRIBUTE = "ATTRIBUTE"


@dataclass(frozen=True)
class Operation:
    """An operator application.

    ``opcode`` is the operator spelling for unary (one operand) and
    binary (two operands) operators, or one of the constants above.
    MAP-DISPLAY operands alternate key, value.
    """

    opcode: str
    operands: list[Node]
    range: Range


@dataclass(frozen=True)
class FunctionDisplay:
    parameters: list[Identifier]
    body: Union[Block, Expression]
    range: Range


Expression = Union[LiteralExpr, Identifier, Assignment, Operation, FunctionDisplay]


# ── Statements ───────────────────────────────────────────────────


class BlockKind(Enum):
    BLOCK = "block"
    STATIC = "static"


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    statements: list[Statement]
    range: Range


@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression
    range: Range


Statement = Union[Block, ExpressionStatement]


# ── Declarations ─────────────────────────────────────────────────


class ModifierKind(Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"
    STATIC = "static"
    ABSTRACT = "abstract"
    FINAL = "final"
    STRICTFP = "strictfp"
    TRANSIENT = "transient"
    VOLATILE = "volatile"
    SYNCHRONIZED = "synchronized"
    NATIVE = "native"
    DEFAULT = "default"


@dataclass(frozen=True)
class Modifier:
    kind: ModifierKind
    range: Range


@dataclass(frozen=True)
class ImportDeclaration:
    is_static: bool
    identifier: GeneralIdentifier
    star: bool
    range: Range


@dataclass(frozen=True)
class ClassDeclaration:
    modifiers: list[Modifier]
    name: Identifier
    body_declarations: list[ClassBodyDeclaration]
    range: Range


ClassBodyDeclaration = Union[Block, ClassDeclaration, ExpressionStatement]
TopLevelDeclaration = Union[ClassDeclaration, Block, ExpressionStatement]


@dataclass(frozen=True)
class CompilationUnit:
    """Root of every parse: optional package, imports, then declarations."""

    package: GeneralIdentifier | None
    imports: list[ImportDeclaration]
    declarations: list[TopLevelDeclaration]
    range: Range


Node = Union[
    Identifier, QualifiedIdentifier, LiteralExpr, Assignment, Operation,
    FunctionDisplay, Block, ExpressionStatement, Modifier, ImportDeclaration,
    ClassDeclaration, CompilationUnit,
]
