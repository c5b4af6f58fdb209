"""AST node types for Dali programs.

Every node carries a span for diagnostics. Spans never take part in equality,
so two parses of the same program text compare equal regardless of layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from dali.tokens import Span


class BinaryOp(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    EQUAL_TO = "="
    LESS_THAN = "<"
    GREATER_THAN = ">"
    AND = "&"
    OR = "|"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]


# Low binds loosest: | < & < = < (< >) < (+ -) < (* /)
_PRECEDENCE: dict[BinaryOp, int] = {
    BinaryOp.OR: 10,
    BinaryOp.AND: 20,
    BinaryOp.EQUAL_TO: 30,
    BinaryOp.LESS_THAN: 40,
    BinaryOp.GREATER_THAN: 40,
    BinaryOp.ADD: 50,
    BinaryOp.SUBTRACT: 50,
    BinaryOp.MULTIPLY: 60,
    BinaryOp.DIVIDE: 60,
}


class UnaryOp(Enum):
    POSITIVE = "+"
    NEGATIVE = "-"
    NOT = "!"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Binary:
    """lhs op rhs"""

    lhs: Expression
    op: BinaryOp
    rhs: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Unary:
    """op operand"""

    op: UnaryOp
    operand: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class BooleanLiteral:
    value: bool
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    value: float
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class StringLiteral:
    value: str
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class ColorLiteral:
    """#rrggbb packed into a 24-bit integer."""

    value: int
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class KeywordRef:
    """A reserved word used in expression position, e.g. nil."""

    name: str
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Variable:
    name: str
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Assign:
    """name: value"""

    name: str
    value: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Argument:
    """Labelled call argument: name: value"""

    name: str
    value: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Call:
    callee: Expression
    args: tuple[Argument, ...]
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Get:
    """receiver[index]"""

    receiver: Expression
    index: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Set:
    """receiver[index]: value"""

    receiver: Expression
    index: Expression
    value: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class ListLiteral:
    elements: tuple[Expression, ...]
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class MapEntry:
    key: str
    value: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class MapLiteral:
    entries: tuple[MapEntry, ...]
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class FunctionLiteral:
    """{(params) | body}: yields the value of its last body expression."""

    params: tuple[str, ...]
    body: tuple[Expression, ...]
    span: Span = field(compare=False)


Expression = (
    Binary
    | Unary
    | BooleanLiteral
    | NumberLiteral
    | StringLiteral
    | ColorLiteral
    | KeywordRef
    | Variable
    | Assign
    | Call
    | Get
    | Set
    | ListLiteral
    | MapLiteral
    | FunctionLiteral
)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VarDecl:
    """var name: initializer"""

    name: str
    initializer: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class FuncDecl:
    """func name(params) { body }"""

    name: str
    params: tuple[str, ...]
    body: tuple[Statement, ...]
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class ExpressionStmt:
    expression: Expression
    span: Span = field(compare=False)


@dataclass(frozen=True, slots=True)
class Return:
    value: Expression
    span: Span = field(compare=False)


Statement = VarDecl | FuncDecl | ExpressionStmt | Return

Node = Expression | Statement
