"""Tree-walking evaluator with lexical scoping and closures."""

from __future__ import annotations

import math
import operator
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO

from dali.ast import (
    Assign,
    Binary,
    BinaryOp,
    BooleanLiteral,
    Call,
    ColorLiteral,
    Expression,
    ExpressionStmt,
    FuncDecl,
    FunctionLiteral,
    Get,
    KeywordRef,
    ListLiteral,
    MapLiteral,
    NumberLiteral,
    Return,
    Set,
    Statement,
    StringLiteral,
    Unary,
    UnaryOp,
    VarDecl,
    Variable,
)
from dali.builtins import make_globals
from dali.environment import Environment, RedefinedVariable, UndefinedVariable
from dali.errors import EvalError
from dali.lexer import Lexer
from dali.parser import Parser
from dali.resolver import Resolution, Resolver
from dali.source import SourceBuffer
from dali.tokens import Span
from dali.values import Color, Function, NativeFunction, Value, kind_name

DEFAULT_MAX_CALL_DEPTH = 64


@dataclass
class EvalContext:
    """State carried through evaluation."""

    source: SourceBuffer
    resolution: Resolution = field(default_factory=Resolution)
    out: TextIO = field(default_factory=lambda: sys.stdout)
    call_stack: list[str] = field(default_factory=list)
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH

    def error(self, message: str, span: Span) -> EvalError:
        return EvalError(message, span, self.source, call_stack=list(self.call_stack))


@dataclass(frozen=True, slots=True)
class Returning:
    """A ``return`` unwinding to the nearest call boundary."""

    value: Value


def evaluate(
    statements: list[Statement],
    environment: Environment,
    ctx: EvalContext,
) -> list[Value]:
    """Execute top-level statements in order.

    Returns the values of expression statements that produced one, in order.
    Declarations accumulate in *environment*, so calling this repeatedly with
    the same environment continues one program.
    """
    results: list[Value] = []
    for stmt in statements:
        try:
            if isinstance(stmt, ExpressionStmt):
                value = _eval(stmt.expression, environment, ctx)
                if value is not None:
                    results.append(value)
                continue
            if _execute(stmt, environment, ctx) is not None:
                raise ctx.error("'return' is only allowed inside a function body", stmt.span)
        except RecursionError:
            raise ctx.error(
                "call depth limit exceeded (Python stack exhausted)", stmt.span
            ) from None
    return results


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def _execute(stmt: Statement, env: Environment, ctx: EvalContext) -> Returning | None:
    if isinstance(stmt, ExpressionStmt):
        _eval(stmt.expression, env, ctx)
        return None
    if isinstance(stmt, VarDecl):
        _define(env, stmt.name, _value(stmt.initializer, env, ctx), stmt.span, ctx)
        return None
    if isinstance(stmt, FuncDecl):
        fn = Function(stmt.name, stmt.params, stmt.body, env, ctx.source)
        _define(env, stmt.name, fn, stmt.span, ctx)
        return None
    if isinstance(stmt, Return):
        return Returning(_value(stmt.value, env, ctx))
    raise TypeError(f"unknown statement {type(stmt).__name__}")


def _execute_block(
    statements: tuple[Statement, ...], env: Environment, ctx: EvalContext
) -> Returning | None:
    for stmt in statements:
        signal = _execute(stmt, env, ctx)
        if signal is not None:
            return signal
    return None


def _define(env: Environment, name: str, value: Value, span: Span, ctx: EvalContext) -> None:
    try:
        env.define(name, value)
    except RedefinedVariable:
        raise ctx.error(
            f"variable '{name}' has already been defined in this scope", span
        ) from None


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def _value(expr: Expression, env: Environment, ctx: EvalContext) -> Value:
    """Evaluate expr where a value is required."""
    value = _eval(expr, env, ctx)
    if value is None:
        assert isinstance(expr, Call)
        raise ctx.error(
            f"missing return: {_callee_name(expr)} produced no value", expr.span
        )
    return value


def _eval(expr: Expression, env: Environment, ctx: EvalContext) -> Value | None:
    """Evaluate expr. Only a call can produce no value (None)."""
    if isinstance(expr, BooleanLiteral):
        return expr.value
    if isinstance(expr, NumberLiteral):
        return expr.value
    if isinstance(expr, StringLiteral):
        return expr.value
    if isinstance(expr, ColorLiteral):
        return Color(expr.value)
    if isinstance(expr, KeywordRef):
        raise ctx.error(f"reserved keyword '{expr.name}' cannot be used as a value", expr.span)
    if isinstance(expr, Variable):
        return _lookup(expr, env, ctx)
    if isinstance(expr, Assign):
        value = _value(expr.value, env, ctx)
        _assign(expr, value, env, ctx)
        return value
    if isinstance(expr, Binary):
        return _eval_binary(expr, env, ctx)
    if isinstance(expr, Unary):
        return _eval_unary(expr, env, ctx)
    if isinstance(expr, Call):
        return _eval_call(expr, env, ctx)
    if isinstance(expr, Get):
        return _eval_get(expr, env, ctx)
    if isinstance(expr, Set):
        return _eval_set(expr, env, ctx)
    if isinstance(expr, ListLiteral):
        return [_value(element, env, ctx) for element in expr.elements]
    if isinstance(expr, MapLiteral):
        mapping: dict[str, Value] = {}
        for entry in expr.entries:
            mapping[entry.key] = _value(entry.value, env, ctx)
        return mapping
    if isinstance(expr, FunctionLiteral):
        return Function("<literal>", expr.params, expr.body, env, ctx.source, implicit_result=True)
    raise TypeError(f"unknown expression {type(expr).__name__}")


def _lookup(expr: Variable, env: Environment, ctx: EvalContext) -> Value:
    depth = ctx.resolution.depth_of(expr)
    try:
        if depth is not None:
            return env.get_at(depth, expr.name)
        return env.get(expr.name)
    except UndefinedVariable:
        raise ctx.error(f"undefined variable '{expr.name}'", expr.span) from None


def _assign(expr: Assign, value: Value, env: Environment, ctx: EvalContext) -> None:
    depth = ctx.resolution.depth_of(expr)
    try:
        if depth is not None:
            env.set_at(depth, expr.name, value)
        else:
            env.set(expr.name, value)
    except UndefinedVariable:
        raise ctx.error(f"undefined variable '{expr.name}'", expr.span) from None


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def _divide(lhs: float, rhs: float) -> float:
    if rhs == 0.0:
        if lhs == 0.0 or math.isnan(lhs):
            return math.nan
        return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)
    return lhs / rhs


# (operator, operand type) -> implementation; both operands share the type
_BINARY_IMPLS: dict[tuple[BinaryOp, type], Callable[[Value, Value], Value]] = {
    (BinaryOp.ADD, float): operator.add,
    (BinaryOp.ADD, str): operator.add,
    (BinaryOp.SUBTRACT, float): operator.sub,
    (BinaryOp.MULTIPLY, float): operator.mul,
    (BinaryOp.DIVIDE, float): _divide,
    (BinaryOp.EQUAL_TO, bool): operator.eq,
    (BinaryOp.EQUAL_TO, Color): operator.eq,
    (BinaryOp.EQUAL_TO, float): operator.eq,
    (BinaryOp.EQUAL_TO, str): operator.eq,
    (BinaryOp.LESS_THAN, float): operator.lt,
    (BinaryOp.GREATER_THAN, float): operator.gt,
    (BinaryOp.AND, bool): operator.and_,
    (BinaryOp.OR, bool): operator.or_,
}

_UNARY_IMPLS: dict[tuple[UnaryOp, type], Callable[[Value], Value]] = {
    (UnaryOp.POSITIVE, float): operator.pos,
    (UnaryOp.NEGATIVE, float): operator.neg,
    (UnaryOp.NOT, bool): operator.not_,
}


def _eval_binary(expr: Binary, env: Environment, ctx: EvalContext) -> Value:
    lhs = _value(expr.lhs, env, ctx)
    rhs = _value(expr.rhs, env, ctx)
    impl = None
    if type(lhs) is type(rhs):
        impl = _BINARY_IMPLS.get((expr.op, type(lhs)))
    if impl is None:
        raise ctx.error(
            f"undefined expression: {kind_name(lhs)} {expr.op.value} {kind_name(rhs)}",
            expr.span,
        )
    return impl(lhs, rhs)


def _eval_unary(expr: Unary, env: Environment, ctx: EvalContext) -> Value:
    operand = _value(expr.operand, env, ctx)
    impl = _UNARY_IMPLS.get((expr.op, type(operand)))
    if impl is None:
        raise ctx.error(
            f"undefined expression: {expr.op.value}{kind_name(operand)}", expr.span
        )
    return impl(operand)


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------


def _callee_name(expr: Call) -> str:
    if isinstance(expr.callee, Variable):
        return f"'{expr.callee.name}'"
    return "call"


def _eval_call(expr: Call, env: Environment, ctx: EvalContext) -> Value | None:
    callee = _value(expr.callee, env, ctx)
    if not isinstance(callee, (Function, NativeFunction)):
        raise ctx.error(f"{kind_name(callee)} is not callable", expr.callee.span)

    args = [_value(arg.value, env, ctx) for arg in expr.args]

    if callee.arity is not None and len(args) != callee.arity:
        raise ctx.error(
            f"function '{callee.name}' expects {callee.arity} "
            f"argument{'s' if callee.arity != 1 else ''}, got {len(args)}",
            expr.span,
        )

    if isinstance(callee, NativeFunction):
        return callee.impl(ctx, args)

    for arg, param in zip(expr.args, callee.params):
        if arg.name != param:
            raise ctx.error(
                f"unexpected argument label '{arg.name}', "
                f"function '{callee.name}' expects '{param}' here",
                arg.span,
            )

    if len(ctx.call_stack) >= ctx.max_call_depth:
        raise ctx.error(f"call depth limit ({ctx.max_call_depth}) exceeded", expr.span)

    return _call_function(callee, args, expr.span, ctx)


def _call_function(
    fn: Function, args: list[Value], span: Span, ctx: EvalContext
) -> Value | None:
    frame = fn.closure.child()
    for param, arg in zip(fn.params, args):
        _define(frame, param, arg, span, ctx)

    # Errors inside the body point at the function's own source
    caller_source = ctx.source
    ctx.source = fn.source
    ctx.call_stack.append(fn.name)
    try:
        if fn.implicit_result:
            result: Value | None = None
            for expr in fn.body:
                result = _eval(expr, frame, ctx)
            return result
        signal = _execute_block(fn.body, frame, ctx)
        return signal.value if signal is not None else None
    finally:
        ctx.call_stack.pop()
        ctx.source = caller_source


# ---------------------------------------------------------------------------
# Lists and maps
# ---------------------------------------------------------------------------


def _list_index(items: list, index: Value, span: Span, ctx: EvalContext) -> int:
    if not isinstance(index, float):
        raise ctx.error(f"list index must be a Number, not {kind_name(index)}", span)
    if not index.is_integer():
        raise ctx.error(f"list index must be a whole number, got {index!r}", span)
    position = int(index)
    if not 0 <= position < len(items):
        raise ctx.error(
            f"index {position} out of range for list of length {len(items)}", span
        )
    return position


def _check_key(index: Value, span: Span, ctx: EvalContext) -> str:
    if not isinstance(index, str):
        raise ctx.error(f"map key must be a String, not {kind_name(index)}", span)
    return index


def _eval_get(expr: Get, env: Environment, ctx: EvalContext) -> Value:
    receiver = _value(expr.receiver, env, ctx)
    index = _value(expr.index, env, ctx)
    if isinstance(receiver, list):
        return receiver[_list_index(receiver, index, expr.index.span, ctx)]
    if isinstance(receiver, dict):
        key = _check_key(index, expr.index.span, ctx)
        if key not in receiver:
            raise ctx.error(f"missing key \"{key}\"", expr.index.span)
        return receiver[key]
    raise ctx.error(f"{kind_name(receiver)} cannot be indexed", expr.receiver.span)


def _eval_set(expr: Set, env: Environment, ctx: EvalContext) -> Value:
    receiver = _value(expr.receiver, env, ctx)
    index = _value(expr.index, env, ctx)
    value = _value(expr.value, env, ctx)
    if isinstance(receiver, list):
        receiver[_list_index(receiver, index, expr.index.span, ctx)] = value
        return value
    if isinstance(receiver, dict):
        receiver[_check_key(index, expr.index.span, ctx)] = value
        return value
    raise ctx.error(f"{kind_name(receiver)} cannot be indexed", expr.receiver.span)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class Interpreter:
    """A persistent program: globals, resolution table, and output stream.

    Each call to :meth:`run` compiles and evaluates one unit of source (a
    script or a REPL submission). Declarations committed by earlier units stay
    visible to later ones, including after a unit fails part way.
    """

    def __init__(
        self,
        out: TextIO | None = None,
        *,
        max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
        resolve: bool = True,
    ) -> None:
        self.out = out if out is not None else sys.stdout
        self.max_call_depth = max_call_depth
        self.resolve = resolve
        self.globals = make_globals()
        self.environment = Environment(self.globals)
        self.resolution = Resolution()

    def compile(self, text: str, name: str = "<input>") -> tuple[list[Statement], SourceBuffer]:
        """Lex, parse and (optionally) resolve one unit without running it."""
        source = SourceBuffer(text, name)
        tokens = Lexer(source).tokenize()
        statements = Parser(tokens, source).parse()
        if self.resolve:
            self.resolution.update(Resolver(source).resolve(statements))
        return statements, source

    def run(self, text: str, name: str = "<input>") -> list[Value]:
        statements, source = self.compile(text, name)
        return self.execute(statements, source)

    def execute(self, statements: list[Statement], source: SourceBuffer) -> list[Value]:
        ctx = EvalContext(
            source=source,
            resolution=self.resolution,
            out=self.out,
            max_call_depth=self.max_call_depth,
        )
        return evaluate(statements, self.environment, ctx)
