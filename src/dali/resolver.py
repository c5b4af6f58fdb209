"""Static resolution pass: scope depths for locals, duplicate declarations."""

from __future__ import annotations

from dali.ast import (
    Assign,
    Binary,
    Call,
    Expression,
    ExpressionStmt,
    FuncDecl,
    FunctionLiteral,
    Get,
    ListLiteral,
    MapLiteral,
    Return,
    Set,
    Statement,
    Unary,
    VarDecl,
    Variable,
)
from dali.errors import ResolveError
from dali.source import SourceBuffer
from dali.tokens import Span


class Resolution:
    """Side table mapping variable nodes to the scope depth they refer to.

    Keyed by node identity, not equality: two ``x`` references in different
    functions compare equal but may resolve to different depths. The table
    holds a reference to each node so identities stay unique for its lifetime.
    """

    def __init__(self) -> None:
        self._depths: dict[int, tuple[Variable | Assign, int]] = {}

    def __len__(self) -> int:
        return len(self._depths)

    def record(self, node: Variable | Assign, depth: int) -> None:
        self._depths[id(node)] = (node, depth)

    def depth_of(self, node: Variable | Assign) -> int | None:
        """Return the recorded depth, or None for a global (dynamic) reference."""
        entry = self._depths.get(id(node))
        if entry is None or entry[0] is not node:
            return None
        return entry[1]

    def update(self, other: Resolution) -> None:
        self._depths.update(other._depths)


class Resolver:
    """Walk statements with a stack of lexical scopes.

    One scope is pushed per function body. Names declared at the top level of
    the unit are checked for duplicates but never annotated: they are looked
    up in the global environment at run time.
    """

    def __init__(self, source: SourceBuffer) -> None:
        self._source = source
        self._scopes: list[set[str]] = []
        self._top_level: set[str] = set()
        self._function_depth = 0
        self._resolution = Resolution()

    def resolve(self, statements: list[Statement]) -> Resolution:
        for stmt in statements:
            try:
                self._resolve_statement(stmt)
            except RecursionError:
                raise ResolveError(
                    "expression nested too deeply", stmt.span, self._source
                ) from None
        return self._resolution

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def _declare(self, name: str, span: Span) -> None:
        scope = self._scopes[-1] if self._scopes else self._top_level
        if name in scope:
            raise ResolveError(
                f"variable '{name}' is already declared in this scope", span, self._source
            )
        scope.add(name)

    def _resolve_local(self, node: Variable | Assign, name: str) -> None:
        for depth, scope in enumerate(reversed(self._scopes)):
            if name in scope:
                self._resolution.record(node, depth)
                return
        # Not found: global, resolved dynamically at run time

    def _resolve_function(
        self,
        params: tuple[str, ...],
        body: tuple[Statement, ...] | tuple[Expression, ...],
        span: Span,
    ) -> None:
        self._scopes.append(set())
        self._function_depth += 1
        try:
            for param in params:
                self._declare(param, span)
            for item in body:
                if isinstance(item, (VarDecl, FuncDecl, ExpressionStmt, Return)):
                    self._resolve_statement(item)
                else:
                    self._resolve_expression(item)
        finally:
            self._function_depth -= 1
            self._scopes.pop()

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _resolve_statement(self, stmt: Statement) -> None:
        if isinstance(stmt, VarDecl):
            self._resolve_expression(stmt.initializer)
            self._declare(stmt.name, stmt.span)
        elif isinstance(stmt, FuncDecl):
            # Declared before the body so the function can call itself
            self._declare(stmt.name, stmt.span)
            self._resolve_function(stmt.params, stmt.body, stmt.span)
        elif isinstance(stmt, ExpressionStmt):
            self._resolve_expression(stmt.expression)
        elif isinstance(stmt, Return):
            if self._function_depth == 0:
                raise ResolveError(
                    "'return' is only allowed inside a function body", stmt.span, self._source
                )
            self._resolve_expression(stmt.value)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _resolve_expression(self, expr: Expression) -> None:
        if isinstance(expr, Variable):
            self._resolve_local(expr, expr.name)
        elif isinstance(expr, Assign):
            self._resolve_expression(expr.value)
            self._resolve_local(expr, expr.name)
        elif isinstance(expr, Binary):
            self._resolve_expression(expr.lhs)
            self._resolve_expression(expr.rhs)
        elif isinstance(expr, Unary):
            self._resolve_expression(expr.operand)
        elif isinstance(expr, Call):
            self._resolve_expression(expr.callee)
            for arg in expr.args:
                self._resolve_expression(arg.value)
        elif isinstance(expr, Get):
            self._resolve_expression(expr.receiver)
            self._resolve_expression(expr.index)
        elif isinstance(expr, Set):
            self._resolve_expression(expr.receiver)
            self._resolve_expression(expr.index)
            self._resolve_expression(expr.value)
        elif isinstance(expr, ListLiteral):
            for element in expr.elements:
                self._resolve_expression(element)
        elif isinstance(expr, MapLiteral):
            for entry in expr.entries:
                self._resolve_expression(entry.value)
        elif isinstance(expr, FunctionLiteral):
            self._resolve_function(expr.params, expr.body, expr.span)


def resolve(statements: list[Statement], source: SourceBuffer) -> Resolution:
    """Convenience function: resolve a parsed unit and return its side table."""
    return Resolver(source).resolve(statements)
