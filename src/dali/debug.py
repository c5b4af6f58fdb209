"""--tokens / --ast dumps to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from dali.ast import (
    Assign,
    Binary,
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
    VarDecl,
    Variable,
)
from dali.formatter import format_color, format_number
from dali.source import SourceBuffer
from dali.tokens import Token


def dump_tokens(
    tokens: list[Token], source: SourceBuffer, *, file: TextIO = sys.stderr
) -> None:
    """Print one line per token: location, type, and raw text."""
    for tok in tokens:
        loc = source.location(tok.span)
        f_loc = f"{loc.line}:{loc.first_column}"
        file.write(f"{f_loc:<8}{tok.type.name:<12}{tok.raw!r}\n")


def dump_ast(statements: list[Statement], *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable AST tree to *file*."""
    file.write("Program\n")
    for stmt in statements:
        _dump_statement(stmt, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_statement(stmt: Statement, depth: int, f: TextIO) -> None:
    if isinstance(stmt, VarDecl):
        f.write(f"{_indent(depth)}VarDecl {stmt.name}\n")
        _dump_expr(stmt.initializer, depth + 1, f)
    elif isinstance(stmt, FuncDecl):
        f.write(f"{_indent(depth)}FuncDecl {stmt.name}({', '.join(stmt.params)})\n")
        for child in stmt.body:
            _dump_statement(child, depth + 1, f)
    elif isinstance(stmt, Return):
        f.write(f"{_indent(depth)}Return\n")
        _dump_expr(stmt.value, depth + 1, f)
    elif isinstance(stmt, ExpressionStmt):
        _dump_expr(stmt.expression, depth, f)


def _dump_expr(expr: Expression, depth: int, f: TextIO) -> None:
    pad = _indent(depth)
    if isinstance(expr, BooleanLiteral):
        f.write(f"{pad}Boolean({'true' if expr.value else 'false'})\n")
    elif isinstance(expr, NumberLiteral):
        f.write(f"{pad}Number({format_number(expr.value)})\n")
    elif isinstance(expr, StringLiteral):
        f.write(f"{pad}String({expr.value!r})\n")
    elif isinstance(expr, ColorLiteral):
        f.write(f"{pad}Color({format_color(expr.value)})\n")
    elif isinstance(expr, KeywordRef):
        f.write(f"{pad}Keyword({expr.name})\n")
    elif isinstance(expr, Variable):
        f.write(f"{pad}Variable({expr.name})\n")
    elif isinstance(expr, Assign):
        f.write(f"{pad}Assign {expr.name}\n")
        _dump_expr(expr.value, depth + 1, f)
    elif isinstance(expr, Binary):
        f.write(f"{pad}Binary {expr.op.value}\n")
        _dump_expr(expr.lhs, depth + 1, f)
        _dump_expr(expr.rhs, depth + 1, f)
    elif isinstance(expr, Unary):
        f.write(f"{pad}Unary {expr.op.value}\n")
        _dump_expr(expr.operand, depth + 1, f)
    elif isinstance(expr, Call):
        f.write(f"{pad}Call\n")
        _dump_expr(expr.callee, depth + 1, f)
        for arg in expr.args:
            f.write(f"{_indent(depth + 1)}Arg {arg.name}\n")
            _dump_expr(arg.value, depth + 2, f)
    elif isinstance(expr, Get):
        f.write(f"{pad}Get\n")
        _dump_expr(expr.receiver, depth + 1, f)
        _dump_expr(expr.index, depth + 1, f)
    elif isinstance(expr, Set):
        f.write(f"{pad}Set\n")
        _dump_expr(expr.receiver, depth + 1, f)
        _dump_expr(expr.index, depth + 1, f)
        _dump_expr(expr.value, depth + 1, f)
    elif isinstance(expr, ListLiteral):
        f.write(f"{pad}List\n")
        for element in expr.elements:
            _dump_expr(element, depth + 1, f)
    elif isinstance(expr, MapLiteral):
        f.write(f"{pad}Map\n")
        for entry in expr.entries:
            f.write(f"{_indent(depth + 1)}Entry {entry.key}\n")
            _dump_expr(entry.value, depth + 2, f)
    elif isinstance(expr, FunctionLiteral):
        f.write(f"{pad}FunctionLiteral({', '.join(expr.params)})\n")
        for child in expr.body:
            _dump_expr(child, depth + 1, f)
