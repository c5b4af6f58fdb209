"""Render AST nodes back to Dali source, and runtime values for display.

``format_node`` parenthesizes every unary and binary expression and any nested
assignment, so its output re-parses to an equal tree without any knowledge of
operator precedence.
"""

from __future__ import annotations

from decimal import Decimal

from dali.ast import (
    Assign,
    Binary,
    BooleanLiteral,
    Call,
    ColorLiteral,
    ExpressionStmt,
    FuncDecl,
    FunctionLiteral,
    Get,
    KeywordRef,
    ListLiteral,
    MapLiteral,
    Node,
    NumberLiteral,
    Return,
    Set,
    StringLiteral,
    Unary,
    VarDecl,
    Variable,
)
from dali.values import Color, Function, NativeFunction, Value


def format_node(node: Node) -> str:
    """Format an expression or statement as Dali source text."""
    if isinstance(node, VarDecl):
        return f"var {node.name}: {format_node(node.initializer)}"
    if isinstance(node, FuncDecl):
        body = ", ".join(format_node(stmt) for stmt in node.body)
        return f"func {node.name}({', '.join(node.params)}) {{ {body} }}"
    if isinstance(node, ExpressionStmt):
        return format_node(node.expression)
    if isinstance(node, Return):
        return f"return {format_node(node.value)}"

    if isinstance(node, Binary):
        return f"({_operand(node.lhs)} {node.op.value} {_operand(node.rhs)})"
    if isinstance(node, Unary):
        return f"({node.op.value}{_operand(node.operand)})"
    if isinstance(node, BooleanLiteral):
        return "true" if node.value else "false"
    if isinstance(node, NumberLiteral):
        return format_number(node.value)
    if isinstance(node, StringLiteral):
        return f'"{node.value}"'
    if isinstance(node, ColorLiteral):
        return format_color(node.value)
    if isinstance(node, (KeywordRef, Variable)):
        return node.name
    if isinstance(node, Assign):
        return f"{node.name}: {format_node(node.value)}"
    if isinstance(node, Call):
        args = ", ".join(f"{arg.name}: {format_node(arg.value)}" for arg in node.args)
        return f"{_operand(node.callee)}({args})"
    if isinstance(node, Get):
        return f"{_operand(node.receiver)}[{format_node(node.index)}]"
    if isinstance(node, Set):
        return (
            f"{_operand(node.receiver)}[{format_node(node.index)}]: "
            f"{format_node(node.value)}"
        )
    if isinstance(node, ListLiteral):
        return "[" + ", ".join(format_node(e) for e in node.elements) + "]"
    if isinstance(node, MapLiteral):
        entries = ", ".join(f"{e.key}: {format_node(e.value)}" for e in node.entries)
        return "{" + entries + "}"
    if isinstance(node, FunctionLiteral):
        body = ", ".join(format_node(e) for e in node.body)
        return f"{{({', '.join(node.params)}) | {body}}}"

    raise TypeError(f"cannot format {type(node).__name__}")


def _operand(node: Node) -> str:
    # An assignment swallows everything to its right unless parenthesized
    if isinstance(node, (Assign, Set)):
        return f"({format_node(node)})"
    return format_node(node)


def format_number(value: float) -> str:
    """Shortest digits that read back as value, never in exponent notation."""
    if value != value or value in (float("inf"), float("-inf")):
        return str(value)
    if value.is_integer():
        return str(int(value))
    return f"{Decimal(repr(value)):f}"


def format_color(packed: int) -> str:
    return f"#{packed:06x}"


def format_value(value: Value, *, quoted: bool = False) -> str:
    """Display form of a runtime value.

    Top-level strings print bare unless *quoted*; strings nested inside lists
    and maps are always quoted.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return f'"{value}"' if quoted else value
    if isinstance(value, Color):
        return format_color(value.packed)
    if isinstance(value, Function):
        return f"<func {value.name}>"
    if isinstance(value, NativeFunction):
        return f"<native {value.name}>"
    if isinstance(value, list):
        return "[" + ", ".join(format_value(v, quoted=True) for v in value) + "]"
    if isinstance(value, dict):
        entries = ", ".join(f"{k}: {format_value(v, quoted=True)}" for k, v in value.items())
        return "{" + entries + "}"
    raise TypeError(f"cannot format value of type {type(value).__name__}")
