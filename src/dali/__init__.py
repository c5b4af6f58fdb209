"""Dali scripting language: lexer, parser, resolver, and tree-walking evaluator."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dali.ast import Node, Statement
    from dali.environment import Environment
    from dali.values import Value

__version__ = "0.1.0"


def lex_and_parse(source: str, name: str = "<input>") -> list[Statement]:
    """Tokenize and parse source text, raising LexErrorGroup or ParseError."""
    from dali.parser import parse

    return parse(source, name)


def evaluate(
    statements: list[Statement],
    environment: Environment | None = None,
    source: str = "",
    name: str = "<input>",
) -> list[Value]:
    """Resolve and run parsed statements.

    *environment* should be a child of ``dali.builtins.make_globals()``; pass
    the same one again to continue the program. *source* is the text the
    statements were parsed from, used to render error locations.
    """
    from dali.builtins import make_globals
    from dali.environment import Environment
    from dali.interpreter import EvalContext
    from dali.interpreter import evaluate as _evaluate
    from dali.resolver import resolve
    from dali.source import SourceBuffer

    if environment is None:
        environment = Environment(make_globals())
    buffer = SourceBuffer(source, name)
    ctx = EvalContext(source=buffer, resolution=resolve(statements, buffer))
    return _evaluate(statements, environment, ctx)


def format_node(node: Node) -> str:
    """Pretty-print an AST node as parseable Dali source."""
    from dali.formatter import format_node as _format_node

    return _format_node(node)
