"""Shared test fixtures and helpers."""

from __future__ import annotations

import io

import pytest

from dali.ast import Expression, ExpressionStmt, Statement
from dali.interpreter import Interpreter
from dali.lexer import tokenize
from dali.parser import parse
from dali.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns its statements."""

    def _parse(source: str, filename: str = "test.dali") -> list[Statement]:
        return parse(source, filename)

    return _parse


@pytest.fixture
def parse_expr():
    """Return a helper that parses a single expression statement."""

    def _parse(source: str) -> Expression:
        statements = parse(source, "test.dali")
        assert len(statements) == 1, f"Expected one statement, got {len(statements)}"
        stmt = statements[0]
        assert isinstance(stmt, ExpressionStmt), f"Expected expression, got {stmt}"
        return stmt.expression

    return _parse


@pytest.fixture
def interp():
    """An interpreter writing print() output to an in-memory buffer."""
    return Interpreter(io.StringIO())


@pytest.fixture
def run(interp):
    """Return a helper that runs source and returns (values, printed output)."""

    def _run(source: str) -> tuple[list, str]:
        values = interp.run(source, "test.dali")
        return values, interp.out.getvalue()

    return _run


@pytest.fixture
def value_of(interp):
    """Return a helper that runs source and returns its last expression value."""

    def _value_of(source: str):
        values = interp.run(source, "test.dali")
        assert values, "Expected the program to produce a value"
        return values[-1]

    return _value_of


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[object]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def find_tokens(tokens: list[Token], tt: TokenType) -> list[Token]:
    """Return all tokens of the given type."""
    return [t for t in tokens if t.type == tt]
