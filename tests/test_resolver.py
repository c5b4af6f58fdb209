"""Resolver tests: duplicate declarations and scope depths."""

import pytest

from dali.ast import (
    Assign,
    ExpressionStmt,
    FuncDecl,
    FunctionLiteral,
    NumberLiteral,
    Return,
    Unary,
    UnaryOp,
    Variable,
)
from dali.errors import ResolveError
from dali.parser import parse
from dali.resolver import Resolution, resolve
from dali.source import SourceBuffer
from dali.tokens import Span


def _resolve(text: str):
    source = SourceBuffer(text, "test.dali")
    statements = parse(source)
    return statements, resolve(statements, source)


class TestDuplicates:
    def test_top_level_duplicate(self):
        with pytest.raises(ResolveError, match="variable 'x' is already declared in this scope"):
            _resolve("var x: 1\nvar x: 1")

    def test_duplicate_reported_at_second_declaration(self):
        with pytest.raises(ResolveError) as exc_info:
            _resolve("var x: 1\nvar x: 2")
        assert exc_info.value.line == 2

    def test_function_and_variable_clash(self):
        with pytest.raises(ResolveError):
            _resolve("func f() {}\nvar f: 1")

    def test_duplicate_inside_function(self):
        with pytest.raises(ResolveError, match="'y'"):
            _resolve("func f() {\n  var y: 1\n  var y: 2\n}")

    def test_duplicate_parameter(self):
        with pytest.raises(ResolveError, match="'a'"):
            _resolve("func f(a, a) {}")

    def test_local_may_shadow_global(self):
        _resolve("var x: 1\nfunc f() { var x: 2, return x }")

    def test_parameter_may_shadow_function_name(self):
        _resolve("func f(f) { return f }")

    def test_sibling_functions_have_separate_scopes(self):
        _resolve("func f() { var a: 1 }\nfunc g() { var a: 2 }")


class TestNesting:
    def test_deep_tree_reported_as_error(self):
        source = SourceBuffer("!x", "test.dali")
        expr = NumberLiteral(1.0, Span(0, 1))
        for _ in range(5000):
            expr = Unary(UnaryOp.NOT, expr, Span(0, 1))
        with pytest.raises(ResolveError, match="expression nested too deeply") as exc_info:
            resolve([ExpressionStmt(expr, Span(0, 2))], source)
        assert exc_info.value.line == 1


class TestReturn:
    def test_top_level_return_rejected(self):
        with pytest.raises(ResolveError, match="'return' is only allowed inside a function body"):
            _resolve("return 1")

    def test_return_in_function_allowed(self):
        _resolve("func f() { return 1 }")


class TestDepths:
    def test_globals_are_not_annotated(self):
        statements, resolution = _resolve("var x: 1\nx")
        ref = statements[1].expression
        assert resolution.depth_of(ref) is None
        assert len(resolution) == 0

    def test_parameter_is_depth_zero(self):
        statements, resolution = _resolve("func f(a) { return a }")
        ret = statements[0].body[0]
        assert isinstance(ret, Return)
        assert resolution.depth_of(ret.value) == 0

    def test_enclosing_function_local_is_depth_one(self):
        statements, resolution = _resolve(
            "func outer() {\n  var x: 1\n  func inner() { x: x - 1 }\n}"
        )
        inner = statements[0].body[1]
        assert isinstance(inner, FuncDecl)
        assign = inner.body[0].expression
        assert isinstance(assign, Assign)
        assert resolution.depth_of(assign) == 1
        assert resolution.depth_of(assign.value.lhs) == 1

    def test_function_literal_scope(self):
        statements, resolution = _resolve("func f(n) { return {(m) | n + m} }")
        literal = statements[0].body[0].value
        assert isinstance(literal, FunctionLiteral)
        add = literal.body[0]
        assert resolution.depth_of(add.lhs) == 1
        assert resolution.depth_of(add.rhs) == 0

    def test_reference_before_local_declaration_is_dynamic(self):
        statements, resolution = _resolve("func f() {\n  print(v: y)\n  var y: 1\n}")
        call = statements[0].body[0].expression
        assert resolution.depth_of(call.args[0].value) is None

    def test_equal_nodes_resolved_by_identity(self):
        # Both references read "x" but sit at different depths
        statements, resolution = _resolve(
            "func a(x) {\n  func b() { return x }\n  return x\n}"
        )
        outer = statements[0]
        inner_ref = outer.body[0].body[0].value
        outer_ref = outer.body[1].value
        assert inner_ref == outer_ref
        assert resolution.depth_of(inner_ref) == 1
        assert resolution.depth_of(outer_ref) == 0


class TestResolution:
    def test_update_merges_tables(self):
        first = Resolution()
        node = Variable("a", None)
        first.record(node, 2)
        merged = Resolution()
        merged.update(first)
        assert merged.depth_of(node) == 2

    def test_unknown_node(self):
        assert Resolution().depth_of(Variable("a", None)) is None

    def test_expression_statement_is_walked(self):
        statements, resolution = _resolve("func f(a) { a }")
        stmt = statements[0].body[0]
        assert isinstance(stmt, ExpressionStmt)
        assert resolution.depth_of(stmt.expression) == 0
