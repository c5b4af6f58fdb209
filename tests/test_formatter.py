"""Formatter tests: re-parseable AST output and value display."""

import pytest

from dali import format_node, lex_and_parse
from dali.formatter import format_number, format_value
from dali.values import Color


def _expr(source: str):
    return lex_and_parse(source)[0].expression


class TestRoundTrip:
    @pytest.mark.parametrize(
        "source",
        [
            "1 + 2 * 3",
            "1 & 2 | 3",
            "(1 - 2) - (3 - 4)",
            "a / b / c",
            "-x * !y",
            "--1",
            '"text" + name',
            "#a0b1c2 = color",
            "true | false & x < 3 = y > 2",
            "0.1 + 123.456",
            "(x: 1) + 2",
            "(x: [5])[0]",
            "-(l[0]: 2)",
            "(f: g)(a: 1)",
        ],
    )
    def test_reparse_gives_equal_tree(self, source):
        original = _expr(source)
        assert _expr(format_node(original)) == original

    def test_parenthesizes_every_operator(self):
        assert format_node(_expr("1 + 2 * 3")) == "(1 + (2 * 3))"

    def test_unary(self):
        assert format_node(_expr("-a")) == "(-a)"

    def test_nested_assignment_parenthesized(self):
        assert format_node(_expr("(x: 1) + 2")) == "((x: 1) + 2)"


class TestOtherNodes:
    @pytest.mark.parametrize(
        "source, expected",
        [
            ("f(a: 1, b: x)", "f(a: 1, b: x)"),
            ("l[0]", "l[0]"),
            ("l[0]: 1", "l[0]: 1"),
            ("x: 1", "x: 1"),
            ("[1, 2]", "[1, 2]"),
            ("{}", "{}"),
            ('{k: "v"}', '{k: "v"}'),
            ("{(a) | a * 2}", "{(a) | (a * 2)}"),
            ("nil", "nil"),
        ],
    )
    def test_expressions(self, source, expected):
        assert format_node(_expr(source)) == expected

    def test_statements_reparse(self):
        source = "var x: 1\nfunc f(a) {\n  var y: a\n  return y + x\n}\nf(a: 2)"
        statements = lex_and_parse(source)
        text = "\n".join(format_node(stmt) for stmt in statements)
        assert lex_and_parse(text) == statements

    def test_func_decl(self):
        (stmt,) = lex_and_parse("func f(a) { return a }")
        assert format_node(stmt) == "func f(a) { return a }"


class TestNumbers:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (1.0, "1"),
            (0.0, "0"),
            (1.5, "1.5"),
            (0.1, "0.1"),
            (1e-05, "0.00001"),
            (1e22, "10000000000000000000000"),
        ],
    )
    def test_plain_digits(self, value, expected):
        assert format_number(value) == expected

    def test_small_number_reparses(self):
        text = format_number(1e-05)
        assert _expr(text).value == 1e-05


class TestValues:
    def test_booleans(self):
        assert format_value(True) == "true"
        assert format_value(False) == "false"

    def test_strings_bare_or_quoted(self):
        assert format_value("hi") == "hi"
        assert format_value("hi", quoted=True) == '"hi"'

    def test_color(self):
        assert format_value(Color(0x0000FF)) == "#0000ff"

    def test_nested_containers(self):
        assert format_value([1.0, "a", {"k": True}]) == '[1, "a", {k: true}]'

    def test_negative_number(self):
        assert format_value(-2.0) == "-2"
