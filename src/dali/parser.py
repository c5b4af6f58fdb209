"""Dali parser: converts a token stream into an AST."""

from __future__ import annotations

from dali.ast import (
    Argument,
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
    MapEntry,
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
from dali.errors import ParseError
from dali.lexer import Lexer
from dali.source import SourceBuffer
from dali.tokens import DESCRIPTIONS, Span, Token, TokenType, describe


class Parser:
    """Recursive descent parser with precedence climbing for binary operators.

    Parsing stops at the first error.
    """

    def __init__(self, tokens: list[Token], source: SourceBuffer) -> None:
        self._tokens = tokens
        self._source = source
        self._pos = 0

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _at_eof(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, tt: TokenType, what: str | None = None) -> Token:
        tok = self._peek()
        if tok.type != tt:
            raise self._unexpected(what or DESCRIPTIONS[tt])
        return self._advance()

    def _skip_eols(self) -> None:
        while self._at(TokenType.EOL):
            self._advance()

    def _prev_span(self) -> Span:
        """Span of the previously consumed token."""
        if self._pos > 0:
            return self._tokens[self._pos - 1].span
        return self._tokens[0].span

    def _span_from(self, start: Span) -> Span:
        return start.to(self._prev_span())

    # ------------------------------------------------------------------
    # Program / statements
    # ------------------------------------------------------------------

    def parse(self) -> list[Statement]:
        try:
            return self._parse_program()
        except RecursionError:
            raise self._error("expression nested too deeply") from None

    def _parse_program(self) -> list[Statement]:
        statements: list[Statement] = []
        self._skip_separators()
        while not self._at_eof():
            statements.append(self._parse_statement())
            if not self._at(TokenType.EOL, TokenType.COMMA, TokenType.EOF):
                raise self._unexpected("end of line")
            self._skip_separators()
        return statements

    def _parse_statement(self) -> Statement:
        if self._at(TokenType.VAR):
            return self._parse_var_decl()
        if self._at(TokenType.FUNC):
            return self._parse_func_decl()
        if self._at(TokenType.RETURN):
            start = self._advance().span
            value = self._parse_expression()
            return Return(value, self._span_from(start))
        expr = self._parse_expression()
        return ExpressionStmt(expr, expr.span)

    def _parse_var_decl(self) -> VarDecl:
        start = self._advance().span  # consume 'var'
        name_tok = self._expect(TokenType.IDENTIFIER, "variable name after 'var'")
        self._expect(TokenType.COLON)
        initializer = self._parse_expression()
        return VarDecl(name_tok.value, initializer, self._span_from(start))

    def _parse_func_decl(self) -> FuncDecl:
        start = self._advance().span  # consume 'func'
        name_tok = self._expect(TokenType.IDENTIFIER, "function name after 'func'")
        self._expect(TokenType.LPAREN)
        params = self._parse_params()
        self._expect(TokenType.LBRACE)
        body = self._parse_block()
        return FuncDecl(name_tok.value, params, body, self._span_from(start))

    def _parse_block(self) -> tuple[Statement, ...]:
        """Statements separated by newlines or commas, up to and including '}'."""
        statements: list[Statement] = []
        self._skip_separators()
        while not self._at(TokenType.RBRACE):
            if self._at_eof():
                raise self._unexpected("'}'")
            statements.append(self._parse_statement())
            if self._at(TokenType.RBRACE):
                break
            if not self._at(TokenType.EOL, TokenType.COMMA):
                raise self._unexpected("end of line or '}'")
            self._skip_separators()
        self._advance()  # consume '}'
        return tuple(statements)

    def _skip_separators(self) -> None:
        while self._at(TokenType.EOL, TokenType.COMMA):
            self._advance()

    def _parse_params(self) -> tuple[str, ...]:
        """Comma-separated parameter names after '(', up to and including ')'."""
        params: list[str] = []
        self._skip_eols()
        if self._at(TokenType.RPAREN):
            self._advance()
            return ()
        while True:
            tok = self._peek()
            if tok.type != TokenType.IDENTIFIER:
                raise self._error(f"malformed parameter name {describe(tok)}", tok.span)
            params.append(self._advance().value)
            if not self._parse_separator(TokenType.RPAREN):
                break
        self._expect(TokenType.RPAREN)
        return tuple(params)

    def _parse_separator(self, closing: TokenType) -> bool:
        """Consume a ',' between list elements.

        Returns False when no comma follows (the list is over). A comma
        directly followed by the closing token is an error.
        """
        self._skip_eols()
        if not self._at(TokenType.COMMA):
            return False
        comma = self._advance()
        self._skip_eols()
        if self._at(closing):
            raise self._error(
                f"unexpected trailing ',' before {DESCRIPTIONS[closing]}", comma.span
            )
        return True

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self) -> Expression:
        lhs = self._parse_unary()
        return self._parse_binary(lhs, 0)

    def _parse_binary(self, lhs: Expression, min_precedence: int) -> Expression:
        while True:
            op = _BINARY_OPS.get(self._peek().type)
            if op is None or op.precedence < min_precedence:
                return lhs
            self._advance()
            rhs = self._parse_unary()
            following = _BINARY_OPS.get(self._peek().type)
            if following is not None and following.precedence > op.precedence:
                rhs = self._parse_binary(rhs, op.precedence + 1)
            lhs = Binary(lhs, op, rhs, lhs.span.to(rhs.span))

    def _parse_unary(self) -> Expression:
        op = _UNARY_OPS.get(self._peek().type)
        if op is not None:
            start = self._advance().span
            operand = self._parse_unary()
            return Unary(op, operand, start.to(operand.span))
        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        tok = self._peek()
        if tok.type == TokenType.IDENTIFIER and self._peek(1).type == TokenType.COLON:
            self._advance()
            self._advance()  # consume ':'
            value = self._parse_expression()
            return Assign(tok.value, value, tok.span.to(value.span))

        expr = self._parse_primary()

        while True:
            if self._at(TokenType.LPAREN):
                self._advance()
                args = self._parse_args()
                expr = Call(expr, args, self._span_from(expr.span))
            elif self._at(TokenType.LBRACKET):
                self._advance()
                self._skip_eols()
                index = self._parse_expression()
                self._skip_eols()
                self._expect(TokenType.RBRACKET)
                if self._at(TokenType.COLON):
                    self._advance()
                    value = self._parse_expression()
                    return Set(expr, index, value, expr.span.to(value.span))
                expr = Get(expr, index, self._span_from(expr.span))
            else:
                return expr

    def _parse_args(self) -> tuple[Argument, ...]:
        """Labelled arguments after '(', up to and including ')'."""
        args: list[Argument] = []
        self._skip_eols()
        if self._at(TokenType.RPAREN):
            self._advance()
            return ()
        while True:
            tok = self._peek()
            if tok.type != TokenType.IDENTIFIER or self._peek(1).type != TokenType.COLON:
                raise self._error(
                    f"malformed argument name {describe(tok)}, expected 'name: value'",
                    tok.span,
                )
            self._advance()
            self._advance()  # consume ':'
            value = self._parse_expression()
            args.append(Argument(tok.value, value, tok.span.to(value.span)))
            if not self._parse_separator(TokenType.RPAREN):
                break
        self._expect(TokenType.RPAREN)
        return tuple(args)

    def _parse_primary(self) -> Expression:
        tok = self._peek()

        if tok.type == TokenType.BOOLEAN:
            self._advance()
            return BooleanLiteral(tok.value, tok.span)

        if tok.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(tok.value, tok.span)

        if tok.type == TokenType.STRING:
            self._advance()
            return StringLiteral(tok.value, tok.span)

        if tok.type == TokenType.COLOR:
            self._advance()
            return ColorLiteral(tok.value, tok.span)

        if tok.type == TokenType.NIL:
            self._advance()
            return KeywordRef(tok.value, tok.span)

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return Variable(tok.value, tok.span)

        if tok.type == TokenType.LPAREN:
            self._advance()
            self._skip_eols()
            expr = self._parse_expression()
            self._skip_eols()
            self._expect(TokenType.RPAREN)
            return expr

        if tok.type == TokenType.LBRACKET:
            return self._parse_list()

        if tok.type == TokenType.LBRACE:
            return self._parse_brace()

        if tok.type == TokenType.EOF:
            raise self._error("unexpected end of input, expected an expression", tok.span)

        raise self._error(f"expected an expression, found {describe(tok)}", tok.span)

    def _parse_list(self) -> ListLiteral:
        start = self._advance().span  # consume '['
        elements: list[Expression] = []
        self._skip_eols()
        if not self._at(TokenType.RBRACKET):
            while True:
                elements.append(self._parse_expression())
                if not self._parse_separator(TokenType.RBRACKET):
                    break
        self._expect(TokenType.RBRACKET)
        return ListLiteral(tuple(elements), self._span_from(start))

    def _parse_brace(self) -> MapLiteral | FunctionLiteral:
        """'{(' starts a function literal; '{name' and '{}' start a map."""
        lookahead = 1
        while self._peek(lookahead).type == TokenType.EOL:
            lookahead += 1
        following = self._peek(lookahead)

        if following.type == TokenType.LPAREN:
            return self._parse_function_literal()
        if following.type in (TokenType.IDENTIFIER, TokenType.RBRACE):
            return self._parse_map()
        if following.type == TokenType.EOF:
            raise self._error("unexpected end of input after '{'", following.span)
        raise self._error(
            f"ambiguous '{{': expected '(' for a function or a key for a map, "
            f"found {describe(following)}",
            following.span,
        )

    def _parse_map(self) -> MapLiteral:
        start = self._advance().span  # consume '{'
        entries: list[MapEntry] = []
        self._skip_eols()
        if not self._at(TokenType.RBRACE):
            while True:
                key = self._peek()
                if key.type != TokenType.IDENTIFIER:
                    raise self._error(f"malformed map key {describe(key)}", key.span)
                self._advance()
                self._expect(TokenType.COLON, "':' after map key")
                value = self._parse_expression()
                entries.append(MapEntry(key.value, value, key.span.to(value.span)))
                if not self._parse_separator(TokenType.RBRACE):
                    break
        self._expect(TokenType.RBRACE)
        return MapLiteral(tuple(entries), self._span_from(start))

    def _parse_function_literal(self) -> FunctionLiteral:
        start = self._advance().span  # consume '{'
        self._skip_eols()
        self._expect(TokenType.LPAREN)
        params = self._parse_params()
        self._expect(TokenType.BAR, "'|' after function parameters")

        body: list[Expression] = []
        self._skip_eols()
        while not self._at(TokenType.RBRACE):
            body.append(self._parse_expression())
            if self._at(TokenType.RBRACE):
                break
            if self._at(TokenType.COMMA):
                comma = self._advance()
                self._skip_eols()
                if self._at(TokenType.RBRACE):
                    raise self._error("unexpected trailing ',' before '}'", comma.span)
            elif self._at(TokenType.EOL):
                self._skip_eols()
            else:
                raise self._unexpected("',', end of line or '}'")
        self._advance()  # consume '}'
        return FunctionLiteral(params, tuple(body), self._span_from(start))

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _unexpected(self, wanted: str) -> ParseError:
        tok = self._peek()
        if tok.type == TokenType.EOF:
            return self._error(f"unexpected end of input, expected {wanted}", tok.span)
        return self._error(f"expected {wanted}, found {describe(tok)}", tok.span)

    def _error(self, message: str, span: Span | None = None) -> ParseError:
        if span is None:
            span = self._peek().span
        return ParseError(message, span, self._source)


_BINARY_OPS: dict[TokenType, BinaryOp] = {
    TokenType.PLUS: BinaryOp.ADD,
    TokenType.MINUS: BinaryOp.SUBTRACT,
    TokenType.STAR: BinaryOp.MULTIPLY,
    TokenType.SLASH: BinaryOp.DIVIDE,
    TokenType.EQUAL: BinaryOp.EQUAL_TO,
    TokenType.LESS: BinaryOp.LESS_THAN,
    TokenType.GREATER: BinaryOp.GREATER_THAN,
    TokenType.AMPERSAND: BinaryOp.AND,
    TokenType.BAR: BinaryOp.OR,
}

_UNARY_OPS: dict[TokenType, UnaryOp] = {
    TokenType.PLUS: UnaryOp.POSITIVE,
    TokenType.MINUS: UnaryOp.NEGATIVE,
    TokenType.BANG: UnaryOp.NOT,
}


def parse(source: str | SourceBuffer, name: str = "<input>") -> list[Statement]:
    """Convenience function: tokenize and parse source text into statements."""
    if isinstance(source, str):
        source = SourceBuffer(source, name)
    tokens = Lexer(source).tokenize()
    return Parser(tokens, source).parse()
