"""Dali lexer: converts source text into a flat token stream."""

from __future__ import annotations

from dali.errors import LexError, LexErrorGroup
from dali.source import SourceBuffer
from dali.tokens import (
    KEYWORDS,
    SINGLE_CHAR,
    Span,
    Token,
    TokenType,
    is_digit,
    is_hex_digit,
    is_ident_char,
    is_ident_start,
)


class _TokenFailed(Exception):
    """Abandons the token in progress; the lexer records it and moves on."""


class Lexer:
    """Tokenize Dali source text into a stream of Token objects.

    Lexical errors do not stop the scan: the malformed token is dropped, the
    error recorded, and scanning resumes after it. All errors are raised
    together once the whole source has been read.
    """

    def __init__(self, source: SourceBuffer) -> None:
        self._source = source
        self._text = source.text
        self._start = 0
        self._pos = 0
        self._tokens: list[Token] = []
        self._errors: list[LexError] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        self._reset()
        while self._pos < len(self._text):
            self._start = self._pos
            try:
                self._lex_token()
            except _TokenFailed:
                continue

        self._start = self._pos
        self._emit(TokenType.EOF, None)

        if self._errors:
            raise LexErrorGroup(self._errors)
        return self._tokens

    def _reset(self) -> None:
        self._start = 0
        self._pos = 0
        self._tokens = []
        self._errors = []

    # ------------------------------------------------------------------
    # Cursor helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._text):
            return self._text[idx]
        return ""

    def _advance(self) -> str:
        ch = self._text[self._pos]
        self._pos += 1
        return ch

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _span(self) -> Span:
        return Span(self._start, self._pos)

    def _emit(self, tt: TokenType, value: object) -> Token:
        span = self._span()
        tok = Token(tt, value, self._text[span.start : span.end], span)
        self._tokens.append(tok)
        return tok

    def _fail(self, message: str, span: Span | None = None) -> _TokenFailed:
        if span is None:
            span = self._span()
        self._errors.append(LexError(message, span, self._source))
        return _TokenFailed()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _lex_token(self) -> None:
        ch = self._advance()

        if ch in " \t\r":
            return

        if ch == "\n":
            self._emit(TokenType.EOL, "\n")
            return

        if ch == "%":
            while not self._at_end() and self._peek() != "\n":
                self._advance()
            return

        if ch == "#":
            self._lex_color()
            return

        if ch == '"':
            self._lex_string()
            return

        if is_digit(ch):
            self._lex_number()
            return

        if is_ident_start(ch):
            self._lex_identifier()
            return

        tt = SINGLE_CHAR.get(ch)
        if tt is not None:
            self._emit(tt, ch)
            return

        raise self._fail(f"unexpected character '{ch}'")

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _lex_color(self) -> None:
        for _ in range(6):
            if not is_hex_digit(self._peek()):
                # Swallow the rest of the word so one typo gives one error
                while is_ident_char(self._peek()):
                    self._advance()
                raise self._fail("colors are only supported as '#' and 6 hexadecimal digits")
            self._advance()
        digits = self._text[self._start + 1 : self._pos]
        self._emit(TokenType.COLOR, int(digits, 16))

    def _lex_string(self) -> None:
        while not self._at_end() and self._peek() != '"':
            if self._peek() == "\n":
                error = self._fail("strings cannot span multiple lines")
                self._skip_broken_string()
                raise error
            self._advance()

        if self._at_end():
            raise self._fail("unterminated string", Span(self._start, self._start + 1))

        self._advance()  # closing quote
        self._emit(TokenType.STRING, self._text[self._start + 1 : self._pos - 1])

    def _skip_broken_string(self) -> None:
        """Move past the closing quote of a literal split by a newline.

        The first quote on the next line closes it only when that line holds
        an odd number of quotes; otherwise scanning resumes at the newline.
        """
        line_end = self._text.find("\n", self._pos + 1)
        if line_end == -1:
            line_end = len(self._text)
        tail = self._text[self._pos + 1 : line_end]
        if tail.count('"') % 2 == 1:
            self._pos += tail.index('"') + 2

    def _lex_number(self) -> None:
        while is_digit(self._peek()):
            self._advance()

        if self._peek() == ".":
            if is_digit(self._peek(1)):
                self._advance()  # consume '.'
                while is_digit(self._peek()):
                    self._advance()
            else:
                self._advance()  # consume '.'
                while is_ident_char(self._peek()):
                    self._advance()
                raise self._fail("numbers are only supported as digits with an optional fraction")

        self._emit(TokenType.NUMBER, float(self._text[self._start : self._pos]))

    def _lex_identifier(self) -> None:
        while is_ident_char(self._peek()):
            self._advance()
        text = self._text[self._start : self._pos]
        keyword = KEYWORDS.get(text)
        if keyword is not None:
            self._emit(keyword[0], keyword[1])
        else:
            self._emit(TokenType.IDENTIFIER, text)


def tokenize(source: str | SourceBuffer, name: str = "<input>") -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    if isinstance(source, str):
        source = SourceBuffer(source, name)
    return Lexer(source).tokenize()
