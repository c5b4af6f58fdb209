"""Error types with formatted source context."""

from __future__ import annotations

from dali.source import SourceBuffer
from dali.tokens import Span


class DaliError(Exception):
    """Base for every located diagnostic: a kind, a message, and a span."""

    kind = "error"

    def __init__(self, message: str, span: Span, source: SourceBuffer) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    @property
    def line(self) -> int:
        return self.source.line_of(self.span.start)

    @property
    def columns(self) -> tuple[int, int]:
        return self.source.columns_of(self.span)

    def format(self, filename: str | None = None) -> str:
        if filename is None:
            filename = self.source.name
        loc = self.source.location(self.span)
        source_line = self.source.extract_line(self.span)
        col = loc.first_column

        # Underline the span, but stay on the first line
        underline_len = max(1, min(loc.width, len(source_line) - col + 1))

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(loc.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"{self.kind} error: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{loc.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )


class LexError(DaliError):
    """A single malformed token found by the lexer."""

    kind = "lexical"


class LexErrorGroup(Exception):
    """Raised after a full scan that found one or more lexical errors."""

    def __init__(self, errors: list[LexError]) -> None:
        self.errors = errors
        super().__init__(self.format())

    @property
    def first(self) -> LexError:
        return self.errors[0]

    def format(self, filename: str | None = None) -> str:
        return "\n\n".join(err.format(filename) for err in self.errors)


class ParseError(DaliError):
    """Raised on the first syntax error."""

    kind = "syntax"


class ResolveError(DaliError):
    """Raised by the resolver on the first semantic error."""

    kind = "semantic"


class EvalError(DaliError):
    """Raised on runtime errors, with the chain of active function calls."""

    kind = "runtime"

    def __init__(
        self,
        message: str,
        span: Span,
        source: SourceBuffer,
        call_stack: list[str] | None = None,
    ) -> None:
        self.call_stack = call_stack or []
        super().__init__(message, span, source)

    def format(self, filename: str | None = None) -> str:
        result = super().format(filename)
        if self.call_stack:
            chain = " -> ".join(f"{name}()" for name in self.call_stack)
            result += f"\n  in call chain: {chain}"
        return result


# Everything lex_and_parse and the resolver can raise
COMPILE_ERRORS = (LexErrorGroup, ParseError, ResolveError)
