"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Punctuation
    COLON = auto()  # :
    COMMA = auto()  # ,
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]

    # Arithmetic
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /

    # Comparison
    EQUAL = auto()  # =
    LESS = auto()  # <
    GREATER = auto()  # >

    # Logical
    BANG = auto()  # !
    AMPERSAND = auto()  # &
    BAR = auto()  # |

    # Literals (value holds the decoded literal)
    BOOLEAN = auto()  # true / false
    NUMBER = auto()  # 1.5 or 15
    STRING = auto()  # "text"
    COLOR = auto()  # #efefef, value is the packed RGB int

    IDENTIFIER = auto()

    # Keywords
    VAR = auto()
    FUNC = auto()
    RETURN = auto()
    NIL = auto()

    EOL = auto()  # \n
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open range of scalar offsets into the source text."""

    start: int
    end: int

    def to(self, other: Span) -> Span:
        """Return the span covering self through other."""
        return Span(self.start, other.end)


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with decoded value and original source text."""

    type: TokenType
    value: object
    raw: str
    span: Span


# Spelling -> (token type, literal value)
KEYWORDS: dict[str, tuple[TokenType, object]] = {
    "true": (TokenType.BOOLEAN, True),
    "false": (TokenType.BOOLEAN, False),
    "var": (TokenType.VAR, "var"),
    "func": (TokenType.FUNC, "func"),
    "return": (TokenType.RETURN, "return"),
    "nil": (TokenType.NIL, "nil"),
}

SINGLE_CHAR: dict[str, TokenType] = {
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "=": TokenType.EQUAL,
    "<": TokenType.LESS,
    ">": TokenType.GREATER,
    "!": TokenType.BANG,
    "&": TokenType.AMPERSAND,
    "|": TokenType.BAR,
}

# Human-readable names used in "expected X, found Y" messages
DESCRIPTIONS: dict[TokenType, str] = {tt: f"'{ch}'" for ch, tt in SINGLE_CHAR.items()}
DESCRIPTIONS.update(
    {
        TokenType.BOOLEAN: "boolean",
        TokenType.NUMBER: "number",
        TokenType.STRING: "string",
        TokenType.COLOR: "color",
        TokenType.IDENTIFIER: "identifier",
        TokenType.VAR: "'var'",
        TokenType.FUNC: "'func'",
        TokenType.RETURN: "'return'",
        TokenType.NIL: "'nil'",
        TokenType.EOL: "end of line",
        TokenType.EOF: "end of input",
    }
)


def describe(token: Token) -> str:
    """Describe a token for an error message."""
    if token.type in (TokenType.EOL, TokenType.EOF):
        return DESCRIPTIONS[token.type]
    return f"'{token.raw}'"


def is_ident_start(ch: str) -> bool:
    """Return True if ch may start an identifier."""
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_ident_char(ch: str) -> bool:
    """Return True if ch may continue an identifier."""
    return is_ident_start(ch) or is_digit(ch)


def is_digit(ch: str) -> bool:
    """Return True if ch is an ASCII decimal digit."""
    return "0" <= ch <= "9"


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch != "" and ch in "0123456789abcdefABCDEF"
