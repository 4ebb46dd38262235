"""Lexical analysis of dice notation.

``tokenize`` is a generator: tokens are produced on demand as the parser asks
for them, so a lexical error past the end of a complete expression surfaces
only when the parser looks that far.

Numbers may not start with ``0`` unless the literal is exactly ``0``. A lone
``0`` is a valid token so that ``1d0`` and ``0d6`` lex and parse, then fail
during evaluation as a zero-sided die and a zero dice count.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from droll.errors import InvalidNumberStartError, NumberOverflowError, UnexpectedCharacterError

INT_MAX = 2**63 - 1
INT_MIN = -(2**63)

# Line breaks are skipped along with spaces and tabs; other whitespace is an
# unexpected character.
_WHITESPACE = frozenset(" \t\r\n")
_DIGITS = frozenset("0123456789")


class TokenKind(Enum):
    NUMBER = auto()
    PLUS = auto()  # +
    MINUS = auto()  # -
    DIE = auto()  # d or D
    EOF = auto()


_DISPLAY = {
    TokenKind.PLUS: "Plus",
    TokenKind.MINUS: "Minus",
    TokenKind.DIE: "Die",
    TokenKind.EOF: "EndOfInput",
}


@dataclass(frozen=True)
class Token:
    """A single lexical token."""

    kind: TokenKind
    pos: int  # 0-based character offset in the input string
    value: int | None = None  # only set for NUMBER

    def __str__(self) -> str:
        if self.kind is TokenKind.NUMBER:
            return f"Number({self.value})"
        return _DISPLAY[self.kind]


_SINGLE = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "d": TokenKind.DIE,
    "D": TokenKind.DIE,
}


def _scan_number(text: str, start: int) -> tuple[int, int]:
    """Scan a maximal digit run at ``start``; return ``(value, end)``.

    A lone ``0`` is accepted so ``1d0`` reaches the evaluator and fails there
    as a zero-sided die; ``01`` and ``007`` are rejected here.
    """

    if text[start] == "0":
        if start + 1 < len(text) and text[start + 1] in _DIGITS:
            raise InvalidNumberStartError(start)
        return 0, start + 1

    value = 0
    i = start
    while i < len(text) and text[i] in _DIGITS:
        value = value * 10 + int(text[i])
        i += 1
        if value > INT_MAX:
            while i < len(text) and text[i] in _DIGITS:
                i += 1
            raise NumberOverflowError(text[start:i], start)
    return value, i


def tokenize(text: str) -> Iterator[Token]:
    """Yield the tokens of ``text``, ending with exactly one EOF token."""

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _WHITESPACE:
            i += 1
            continue
        if ch in _DIGITS:
            value, end = _scan_number(text, i)
            yield Token(TokenKind.NUMBER, i, value)
            i = end
            continue
        kind = _SINGLE.get(ch)
        if kind is None:
            raise UnexpectedCharacterError(ch, i)
        yield Token(kind, i)
        i += 1
    yield Token(TokenKind.EOF, n)
