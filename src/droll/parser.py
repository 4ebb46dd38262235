"""Precedence-climbing parser for dice notation.

Grammar (EBNF)::

    <expr>      ::= <roll-expr> | <expr> '+' <expr> | <expr> '-' <expr>
    <roll-expr> ::= <primary> | <expr> 'd' <expr>
    <primary>   ::= <number> | '+' <primary> | '-' <primary> | 'd' <expr>
    <number>    ::= <non-zero-digit> { <digit> }

The EBNF alone is ambiguous around ``d``; binding powers fix one reading:

    infix  + -   (1, 2)   left-associative, lowest
    infix  d     (3, 4)   left-associative
    prefix + -   5
    prefix d     7

So ``2d6+3`` is ``(2d6)+3``, ``2d6d4`` is ``(2d6)d4``, ``-2d6`` is
``(-2)d6`` and ``-d20`` is ``-(d20)``.

Left-associative chains are folded in a loop, so ``1+1+1...`` of any length
parses in constant stack space. Only nesting through a prefix operator or a
right operand recurses, and that is capped at ``max_depth``.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator

from droll.ast import Add, Expression, Identity, Literal, Negate, Roll, Subtract
from droll.errors import (
    DiceSyntaxError,
    NestingTooDeepError,
    TrailingInputError,
    UnexpectedEndOfInputError,
)
from droll.lexer import Token, TokenKind, tokenize

DEFAULT_MAX_DEPTH = 200

# Each nesting level costs one _parse_expr and one _parse_prefix frame.
_FRAMES_PER_LEVEL = 2
# Frames left for whatever called the parser.
_RESERVED_FRAMES = 200

_INFIX_BINDING_POWER: dict[TokenKind, tuple[int, int]] = {
    TokenKind.PLUS: (1, 2),
    TokenKind.MINUS: (1, 2),
    TokenKind.DIE: (3, 4),
}

_PREFIX_BINDING_POWER: dict[TokenKind, int] = {
    TokenKind.PLUS: 5,
    TokenKind.MINUS: 5,
    TokenKind.DIE: 7,
}


def max_depth_limit() -> int:
    """Largest ``max_depth`` the current recursion limit can honour."""
    return max(1, (sys.getrecursionlimit() - _RESERVED_FRAMES) // _FRAMES_PER_LEVEL)


def check_max_depth(max_depth: int) -> int:
    """Return ``max_depth`` if usable, else raise ``ValueError``."""
    limit = max_depth_limit()
    if not 1 <= max_depth <= limit:
        raise ValueError(f"max_depth must be between 1 and {limit}, got {max_depth}")
    return max_depth


class _Parser:
    def __init__(self, tokens: Iterable[Token], *, max_depth: int) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        self._peeked: Token | None = None
        self._last_pos = 0
        self._max_depth = check_max_depth(max_depth)
        self._depth = 0

    def _peek(self) -> Token:
        if self._peeked is None:
            tok = next(self._tokens, None)
            if tok is None:
                # A stream without an explicit EOF ends where the last token did.
                tok = Token(TokenKind.EOF, self._last_pos)
            self._peeked = tok
            self._last_pos = tok.pos
        return self._peeked

    def _advance(self) -> Token:
        tok = self._peek()
        if tok.kind is not TokenKind.EOF:
            self._peeked = None
        return tok

    def parse(self) -> Expression:
        expr = self._parse_expr(0)
        tok = self._peek()
        if tok.kind is not TokenKind.EOF:
            raise TrailingInputError(tok)
        return expr

    def _parse_expr(self, min_bp: int) -> Expression:
        """Parse one operand plus any infix operators binding at least ``min_bp``."""
        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise NestingTooDeepError(self._peek(), self._max_depth)

            lhs = self._parse_prefix()
            while True:
                tok = self._peek()
                bp = _INFIX_BINDING_POWER.get(tok.kind)
                if bp is None:
                    break
                l_bp, r_bp = bp
                if l_bp < min_bp:
                    break
                self._advance()
                rhs = self._parse_expr(r_bp)
                lhs = _binary(tok.kind, lhs, rhs)
            return lhs
        finally:
            self._depth -= 1

    def _parse_prefix(self) -> Expression:
        tok = self._advance()
        if tok.kind is TokenKind.NUMBER:
            if tok.value is None:
                raise DiceSyntaxError("number value", tok)
            return Literal(tok.value)
        if tok.kind is TokenKind.EOF:
            raise UnexpectedEndOfInputError(tok)

        r_bp = _PREFIX_BINDING_POWER.get(tok.kind)
        if r_bp is None:
            raise DiceSyntaxError("operand", tok)
        operand = self._parse_expr(r_bp)
        if tok.kind is TokenKind.MINUS:
            return Negate(operand)
        if tok.kind is TokenKind.PLUS:
            return Identity(operand)
        return Roll(Literal(1), operand, implicit_count=True)


def _binary(kind: TokenKind, lhs: Expression, rhs: Expression) -> Expression:
    if kind is TokenKind.PLUS:
        return Add(lhs, rhs)
    if kind is TokenKind.MINUS:
        return Subtract(lhs, rhs)
    return Roll(lhs, rhs)


def parse_tokens(tokens: Iterable[Token], *, max_depth: int = DEFAULT_MAX_DEPTH) -> Expression:
    """Parse a token stream into a single expression tree.

    Raises a ``DiceSyntaxError`` subclass when the stream does not form exactly
    one expression. Lexical errors from a lazy token stream propagate as-is.
    ``ValueError`` if ``max_depth`` is outside ``1..max_depth_limit()``.
    """
    return _Parser(tokens, max_depth=max_depth).parse()


def parse(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Expression:
    """Tokenize and parse ``text``."""
    return parse_tokens(tokenize(text), max_depth=max_depth)
