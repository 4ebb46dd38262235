"""Droll exception hierarchy.

Keep this module small and dependency-free: it is imported by every stage of
the pipeline, by the CLI, and by tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from droll.lexer import Token


class DrollError(Exception):
    """Base exception for all Droll errors."""

    kind = "error"

    def __init__(self, message: str, *, pos: int | None = None) -> None:
        super().__init__(message)
        self.pos = pos


class DrollConfigError(DrollError):
    """Raised for invalid user configuration."""

    kind = "config_error"


class RandomSourceError(DrollError):
    """Raised when a random source cannot supply a valid draw."""

    kind = "random_source_error"


# -- Lexical -----------------------------------------------------------------


class DiceLexError(DrollError):
    """Raised when the input cannot be split into tokens."""

    kind = "lex_error"


class UnexpectedCharacterError(DiceLexError):
    kind = "unexpected_character"

    def __init__(self, char: str, pos: int) -> None:
        super().__init__(f"Unexpected character {char!r} at position {pos}", pos=pos)
        self.char = char


class InvalidNumberStartError(DiceLexError):
    """Raised for numeric literals that begin with ``0``."""

    kind = "invalid_number_start"

    def __init__(self, pos: int) -> None:
        super().__init__(f"Invalid number start '0' at position {pos}", pos=pos)


class NumberOverflowError(DiceLexError):
    kind = "number_overflow"

    def __init__(self, literal: str, pos: int) -> None:
        super().__init__(f"Number {literal} at position {pos} is too large", pos=pos)
        self.literal = literal


# -- Syntactic ---------------------------------------------------------------


class DiceSyntaxError(DrollError):
    """Raised when the token stream does not match the grammar.

    ``expected`` names the construct the parser was looking for and ``found``
    is the token it got instead.
    """

    kind = "syntax_error"

    def __init__(self, expected: str, found: Token, message: str | None = None) -> None:
        if message is None:
            message = f"Expected {expected} at position {found.pos}, found {found}"
        super().__init__(message, pos=found.pos)
        self.expected = expected
        self.found = found


class UnexpectedEndOfInputError(DiceSyntaxError):
    kind = "unexpected_end_of_input"

    def __init__(self, found: Token, expected: str = "operand") -> None:
        super().__init__(
            expected,
            found,
            f"Unexpected end of input at position {found.pos}: expected {expected}",
        )


class TrailingInputError(DiceSyntaxError):
    kind = "trailing_input"

    def __init__(self, found: Token) -> None:
        super().__init__(
            "end of input",
            found,
            f"Unexpected trailing input {found} at position {found.pos}",
        )


class NestingTooDeepError(DiceSyntaxError):
    kind = "nesting_too_deep"

    def __init__(self, found: Token, max_depth: int) -> None:
        super().__init__(
            "shallower expression",
            found,
            f"Expression nests deeper than {max_depth} levels at position {found.pos}",
        )
        self.max_depth = max_depth


# -- Evaluation --------------------------------------------------------------


class DiceEvaluationError(DrollError):
    """Raised when a well-formed expression cannot be evaluated."""

    kind = "evaluation_error"


class InvalidRollCountError(DiceEvaluationError):
    kind = "invalid_roll_count"

    def __init__(self, count: int, *, limit: int | None = None) -> None:
        if limit is not None and count > limit:
            msg = f"Too many dice: {count} (max {limit})"
        else:
            msg = f"Invalid roll count: {count} (must be at least 1)"
        super().__init__(msg)
        self.count = count
        self.limit = limit


class InvalidSidesError(DiceEvaluationError):
    kind = "invalid_sides"

    def __init__(self, sides: int) -> None:
        super().__init__(f"Invalid number of sides: {sides} (must be at least 1)")
        self.sides = sides


class ArithmeticOverflowError(DiceEvaluationError):
    kind = "arithmetic_overflow"
