"""Tree-walking evaluator for parsed dice notation.

The random source is passed in explicitly. Anything with a
``randint(a, b)`` method returning an integer in the inclusive range works,
which includes ``random.Random`` and ``random.SystemRandom``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from droll.ast import Add, Expression, Identity, Literal, Negate, Subtract, fold
from droll.errors import (
    ArithmeticOverflowError,
    InvalidRollCountError,
    InvalidSidesError,
    RandomSourceError,
)
from droll.lexer import INT_MAX, INT_MIN

logger = logging.getLogger("droll.interpreter")


@runtime_checkable
class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


class SequenceSource:
    """Random source that replays a fixed sequence of draws.

    Each value must fall inside the range requested for it; running out of
    values is an error rather than a silent restart.
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values: Iterator[int] = iter(values)
        self.consumed = 0

    def randint(self, a: int, b: int) -> int:
        try:
            value = next(self._values)
        except StopIteration:
            raise RandomSourceError(
                f"Sequence exhausted after {self.consumed} draw(s)"
            ) from None
        if not a <= value <= b:
            raise RandomSourceError(f"Draw {value} outside requested range [{a}, {b}]")
        self.consumed += 1
        return value


@dataclass(frozen=True)
class DieRoll:
    """The draws made for one resolved ``Roll`` node, in draw order."""

    count: int
    sides: int
    draws: tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.draws)


def _checked(value: int) -> int:
    if value < INT_MIN or value > INT_MAX:
        raise ArithmeticOverflowError(f"Result {value} is outside the 64-bit integer range")
    return value


class Evaluator:
    """Evaluate expression trees against one random source.

    With ``record=True`` every resolved roll is appended to ``rolls``; nested
    rolls (``2d6d4``) finish before the roll that consumes them, so ``rolls``
    lists them innermost first.
    """

    def __init__(
        self,
        rng: RandomSource,
        *,
        record: bool = False,
        max_dice: int | None = None,
    ) -> None:
        self.rng = rng
        self.record = record
        self.max_dice = max_dice
        self.rolls: list[DieRoll] = []

    def evaluate(self, expr: Expression) -> int:
        return fold(expr, self._combine)

    def _combine(self, expr: Expression, values: list[int]) -> int:
        # ``values`` holds the already evaluated operands, left before right.
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Identity):
            return values[0]
        if isinstance(expr, Negate):
            return _checked(-values[0])
        if isinstance(expr, Add):
            return _checked(values[0] + values[1])
        if isinstance(expr, Subtract):
            return _checked(values[0] - values[1])
        count, sides = values
        return self._roll(count, sides)

    def _roll(self, count: int, sides: int) -> int:
        if count < 1:
            raise InvalidRollCountError(count)
        if self.max_dice is not None and count > self.max_dice:
            raise InvalidRollCountError(count, limit=self.max_dice)
        if sides < 1:
            raise InvalidSidesError(sides)

        draws: list[int] | None = [] if self.record else None
        total = 0
        for _ in range(count):
            value = self.rng.randint(1, sides)
            logger.debug("d%d -> %d", sides, value)
            total = _checked(total + value)
            if draws is not None:
                draws.append(value)

        if draws is not None:
            self.rolls.append(DieRoll(count=count, sides=sides, draws=tuple(draws)))
        return total


def evaluate(expr: Expression, rng: RandomSource, *, max_dice: int | None = None) -> int:
    """Evaluate ``expr`` drawing dice from ``rng``; return the total."""
    return Evaluator(rng, max_dice=max_dice).evaluate(expr)
