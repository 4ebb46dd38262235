"""Library entry points: tokenize, parse and evaluate in one call."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any

from droll.ast import Expression, render
from droll.interpreter import DieRoll, Evaluator, RandomSource
from droll.parser import DEFAULT_MAX_DEPTH, parse


@dataclass(frozen=True)
class RollResult:
    notation: str
    total: int
    tree: Expression
    rolls: tuple[DieRoll, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "notation": self.notation,
            "total": self.total,
            "tree": render(self.tree),
            "rolls": [
                {"count": r.count, "sides": r.sides, "draws": list(r.draws)} for r in self.rolls
            ],
        }


def _default_rng(rng: RandomSource | None) -> RandomSource:
    # A fresh generator per call; nothing is shared between evaluations.
    return rng if rng is not None else random.Random()


def roll(
    notation: str,
    *,
    rng: RandomSource | None = None,
    max_dice: int | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> int:
    """Roll ``notation`` (e.g. ``"2d20+10-2"``) and return the total.

    Raises the first ``DrollError`` met while tokenizing, parsing or evaluating.
    """
    tree = parse(notation, max_depth=max_depth)
    return Evaluator(_default_rng(rng), max_dice=max_dice).evaluate(tree)


def roll_detailed(
    notation: str,
    *,
    rng: RandomSource | None = None,
    max_dice: int | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> RollResult:
    """Like ``roll`` but also return the parsed tree and every die drawn."""
    tree = parse(notation, max_depth=max_depth)
    evaluator = Evaluator(_default_rng(rng), record=True, max_dice=max_dice)
    total = evaluator.evaluate(tree)
    return RollResult(notation=notation, total=total, tree=tree, rolls=tuple(evaluator.rolls))
