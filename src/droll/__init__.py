from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from droll.api import RollResult, roll, roll_detailed
from droll.ast import render
from droll.errors import (
    ArithmeticOverflowError,
    DiceEvaluationError,
    DiceLexError,
    DiceSyntaxError,
    DrollConfigError,
    DrollError,
    InvalidNumberStartError,
    InvalidRollCountError,
    InvalidSidesError,
    NestingTooDeepError,
    NumberOverflowError,
    RandomSourceError,
    TrailingInputError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
)
from droll.interpreter import DieRoll, Evaluator, RandomSource, SequenceSource, evaluate
from droll.lexer import Token, TokenKind, tokenize
from droll.parser import parse


def _package_version() -> str:
    try:
        return version("droll")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "__version__",
    "ArithmeticOverflowError",
    "DiceEvaluationError",
    "DiceLexError",
    "DiceSyntaxError",
    "DieRoll",
    "DrollConfigError",
    "DrollError",
    "Evaluator",
    "InvalidNumberStartError",
    "InvalidRollCountError",
    "InvalidSidesError",
    "NestingTooDeepError",
    "NumberOverflowError",
    "RandomSource",
    "RandomSourceError",
    "RollResult",
    "SequenceSource",
    "Token",
    "TokenKind",
    "TrailingInputError",
    "UnexpectedCharacterError",
    "UnexpectedEndOfInputError",
    "evaluate",
    "parse",
    "render",
    "roll",
    "roll_detailed",
    "tokenize",
]
