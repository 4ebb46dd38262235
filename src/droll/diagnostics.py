"""Error formatting and actionable hints for Droll CLI and tool output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from typing import Any

from droll.errors import (
    DrollConfigError,
    DrollError,
    InvalidNumberStartError,
    InvalidRollCountError,
    InvalidSidesError,
    NestingTooDeepError,
    TrailingInputError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
)


def format_location(notation: str, pos: int) -> str:
    """Return ``notation`` with a caret line under offset ``pos``."""
    return f"  {notation}\n  {' ' * pos}^"


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""

    if isinstance(exc, UnexpectedCharacterError):
        return "dice notation only uses digits, `d`, `+`, `-` and spaces"

    if isinstance(exc, InvalidNumberStartError):
        return "numbers cannot start with 0; write `1d6`, not `01d6`"

    if isinstance(exc, UnexpectedEndOfInputError):
        return "every operator needs a number or roll after it, e.g. `1d6`"

    if isinstance(exc, TrailingInputError):
        return "join terms with `+` or `-`, e.g. `1d6 + 2`"

    if isinstance(exc, NestingTooDeepError):
        return "split the expression or raise parser.max_depth in droll.toml"

    if isinstance(exc, InvalidRollCountError):
        if exc.limit is not None and exc.count > exc.limit:
            return "raise roll.max_dice in droll.toml or roll fewer dice"
        return "the number of dice must evaluate to at least 1"

    if isinstance(exc, InvalidSidesError):
        return "a die needs at least one side"

    if isinstance(exc, DrollConfigError):
        msg = str(exc)
        if "droll.toml" in msg and "find" in msg.lower():
            return "pass --config or create droll.toml with `version = 1`"
        return None

    return None


def format_error(exc: BaseException, notation: str | None = None) -> str:
    """Format error message, location caret and optional hint for stderr."""

    msg = (str(exc) or repr(exc)).strip()
    lines = [f"error: {msg}"]
    pos = getattr(exc, "pos", None)
    if notation is not None and isinstance(pos, int):
        lines.append(format_location(notation, pos))
    hint = format_hint(exc)
    if hint:
        lines.append(f"hint: {hint}")
    return "\n".join(lines)


def error_payload(exc: BaseException) -> dict[str, Any]:
    """JSON-ready description of an error for --json and MCP responses."""

    if isinstance(exc, DrollError):
        kind = exc.kind
        pos = exc.pos
    else:
        kind = type(exc).__name__
        pos = None
    return {"kind": kind, "message": str(exc), "position": pos}
