"""Expression tree for parsed dice notation.

Nodes are frozen dataclasses; a tree is built once by the parser and only
read afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar


@dataclass(frozen=True)
class Literal:
    value: int


@dataclass(frozen=True)
class Negate:
    """Unary minus."""

    operand: Expression


@dataclass(frozen=True)
class Identity:
    """Unary plus. Evaluates to its operand unchanged."""

    operand: Expression


@dataclass(frozen=True)
class Add:
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Subtract:
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Roll:
    """``count`` d ``sides``.

    For ``d6`` the parser synthesizes ``count=Literal(1)`` and sets
    ``implicit_count`` so the tree still renders as written.
    """

    count: Expression
    sides: Expression
    implicit_count: bool = False


Expression = Literal | Negate | Identity | Add | Subtract | Roll

T = TypeVar("T")


def children(expr: Expression) -> tuple[Expression, ...]:
    """Return the direct operands of ``expr`` in evaluation order."""

    if isinstance(expr, Literal):
        return ()
    if isinstance(expr, (Negate, Identity)):
        return (expr.operand,)
    if isinstance(expr, (Add, Subtract)):
        return (expr.left, expr.right)
    if isinstance(expr, Roll):
        return (expr.count, expr.sides)
    raise TypeError(f"Not an expression node: {expr!r}")


def fold(expr: Expression, combine: Callable[[Expression, list[T]], T]) -> T:
    """Reduce the tree bottom-up with an explicit stack.

    ``combine(node, results)`` receives the results for ``children(node)`` in
    order. Children are combined left before right, and a node only after all
    of its children, so side effects in ``combine`` happen in evaluation
    order. Tree height is not limited by the interpreter's recursion limit.
    """

    results: list[T] = []
    stack: list[tuple[Expression, bool]] = [(expr, False)]
    while stack:
        node, expanded = stack.pop()
        kids = children(node)
        if expanded or not kids:
            split = len(results) - len(kids)
            args = results[split:]
            del results[split:]
            results.append(combine(node, args))
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(kids))
    return results[0]


def _render_node(expr: Expression, parts: list[str]) -> str:
    if isinstance(expr, Literal):
        return str(expr.value)
    if isinstance(expr, Negate):
        return f"(- {parts[0]})"
    if isinstance(expr, Identity):
        return f"(+ {parts[0]})"
    if isinstance(expr, Add):
        return f"(+ {parts[0]} {parts[1]})"
    if isinstance(expr, Subtract):
        return f"(- {parts[0]} {parts[1]})"
    if expr.implicit_count:
        return f"(d {parts[1]})"
    return f"(d {parts[0]} {parts[1]})"


def render(expr: Expression) -> str:
    """Render ``expr`` as a prefix s-expression, e.g. ``(+ (d 3 6) 10)``."""
    return fold(expr, _render_node)


def depth(expr: Expression) -> int:
    """Return the height of the tree rooted at ``expr`` (a literal is 1)."""
    return fold(expr, lambda _node, heights: 1 + max(heights, default=0))
