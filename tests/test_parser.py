from __future__ import annotations

import pytest

from droll.ast import Add, Identity, Literal, Negate, Roll, Subtract, depth, render
from droll.errors import (
    DiceSyntaxError,
    NestingTooDeepError,
    TrailingInputError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
)
from droll.lexer import Token, TokenKind
from droll.parser import max_depth_limit, parse, parse_tokens


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1d20", "(d 1 20)"),
        ("-1d20", "(d (- 1) 20)"),
        ("d20", "(d 20)"),
        ("-d20", "(- (d 20))"),
        ("3d6+10", "(+ (d 3 6) 10)"),
        ("3-d6", "(- 3 (d 6))"),
        ("d3-2", "(- (d 3) 2)"),
        ("-2-d8", "(- (- 2) (d 8))"),
        ("+1--d3", "(- (+ 1) (- (d 3)))"),
        ("1d20+2d3", "(+ (d 1 20) (d 2 3))"),
        ("1+2-3", "(- (+ 1 2) 3)"),
        ("2d6d4", "(d (d 2 6) 4)"),
        ("d6d4", "(d (d 6) 4)"),
        ("2d-3", "(d 2 (- 3))"),
        ("--5", "(- (- 5))"),
        ("1d6+d4-2", "(- (+ (d 1 6) (d 4)) 2)"),
        ("2 D 6", "(d 2 6)"),
    ],
)
def test_parse_renders_canonical_reading(text: str, expected: str) -> None:
    assert render(parse(text)) == expected


def test_implicit_count_is_literal_one() -> None:
    assert parse("d6") == Roll(Literal(1), Literal(6), implicit_count=True)


def test_unary_minus_binds_to_count() -> None:
    assert parse("-2d6") == Roll(Negate(Literal(2)), Literal(6))


def test_roll_binds_tighter_than_plus() -> None:
    assert parse("2d6+3") == Add(Roll(Literal(2), Literal(6)), Literal(3))


def test_additive_is_left_associative() -> None:
    assert parse("1-2-3") == Subtract(Subtract(Literal(1), Literal(2)), Literal(3))


def test_unary_plus_is_kept() -> None:
    assert parse("+4") == Identity(Literal(4))


def test_depth() -> None:
    assert depth(parse("7")) == 1
    assert depth(parse("2d6+3")) == 3
    assert depth(parse("---1")) == 4


@pytest.mark.parametrize(("text", "pos"), [("1d", 2), ("", 0), ("-", 1), ("1+", 2), ("d", 1)])
def test_missing_operand_is_unexpected_end_of_input(text: str, pos: int) -> None:
    with pytest.raises(UnexpectedEndOfInputError) as excinfo:
        parse(text)
    assert excinfo.value.found.kind is TokenKind.EOF
    assert excinfo.value.pos == pos
    assert excinfo.value.expected == "operand"


def test_trailing_number_is_trailing_input() -> None:
    with pytest.raises(TrailingInputError) as excinfo:
        parse("1d6 2")
    assert excinfo.value.found == Token(TokenKind.NUMBER, 4, 2)


def test_trailing_bad_character_is_lexical() -> None:
    with pytest.raises(UnexpectedCharacterError) as excinfo:
        parse("1d6x")
    assert excinfo.value.pos == 3


def test_syntax_errors_share_a_base() -> None:
    with pytest.raises(DiceSyntaxError):
        parse("1 2")
    with pytest.raises(DiceSyntaxError):
        parse("1d")


def test_deep_unary_chain_is_rejected() -> None:
    with pytest.raises(NestingTooDeepError):
        parse("-" * 5000 + "1")


def test_long_left_fold_is_accepted() -> None:
    tree = parse("1" + "d1" * 300)
    assert depth(tree) == 301
    assert render(tree).startswith("(d " * 300 + "1 1)")


def test_long_sum_is_accepted() -> None:
    tree = parse("+".join(["1"] * 5000))
    assert depth(tree) == 5000


def test_left_fold_does_not_count_toward_max_depth() -> None:
    assert render(parse("1+2+3+4", max_depth=2)) == "(+ (+ (+ 1 2) 3) 4)"


def test_max_depth_is_configurable() -> None:
    assert render(parse("--1", max_depth=3)) == "(- (- 1))"
    with pytest.raises(NestingTooDeepError) as excinfo:
        parse("---1", max_depth=3)
    assert excinfo.value.max_depth == 3


def test_parse_tokens_without_eof() -> None:
    tokens = [Token(TokenKind.NUMBER, 0, 3), Token(TokenKind.DIE, 1), Token(TokenKind.NUMBER, 2, 8)]
    assert parse_tokens(tokens) == Roll(Literal(3), Literal(8))


def test_parse_tokens_stream_ending_after_operator() -> None:
    with pytest.raises(UnexpectedEndOfInputError):
        parse_tokens([Token(TokenKind.NUMBER, 0, 3), Token(TokenKind.PLUS, 1)])


def test_max_depth_outside_recursion_budget_is_rejected() -> None:
    with pytest.raises(ValueError, match="max_depth must be between 1 and"):
        parse("1", max_depth=max_depth_limit() + 1)
    with pytest.raises(ValueError):
        parse("1", max_depth=0)


def test_nesting_up_to_a_raised_limit_parses() -> None:
    tree = parse("-" * 299 + "1", max_depth=300)
    assert depth(tree) == 300


def test_number_token_without_value_is_a_syntax_error() -> None:
    with pytest.raises(DiceSyntaxError) as excinfo:
        parse_tokens([Token(TokenKind.NUMBER, 0)])
    assert excinfo.value.expected == "number value"
