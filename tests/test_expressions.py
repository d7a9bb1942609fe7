"""Tests for the expression tree in constraints.base."""

import pytest

from constraints.base import (
    Column,
    ColumnQuery,
    ColumnType,
    Constant,
    Expression,
    Negated,
    Product,
    Rotation,
    Selector,
    SelectorQuery,
    Sum,
    as_expression,
)

A = Column(ColumnType.ADVICE, 0)
B = Column(ColumnType.ADVICE, 1)
I = Column(ColumnType.INSTANCE, 0)
S = Selector(0)


def _eval_ints(expr, cells, selectors=None):
    """Evaluate an expression over plain ints, for checking tree shape."""
    selectors = selectors or {}
    return expr.evaluate(
        constant=lambda v: v,
        selector=lambda s: selectors.get(s, 0),
        query=lambda col, rot: cells[(col, rot)],
        negated=lambda v: -v,
        sum_=lambda a, b: a + b,
        product=lambda a, b: a * b,
    )


def test_operators_build_tree() -> None:
    """+, -, * and unary minus build Sum, Negated and Product nodes."""
    a, b = ColumnQuery(A), ColumnQuery(B)

    assert isinstance(a + b, Sum)
    assert isinstance(a * b, Product)
    assert isinstance(-a, Negated)

    diff = a - b
    assert isinstance(diff, Sum)
    assert isinstance(diff.right, Negated)


def test_ints_are_lifted_to_constants() -> None:
    a = ColumnQuery(A)

    assert isinstance((a + 1).right, Constant)
    assert isinstance((1 + a).left, Constant)
    assert isinstance((2 * a).left, Constant)
    assert isinstance((a - 1).right.inner, Constant)

    assert _eval_ints(3 - a, {(A, 0): 5}) == -2
    assert _eval_ints(2 * a + 1, {(A, 0): 5}) == 11


def test_evaluate_folds_bottom_up() -> None:
    """s * (a + b - a_next) evaluates with the supplied leaf functions."""
    expr = SelectorQuery(S) * (ColumnQuery(A) + ColumnQuery(B) - ColumnQuery(A, 1))
    cells = {(A, 0): 2, (B, 0): 3, (A, 1): 4}

    assert _eval_ints(expr, cells, {S: 1}) == 1
    assert _eval_ints(expr, cells, {S: 0}) == 0


def test_degree() -> None:
    s, a, b = SelectorQuery(S), ColumnQuery(A), ColumnQuery(B)

    assert as_expression(7).degree() == 0
    assert a.degree() == 1
    assert (s * (a + b)).degree() == 2
    assert (s * (a * b - a)).degree() == 3
    assert (-(a * b)).degree() == 2


def test_queried_columns_and_selectors() -> None:
    expr = SelectorQuery(S) * (ColumnQuery(A) + ColumnQuery(I, 2) - 5)

    assert expr.queried_columns() == frozenset([A, I])
    assert expr.queried_selectors() == frozenset([S])


def test_rotations() -> None:
    expr = ColumnQuery(A, Rotation.cur().offset) + ColumnQuery(A, Rotation.next().offset) \
        - ColumnQuery(A, Rotation(2).offset)

    assert expr.rotations() == frozenset([0, 1, 2])
    assert ColumnQuery(A, Rotation.prev().offset).rotations() == frozenset([-1])


def test_unqueried_column_rejected() -> None:
    """Columns and selectors must be queried before they appear in an expression."""
    with pytest.raises(TypeError, match="must be queried"):
        as_expression(A)
    with pytest.raises(TypeError):
        ColumnQuery(A) + B
    with pytest.raises(TypeError):
        ColumnQuery(A) * S


def test_column_display() -> None:
    assert str(A) == "Advice[0]"
    assert str(I) == "Instance[0]"
    assert str(Column(ColumnType.FIXED, 3)) == "Fixed[3]"
    assert A.sort_key() < I.sort_key()


def test_expression_base_is_abstract() -> None:
    with pytest.raises(TypeError):
        Expression()
