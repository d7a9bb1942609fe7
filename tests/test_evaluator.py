"""Tests for the vectorized three-valued TableEvaluator."""

import numpy as np
import pytest

from constraints.base import ColumnQuery, Constant, SelectorQuery
from constraints.system import ConstraintSystemBuilder
from primitives.field import FF
from protocol.data import AssignmentTable, Cell
from protocol.evaluator import TableEvaluator, queried_cells


@pytest.fixture
def setup():
    """4-row table: advice column a = [1, 2, 3, 4], b unassigned, selector on row 0."""
    meta = ConstraintSystemBuilder(FF)
    a = meta.advice_column()
    b = meta.advice_column()
    instance = meta.instance_column()
    s = meta.selector()
    table = AssignmentTable(meta.build(), 4)
    for row, value in enumerate([1, 2, 3, 4]):
        table.assign(a, row, value)
    table.enable_selector(s, 0)
    return table, a, b, instance, s


def _ints(values):
    return [int(v) for v in values]


def test_query_rotations_wrap(setup) -> None:
    """Row r reads row (r + rotation) mod n."""
    table, a, _, _, _ = setup
    evaluator = TableEvaluator(table, [[]])

    cur, _ = evaluator.query(a, 0)
    nxt, _ = evaluator.query(a, 1)
    prev, _ = evaluator.query(a, -1)

    assert _ints(cur) == [1, 2, 3, 4]
    assert _ints(nxt) == [2, 3, 4, 1]
    assert _ints(prev) == [4, 1, 2, 3]


def test_instance_values_come_from_public_inputs(setup) -> None:
    """Instance columns are read from public inputs, zero padded, all known."""
    table, _, _, instance, _ = setup
    table.seed_instance([[9, 9, 9]])
    evaluator = TableEvaluator(table, [[7, 8]])

    values, known = evaluator.column(instance)
    assert _ints(values) == [7, 8, 0, 0]
    assert known.all()


def test_selector_evaluates_to_zero_or_one(setup) -> None:
    table, _, _, _, s = setup
    values, known = TableEvaluator(table, [[]]).evaluate(SelectorQuery(s))

    assert _ints(values) == [1, 0, 0, 0]
    assert known.all()


def test_arithmetic(setup) -> None:
    table, a, _, _, _ = setup
    expr = ColumnQuery(a) * ColumnQuery(a, 1) - 2

    values, known = TableEvaluator(table, [[]]).evaluate(expr)

    assert _ints(values) == [0, 4, 10, 2]
    assert known.all()


def test_negative_constants_wrap(setup) -> None:
    table, a, _, _, _ = setup
    values, _ = TableEvaluator(table, [[]]).evaluate(ColumnQuery(a) + Constant(-1))

    assert _ints(values) == [0, 1, 2, 3]


def test_sum_with_unknown_is_unknown(setup) -> None:
    table, a, b, _, _ = setup
    _, known = TableEvaluator(table, [[]]).evaluate(ColumnQuery(a) + ColumnQuery(b))

    assert not known.any()


def test_product_with_known_zero_is_known(setup) -> None:
    """s * (unknown) is a known zero wherever the selector is off."""
    table, a, b, _, s = setup
    expr = SelectorQuery(s) * (ColumnQuery(a) - ColumnQuery(b))

    values, known = TableEvaluator(table, [[]]).evaluate(expr)

    assert known.tolist() == [False, True, True, True]
    assert _ints(values)[1:] == [0, 0, 0]


def test_cell_value(setup) -> None:
    table, a, b, _, _ = setup
    evaluator = TableEvaluator(table, [[]])

    assert evaluator.cell_value(Cell(a, 2)) == 3
    assert evaluator.cell_value(Cell(b, 2)) is None


def test_column_reads_do_not_alias_table(setup) -> None:
    table, a, _, _, _ = setup
    values, _ = TableEvaluator(table, [[]]).column(a)
    values[0] = 100

    assert table.get(a, 0) == 1
    assert np.array_equal(TableEvaluator(table, [[]]).column(a)[0], FF([1, 2, 3, 4]))


def test_queried_cells(setup) -> None:
    _, a, b, instance, s = setup
    expr = SelectorQuery(s) * (ColumnQuery(a) + ColumnQuery(a, 1) - ColumnQuery(instance, 2)) \
        + ColumnQuery(b) * 0

    assert queried_cells(expr) == frozenset([(a, 0), (a, 1), (instance, 2), (b, 0)])
