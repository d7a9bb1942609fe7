"""Vectorized expression evaluation over a whole assignment table.

Every expression node is evaluated for all rows at once as a pair
(values, known): a galois array of length row_count and a numpy bool mask.
Rotations are circular shifts, so row r + rotation wraps modulo row_count,
matching the cyclic evaluation domain the table ultimately feeds into.

Unknown cells follow three-valued arithmetic: a sum is known only if both
sides are, while a product is also known whenever either side is a known
zero. A gate whose selector is off therefore evaluates to a known 0 on that
row no matter what its other cells hold, with no special casing.
"""

from typing import Any, Dict, FrozenSet, Optional, Sequence, Tuple

import numpy as np

from constraints.base import Column, ColumnType, Expression, Selector
from primitives.field import is_zero, to_field
from protocol.data import AssignmentTable, Cell

Evaluation = Tuple[Any, np.ndarray]


class TableEvaluator:
    """Evaluates expressions against one table and one public-input vector set.

    Instance columns are read from `public_inputs` (zero padded to the table
    height) rather than from the table, so the check is always against the
    public inputs being verified.
    """

    def __init__(self, table: AssignmentTable, public_inputs: Sequence[Sequence[Any]]):
        self.table = table
        self.field = table.field
        self.n = table.row_count
        self._columns: Dict[Column, Evaluation] = {}

        instance_columns = table.cs.columns(ColumnType.INSTANCE)
        for column, inputs in zip(instance_columns, public_inputs):
            values = self.field.Zeros(self.n)
            for row, value in enumerate(inputs):
                values[row] = to_field(self.field, value)
            self._columns[column] = (values, np.ones(self.n, dtype=bool))

    # --- Leaves ---

    def column(self, column: Column) -> Evaluation:
        if column not in self._columns:
            self._columns[column] = self.table.column_values(column)
        return self._columns[column]

    def query(self, column: Column, rotation: int) -> Evaluation:
        values, known = self.column(column)
        # Row r reads row r + rotation: shift left by `rotation` (circular)
        return np.roll(values, -rotation), np.roll(known, -rotation)

    def selector(self, selector: Selector) -> Evaluation:
        values = self.field.Zeros(self.n)
        values[self.table.selector_values(selector)] = 1
        return values, np.ones(self.n, dtype=bool)

    def constant(self, value: Any) -> Evaluation:
        return self.field.Zeros(self.n) + to_field(self.field, value), np.ones(self.n, dtype=bool)

    # --- Expressions ---

    def evaluate(self, expr: Expression) -> Evaluation:
        """Evaluate `expr` on every row.

        Returns:
            (values, known) where values[r] is meaningful only where known[r]
        """
        return expr.evaluate(
            constant=self.constant,
            selector=self.selector,
            query=self.query,
            negated=_negated,
            sum_=_sum,
            product=_product,
        )

    def cell_value(self, cell: Cell) -> Optional[Any]:
        values, known = self.column(cell.column)
        if not known[cell.row]:
            return None
        return values[cell.row]


def _negated(a: Evaluation) -> Evaluation:
    values, known = a
    return -values, known


def _sum(a: Evaluation, b: Evaluation) -> Evaluation:
    return a[0] + b[0], a[1] & b[1]


def _product(a: Evaluation, b: Evaluation) -> Evaluation:
    (a_values, a_known), (b_values, b_known) = a, b
    known = (a_known & b_known) | (a_known & is_zero(a_values)) | (b_known & is_zero(b_values))
    return a_values * b_values, known


def queried_cells(expr: Expression) -> FrozenSet[Tuple[Column, int]]:
    """All (column, rotation) pairs an expression reads."""
    return expr.evaluate(
        constant=lambda _: frozenset(),
        selector=lambda _: frozenset(),
        query=lambda col, rot: frozenset([(col, rot)]),
        negated=lambda s: s,
        sum_=lambda a, b: a | b,
        product=lambda a, b: a | b,
    )
