"""Region: the scoped cursor region callbacks write through.

A Region is handed to exactly one callback invocation. Every row it accepts is
relative to the region; the Layouter alone knows the absolute offset. Writes,
selector activations and copy requests are staged on the region and only
committed into the AssignmentTable after the callback returns, so a callback
that raises leaves the table untouched.

RegionShape is the measuring variant used by packing layouts: it records which
columns a callback touches and how many rows it needs, without evaluating any
value function or recording any copy.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set, Tuple, Union

from constraints.base import Column, ColumnType, Selector
from constraints.errors import EqualityNotEnabled, RegionOutOfBounds, UndeclaredColumnReference
from primitives.field import to_field
from protocol.data import AssignmentTable, Cell, RegionInfo
from protocol.permutation import CopyConstraint

ValueFn = Union[Callable[[], Any], Any]


@dataclass(frozen=True)
class AssignedCell:
    """A cell written during synthesis together with the value written.

    Threaded explicitly from one assignment step to the next; `value` is None
    when the witness is unknown.
    """
    cell: Cell
    value: Optional[Any]

    @property
    def column(self) -> Column:
        return self.cell.column

    @property
    def row(self) -> int:
        return self.cell.row

    def copy_advice(self, region: "Region", column: Column, row: int,
                    annotation: str = "") -> "AssignedCell":
        """Copy this cell into `column` at `row` of `region`, constraining equality."""
        return region.copy_advice(self, column, row, annotation)


def _as_cell(cell: Union[Cell, AssignedCell]) -> Cell:
    return cell.cell if isinstance(cell, AssignedCell) else cell


class Region:
    """Mutable handle for one `assign_region` callback."""

    def __init__(self, table: AssignmentTable, index: int, name: str, offset: int):
        self._table = table
        self.index = index
        self.name = name
        self.offset = offset

        self._writes: List[Tuple[Column, int, Any, str]] = []
        self._enabled: List[Tuple[Selector, int]] = []
        self._copies: List[CopyConstraint] = []
        self._columns: Set[Union[Column, Selector]] = set()
        self._height = 0

    @property
    def height(self) -> int:
        """One past the largest relative row touched so far."""
        return self._height

    # --- Selectors ---

    def enable_selector(self, selector: Selector, row: int) -> None:
        if not self._table.cs.has_selector(selector):
            raise UndeclaredColumnReference(selector, f"region '{self.name}'")
        absolute = self._touch(selector, row)
        self._enabled.append((selector, absolute))

    # --- Assignments ---

    def assign_advice(self, column: Column, row: int, value_fn: ValueFn,
                      annotation: str = "") -> AssignedCell:
        """Witness a value; creates no copy constraint."""
        self._require_kind(column, ColumnType.ADVICE)
        return self._write(column, row, value_fn, annotation)

    def assign_fixed(self, column: Column, row: int, value_fn: ValueFn,
                     annotation: str = "") -> AssignedCell:
        self._require_kind(column, ColumnType.FIXED)
        return self._write(column, row, value_fn, annotation)

    def assign_advice_from_instance(
        self,
        instance_column: Column,
        instance_row: int,
        column: Column,
        row: int,
        annotation: str = "",
    ) -> AssignedCell:
        """Copy a public input into an advice cell and bind the two together."""
        self._require_kind(instance_column, ColumnType.INSTANCE)
        self._require_kind(column, ColumnType.ADVICE)
        self._table.check_row(instance_row, f"instance row of region '{self.name}'")
        self._require_equality(instance_column)
        self._require_equality(column)

        source = Cell(instance_column, instance_row)
        assigned = self._write(column, row, lambda: self._read(source), annotation)
        self._stage_copy(source, assigned.cell)
        return assigned

    def copy_advice(self, source: Union[Cell, AssignedCell], column: Column, row: int,
                    annotation: str = "") -> AssignedCell:
        """Assign `source`'s value to a new advice cell and constrain them equal.

        A bare Cell must already be committed (placed by an earlier region);
        its value is read back from the table.
        """
        self._require_kind(column, ColumnType.ADVICE)
        cell = _as_cell(source)
        self._require_equality(cell.column)
        self._require_equality(column)

        if isinstance(source, AssignedCell):
            assigned = self._write(column, row, lambda: source.value, annotation)
        else:
            assigned = self._write(column, row, lambda: self._read(cell), annotation)
        self._stage_copy(cell, assigned.cell)
        return assigned

    # --- Equality ---

    def constrain_equal(self, left: Union[Cell, AssignedCell],
                        right: Union[Cell, AssignedCell]) -> None:
        left, right = _as_cell(left), _as_cell(right)
        self._require_equality(left.column)
        self._require_equality(right.column)
        self._stage_copy(left, right)

    def constrain_instance(self, cell: Union[Cell, AssignedCell], instance_column: Column,
                           instance_row: int) -> None:
        """Bind a cell to a public-input slot."""
        self._require_kind(instance_column, ColumnType.INSTANCE)
        self._table.check_row(instance_row, f"instance row of region '{self.name}'")
        self.constrain_equal(cell, Cell(instance_column, instance_row))

    # --- Commit ---

    def commit(self) -> RegionInfo:
        """Flush staged operations into the table and record the placement."""
        for column, row, value, annotation in self._writes:
            self._table.assign(column, row, value, annotation)
        for selector, row in self._enabled:
            self._table.enable_selector(selector, row)
        for copy in self._copies:
            self._table.add_copy(copy)
        info = RegionInfo(
            index=self.index,
            name=self.name,
            offset=self.offset,
            height=self._height,
            columns=frozenset(self._columns),
        )
        self._table.add_region(info)
        return info

    # --- Internals ---

    def _touch(self, key: Union[Column, Selector], row: int) -> int:
        if row < 0:
            raise RegionOutOfBounds(row, self._table.row_count,
                                    f"negative relative row in region '{self.name}'")
        absolute = self._absolute(row)
        self._columns.add(key)
        self._height = max(self._height, row + 1)
        return absolute

    def _absolute(self, row: int) -> int:
        absolute = self.offset + row
        self._table.check_row(absolute, f"row {row} of region '{self.name}'")
        return absolute

    def _write(self, column: Column, row: int, value_fn: ValueFn,
               annotation: str = "") -> AssignedCell:
        absolute = self._touch(column, row)
        value = self._evaluate(value_fn)
        self._writes.append((column, absolute, value, annotation))
        return AssignedCell(Cell(column, absolute), value)

    def _evaluate(self, value_fn: ValueFn) -> Optional[Any]:
        value = value_fn() if callable(value_fn) else value_fn
        if value is None:
            return None
        return to_field(self._table.field, value)

    def _read(self, cell: Cell) -> Optional[Any]:
        return self._table.get_cell(cell)

    def _stage_copy(self, left: Cell, right: Cell) -> None:
        self._copies.append(CopyConstraint.between(left, right))

    def _require_kind(self, column: Column, kind: ColumnType) -> None:
        if not self._table.cs.has_column(column):
            raise UndeclaredColumnReference(column, f"region '{self.name}'")
        if column.kind != kind:
            raise ValueError(f"Expected {kind} column, got {column}")

    def _require_equality(self, column: Column) -> None:
        if not self._table.cs.has_column(column):
            raise UndeclaredColumnReference(column, f"region '{self.name}'")
        if column not in self._table.cs.equality_columns:
            raise EqualityNotEnabled(column)


class RegionShape(Region):
    """Measuring pass: records touched columns and height, nothing else."""

    def __init__(self, table: AssignmentTable, name: str):
        super().__init__(table, index=-1, name=name, offset=0)

    def _absolute(self, row: int) -> int:
        return row

    def _evaluate(self, value_fn: ValueFn) -> Optional[Any]:
        return None

    def _stage_copy(self, left: Cell, right: Cell) -> None:
        pass

    def commit(self) -> RegionInfo:
        raise RuntimeError("A RegionShape is never committed")

    @property
    def columns(self) -> Set[Union[Column, Selector]]:
        return set(self._columns)
