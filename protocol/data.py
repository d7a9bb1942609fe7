"""Assignment table: the materialized grid of one synthesis.

Architecture Overview:
    Each synthesis ("one witness, one table") builds a fresh AssignmentTable
    from the shared, immutable ConstraintSystem:

    - Cell values are stored column-wise as galois arrays of length row_count,
      paired with a numpy bool mask marking which cells are known.
    - Selectors are numpy bool arrays, so they can only ever be 0 or 1.
    - Copy requests are recorded in order as CopyConstraints and replayed into
      a PermutationIndex by the checker.
    - The Layouter records one RegionInfo per placed region.

    Every cell starts unknown: reading an unset advice or fixed cell yields
    None, never a default. Instance cells are known only where public inputs
    were seeded before synthesis.

Usage:
    table = AssignmentTable(cs, rows_for_k(4))
    table.seed_instance(public_inputs)
    layouter = Layouter(table)
    circuit.synthesize(config, layouter, witness)
    verdict = check(cs, table, public_inputs)
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from constraints.base import Column, ColumnType, Selector
from constraints.errors import RegionOutOfBounds, UndeclaredColumnReference
from constraints.system import ConstraintSystem
from primitives.field import to_field

if TYPE_CHECKING:
    from protocol.permutation import CopyConstraint, PermutationIndex


def rows_for_k(k: int) -> int:
    """Table height 2^k, the convention of domain-based proving systems."""
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    return 1 << k


@dataclass(frozen=True)
class Cell:
    """Addressable unit of the table: a column at an absolute row."""
    column: Column
    row: int

    def __str__(self) -> str:
        return f"{self.column}@{self.row}"

    def sort_key(self) -> tuple:
        return self.column.sort_key() + (self.row,)


@dataclass(frozen=True)
class RegionInfo:
    """Placement of one region in the global table.

    Attributes:
        index: Position in request order
        name: Region name (namespaced)
        offset: Absolute row of the region's relative row 0
        height: Number of rows the region spans
        columns: Columns and selectors the region touched
    """
    index: int
    name: str
    offset: int
    height: int
    columns: FrozenSet[Any] = field(default_factory=frozenset)

    @property
    def rows(self) -> range:
        return range(self.offset, self.offset + self.height)


class AssignmentTable:
    """Row x column grid of optional field values for one synthesis."""

    def __init__(self, cs: ConstraintSystem, row_count: int):
        if row_count <= 0:
            raise ValueError(f"row_count must be positive, got {row_count}")
        self.cs = cs
        self.field = cs.field
        self.row_count = row_count

        self._values: Dict[Column, Any] = {}
        self._known: Dict[Column, np.ndarray] = {}
        for column in cs.all_columns():
            self._values[column] = self.field.Zeros(row_count)
            self._known[column] = np.zeros(row_count, dtype=bool)
        self._selectors: Dict[Selector, np.ndarray] = {
            s: np.zeros(row_count, dtype=bool) for s in cs.selectors
        }

        self.copy_constraints: List["CopyConstraint"] = []
        self.regions: List[RegionInfo] = []
        self.annotations: Dict[Cell, str] = {}

    # --- Validation ---

    def check_column(self, column: Column, context: str = "") -> None:
        if not self.cs.has_column(column):
            raise UndeclaredColumnReference(column, context)

    def check_row(self, row: int, context: str = "") -> None:
        if not 0 <= row < self.row_count:
            raise RegionOutOfBounds(row, self.row_count, context)

    # --- Writes (synthesis only) ---

    def seed_instance(self, public_inputs: Sequence[Sequence[Any]]) -> None:
        """Load public inputs into the instance columns so synthesis can read them.

        Values that do not fit (extra vectors, rows beyond the table) are left
        for the checker to report as an instance length mismatch.
        """
        for column, values in zip(self.cs.columns(ColumnType.INSTANCE), public_inputs):
            for row, value in enumerate(values[:self.row_count]):
                self.assign(column, row, value)

    def assign(self, column: Column, row: int, value: Any, annotation: str = "") -> None:
        """Write `value` at (column, row); None marks the cell unknown."""
        self.check_column(column, "assign")
        self.check_row(row, f"assign {column}")
        if annotation:
            self.annotations[Cell(column, row)] = annotation
        if value is None:
            self._values[column][row] = 0
            self._known[column][row] = False
            return
        self._values[column][row] = to_field(self.field, value)
        self._known[column][row] = True

    def enable_selector(self, selector: Selector, row: int) -> None:
        if selector not in self._selectors:
            raise UndeclaredColumnReference(selector, "enable_selector")
        self.check_row(row, f"enable {selector}")
        self._selectors[selector][row] = True

    def add_copy(self, constraint: "CopyConstraint") -> None:
        self.copy_constraints.append(constraint)

    def add_region(self, region: RegionInfo) -> None:
        self.regions.append(region)

    # --- Reads ---

    def get(self, column: Column, row: int) -> Optional[Any]:
        """Value at (column, row), or None if the cell was never assigned."""
        self.check_column(column, "get")
        self.check_row(row, f"get {column}")
        if not self._known[column][row]:
            return None
        return self._values[column][row]

    def get_cell(self, cell) -> Optional[Any]:
        return self.get(cell.column, cell.row)

    def column_values(self, column: Column) -> Tuple[Any, np.ndarray]:
        """Copies of a column's values and known-mask."""
        self.check_column(column, "column_values")
        return self._values[column].copy(), self._known[column].copy()

    def selector_values(self, selector: Selector) -> np.ndarray:
        if selector not in self._selectors:
            raise UndeclaredColumnReference(selector, "selector_values")
        return self._selectors[selector].copy()

    def permutation(self) -> "PermutationIndex":
        from protocol.permutation import PermutationIndex

        return PermutationIndex.from_copy_constraints(self.copy_constraints)

    def region_at(self, row: int) -> Optional[RegionInfo]:
        """The region placed over `row`, if any (first match under packing)."""
        for region in self.regions:
            if row in region.rows:
                return region
        return None

    def used_rows(self) -> int:
        """One past the last row covered by any region."""
        return max((r.offset + r.height for r in self.regions), default=0)
