"""Layouter: maps region requests onto disjoint rows of the global table.

Region code only ever sees relative rows. The layout strategy decides where
each region lands:

- SimpleStrategy (default): every region starts at the first row after the
  previous one, in request order. No two regions share a row.
- PackedStrategy: horizontal compression. The callback is first run against a
  RegionShape to learn which columns it touches and how tall it is, then the
  region is placed at the lowest row at which all of those columns are free.
  Regions over disjoint columns may share rows. Callbacks must therefore be
  safe to run twice.

Example:
    layouter = Layouter(table)
    a, b = layouter.assign_region("first row", lambda region: (
        region.assign_advice_from_instance(instance, 0, col_a, 0),
        region.assign_advice_from_instance(instance, 1, col_b, 0),
    ))
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Tuple, Union

from constraints.base import Column, ColumnType
from constraints.errors import EqualityNotEnabled, UndeclaredColumnReference
from protocol.data import AssignmentTable, Cell, RegionInfo
from protocol.permutation import CopyConstraint

from .region import AssignedCell, Region, RegionShape

logger = logging.getLogger(__name__)

RegionCallback = Callable[[Region], Any]


class LayoutStrategy(ABC):
    """Decides the absolute offset of each region."""

    @abstractmethod
    def assign_region(self, table: AssignmentTable, name: str, callback: RegionCallback) -> Any:
        """Place a region, run `callback` against it, commit, and return its result."""
        pass

    def _run(self, table: AssignmentTable, name: str, offset: int,
             callback: RegionCallback) -> Tuple[Any, RegionInfo]:
        region = Region(table, index=len(table.regions), name=name, offset=offset)
        result = callback(region)
        info = region.commit()
        logger.debug("Region %d '%s' placed at rows [%d, %d)",
                     info.index, info.name, info.offset, info.offset + info.height)
        return result, info


class SimpleStrategy(LayoutStrategy):
    """Sequential placement at the next unused row."""

    def __init__(self):
        self.next_row = 0

    def assign_region(self, table: AssignmentTable, name: str, callback: RegionCallback) -> Any:
        result, info = self._run(table, name, self.next_row, callback)
        self.next_row = info.offset + info.height
        return result


class PackedStrategy(LayoutStrategy):
    """Per-column first fit: a region starts where all of its columns are free."""

    def __init__(self):
        self.frontier: Dict[Any, int] = {}

    def assign_region(self, table: AssignmentTable, name: str, callback: RegionCallback) -> Any:
        shape = RegionShape(table, name)
        callback(shape)
        offset = max((self.frontier.get(key, 0) for key in shape.columns), default=0)

        result, info = self._run(table, name, offset, callback)
        for key in info.columns:
            self.frontier[key] = max(self.frontier.get(key, 0), info.offset + info.height)
        return result


# Registry mapping strategy names to layout strategy classes
LAYOUT_STRATEGIES: Dict[str, type] = {
    "simple": SimpleStrategy,
    "packed": PackedStrategy,
}


def get_layout_strategy(name: str) -> LayoutStrategy:
    """Get a fresh layout strategy instance by name.

    Raises:
        KeyError: If no strategy is registered under `name`
    """
    if name in LAYOUT_STRATEGIES:
        return LAYOUT_STRATEGIES[name]()
    raise KeyError(
        f"No layout strategy '{name}'. "
        f"Available: {list(LAYOUT_STRATEGIES.keys())}"
    )


class Layouter:
    """Drives region callbacks for one synthesis.

    Namespaced views returned by `namespace()` share the table and the
    strategy state with the layouter they came from.
    """

    def __init__(self, table: AssignmentTable,
                 strategy: Union[str, LayoutStrategy] = "simple",
                 prefix: str = ""):
        self.table = table
        self.strategy = get_layout_strategy(strategy) if isinstance(strategy, str) else strategy
        self._prefix = prefix

    def namespace(self, name: str) -> "Layouter":
        return Layouter(self.table, self.strategy, prefix=self._qualify(name))

    def assign_region(self, name: str, callback: RegionCallback) -> Any:
        """Allocate the next region, run `callback(region)`, and commit its writes."""
        return self.strategy.assign_region(self.table, self._qualify(name), callback)

    def constrain_instance(self, cell: Union[Cell, AssignedCell], instance_column: Column,
                           row: int) -> None:
        """Bind a cell to public-input slot `row` of `instance_column`."""
        cell = cell.cell if isinstance(cell, AssignedCell) else cell
        if not self.table.cs.has_column(instance_column):
            raise UndeclaredColumnReference(instance_column, "constrain_instance")
        if instance_column.kind != ColumnType.INSTANCE:
            raise ValueError(f"Expected {ColumnType.INSTANCE} column, got {instance_column}")
        self.table.check_column(cell.column, "constrain_instance")
        self.table.check_row(row, f"instance row of {instance_column}")
        for column in (cell.column, instance_column):
            if column not in self.table.cs.equality_columns:
                raise EqualityNotEnabled(column)
        self.table.add_copy(CopyConstraint.between(cell, Cell(instance_column, row)))

    def _qualify(self, name: str) -> str:
        return f"{self._prefix}/{name}" if self._prefix else name
