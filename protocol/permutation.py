"""Copy-constraint bookkeeping.

Every copy request made during synthesis is recorded as a CopyConstraint. The
checker replays them into a PermutationIndex, a union-find over cells, whose
classes are the sets of cells that must all hold the same value. Union is
commutative and associative, so replay order never changes the partition.
"""

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Tuple

from constraints.base import ColumnType
from protocol.data import Cell


@dataclass(frozen=True)
class CopyConstraint:
    """Unordered pair of cells declared equal.

    Attributes:
        left: First cell
        right: Second cell
        instance_binding: True when one side is a public-input (instance) cell
    """
    left: Cell
    right: Cell
    instance_binding: bool = False

    @classmethod
    def between(cls, left: Cell, right: Cell) -> "CopyConstraint":
        binding = ColumnType.INSTANCE in (left.column.kind, right.column.kind)
        return cls(left, right, instance_binding=binding)

    def instance_cells(self) -> List[Cell]:
        return [c for c in (self.left, self.right) if c.column.kind == ColumnType.INSTANCE]


class PermutationIndex:
    """Union-find over cells with path compression and union by size."""

    def __init__(self):
        self._parent: Dict[Hashable, Hashable] = {}
        self._size: Dict[Hashable, int] = {}

    @classmethod
    def from_copy_constraints(cls, constraints: Iterable[CopyConstraint]) -> "PermutationIndex":
        index = cls()
        for constraint in constraints:
            index.union(constraint.left, constraint.right)
        return index

    def find(self, cell: Cell) -> Cell:
        """Return the representative of `cell`'s class (a cell is its own class)."""
        parent = self._parent.setdefault(cell, cell)
        if parent == cell:
            self._size.setdefault(cell, 1)
            return cell
        root = parent
        while self._parent[root] != root:
            root = self._parent[root]
        # Path compression
        while self._parent[cell] != root:
            self._parent[cell], cell = root, self._parent[cell]
        return root

    def union(self, a: Cell, b: Cell) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size.pop(root_b)

    def same_class(self, a: Cell, b: Cell) -> bool:
        return self.find(a) == self.find(b)

    def classes(self) -> List[Tuple[Cell, ...]]:
        """Equivalence classes with at least two cells, in deterministic order."""
        groups: Dict[Cell, List[Cell]] = {}
        for cell in list(self._parent):
            groups.setdefault(self.find(cell), []).append(cell)
        result = [tuple(sorted(members, key=Cell.sort_key))
                  for members in groups.values() if len(members) > 1]
        return sorted(result, key=lambda members: members[0].sort_key())

    def __len__(self) -> int:
        return len(self._parent)
