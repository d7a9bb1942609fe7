"""Constraint system construction ("configure").

ConstraintSystemBuilder allocates columns and selectors, marks columns eligible
for copy constraints, and registers gates. `build()` freezes everything into a
ConstraintSystem snapshot that is shared, read-only, by every subsequent
synthesis and check.

Example:
    meta = ConstraintSystemBuilder(FF)
    col_a, col_b, col_c = meta.advice_column(), meta.advice_column(), meta.advice_column()
    s = meta.selector()
    meta.create_gate("add", lambda vc: [
        vc.query_selector(s) * (vc.query_advice(col_a) + vc.query_advice(col_b)
                                 - vc.query_advice(col_c))
    ])
    cs = meta.build()
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Tuple, Union

from primitives.field import FF

from .base import (
    Column,
    ColumnQuery,
    ColumnType,
    Expression,
    Rotation,
    Selector,
    SelectorQuery,
    as_expression,
    as_rotation,
)
from .errors import UndeclaredColumnReference

logger = logging.getLogger(__name__)

GatePolynomials = Iterable[Union[Expression, Tuple[str, Expression]]]


@dataclass(frozen=True)
class Gate:
    """Named set of polynomial identities that must vanish on every row.

    Attributes:
        name: Gate name used in diagnostics
        polynomials: Expressions that must evaluate to zero
        constraint_names: One name per polynomial ('' when not given)
        selectors: Selectors queried anywhere in the gate
        queried_columns: Columns queried anywhere in the gate
    """
    name: str
    polynomials: Tuple[Expression, ...]
    constraint_names: Tuple[str, ...]
    selectors: FrozenSet[Selector]
    queried_columns: FrozenSet[Column]

    def degree(self) -> int:
        return max(p.degree() for p in self.polynomials)

    def constraint_label(self, index: int) -> str:
        name = self.constraint_names[index]
        return f"{self.name}[{index}]" + (f" '{name}'" if name else "")


@dataclass(frozen=True)
class ConstraintSystem:
    """Immutable result of configuration.

    Attributes:
        field: galois FieldArray class all cell values live in
        num_advice_columns: Advice columns allocated
        num_instance_columns: Instance columns allocated
        num_fixed_columns: Fixed columns allocated
        selectors: Allocated selectors in allocation order
        equality_columns: Columns eligible for copy constraints
        gates: Registered gates in registration order
    """
    field: type
    num_advice_columns: int
    num_instance_columns: int
    num_fixed_columns: int
    selectors: Tuple[Selector, ...]
    equality_columns: FrozenSet[Column]
    gates: Tuple[Gate, ...]

    def columns(self, kind: ColumnType) -> List[Column]:
        count = {
            ColumnType.ADVICE: self.num_advice_columns,
            ColumnType.INSTANCE: self.num_instance_columns,
            ColumnType.FIXED: self.num_fixed_columns,
        }[kind]
        return [Column(kind, i) for i in range(count)]

    def all_columns(self) -> List[Column]:
        return [col for kind in ColumnType for col in self.columns(kind)]

    def has_column(self, column: Column) -> bool:
        return isinstance(column, Column) and 0 <= column.index < len(self.columns(column.kind))

    def has_selector(self, selector: Selector) -> bool:
        return selector in self.selectors

    def degree(self) -> int:
        """Maximum degree over all gate polynomials (0 with no gates)."""
        return max((gate.degree() for gate in self.gates), default=0)

    def minimum_rows(self) -> int:
        """Smallest table height in which every rotation lands on a distinct row."""
        rotations = [abs(r) for gate in self.gates for p in gate.polynomials for r in p.rotations()]
        return 1 + max(rotations, default=0)


class VirtualCells:
    """Query helper handed to `create_gate` callbacks.

    Every query is validated against the builder so a gate cannot mention a
    column or selector from another constraint system.
    """

    def __init__(self, builder: "ConstraintSystemBuilder", gate_name: str):
        self._builder = builder
        self._gate_name = gate_name

    def query_selector(self, selector: Selector) -> Expression:
        if not self._builder._has_selector(selector):
            raise UndeclaredColumnReference(selector, f"gate '{self._gate_name}'")
        return SelectorQuery(selector)

    def query_any(self, column: Column, rotation: Union[Rotation, int] = 0) -> Expression:
        if not self._builder._has_column(column):
            raise UndeclaredColumnReference(column, f"gate '{self._gate_name}'")
        return ColumnQuery(column, as_rotation(rotation).offset)

    def query_advice(self, column: Column, rotation: Union[Rotation, int] = 0) -> Expression:
        return self._query_kind(column, ColumnType.ADVICE, rotation)

    def query_instance(self, column: Column, rotation: Union[Rotation, int] = 0) -> Expression:
        return self._query_kind(column, ColumnType.INSTANCE, rotation)

    def query_fixed(self, column: Column, rotation: Union[Rotation, int] = 0) -> Expression:
        return self._query_kind(column, ColumnType.FIXED, rotation)

    def _query_kind(self, column: Column, kind: ColumnType, rotation) -> Expression:
        if isinstance(column, Column) and column.kind != kind:
            raise ValueError(f"Expected {kind} column, got {column}")
        return self.query_any(column, rotation)


class ConstraintSystemBuilder:
    """Mutable builder used once, during configure."""

    def __init__(self, field: type = FF):
        self.field = field
        self._counts: Dict[ColumnType, int] = {kind: 0 for kind in ColumnType}
        self._selectors: List[Selector] = []
        self._equality: Dict[Column, None] = {}  # insertion-ordered set
        self._gates: List[Gate] = []

    # --- Allocation ---

    def _new_column(self, kind: ColumnType) -> Column:
        column = Column(kind, self._counts[kind])
        self._counts[kind] += 1
        return column

    def advice_column(self) -> Column:
        return self._new_column(ColumnType.ADVICE)

    def instance_column(self) -> Column:
        return self._new_column(ColumnType.INSTANCE)

    def fixed_column(self) -> Column:
        return self._new_column(ColumnType.FIXED)

    def selector(self) -> Selector:
        selector = Selector(len(self._selectors), simple=True)
        self._selectors.append(selector)
        return selector

    def complex_selector(self) -> Selector:
        selector = Selector(len(self._selectors), simple=False)
        self._selectors.append(selector)
        return selector

    def enable_equality(self, column: Column) -> None:
        """Allow `column` to take part in copy constraints. Idempotent."""
        if not self._has_column(column):
            raise UndeclaredColumnReference(column, "enable_equality")
        self._equality[column] = None

    # --- Gates ---

    def create_gate(self, name: str, f: Callable[[VirtualCells], GatePolynomials]) -> Gate:
        """Register a gate from the polynomials returned by `f`.

        `f` may return bare Expressions or (constraint_name, Expression) pairs.
        """
        polynomials = []
        names = []
        for item in f(VirtualCells(self, name)):
            if isinstance(item, tuple):
                constraint_name, poly = item
            else:
                constraint_name, poly = "", item
            polynomials.append(as_expression(poly))
            names.append(constraint_name)

        if not polynomials:
            raise ValueError(f"Gate '{name}' must contain at least one constraint")

        selectors = frozenset().union(*(p.queried_selectors() for p in polynomials))
        columns = frozenset().union(*(p.queried_columns() for p in polynomials))
        # Constants and selectors can also be built by hand outside VirtualCells.
        for column in sorted(columns, key=Column.sort_key):
            if not self._has_column(column):
                raise UndeclaredColumnReference(column, f"gate '{name}'")
        for selector in selectors:
            if not self._has_selector(selector):
                raise UndeclaredColumnReference(selector, f"gate '{name}'")

        gate = Gate(
            name=name,
            polynomials=tuple(polynomials),
            constraint_names=tuple(names),
            selectors=selectors,
            queried_columns=columns,
        )
        self._gates.append(gate)
        logger.debug("Registered gate '%s' with %d constraint(s), degree %d",
                     name, len(polynomials), gate.degree())
        return gate

    # --- Snapshot ---

    def build(self) -> ConstraintSystem:
        return ConstraintSystem(
            field=self.field,
            num_advice_columns=self._counts[ColumnType.ADVICE],
            num_instance_columns=self._counts[ColumnType.INSTANCE],
            num_fixed_columns=self._counts[ColumnType.FIXED],
            selectors=tuple(self._selectors),
            equality_columns=frozenset(self._equality),
            gates=tuple(self._gates),
        )

    def _has_column(self, column: Column) -> bool:
        return isinstance(column, Column) and 0 <= column.index < self._counts[column.kind]

    def _has_selector(self, selector: Selector) -> bool:
        return selector in self._selectors
