"""Mock prover: checks a synthesized table against its constraint system.

The check runs in three phases and never stops at the first failure:

1. Public-input shape - one vector per instance column, each at least as long
   as the highest instance row bound by a copy constraint (+1) and no longer
   than the table. Only columns some gate queries may exceed that bound. A
   mismatch short-circuits: the remaining checks would be meaningless.
2. Gates - every polynomial of every gate is evaluated on every row.
3. Permutation - every class of cells linked by copy constraints must hold a
   single known value.

The result is a Verdict listing every violation in a deterministic order, so
checking the same (constraint system, witness, public inputs) twice yields
identical verdicts. A real proving backend would consume the same
ConstraintSystem and AssignmentTable to produce a succinct proof instead.

Example:
    verdict = run_check(16, FibonacciCircuit(), [[1, 1, 55]])
    verdict.assert_satisfied()
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from constraints.base import Column, ColumnType
from constraints.errors import VerificationFailure
from constraints.system import ConstraintSystem, ConstraintSystemBuilder
from primitives.field import is_zero, maybe_int
from protocol.config import CheckConfig
from protocol.data import AssignmentTable, Cell, rows_for_k
from protocol.evaluator import TableEvaluator, queried_cells
from witness.base import Circuit
from witness.layouter import Layouter

logger = logging.getLogger(__name__)

PublicInputs = Sequence[Sequence[Any]]


# --- Violations ---

@dataclass(frozen=True)
class InstanceLengthMismatch:
    """Public inputs do not match the instance rows the circuit binds.

    Attributes:
        column: Instance column concerned, or None when the number of vectors
            differs from the number of instance columns
        expected: Expected length (or number of vectors)
        actual: Supplied length (or number of vectors)
    """
    column: Optional[Column]
    expected: int
    actual: int

    def sort_key(self) -> tuple:
        return (0, self.column.sort_key() if self.column else ())

    def __str__(self) -> str:
        if self.column is None:
            return (f"Instance length mismatch: expected {self.expected} public-input "
                    f"vector(s), got {self.actual}")
        return (f"Instance length mismatch on {self.column}: expected {self.expected} "
                f"value(s), got {self.actual}")


@dataclass(frozen=True)
class ConstraintNotSatisfied:
    """A gate polynomial evaluates to a nonzero value at a row.

    Attributes:
        gate: Gate name
        gate_index: Gate position in the constraint system
        constraint_index: Polynomial position within the gate
        constraint_name: Polynomial name ('' when unnamed)
        row: Absolute row
        region: Name of the region covering the row, if any
        cell_values: (cell, value) for every cell the polynomial read
    """
    gate: str
    gate_index: int
    constraint_index: int
    constraint_name: str
    row: int
    region: Optional[str]
    cell_values: Tuple[Tuple[Cell, Optional[int]], ...]

    def sort_key(self) -> tuple:
        return (1, self.gate_index, self.constraint_index, self.row)

    def __str__(self) -> str:
        name = f" '{self.constraint_name}'" if self.constraint_name else ""
        where = f" in region '{self.region}'" if self.region else ""
        cells = ", ".join(f"{cell} = {'?' if v is None else v}" for cell, v in self.cell_values)
        return (f"Constraint {self.constraint_index}{name} of gate '{self.gate}' is not "
                f"satisfied at row {self.row}{where}: {cells}")


@dataclass(frozen=True)
class UnassignedCell:
    """A gate needed a cell value that was never assigned.

    Attributes:
        gate: Gate name
        gate_index: Gate position in the constraint system
        constraint_index: Polynomial position within the gate
        row: Absolute row
        region: Name of the region covering the row, if any
        cells: The unknown cells the polynomial read at this row
    """
    gate: str
    gate_index: int
    constraint_index: int
    row: int
    region: Optional[str]
    cells: Tuple[Cell, ...]

    def sort_key(self) -> tuple:
        return (1, self.gate_index, self.constraint_index, self.row)

    def __str__(self) -> str:
        where = f" in region '{self.region}'" if self.region else ""
        cells = ", ".join(str(c) for c in self.cells)
        return (f"Gate '{self.gate}' constraint {self.constraint_index} reads unassigned "
                f"cell(s) at row {self.row}{where}: {cells}")


@dataclass(frozen=True)
class PermutationViolation:
    """Cells linked by copy constraints hold differing or unknown values.

    Attributes:
        cells: Every cell of the equivalence class, sorted
        values: Value of each cell (None when unknown)
    """
    cells: Tuple[Cell, ...]
    values: Tuple[Optional[int], ...]

    def sort_key(self) -> tuple:
        return (2, self.cells[0].sort_key())

    def __str__(self) -> str:
        members = ", ".join(f"{c} = {'?' if v is None else v}"
                            for c, v in zip(self.cells, self.values))
        return f"Equality constraint not satisfied: {members}"


Violation = Union[InstanceLengthMismatch, ConstraintNotSatisfied, UnassignedCell,
                  PermutationViolation]


@dataclass(frozen=True)
class Verdict:
    """Outcome of a check: Satisfied iff no violations were recorded."""
    violations: Tuple[Violation, ...] = ()

    @property
    def satisfied(self) -> bool:
        return not self.violations

    @property
    def status(self) -> str:
        return "Satisfied" if self.satisfied else "Failed"

    def of_type(self, kind: type) -> List[Violation]:
        return [v for v in self.violations if isinstance(v, kind)]

    def report(self, limit: Optional[int] = None) -> str:
        if self.satisfied:
            return "Satisfied"
        shown = self.violations if limit is None else self.violations[:limit]
        lines = [f"Failed with {len(self.violations)} violation(s):"]
        lines += [f"  - {v}" for v in shown]
        if len(shown) < len(self.violations):
            lines.append(f"  ... {len(self.violations) - len(shown)} more")
        return "\n".join(lines)

    def assert_satisfied(self, limit: Optional[int] = None) -> None:
        """Raise VerificationFailure with a readable report unless satisfied."""
        if not self.satisfied:
            raise VerificationFailure(self.violations, self.report(limit))


# --- Check ---

def check(cs: ConstraintSystem, table: AssignmentTable, public_inputs: PublicInputs) -> Verdict:
    """Check every gate and copy constraint of a synthesized table.

    Args:
        cs: Constraint system the table was synthesized against
        table: Fully synthesized table (read only)
        public_inputs: One sequence of values per instance column

    Returns:
        Verdict with every violation found
    """
    if table.cs is not cs:
        raise ValueError("Table was synthesized against a different constraint system")
    public_inputs = [list(values) for values in public_inputs]

    mismatches = _check_instance_lengths(cs, table, public_inputs)
    if mismatches:
        logger.info("Check failed: %d instance length mismatch(es)", len(mismatches))
        return Verdict(tuple(mismatches))

    evaluator = TableEvaluator(table, public_inputs)
    violations: List[Violation] = []
    violations += _check_gates(cs, table, evaluator)
    violations += _check_permutation(table, evaluator)
    violations.sort(key=lambda v: v.sort_key())

    verdict = Verdict(tuple(violations))
    logger.info("Check finished: %s (%d violation(s))", verdict.status, len(violations))
    return verdict


def _check_instance_lengths(cs: ConstraintSystem, table: AssignmentTable,
                            public_inputs: List[List[Any]]) -> List[InstanceLengthMismatch]:
    columns = cs.columns(ColumnType.INSTANCE)
    if len(public_inputs) != len(columns):
        return [InstanceLengthMismatch(None, len(columns), len(public_inputs))]

    expected = {column: 0 for column in columns}
    for constraint in table.copy_constraints:
        for cell in constraint.instance_cells():
            expected[cell.column] = max(expected[cell.column], cell.row + 1)
    # Gates may read any row of these columns, so longer vectors are allowed
    queried = frozenset().union(*(gate.queried_columns for gate in cs.gates))

    mismatches = []
    for column, values in zip(columns, public_inputs):
        if len(values) > table.row_count:
            mismatches.append(InstanceLengthMismatch(column, table.row_count, len(values)))
        elif len(values) < expected[column] or (
                column not in queried and len(values) != expected[column]):
            mismatches.append(InstanceLengthMismatch(column, expected[column], len(values)))
    return mismatches


def _check_gates(cs: ConstraintSystem, table: AssignmentTable,
                 evaluator: TableEvaluator) -> List[Violation]:
    violations: List[Violation] = []
    n = table.row_count
    for gate_index, gate in enumerate(cs.gates):
        for poly_index, poly in enumerate(gate.polynomials):
            values, known = evaluator.evaluate(poly)
            failing = np.flatnonzero(known & ~is_zero(values))
            unknown = np.flatnonzero(~known)
            logger.debug("Gate '%s'[%d]: %d failing row(s), %d unknown row(s)",
                         gate.name, poly_index, len(failing), len(unknown))
            if len(failing) == 0 and len(unknown) == 0:
                continue

            queries = sorted(queried_cells(poly), key=lambda q: (q[0].sort_key(), q[1]))
            for row in failing.tolist():
                cells = tuple(
                    (cell, maybe_int(evaluator.cell_value(cell)))
                    for cell in _cells_at(queries, row, n)
                )
                violations.append(ConstraintNotSatisfied(
                    gate=gate.name,
                    gate_index=gate_index,
                    constraint_index=poly_index,
                    constraint_name=gate.constraint_names[poly_index],
                    row=row,
                    region=_region_name(table, row),
                    cell_values=cells,
                ))
            for row in unknown.tolist():
                cells = tuple(
                    cell for cell in _cells_at(queries, row, n)
                    if evaluator.cell_value(cell) is None
                )
                violations.append(UnassignedCell(
                    gate=gate.name,
                    gate_index=gate_index,
                    constraint_index=poly_index,
                    row=row,
                    region=_region_name(table, row),
                    cells=cells,
                ))
    return violations


def _check_permutation(table: AssignmentTable, evaluator: TableEvaluator) -> List[Violation]:
    violations: List[Violation] = []
    classes = table.permutation().classes()
    for members in classes:
        values = tuple(maybe_int(evaluator.cell_value(cell)) for cell in members)
        if None in values or len(set(values)) > 1:
            violations.append(PermutationViolation(members, values))
    logger.debug("Permutation: %d class(es), %d violated", len(classes), len(violations))
    return violations


def _cells_at(queries, row: int, n: int) -> List[Cell]:
    cells = []
    for column, rotation in queries:
        cell = Cell(column, (row + rotation) % n)
        if cell not in cells:
            cells.append(cell)
    return cells


def _region_name(table: AssignmentTable, row: int) -> Optional[str]:
    region = table.region_at(row)
    return region.name if region else None


# --- Entry points ---

def synthesize(
    row_count: int,
    circuit: Circuit,
    public_inputs: PublicInputs,
    witness: Any = None,
    *,
    config: Optional[CheckConfig] = None,
) -> Tuple[ConstraintSystem, Any, AssignmentTable]:
    """Configure `circuit` and synthesize one witness into a fresh table.

    Returns:
        (constraint system, circuit config, assignment table)
    """
    config = config or CheckConfig()
    meta = ConstraintSystemBuilder(circuit.field)
    circuit_config = circuit.configure(meta)
    cs = meta.build()
    table = synthesize_with(cs, circuit, circuit_config, row_count, public_inputs, witness,
                            config=config)
    return cs, circuit_config, table


def synthesize_with(
    cs: ConstraintSystem,
    circuit: Circuit,
    circuit_config: Any,
    row_count: int,
    public_inputs: PublicInputs,
    witness: Any = None,
    *,
    config: Optional[CheckConfig] = None,
) -> AssignmentTable:
    """Synthesize one witness against an already configured constraint system."""
    config = config or CheckConfig()
    table = AssignmentTable(cs, row_count)
    table.seed_instance([list(values) for values in public_inputs])
    layouter = Layouter(table, config.layout)
    circuit.synthesize(circuit_config, layouter, witness)
    logger.debug("Synthesized %d region(s) over %d of %d row(s)",
                 len(table.regions), table.used_rows(), row_count)
    return table


def run_check(
    row_count: int,
    circuit: Circuit,
    public_inputs: PublicInputs,
    witness: Any = None,
    *,
    config: Optional[CheckConfig] = None,
) -> Verdict:
    """Configure, synthesize and check `circuit` in one call."""
    cs, _, table = synthesize(row_count, circuit, public_inputs, witness, config=config)
    return check(cs, table, public_inputs)


class MockProver:
    """A synthesized circuit ready to be checked, mirroring halo2's MockProver.

    Usage:
        prover = MockProver.run(4, circuit, [[1, 1, 55]])
        prover.assert_satisfied()
    """

    def __init__(self, cs: ConstraintSystem, table: AssignmentTable,
                 public_inputs: PublicInputs, config: Optional[CheckConfig] = None):
        self.cs = cs
        self.table = table
        self.public_inputs = [list(values) for values in public_inputs]
        self.config = config or CheckConfig()

    @classmethod
    def run(cls, k: int, circuit: Circuit, public_inputs: PublicInputs,
            witness: Any = None, config: Optional[CheckConfig] = None) -> "MockProver":
        """Synthesize `circuit` into a table of 2^k rows."""
        cs, _, table = synthesize(rows_for_k(k), circuit, public_inputs, witness, config=config)
        return cls(cs, table, public_inputs, config)

    def verify(self) -> Verdict:
        return check(self.cs, self.table, self.public_inputs)

    def assert_satisfied(self) -> None:
        self.verify().assert_satisfied(self.config.max_reported_violations)
