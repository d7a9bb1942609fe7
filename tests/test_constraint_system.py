"""Tests for ConstraintSystemBuilder and the ConstraintSystem snapshot."""

import pytest

from constraints.base import Column, ColumnType, Rotation, Selector
from constraints.errors import CircuitError, UndeclaredColumnReference
from constraints.system import ConstraintSystemBuilder
from primitives.field import FF, FP
from tests.circuits import FibonacciCircuit, SingleColumnFibonacciCircuit


def _configure(circuit):
    meta = ConstraintSystemBuilder(circuit.field)
    config = circuit.configure(meta)
    return meta.build(), config


# =============================================================================
# Allocation
# =============================================================================

def test_columns_are_indexed_per_kind() -> None:
    meta = ConstraintSystemBuilder()

    a0 = meta.advice_column()
    i0 = meta.instance_column()
    a1 = meta.advice_column()
    f0 = meta.fixed_column()

    assert a0 == Column(ColumnType.ADVICE, 0)
    assert a1 == Column(ColumnType.ADVICE, 1)
    assert i0 == Column(ColumnType.INSTANCE, 0)
    assert f0 == Column(ColumnType.FIXED, 0)

    cs = meta.build()
    assert cs.num_advice_columns == 2
    assert cs.num_instance_columns == 1
    assert cs.num_fixed_columns == 1
    assert cs.all_columns() == [a0, a1, f0, i0]


def test_selectors_simple_and_complex() -> None:
    meta = ConstraintSystemBuilder()

    s0 = meta.selector()
    s1 = meta.complex_selector()

    assert s0 == Selector(0, simple=True)
    assert s1 == Selector(1, simple=False)
    assert meta.build().selectors == (s0, s1)


def test_default_field_is_goldilocks() -> None:
    assert ConstraintSystemBuilder().build().field is FF
    assert ConstraintSystemBuilder(FP).build().field is FP


def test_build_is_a_snapshot() -> None:
    """Allocations after build() do not leak into an existing ConstraintSystem."""
    meta = ConstraintSystemBuilder()
    meta.advice_column()
    cs = meta.build()

    meta.advice_column()
    assert cs.num_advice_columns == 1
    assert meta.build().num_advice_columns == 2


# =============================================================================
# Equality
# =============================================================================

def test_enable_equality_is_idempotent() -> None:
    meta = ConstraintSystemBuilder()
    a = meta.advice_column()

    meta.enable_equality(a)
    meta.enable_equality(a)

    assert meta.build().equality_columns == frozenset([a])


def test_enable_equality_rejects_foreign_column() -> None:
    meta = ConstraintSystemBuilder()
    with pytest.raises(UndeclaredColumnReference):
        meta.enable_equality(Column(ColumnType.ADVICE, 0))


# =============================================================================
# Gates
# =============================================================================

def test_create_gate_records_polynomials() -> None:
    cs, config = _configure(FibonacciCircuit())

    assert len(cs.gates) == 1
    gate = cs.gates[0]
    assert gate.name == "add"
    assert len(gate.polynomials) == 1
    assert gate.constraint_names == ("",)
    assert gate.selectors == frozenset([config.selector])
    assert gate.queried_columns == frozenset([config.col_a, config.col_b, config.col_c])


def test_named_constraints() -> None:
    meta = ConstraintSystemBuilder()
    a = meta.advice_column()
    s = meta.selector()

    gate = meta.create_gate("bool", lambda vc: [
        ("a is boolean", vc.query_selector(s) * vc.query_advice(a) * (1 - vc.query_advice(a))),
        vc.query_selector(s) * vc.query_advice(a, Rotation.next()),
    ])

    assert gate.constraint_names == ("a is boolean", "")
    assert gate.constraint_label(0) == "bool[0] 'a is boolean'"
    assert gate.constraint_label(1) == "bool[1]"
    assert gate.degree() == 3


def test_gate_with_undeclared_column_fails_immediately() -> None:
    meta = ConstraintSystemBuilder()
    meta.advice_column()
    foreign = Column(ColumnType.ADVICE, 5)

    with pytest.raises(UndeclaredColumnReference, match="gate 'bad'"):
        meta.create_gate("bad", lambda vc: [vc.query_advice(foreign)])
    assert meta.build().gates == ()


def test_gate_with_undeclared_selector_fails_immediately() -> None:
    meta = ConstraintSystemBuilder()
    a = meta.advice_column()

    with pytest.raises(UndeclaredColumnReference):
        meta.create_gate("bad", lambda vc: [vc.query_selector(Selector(3)) * vc.query_advice(a)])


def test_query_with_wrong_column_kind() -> None:
    meta = ConstraintSystemBuilder()
    instance = meta.instance_column()

    with pytest.raises(ValueError, match="Expected Advice column"):
        meta.create_gate("bad", lambda vc: [vc.query_advice(instance)])


def test_empty_gate_rejected() -> None:
    meta = ConstraintSystemBuilder()
    with pytest.raises(ValueError, match="at least one constraint"):
        meta.create_gate("empty", lambda vc: [])


def test_circuit_errors_are_value_errors() -> None:
    assert issubclass(UndeclaredColumnReference, CircuitError)
    assert issubclass(CircuitError, ValueError)


# =============================================================================
# Derived properties
# =============================================================================

def test_degree_and_minimum_rows() -> None:
    fib, _ = _configure(FibonacciCircuit())
    assert fib.degree() == 2
    assert fib.minimum_rows() == 1

    single, _ = _configure(SingleColumnFibonacciCircuit())
    assert single.degree() == 2
    assert single.minimum_rows() == 3


def test_empty_constraint_system() -> None:
    cs = ConstraintSystemBuilder().build()
    assert cs.degree() == 0
    assert cs.minimum_rows() == 1
    assert cs.all_columns() == []
