"""Constraint system definition.

Columns, selectors and the expression tree live in `constraints.base`; the
builder that turns a circuit's configure step into an immutable
ConstraintSystem lives in `constraints.system`.
"""

from .base import (
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
)
from .errors import (
    CircuitError,
    EqualityNotEnabled,
    RegionOutOfBounds,
    UndeclaredColumnReference,
    VerificationFailure,
)
from .system import ConstraintSystem, ConstraintSystemBuilder, Gate, VirtualCells

__all__ = [
    # Columns and expressions
    "Column",
    "ColumnType",
    "Selector",
    "Rotation",
    "Expression",
    "Constant",
    "SelectorQuery",
    "ColumnQuery",
    "Negated",
    "Sum",
    "Product",
    # Constraint system
    "ConstraintSystem",
    "ConstraintSystemBuilder",
    "Gate",
    "VirtualCells",
    # Errors
    "CircuitError",
    "UndeclaredColumnReference",
    "EqualityNotEnabled",
    "RegionOutOfBounds",
    "VerificationFailure",
]
