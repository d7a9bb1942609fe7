"""Column handles and the polynomial expression tree.

A gate is a list of Expressions over queried cells. Expressions are built with
ordinary Python operators from column and selector queries:

Example:
    def add_gate(meta: VirtualCells):
        s = meta.query_selector(selector)
        a = meta.query_advice(col_a, Rotation.cur())
        b = meta.query_advice(col_a, Rotation.next())
        c = meta.query_advice(col_a, 2)
        return [s * (a + b - c)]

The tree is field agnostic: constants keep whatever int or field element they
were built from and are lifted into the constraint system's field only when
the expression is evaluated.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, Union


# --- Columns ---

class ColumnType(Enum):
    """Kind of a table column."""
    ADVICE = 0    # private witness values
    FIXED = 1     # constants baked in at configure time
    INSTANCE = 2  # public inputs

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Column:
    """A column of the assignment table, identified by kind and per-kind index."""
    kind: ColumnType
    index: int

    def __str__(self) -> str:
        return f"{self.kind}[{self.index}]"

    def sort_key(self) -> tuple:
        return (self.kind.value, self.index)


@dataclass(frozen=True)
class Selector:
    """Boolean column gating polynomial identities on and off.

    Simple selectors must only appear as a top-level multiplicative factor of a
    gate polynomial; complex selectors may be combined freely. The mock prover
    treats both identically.
    """
    index: int
    simple: bool = True

    def __str__(self) -> str:
        return f"Selector[{self.index}]"

    def enable(self, region, row: int) -> None:
        """Activate this selector at `row` of `region` (relative row)."""
        region.enable_selector(self, row)


@dataclass(frozen=True)
class Rotation:
    """Row offset of a query relative to the row being evaluated."""
    offset: int

    @classmethod
    def cur(cls) -> "Rotation":
        return cls(0)

    @classmethod
    def next(cls) -> "Rotation":
        return cls(1)

    @classmethod
    def prev(cls) -> "Rotation":
        return cls(-1)


def as_rotation(rotation: Union[Rotation, int]) -> Rotation:
    if isinstance(rotation, Rotation):
        return rotation
    return Rotation(int(rotation))


# --- Expressions ---

class Expression(ABC):
    """Polynomial over queried cells, closed under +, -, * and negation."""

    # Make numpy / galois scalars defer to our reflected operators.
    __array_ufunc__ = None

    def __add__(self, other: Any) -> "Expression":
        return Sum(self, as_expression(other))

    def __radd__(self, other: Any) -> "Expression":
        return Sum(as_expression(other), self)

    def __sub__(self, other: Any) -> "Expression":
        return Sum(self, Negated(as_expression(other)))

    def __rsub__(self, other: Any) -> "Expression":
        return Sum(as_expression(other), Negated(self))

    def __mul__(self, other: Any) -> "Expression":
        return Product(self, as_expression(other))

    def __rmul__(self, other: Any) -> "Expression":
        return Product(as_expression(other), self)

    def __neg__(self) -> "Expression":
        return Negated(self)

    @abstractmethod
    def evaluate(
        self,
        constant: Callable[[Any], Any],
        selector: Callable[[Selector], Any],
        query: Callable[[Column, int], Any],
        negated: Callable[[Any], Any],
        sum_: Callable[[Any, Any], Any],
        product: Callable[[Any, Any], Any],
    ) -> Any:
        """Fold the tree bottom-up, calling one function per node kind."""
        pass

    def degree(self) -> int:
        """Polynomial degree; each selector or column query counts as 1."""
        return self.evaluate(
            constant=lambda _: 0,
            selector=lambda _: 1,
            query=lambda _col, _rot: 1,
            negated=lambda d: d,
            sum_=max,
            product=lambda a, b: a + b,
        )

    def queried_columns(self) -> FrozenSet[Column]:
        return self.evaluate(
            constant=lambda _: frozenset(),
            selector=lambda _: frozenset(),
            query=lambda col, _rot: frozenset([col]),
            negated=lambda s: s,
            sum_=lambda a, b: a | b,
            product=lambda a, b: a | b,
        )

    def queried_selectors(self) -> FrozenSet[Selector]:
        return self.evaluate(
            constant=lambda _: frozenset(),
            selector=lambda sel: frozenset([sel]),
            query=lambda _col, _rot: frozenset(),
            negated=lambda s: s,
            sum_=lambda a, b: a | b,
            product=lambda a, b: a | b,
        )

    def rotations(self) -> FrozenSet[int]:
        return self.evaluate(
            constant=lambda _: frozenset(),
            selector=lambda _: frozenset([0]),
            query=lambda _col, rot: frozenset([rot]),
            negated=lambda s: s,
            sum_=lambda a, b: a | b,
            product=lambda a, b: a | b,
        )


@dataclass(frozen=True, eq=False)
class Constant(Expression):
    value: Any

    def evaluate(self, constant, selector, query, negated, sum_, product):
        return constant(self.value)

    def __repr__(self) -> str:
        return f"Constant({int(self.value)})"


@dataclass(frozen=True, eq=False)
class SelectorQuery(Expression):
    selector: Selector

    def evaluate(self, constant, selector, query, negated, sum_, product):
        return selector(self.selector)

    def __repr__(self) -> str:
        return str(self.selector)


@dataclass(frozen=True, eq=False)
class ColumnQuery(Expression):
    column: Column
    rotation: int = 0

    def evaluate(self, constant, selector, query, negated, sum_, product):
        return query(self.column, self.rotation)

    def __repr__(self) -> str:
        return f"{self.column}@{self.rotation:+d}"


@dataclass(frozen=True, eq=False)
class Negated(Expression):
    inner: Expression

    def evaluate(self, constant, selector, query, negated, sum_, product):
        return negated(self.inner.evaluate(constant, selector, query, negated, sum_, product))

    def __repr__(self) -> str:
        return f"-({self.inner!r})"


@dataclass(frozen=True, eq=False)
class Sum(Expression):
    left: Expression
    right: Expression

    def evaluate(self, constant, selector, query, negated, sum_, product):
        args = (constant, selector, query, negated, sum_, product)
        return sum_(self.left.evaluate(*args), self.right.evaluate(*args))

    def __repr__(self) -> str:
        return f"({self.left!r} + {self.right!r})"


@dataclass(frozen=True, eq=False)
class Product(Expression):
    left: Expression
    right: Expression

    def evaluate(self, constant, selector, query, negated, sum_, product):
        args = (constant, selector, query, negated, sum_, product)
        return product(self.left.evaluate(*args), self.right.evaluate(*args))

    def __repr__(self) -> str:
        return f"({self.left!r} * {self.right!r})"


def as_expression(value: Any) -> Expression:
    """Lift ints and field elements to Constant; pass Expressions through."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, (Column, Selector)):
        raise TypeError(f"{value} must be queried before use in an expression")
    return Constant(value)
