"""Base class for circuits."""

from abc import ABC, abstractmethod
from typing import Any

from constraints.system import ConstraintSystemBuilder
from primitives.field import FF

from .layouter import Layouter


class Circuit(ABC):
    """Client contract: configure once, synthesize once per witness.

    `configure` allocates columns and registers gates on the builder and
    returns whatever handles `synthesize` needs (its "config"). `synthesize`
    then fills the table for one witness through the layouter. The same
    circuit object may be synthesized any number of times.

    Attributes:
        field: galois field class the constraint system is built over
    """

    field: type = FF

    @abstractmethod
    def configure(self, meta: ConstraintSystemBuilder) -> Any:
        """Allocate columns and selectors, enable equality, create gates.

        Returns:
            Config object passed back into `synthesize`
        """
        pass

    @abstractmethod
    def synthesize(self, config: Any, layouter: Layouter, witness: Any) -> None:
        """Assign the witness through `layouter`.

        Args:
            config: Value returned by `configure`
            layouter: Layouter bound to a fresh AssignmentTable
            witness: Private inputs for this run (None during key generation)
        """
        pass
