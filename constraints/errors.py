"""Structural errors raised while configuring or synthesizing a circuit.

These are programmer errors: they abort the current configuration or synthesis
immediately and are never retried. Witness-level findings (a gate that does not
vanish, a broken copy) are not exceptions; they are reported as violations in
the Verdict returned by `protocol.mock_prover.check`.
"""


class CircuitError(ValueError):
    """Base class for configuration and synthesis errors."""


class UndeclaredColumnReference(CircuitError):
    """A gate or assignment references a column or selector never allocated."""

    def __init__(self, column, context: str = ""):
        self.column = column
        suffix = f" in {context}" if context else ""
        super().__init__(f"{column} was never allocated by this constraint system{suffix}")


class EqualityNotEnabled(CircuitError):
    """A copy constraint touches a column without equality enabled."""

    def __init__(self, column):
        self.column = column
        super().__init__(
            f"{column} does not have equality enabled; call enable_equality() in configure"
        )


class RegionOutOfBounds(CircuitError):
    """A region or cell reference falls outside the declared table height."""

    def __init__(self, row: int, row_count: int, context: str = ""):
        self.row = row
        self.row_count = row_count
        suffix = f" ({context})" if context else ""
        super().__init__(f"Row {row} is outside the table [0, {row_count}){suffix}")


class VerificationFailure(AssertionError):
    """Raised by Verdict.assert_satisfied() when violations were recorded."""

    def __init__(self, violations, report: str):
        self.violations = violations
        super().__init__(report)
