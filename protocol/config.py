"""Mock prover configuration."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CheckConfig:
    """
    Options for synthesizing and checking a circuit.

    The table height is not part of the config: it is passed explicitly to
    every entry point (`row_count`, or `k` for MockProver.run).
    """
    layout: str = "simple"  # Layout strategy name, see witness.LAYOUT_STRATEGIES
    max_reported_violations: Optional[int] = None  # Truncates the text report only

    def __post_init__(self):
        if self.max_reported_violations is not None and self.max_reported_violations < 1:
            raise ValueError(
                f"max_reported_violations must be positive, got {self.max_reported_violations}"
            )
