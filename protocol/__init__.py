"""Protocol - assignment table, permutation argument and checking.

The checking entry points (check, run_check, synthesize, MockProver) live in
protocol.mock_prover, which sits above the witness package:

    from protocol.mock_prover import MockProver, run_check
"""

from protocol.config import CheckConfig
from protocol.data import AssignmentTable, Cell, RegionInfo, rows_for_k
from protocol.evaluator import TableEvaluator, queried_cells
from protocol.permutation import CopyConstraint, PermutationIndex

__all__ = [
    # Table
    "AssignmentTable",
    "Cell",
    "RegionInfo",
    "rows_for_k",
    # Permutation argument
    "CopyConstraint",
    "PermutationIndex",
    # Evaluation
    "TableEvaluator",
    "queried_cells",
    # Configuration
    "CheckConfig",
]
