"""Witness synthesis.

Circuits fill an AssignmentTable through a Layouter, one Region callback at a
time. The layout strategy decides where each region lands; strategies are
looked up by name in LAYOUT_STRATEGIES.
"""

from .base import Circuit
from .layouter import (
    LAYOUT_STRATEGIES,
    Layouter,
    LayoutStrategy,
    PackedStrategy,
    SimpleStrategy,
    get_layout_strategy,
)
from .region import AssignedCell, Region, RegionShape

__all__ = [
    'Circuit',
    'Layouter',
    'LayoutStrategy',
    'SimpleStrategy',
    'PackedStrategy',
    'LAYOUT_STRATEGIES',
    'get_layout_strategy',
    'Region',
    'RegionShape',
    'AssignedCell',
]
