"""Primitives - Low-level mathematical building blocks."""

from primitives.field import (
    FF,
    FP,
    GOLDILOCKS_PRIME,
    PALLAS_PRIME,
    is_zero,
    maybe_int,
    to_field,
)

__all__ = [
    # Field
    "FF",
    "FP",
    "GOLDILOCKS_PRIME",
    "PALLAS_PRIME",
    "to_field",
    "maybe_int",
    "is_zero",
]
