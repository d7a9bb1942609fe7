"""Prime fields used as the value domain of assignment tables.

Uses galois library for all field arithmetic. Any galois FieldArray class can
serve as the field of a constraint system; FF and FP are the two shipped here.
"""

from typing import Any, Optional

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Goldilocks prime field GF(2^64 - 2^32 + 1)."""

PALLAS_PRIME = 0x40000000000000000000000000000000224698FC094CF91B992D30ED00000001

# The multiplicative generator is fixed so galois does not have to factor p - 1.
FP = galois.GF(PALLAS_PRIME, primitive_element=5, verify=False)
"""Pallas base field (the pasta Fp used by halo2 circuits)."""


# --- Element Helpers ---

def to_field(field: type, value: Any) -> galois.FieldArray:
    """Lift an int (or an element of the same field) into a scalar of `field`.

    Negative integers are reduced modulo the characteristic, so `to_field(FF, -1)`
    is p - 1. Anything else (floats, strings, ...) raises TypeError.
    """
    if isinstance(value, field):
        return value
    if isinstance(value, galois.FieldArray):
        raise TypeError(f"Element of {type(value).name} cannot be used in {field.name}")
    if not isinstance(value, (int, np.integer)):
        raise TypeError(f"Cannot lift {type(value).__name__} {value!r} into {field.name}")
    return field(int(value) % field.characteristic)


def maybe_int(value: Optional[galois.FieldArray]) -> Optional[int]:
    """Convert a scalar field element to int, passing None through."""
    if value is None:
        return None
    return int(value)


def is_zero(values: galois.FieldArray) -> np.ndarray:
    """Elementwise zero test returning a plain numpy bool array."""
    return np.asarray(values) == 0
