"""Tests for the field helpers in primitives.field."""

import numpy as np
import pytest

from primitives.field import FF, FP, GOLDILOCKS_PRIME, PALLAS_PRIME, is_zero, maybe_int, to_field


def test_field_orders() -> None:
    assert FF.order == GOLDILOCKS_PRIME
    assert FP.order == PALLAS_PRIME


def test_to_field_reduces_ints() -> None:
    assert to_field(FF, 5) == FF(5)
    assert int(to_field(FF, -1)) == GOLDILOCKS_PRIME - 1
    assert int(to_field(FF, GOLDILOCKS_PRIME + 3)) == 3
    assert int(to_field(FP, -1)) == PALLAS_PRIME - 1


def test_to_field_passes_same_field_elements() -> None:
    x = FF(7)
    assert to_field(FF, x) is x


def test_to_field_rejects_other_field() -> None:
    with pytest.raises(TypeError):
        to_field(FP, FF(7))


def test_maybe_int() -> None:
    assert maybe_int(None) is None
    assert maybe_int(FF(9)) == 9


def test_is_zero() -> None:
    result = is_zero(FF([0, 3, 0]))
    assert result.dtype == np.bool_
    assert result.tolist() == [True, False, True]


def test_to_field_accepts_numpy_integers() -> None:
    assert to_field(FF, np.int64(3)) == FF(3)


@pytest.mark.parametrize("value", [1.5, 2.0, "7", None])
def test_to_field_rejects_non_integers(value) -> None:
    """Floats are never truncated silently."""
    with pytest.raises(TypeError):
        to_field(FF, value)
