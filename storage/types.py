"""
Key Type System
===============
Every key stored in an index is a signed 64-bit integer. This module owns
the conversion from arbitrary Python / numpy input to that representation.

Rules:
  - Accepted: Python ints, numpy integer scalars, anything implementing
    __index__. Booleans are rejected (bool is not a key).
  - Stored elements must fit in int64. Out-of-range elements raise
    OverflowError; they are never wrapped or truncated.
  - Query keys only need to be integers. A query key outside int64 is
    legal and simply lies beyond every stored key.
  - Floats, strings, and float/bool arrays raise TypeError.
"""

import operator
from collections.abc import Iterable
from typing import Any

import numpy as np


# ─── Size constants ─────────────────────────────────────────────────────────

KEY_DTYPE = np.dtype(np.int64)
KEY_SIZE = KEY_DTYPE.itemsize   # 8 bytes per key

INT64_MIN = int(np.iinfo(np.int64).min)
INT64_MAX = int(np.iinfo(np.int64).max)


# ─── Validation ─────────────────────────────────────────────────────────────

def validate(value: Any) -> bool:
    """
    Check if a value can be stored as a key.
    Returns True if valid, False otherwise.
    """
    if isinstance(value, (bool, np.bool_)):
        return False
    try:
        ival = operator.index(value)
    except TypeError:
        return False
    return INT64_MIN <= ival <= INT64_MAX


def coerce_key(value: Any) -> int:
    """
    Coerce a query key to a Python int.
    Raises TypeError for non-integers. Range is not checked.
    """
    if isinstance(value, (bool, np.bool_)):
        raise TypeError(f"Key must be an integer, not {type(value).__name__}")
    try:
        return operator.index(value)
    except TypeError:
        raise TypeError(
            f"Key must be an integer, not {type(value).__name__}") from None


def coerce_element(value: Any) -> int:
    """Coerce a value that will be stored. Raises OverflowError outside int64."""
    ival = coerce_key(value)
    if ival < INT64_MIN or ival > INT64_MAX:
        raise OverflowError(f"Key {ival} does not fit in a signed 64-bit integer")
    return ival


# ─── Buffers ────────────────────────────────────────────────────────────────

def as_key_array(values: Any) -> np.ndarray:
    """
    Convert input to a NEW contiguous int64 array (never aliases the input).

    numpy arrays are converted in bulk; everything else is consumed once
    as an iterable, so lazy sources are supported. Any error raised by the
    source propagates unchanged.
    """
    if isinstance(values, np.ndarray):
        return _array_to_keys(values)

    if isinstance(values, (str, bytes)):
        raise TypeError(f"Cannot build keys from {type(values).__name__}")

    if not isinstance(values, Iterable):
        raise TypeError(f"Expected an iterable of integers, not {type(values).__name__}")

    return np.fromiter((coerce_element(v) for v in values), dtype=KEY_DTYPE)


def _array_to_keys(array: np.ndarray) -> np.ndarray:
    if array.ndim != 1:
        raise ValueError(f"Expected a 1-D array, got {array.ndim} dimensions")

    kind = array.dtype.kind
    if kind == "i":
        return np.array(array, dtype=KEY_DTYPE, copy=True, order="C")
    if kind == "u":
        if array.size and int(array.max()) > INT64_MAX:
            raise OverflowError("Unsigned array holds values beyond int64")
        return np.array(array, dtype=KEY_DTYPE, copy=True, order="C")
    if kind == "O":
        return np.fromiter((coerce_element(v) for v in array), dtype=KEY_DTYPE,
                           count=array.shape[0])
    raise TypeError(f"Cannot build int64 keys from a {array.dtype} array")


def is_sorted(keys: np.ndarray) -> bool:
    """Return True if the 1-D array is non-decreasing."""
    if keys.shape[0] < 2:
        return True
    return bool(np.all(keys[:-1] <= keys[1:]))
