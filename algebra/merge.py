"""
Sorted Multiset Kernels
=======================
Linear passes over sorted int64 buffers. Every function returns a NEW
buffer sized exactly to its result and never writes to its inputs, so
the caller can hand the result straight to SortedStorage.adopt().

  merge_sorted       → stable merge, duplicates from both sides kept
                       (equal keys: left operand first)
  difference_sorted  → multiset difference: per value, drop as many
                       occurrences as the right operand holds
  unique_sorted      → collapse runs of equal keys

Each pass is vectorized with numpy: positions are computed with
searchsorted over the OTHER operand, then one gather/scatter builds
the output.
"""

import logging
from typing import Any

import numpy as np

from storage.types import KEY_DTYPE, as_key_array, is_sorted

logger = logging.getLogger(__name__)


def sorted_operand(values: Any) -> np.ndarray:
    """
    Turn a raw collection into a sorted int64 buffer.
    Input is copied; the copy is sorted only if it is not already ascending.
    """
    keys = as_key_array(values)
    if not is_sorted(keys):
        keys.sort(kind="stable")
    return keys


def merge_sorted(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    n, m = left.shape[0], right.shape[0]
    out = np.empty(n + m, dtype=KEY_DTYPE)
    if m == 0:
        out[:] = left
        return out
    if n == 0:
        out[:] = right
        return out

    # Each right key lands after every left key <= it, shifted by the
    # right keys already placed before it.
    right_slots = np.searchsorted(left, right, side="right") + np.arange(m)
    left_mask = np.ones(n + m, dtype=bool)
    left_mask[right_slots] = False

    out[right_slots] = right
    out[left_mask] = left
    logger.debug("merged %d + %d keys", n, m)
    return out


def difference_sorted(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    n = left.shape[0]
    if n == 0 or right.shape[0] == 0:
        return left.copy()

    # Occurrence number of each left key within its run of equal keys,
    # compared with how many copies of that key the right side removes.
    occurrence = np.arange(n) - np.searchsorted(left, left, side="left")
    removed = (np.searchsorted(right, left, side="right")
               - np.searchsorted(right, left, side="left"))
    keep = occurrence >= removed

    kept = int(np.count_nonzero(keep))
    logger.debug("difference kept %d of %d keys", kept, n)
    if kept == n:
        return left.copy()
    return left[keep]


def unique_sorted(keys: np.ndarray) -> np.ndarray:
    n = keys.shape[0]
    if n < 2:
        return keys.copy()

    keep = np.empty(n, dtype=bool)
    keep[0] = True
    np.not_equal(keys[1:], keys[:-1], out=keep[1:])

    kept = int(np.count_nonzero(keep))
    logger.debug("dropped %d duplicate keys", n - kept)
    if kept == n:
        return keys.copy()
    return keys[keep]
