"""
Bounded Ordered Search
======================
Exact lower/upper bound over a sorted int64 buffer, restricted to the
candidate window an oracle predicted.

Correctness never depends on the window:
  1. The window is clamped to [0, n] with lo <= hi.
  2. Binary search runs inside keys[lo:hi] (a view, no copy).
  3. If the answer sits on an edge of the window, the neighbouring key
     outside the window is checked. If it proves the window was wrong,
     the search continues over the remaining side of the buffer.
  An answer strictly inside the window is already the global answer,
  because the buffer is sorted.

Query keys outside int64 are answered without conversion: they lie
before (or after) every stored key.
"""

import logging
from typing import Tuple

import numpy as np

from storage.types import INT64_MAX, INT64_MIN

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"


def clamp_window(lo: int, hi: int, n: int) -> Tuple[int, int]:
    lo = min(max(int(lo), 0), n)
    hi = min(max(int(hi), lo), n)
    return lo, hi


def lower_bound(keys: np.ndarray, x: int, lo: int = 0, hi: int = None) -> int:
    """Position of the first key >= x."""
    return _bounded_search(keys, x, lo, hi, LEFT)


def upper_bound(keys: np.ndarray, x: int, lo: int = 0, hi: int = None) -> int:
    """Position of the first key > x."""
    return _bounded_search(keys, x, lo, hi, RIGHT)


def _bounded_search(keys: np.ndarray, x: int, lo: int, hi, side: str) -> int:
    n = keys.shape[0]
    if x > INT64_MAX:
        return n
    if x < INT64_MIN:
        return 0
    if hi is None:
        hi = n
    lo, hi = clamp_window(lo, hi, n)
    needle = np.int64(x)

    p = lo + int(np.searchsorted(keys[lo:hi], needle, side=side))

    if p == lo and lo > 0 and not _precedes(keys[lo - 1], needle, side):
        logger.debug("window [%d, %d) too far right for key %d, searching [0, %d)",
                     lo, hi, x, lo)
        return int(np.searchsorted(keys[:lo], needle, side=side))

    if p == hi and hi < n and _precedes(keys[hi], needle, side):
        logger.debug("window [%d, %d) too far left for key %d, searching [%d, %d)",
                     lo, hi, x, hi + 1, n)
        return hi + 1 + int(np.searchsorted(keys[hi + 1:], needle, side=side))

    return p


def _precedes(key, needle, side: str) -> bool:
    """True if `key` belongs before the boundary for this search side."""
    if side == LEFT:
        return bool(key < needle)
    return bool(key <= needle)
