"""
Approximate Position Oracle
===========================
Capability interface consumed by the query engine.

Contract:
  approximate_position(x) returns ApproxPos(pos, lo, hi) over a buffer of
  n keys. For a key present in the buffer, [lo, hi) contains the position
  of its first occurrence. For an absent key, [lo, hi) brackets the
  position where it would be inserted, within the oracle's error bound.

The query engine never TRUSTS this contract for correctness: a wrong or
degenerate window only costs time (see indexing/search.py). Any object
implementing the four methods below can be plugged into an index.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ApproxPos:
    """Predicted position and the half-open candidate window [lo, hi)."""
    pos: int
    lo: int
    hi: int


class PositionOracle(ABC):
    """Built once over a finalized buffer. Immutable afterwards."""

    @abstractmethod
    def approximate_position(self, key: int) -> ApproxPos:
        ...

    @abstractmethod
    def segment_count(self) -> int:
        """Number of leaf segments the oracle partitioned the keys into."""

    @abstractmethod
    def footprint_bytes(self) -> int:
        """Memory held by the oracle itself, excluding the key buffer."""

    @abstractmethod
    def height(self) -> int:
        """Number of levels in the oracle structure."""


class FullRangeOracle(PositionOracle):
    """
    Trivial oracle: every window is the whole buffer.
    Turns every query into a plain binary search; used as the reference
    when testing the query engine.
    """

    def __init__(self, keys: np.ndarray, config=None):
        self._n = int(keys.shape[0])

    def approximate_position(self, key: int) -> ApproxPos:
        return ApproxPos(self._n // 2, 0, self._n)

    def segment_count(self) -> int:
        return 1 if self._n else 0

    def footprint_bytes(self) -> int:
        return 0

    def height(self) -> int:
        return 1 if self._n else 0
