"""
Piecewise-Linear Oracle
=======================
PGM-style learned position oracle over a sorted int64 buffer.

Build:
  1. Collapse duplicates: the model sees (distinct_key, first_rank) pairs.
  2. Level 0: greedy shrinking-cone segmentation. Each segment starts at a
     point (x0, y0) and keeps the interval of slopes for which every
     covered point is predicted within ±epsilon. When the interval
     becomes empty a new segment starts.
  3. Level l+1 segments the first keys of level l (rank = segment number)
     with epsilon_recursive. Levels stop at a single root segment.

Query (top-down):
  - The root segment predicts where x's segment sits in the level below;
    the exact segment is found by bounded search in a ±epsilon_recursive
    window. Repeat down to level 0.
  - The level-0 segment predicts x's position, clamped between its own
    first rank and the next segment's first rank.

Segment layout per level (parallel numpy arrays):
  first_keys  int64   first key covered by the segment
  slopes      float64 positions per key unit
  intercepts  int64   rank of first_keys[i] in the level below
"""

import logging
import math
from typing import List, Tuple

import numpy as np

from indexing.config import DEFAULT_CONFIG, IndexConfig
from indexing.oracle import ApproxPos, PositionOracle
from indexing.search import upper_bound

logger = logging.getLogger(__name__)


# ─── Segmentation ───────────────────────────────────────────────────────────

class SegmentLevel:
    """One level of segments, covering `span` positions of the level below."""
    __slots__ = ('first_keys', 'slopes', 'intercepts', 'span')

    def __init__(self, first_keys: np.ndarray, slopes: np.ndarray,
                 intercepts: np.ndarray, span: int):
        self.first_keys = first_keys
        self.slopes = slopes
        self.intercepts = intercepts
        self.span = span

    def __len__(self) -> int:
        return self.first_keys.shape[0]

    @property
    def nbytes(self) -> int:
        return self.first_keys.nbytes + self.slopes.nbytes + self.intercepts.nbytes

    def predict(self, s: int, key: int) -> int:
        """Position predicted by segment s, clamped to the segment's own range."""
        y0 = int(self.intercepts[s])
        upper = int(self.intercepts[s + 1]) if s + 1 < len(self) else self.span
        slope = float(self.slopes[s])
        if slope == 0.0 or key <= int(self.first_keys[s]):
            return y0
        pos = y0 + math.floor(slope * (key - int(self.first_keys[s])))
        return min(pos, upper)


def build_level(xs: np.ndarray, ys: np.ndarray, epsilon: int, span: int) -> SegmentLevel:
    """
    Shrinking-cone segmentation of strictly increasing xs against ys.
    Every (x, y) covered by a segment satisfies |predict(x) - y| <= epsilon.
    """
    xl = xs.tolist()
    yl = ys.tolist()
    m = len(xl)

    first_keys: List[int] = []
    slopes: List[float] = []
    intercepts: List[int] = []

    i = 0
    while i < m:
        x0, y0 = xl[i], yl[i]
        slope_lo, slope_hi = 0.0, math.inf
        j = i + 1
        while j < m:
            dx = xl[j] - x0
            dy = yl[j] - y0
            lo = max(slope_lo, (dy - epsilon) / dx)
            hi = min(slope_hi, (dy + epsilon) / dx)
            if lo > hi:
                break
            slope_lo, slope_hi = lo, hi
            j += 1

        first_keys.append(x0)
        slopes.append(0.0 if j == i + 1 else (slope_lo + slope_hi) / 2.0)
        intercepts.append(y0)
        i = j

    return SegmentLevel(
        np.array(first_keys, dtype=np.int64),
        np.array(slopes, dtype=np.float64),
        np.array(intercepts, dtype=np.int64),
        span,
    )


# ─── Oracle ─────────────────────────────────────────────────────────────────

class PiecewiseLinearOracle(PositionOracle):
    """
    Multi-level piecewise-linear oracle.

    Usage:
        oracle = PiecewiseLinearOracle(keys, IndexConfig(epsilon=32))
        ap = oracle.approximate_position(42)
        keys[ap.lo:ap.hi]   # contains 42's first occurrence if present
    """

    def __init__(self, keys: np.ndarray, config: IndexConfig = None):
        self._config = (config or DEFAULT_CONFIG).validate()
        self._n = int(keys.shape[0])
        self._levels: List[SegmentLevel] = []   # [0] = leaves, [-1] = root

        if self._n == 0:
            return

        distinct, first_ranks = np.unique(keys, return_index=True)
        level = build_level(distinct, first_ranks.astype(np.int64),
                            self._config.epsilon, self._n)
        self._levels.append(level)

        while len(level) > 1:
            level = build_level(level.first_keys,
                                np.arange(len(level), dtype=np.int64),
                                self._config.epsilon_recursive, len(level) - 1)
            self._levels.append(level)

        logger.debug("built %d leaf segments over %d keys (%d distinct), height %d",
                     len(self._levels[0]), self._n, distinct.shape[0], len(self._levels))

    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def levels(self) -> Tuple[SegmentLevel, ...]:
        return tuple(self._levels)

    def approximate_position(self, key: int) -> ApproxPos:
        if self._n == 0:
            return ApproxPos(0, 0, 0)

        s = self._leaf_segment(key)
        pos = self._levels[0].predict(s, key)
        eps = self._config.epsilon
        return ApproxPos(pos, max(0, pos - eps), min(self._n, pos + eps + 2))

    def _leaf_segment(self, key: int) -> int:
        """Descend from the root to the leaf segment responsible for key."""
        eps = self._config.epsilon_recursive
        s = 0
        for depth in range(len(self._levels) - 1, 0, -1):
            below = self._levels[depth - 1]
            p = self._levels[depth].predict(s, key)
            lo = max(0, p - eps)
            hi = min(len(below), p + eps + 2)
            s = max(0, upper_bound(below.first_keys, key, lo, hi) - 1)
        return s

    def segment_count(self) -> int:
        return len(self._levels[0]) if self._levels else 0

    def footprint_bytes(self) -> int:
        return sum(level.nbytes for level in self._levels)

    def height(self) -> int:
        return len(self._levels)
