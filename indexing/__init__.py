"""
Learned Index
=============
Immutable int64 index accelerated by a piecewise-linear position oracle.

Components:
  - oracle: PositionOracle capability, ApproxPos, FullRangeOracle
  - segmentation: multi-level piecewise-linear (PGM) oracle
  - search: bounded lower/upper bound with window repair
  - pgm_index: PGMIndex (queries, sequence protocol, set operations)
  - stats: IndexStats diagnostics
  - config: IndexConfig construction parameters
"""

from indexing.config import DEFAULT_CONFIG, IndexConfig, IndexConfigError
from indexing.oracle import ApproxPos, FullRangeOracle, PositionOracle
from indexing.segmentation import PiecewiseLinearOracle
from indexing.stats import IndexStats
from indexing.pgm_index import PGMIndex

__all__ = [
    "DEFAULT_CONFIG", "IndexConfig", "IndexConfigError",
    "ApproxPos", "FullRangeOracle", "PositionOracle",
    "PiecewiseLinearOracle", "IndexStats", "PGMIndex",
]
