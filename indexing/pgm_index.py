"""
PGM Index
=========
Immutable, queryable index over a sorted multiset of int64 keys.

Architecture:
  - SortedStorage: owned read-only key buffer (storage/sorted_storage.py)
  - PositionOracle: built ONCE over the finalized buffer; maps a key to a
    candidate window [lo, hi) (indexing/segmentation.py by default)
  - Every query = oracle window + bounded exact search (indexing/search.py).
    Results are identical to a binary search over the whole buffer;
    the oracle only makes them cheaper.

Immutability:
  - No method mutates an index. Slicing, union (+), difference (-) and
    drop_duplicates() build a NEW storage and a NEW oracle.
  - Operands of set operations are never written to.

Result shapes:
  - find_lt / find_le / find_gt / find_ge → Optional[int] (None = absent)
  - index() → int, raises ValueError when absent
  - positional access → int, raises IndexError out of bounds

index(x, start, stop) checks the FIRST occurrence of x in the whole index
against the window. A later duplicate inside the window does not count.
"""

import logging
import operator
from collections.abc import Iterable
from typing import Any, Callable, Iterator, List, Optional, Tuple

import numpy as np

from algebra.merge import difference_sorted, merge_sorted, sorted_operand, unique_sorted
from indexing.config import DEFAULT_CONFIG, IndexConfig
from indexing.oracle import PositionOracle
from indexing.search import lower_bound, upper_bound
from indexing.segmentation import PiecewiseLinearOracle
from indexing.stats import IndexStats
from storage.sorted_storage import SortedStorage
from storage.types import INT64_MAX, INT64_MIN, as_key_array, coerce_key, is_sorted

logger = logging.getLogger(__name__)

OracleFactory = Callable[[np.ndarray, IndexConfig], PositionOracle]

# Keys converted to Python ints per step while iterating
ITER_CHUNK = 1024


class PGMIndex:
    """
    Sorted int64 multiset with learned-index accelerated queries.

    Usage:
        idx = PGMIndex([40, 10, 30, 20, 20])
        20 in idx                 # True
        idx.rank(20)              # 3
        idx.find_lt(20)           # 10
        list(idx.range(15, 35))   # [20, 20, 30]
        idx + [25]                # new PGMIndex([10, 20, 20, 25, 30, 40])
        idx.drop_duplicates()     # new PGMIndex([10, 20, 30, 40])
    """
    __slots__ = ('_storage', '_keys', '_oracle', '_config', '_oracle_factory')

    # numpy operands defer to __radd__ / __rsub__ instead of broadcasting
    __array_ufunc__ = None

    def __init__(self, data: Any = (), *, config: Optional[IndexConfig] = None,
                 oracle_factory: Optional[OracleFactory] = None):
        if isinstance(data, PGMIndex):
            data = data._storage
        self._bind(SortedStorage(data), config, oracle_factory)

    @classmethod
    def from_sorted(cls, keys: np.ndarray, *, config: Optional[IndexConfig] = None,
                    oracle_factory: Optional[OracleFactory] = None) -> 'PGMIndex':
        """
        Build from an int64 array the caller guarantees is ascending.
        The array is copied; ValueError if it is not actually sorted.
        """
        buffer = as_key_array(keys)
        if not is_sorted(buffer):
            raise ValueError("from_sorted() requires ascending keys")
        return cls._from_storage(SortedStorage.adopt(buffer), config, oracle_factory)

    @classmethod
    def _from_storage(cls, storage: SortedStorage, config: Optional[IndexConfig],
                      oracle_factory: Optional[OracleFactory]) -> 'PGMIndex':
        idx = cls.__new__(cls)
        idx._bind(storage, config, oracle_factory)
        return idx

    def _bind(self, storage: SortedStorage, config: Optional[IndexConfig],
              oracle_factory: Optional[OracleFactory]) -> None:
        """Pair a finalized storage with a freshly built oracle."""
        config = (config or DEFAULT_CONFIG).validate()
        factory = oracle_factory or PiecewiseLinearOracle
        oracle = factory(storage.keys, config)

        self._storage = storage
        self._keys = storage.keys
        self._oracle = oracle
        self._config = config
        self._oracle_factory = oracle_factory
        logger.debug("index ready: %d keys, %d segments",
                     len(storage), oracle.segment_count())

    def _derive(self, buffer: np.ndarray) -> 'PGMIndex':
        """New index over a buffer produced by a set operation (adopted, not copied)."""
        return PGMIndex._from_storage(SortedStorage.adopt(buffer), self._config,
                                      self._oracle_factory)

    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def oracle(self) -> PositionOracle:
        return self._oracle

    @property
    def storage(self) -> SortedStorage:
        return self._storage

    def to_numpy(self) -> np.ndarray:
        """Read-only view of the sorted keys."""
        return self._keys

    # ─── Bounds ─────────────────────────────────────────────────────

    def _window(self, x: int) -> Tuple[int, int]:
        if INT64_MIN <= x <= INT64_MAX:
            ap = self._oracle.approximate_position(x)
            return ap.lo, ap.hi
        return 0, self._keys.shape[0]

    def lower_bound(self, x: int) -> int:
        """Position of the first key >= x."""
        x = coerce_key(x)
        lo, hi = self._window(x)
        return lower_bound(self._keys, x, lo, hi)

    def upper_bound(self, x: int) -> int:
        """Position of the first key > x."""
        x = coerce_key(x)
        lo, hi = self._window(x)
        return upper_bound(self._keys, x, lo, hi)

    # ─── Point queries ──────────────────────────────────────────────

    def __contains__(self, x: Any) -> bool:
        x = coerce_key(x)
        p = self.lower_bound(x)
        return p < self._keys.shape[0] and int(self._keys[p]) == x

    def contains(self, x: int) -> bool:
        return x in self

    def find_lt(self, x: int) -> Optional[int]:
        """Find the rightmost value less than x."""
        p = self.lower_bound(x)
        return int(self._keys[p - 1]) if p > 0 else None

    def find_le(self, x: int) -> Optional[int]:
        """Find the rightmost value less than or equal to x."""
        p = self.upper_bound(x)
        return int(self._keys[p - 1]) if p > 0 else None

    def find_gt(self, x: int) -> Optional[int]:
        """Find the leftmost value greater than x."""
        p = self.upper_bound(x)
        return int(self._keys[p]) if p < self._keys.shape[0] else None

    def find_ge(self, x: int) -> Optional[int]:
        """Find the leftmost value greater than or equal to x."""
        p = self.lower_bound(x)
        return int(self._keys[p]) if p < self._keys.shape[0] else None

    def rank(self, x: int) -> int:
        """Number of values less than or equal to x."""
        return self.upper_bound(x)

    def count(self, x: int) -> int:
        """Number of values equal to x."""
        x = coerce_key(x)
        lb = self.lower_bound(x)
        if lb >= self._keys.shape[0] or int(self._keys[lb]) != x:
            return 0
        return self.upper_bound(x) - lb

    def index(self, x: int, start: Optional[int] = None,
              stop: Optional[int] = None) -> int:
        """
        Return the first index of x. Raises ValueError if x is not present,
        or if its first occurrence falls outside [start, stop).
        """
        x = coerce_key(x)
        n = self._keys.shape[0]
        p = self.lower_bound(x)
        left, right, _ = slice(start, stop).indices(n)

        if p >= n or int(self._keys[p]) != x or p < left or p >= right:
            raise ValueError(f"{x} is not in index")
        return p

    # ─── Range queries ──────────────────────────────────────────────

    def range(self, a: int, b: int, inclusive: Tuple[bool, bool] = (True, True),
              reverse: bool = False) -> Iterator[int]:
        """
        Iterate over the keys between a and b.

        inclusive=(lo_inclusive, hi_inclusive) selects [a, b], (a, b], [a, b)
        or (a, b). reverse=True yields the same keys in descending order.
        The iterator is lazy and single-use.
        """
        lo_inclusive, hi_inclusive = inclusive
        left = self.lower_bound(a) if lo_inclusive else self.upper_bound(a)
        right = self.upper_bound(b) if hi_inclusive else self.lower_bound(b)
        if right < left:
            right = left

        view = self._keys[left:right]
        if reverse:
            view = view[::-1]
        return _iter_keys(view)

    # ─── Sequence protocol ──────────────────────────────────────────

    def __len__(self) -> int:
        return self._keys.shape[0]

    def __iter__(self) -> Iterator[int]:
        return _iter_keys(self._keys)

    def __reversed__(self) -> Iterator[int]:
        return _iter_keys(self._keys[::-1])

    def __getitem__(self, item):
        if isinstance(item, slice):
            storage = self._storage.slice(item.start, item.stop, item.step)
            return PGMIndex._from_storage(storage, self._config, self._oracle_factory)
        try:
            i = operator.index(item)
        except TypeError:
            raise TypeError(
                f"indices must be integers or slices, not {type(item).__name__}") from None
        return self._storage[i]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PGMIndex):
            return bool(np.array_equal(self._keys, other._keys))
        if isinstance(other, (list, tuple, np.ndarray)):
            return len(other) == len(self) and list(other) == self._keys.tolist()
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        n = self._keys.shape[0]
        if n <= 8:
            return f"PGMIndex({self._keys.tolist()})"
        head = ", ".join(str(k) for k in self._keys[:3].tolist())
        tail = ", ".join(str(k) for k in self._keys[-3:].tolist())
        return f"PGMIndex([{head}, ..., {tail}], n={n})"

    # ─── Multiset operations ────────────────────────────────────────

    def _operand_keys(self, other: Any) -> Optional[np.ndarray]:
        """Sorted int64 keys of a set-operation operand, or None if unsupported."""
        if isinstance(other, PGMIndex):
            return other._keys
        if isinstance(other, SortedStorage):
            return other.keys
        if isinstance(other, (str, bytes)) or not isinstance(other, Iterable):
            return None
        return sorted_operand(other)

    def __add__(self, other: Any) -> 'PGMIndex':
        keys = self._operand_keys(other)
        if keys is None:
            return NotImplemented
        return self._derive(merge_sorted(self._keys, keys))

    def __radd__(self, other: Any) -> 'PGMIndex':
        keys = self._operand_keys(other)
        if keys is None:
            return NotImplemented
        return self._derive(merge_sorted(keys, self._keys))

    def __sub__(self, other: Any) -> 'PGMIndex':
        keys = self._operand_keys(other)
        if keys is None:
            return NotImplemented
        return self._derive(difference_sorted(self._keys, keys))

    def __rsub__(self, other: Any) -> 'PGMIndex':
        keys = self._operand_keys(other)
        if keys is None:
            return NotImplemented
        return self._derive(difference_sorted(keys, self._keys))

    def union(self, other: Any) -> 'PGMIndex':
        result = self.__add__(other)
        if result is NotImplemented:
            raise TypeError(f"Cannot union PGMIndex with {type(other).__name__}")
        return result

    def difference(self, other: Any) -> 'PGMIndex':
        result = self.__sub__(other)
        if result is NotImplemented:
            raise TypeError(f"Cannot subtract {type(other).__name__} from PGMIndex")
        return result

    def drop_duplicates(self) -> 'PGMIndex':
        """Return a new index keeping one copy of every key."""
        return self._derive(unique_sorted(self._keys))

    # ─── Diagnostics ────────────────────────────────────────────────

    def stats(self) -> dict:
        """Return a dict containing stats about self, such as the occupied space in bytes."""
        return self.stats_record().as_dict()

    def stats_record(self) -> IndexStats:
        return IndexStats.collect(self._storage, self._oracle)

    def verify_structure(self) -> List[str]:
        """
        Verify index integrity.
        Returns list of issues found (empty = healthy).
        """
        issues: List[str] = []
        keys = self._keys

        if keys.flags.writeable:
            issues.append("Key buffer is writable")
        if not is_sorted(keys):
            bad = int(np.argmax(keys[:-1] > keys[1:])) + 1
            issues.append(f"Keys not sorted at position {bad}")
            return issues

        # Oracle window must hold the first occurrence of every stored key
        distinct, first_ranks = np.unique(keys, return_index=True)
        for key, rank in zip(distinct.tolist(), first_ranks.tolist()):
            ap = self._oracle.approximate_position(key)
            if not (ap.lo <= rank < ap.hi):
                issues.append(
                    f"Oracle window [{ap.lo}, {ap.hi}) misses key {key} at {rank}")
        return issues


def _iter_keys(view: np.ndarray) -> Iterator[int]:
    for start in range(0, view.shape[0], ITER_CHUNK):
        yield from view[start:start + ITER_CHUNK].tolist()
