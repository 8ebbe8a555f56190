"""
Sorted Storage
==============
Owned, immutable, ascending buffer of int64 keys backing one index.

Ownership contract:
  - Each SortedStorage owns exactly one numpy buffer, flagged read-only
    right after it is finalized. Nothing writes to it afterwards.
  - Input is ALWAYS copied. Callers keep full control of what they passed.
  - slice() MATERIALIZES a new storage. No storage ever aliases another
    storage's buffer, so no reference tracking is needed.
  - adopt() is the only way in without a copy. It is reserved for buffers
    that were just produced by a set-algebra pass and have no other owner.

Sort invariant: keys are non-decreasing whenever observed outside
the constructor. Already sorted input is copied as-is (O(n));
anything else is copied and sorted.
"""

from typing import Any, Iterator, Optional

import numpy as np

from storage.types import KEY_DTYPE, KEY_SIZE, as_key_array, is_sorted


class SortedStorage:
    """
    Immutable sorted multiset of int64 keys.

    Usage:
        s = SortedStorage([5, 1, 3])
        s[0]          # 1
        len(s)        # 3
        s.slice(0, 2) # SortedStorage([1, 3])
    """
    __slots__ = ('_keys',)

    def __init__(self, values: Any = ()):
        if isinstance(values, SortedStorage):
            keys = values._keys.copy()
        else:
            keys = as_key_array(values)
            if not is_sorted(keys):
                keys.sort(kind="stable")
        self._keys = _finalize(keys)

    @classmethod
    def adopt(cls, keys: np.ndarray) -> 'SortedStorage':
        """
        Take ownership of a freshly built, already sorted int64 buffer.
        The caller must not keep or hand out any other reference to it.
        """
        if keys.dtype != KEY_DTYPE or keys.ndim != 1:
            raise TypeError("adopt() requires a 1-D int64 buffer")
        storage = cls.__new__(cls)
        storage._keys = _finalize(keys)
        return storage

    # ─── Sequence access ────────────────────────────────────────────

    @property
    def keys(self) -> np.ndarray:
        """Read-only view of the whole buffer."""
        return self._keys

    @property
    def nbytes(self) -> int:
        return self._keys.shape[0] * KEY_SIZE

    def __len__(self) -> int:
        return self._keys.shape[0]

    def __getitem__(self, i: int) -> int:
        return int(self._keys[self.position(i)])

    def __iter__(self) -> Iterator[int]:
        return iter(self._keys.tolist())

    def __reversed__(self) -> Iterator[int]:
        return iter(self._keys[::-1].tolist())

    def position(self, i: int) -> int:
        """
        Normalize a possibly negative position.
        Raises IndexError if it falls outside [0, len) afterwards.
        """
        n = self._keys.shape[0]
        if i < 0:
            i += n
        if i < 0 or i >= n:
            raise IndexError("index out of range")
        return i

    # ─── Copies ─────────────────────────────────────────────────────

    def slice(self, start: Optional[int] = None, stop: Optional[int] = None,
              step: Optional[int] = None) -> 'SortedStorage':
        """
        Materialize keys[start:stop:step] into a new independent storage.
        A negative step yields descending keys, which are re-sorted.
        """
        selected = self._keys[start:stop:step].copy()
        if step is not None and step < 0:
            selected.sort(kind="stable")
        return SortedStorage.adopt(selected)

    def copy_keys(self) -> np.ndarray:
        """Writable copy of the buffer, for callers that need to own one."""
        return self._keys.copy()

    def __repr__(self) -> str:
        n = self._keys.shape[0]
        if n <= 8:
            return f"SortedStorage({self._keys.tolist()})"
        head = ", ".join(str(k) for k in self._keys[:3].tolist())
        tail = ", ".join(str(k) for k in self._keys[-3:].tolist())
        return f"SortedStorage([{head}, ..., {tail}], n={n})"


def _finalize(keys: np.ndarray) -> np.ndarray:
    keys = np.ascontiguousarray(keys, dtype=KEY_DTYPE)
    keys.flags.writeable = False
    return keys
