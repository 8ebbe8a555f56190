"""
Key Storage
===========
Public API for the storage layer.

Usage:
    from storage import SortedStorage, coerce_key, KEY_SIZE
"""

from storage.types import (
    KEY_DTYPE, KEY_SIZE, INT64_MIN, INT64_MAX,
    validate, coerce_key, coerce_element, as_key_array, is_sorted,
)
from storage.sorted_storage import SortedStorage

__all__ = [
    "KEY_DTYPE", "KEY_SIZE", "INT64_MIN", "INT64_MAX",
    "validate", "coerce_key", "coerce_element", "as_key_array", "is_sorted",
    "SortedStorage",
]
