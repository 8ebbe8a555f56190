"""
Set Algebra
===========
Linear-pass kernels over sorted int64 buffers: merge, multiset
difference, and duplicate removal.
"""

from algebra.merge import difference_sorted, merge_sorted, sorted_operand, unique_sorted

__all__ = ["merge_sorted", "difference_sorted", "unique_sorted", "sorted_operand"]
