"""
Set Algebra Tests
=================
Merge, multiset difference, and duplicate removal, both the raw kernels
over numpy buffers and the PGMIndex operators built on them.
"""

import os
import sys
from collections import Counter

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from algebra.merge import difference_sorted, merge_sorted, sorted_operand, unique_sorted
from indexing.oracle import FullRangeOracle
from indexing.pgm_index import PGMIndex


def _arr(values):
    return np.array(values, dtype=np.int64)


def _multiset_difference(p, q):
    remaining = Counter(p) - Counter(q)
    return sorted(remaining.elements())


# ═══════════════════════════════════════════════════════════════════
# Kernels
# ═══════════════════════════════════════════════════════════════════

class TestKernels:

    def test_merge(self):
        out = merge_sorted(_arr([1, 3, 3, 5]), _arr([2, 3]))
        assert out.tolist() == [1, 2, 3, 3, 3, 5]

    def test_merge_with_empty(self):
        assert merge_sorted(_arr([]), _arr([1, 2])).tolist() == [1, 2]
        assert merge_sorted(_arr([1, 2]), _arr([])).tolist() == [1, 2]
        assert merge_sorted(_arr([]), _arr([])).tolist() == []

    def test_merge_does_not_alias_inputs(self):
        left = _arr([1, 2])
        out = merge_sorted(left, _arr([]))
        out[0] = 100
        assert left[0] == 1

    def test_difference(self):
        assert difference_sorted(_arr([1, 2, 2, 3]), _arr([2])).tolist() == [1, 2, 3]

    def test_difference_multiplicity(self):
        p = _arr([1, 1, 1, 2, 4, 4])
        q = _arr([1, 1, 3, 4, 4, 4, 4])
        assert difference_sorted(p, q).tolist() == [1, 2]

    def test_difference_nothing_removed(self):
        p = _arr([1, 2, 3])
        out = difference_sorted(p, _arr([0, 4, 5]))
        assert out.tolist() == [1, 2, 3]
        assert not np.shares_memory(out, p)

    def test_difference_everything_removed(self):
        assert difference_sorted(_arr([5, 5]), _arr([5, 5, 5])).tolist() == []

    def test_unique(self):
        assert unique_sorted(_arr([1, 1, 2, 3, 3, 3])).tolist() == [1, 2, 3]
        assert unique_sorted(_arr([7])).tolist() == [7]
        assert unique_sorted(_arr([])).tolist() == []

    def test_sorted_operand(self):
        assert sorted_operand([3, 1, 2]).tolist() == [1, 2, 3]
        src = _arr([2, 1])
        sorted_operand(src)
        assert src.tolist() == [2, 1]

    def test_kernels_accept_read_only_inputs(self):
        left = _arr([1, 2, 2])
        left.flags.writeable = False
        assert merge_sorted(left, left).tolist() == [1, 1, 2, 2, 2, 2]
        assert difference_sorted(left, left).tolist() == []
        assert unique_sorted(left).tolist() == [1, 2]


# ═══════════════════════════════════════════════════════════════════
# PGMIndex operators
# ═══════════════════════════════════════════════════════════════════

class TestUnion:

    def test_union_of_indexes(self):
        p = PGMIndex([1, 3, 3, 5])
        q = PGMIndex([2, 3])
        assert list(p + q) == [1, 2, 3, 3, 3, 5]
        assert list(q + p) == [1, 2, 3, 3, 3, 5]

    def test_union_with_unsorted_list(self):
        p = PGMIndex([1, 5])
        assert list(p + [4, 0, 4]) == [0, 1, 4, 4, 5]

    def test_union_with_numpy_array(self):
        p = PGMIndex([1, 5])
        assert list(p + np.array([3, 2], dtype=np.int32)) == [1, 2, 3, 5]

    def test_reflected_union(self):
        p = PGMIndex([1, 5])
        assert list([3, 2] + p) == [1, 2, 3, 5]
        result = np.array([9, 0]) + p
        assert isinstance(result, PGMIndex)
        assert list(result) == [0, 1, 5, 9]

    def test_operands_unchanged(self):
        p = PGMIndex([1, 2])
        raw = [4, 3]
        p + raw
        assert list(p) == [1, 2]
        assert raw == [4, 3]

    def test_union_builds_fresh_oracle(self):
        p = PGMIndex(range(100))
        result = p + list(range(100, 1000))
        assert result.verify_structure() == []
        assert result.stats()["data size"] == 8000

    def test_union_keeps_oracle_factory(self):
        p = PGMIndex([1], oracle_factory=FullRangeOracle)
        assert isinstance((p + [2]).oracle, FullRangeOracle)

    def test_union_method(self):
        assert list(PGMIndex([2]).union(iter([1]))) == [1, 2]
        with pytest.raises(TypeError):
            PGMIndex([2]).union(5)

    def test_unsupported_operand(self):
        with pytest.raises(TypeError):
            PGMIndex([1]) + 5
        with pytest.raises(TypeError):
            PGMIndex([1]) + "12"

    def test_bad_elements_propagate(self):
        with pytest.raises(TypeError):
            PGMIndex([1]) + [1.5]


class TestDifference:

    def test_difference_example(self):
        assert list(PGMIndex([1, 2, 2, 3]) - PGMIndex([2])) == [1, 2, 3]

    def test_difference_with_raw(self):
        assert list(PGMIndex([1, 2, 2, 3]) - [3, 2, 2, 2]) == [1]

    def test_difference_no_overlap(self):
        p = PGMIndex([1, 2, 3])
        result = p - [10]
        assert result == p
        assert result is not p

    def test_difference_to_empty(self):
        result = PGMIndex([4, 4]) - [4, 4]
        assert len(result) == 0
        assert result.find_ge(0) is None

    def test_reflected_difference(self):
        assert list([1, 2, 2, 5] - PGMIndex([2])) == [1, 2, 5]

    def test_difference_method(self):
        assert list(PGMIndex([1, 2]).difference([1])) == [2]
        with pytest.raises(TypeError):
            PGMIndex([1]).difference(None)


class TestDropDuplicates:

    def test_drop_duplicates(self):
        assert list(PGMIndex([1, 1, 2, 3, 3, 3]).drop_duplicates()) == [1, 2, 3]

    def test_no_duplicates_is_identity(self):
        p = PGMIndex([1, 2, 3])
        result = p.drop_duplicates()
        assert result == p
        assert not np.shares_memory(result.to_numpy(), p.to_numpy())

    def test_empty(self):
        assert len(PGMIndex([]).drop_duplicates()) == 0

    def test_original_untouched(self):
        p = PGMIndex([2, 2])
        p.drop_duplicates()
        assert list(p) == [2, 2]


# ═══════════════════════════════════════════════════════════════════
# Properties
# ═══════════════════════════════════════════════════════════════════

multiset = st.lists(st.integers(min_value=-20, max_value=20), max_size=60)


class TestAlgebraProperties:

    @given(p=multiset, q=multiset)
    @settings(max_examples=100, deadline=None)
    def test_union_commutative(self, p, q):
        pq = PGMIndex(p) + PGMIndex(q)
        qp = PGMIndex(q) + _arr(sorted(p))
        assert list(pq) == sorted(p + q)
        assert list(pq) == list(qp)

    @given(p=multiset, q=multiset)
    @settings(max_examples=100, deadline=None)
    def test_difference_multiplicity(self, p, q):
        assert list(PGMIndex(p) - PGMIndex(q)) == _multiset_difference(p, q)
        assert list(PGMIndex(p) - q) == _multiset_difference(p, q)

    @given(p=multiset)
    @settings(max_examples=100, deadline=None)
    def test_drop_duplicates_matches_set(self, p):
        assert list(PGMIndex(p).drop_duplicates()) == sorted(set(p))
