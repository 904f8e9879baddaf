"""
Tests for the pre-allocated, write-once ResultCollection.

Validates:
    - Length fixed at creation, never grows
    - Each slot written exactly once
    - Shape checks per slot and per block
    - Frozen output is read-only and complete
"""

import numpy as np
import pytest

from pyreplicate.core.exceptions import SlotWriteError, StatisticError
from pyreplicate.resampling.collection import ResultCollection


class TestAllocation:

    @pytest.mark.parametrize("n", [0, 1, 5, 1000])
    def test_length_fixed(self, n):
        c = ResultCollection(n)
        assert len(c) == n
        assert c.n_written == 0

    def test_negative_length_is_empty(self):
        c = ResultCollection(-3)
        assert len(c) == 0
        assert c.is_complete
        assert c.freeze().shape == (0,)

    def test_width_gives_2d_buffer(self):
        c = ResultCollection(4, width=3)
        assert c.slot_shape == (3,)
        for i in range(4):
            c.write(i, [i, i + 1, i + 2])
        assert c.freeze().shape == (4, 3)


class TestWriteOnce:

    def test_write_and_freeze(self):
        c = ResultCollection(3)
        for i, v in enumerate([3.0, 1.0, 2.0]):
            c.write(i, v)
        np.testing.assert_array_equal(c.freeze(), [3.0, 1.0, 2.0])

    def test_write_out_of_order(self):
        c = ResultCollection(3)
        for i in (2, 0, 1):
            c.write(i, float(i))
        np.testing.assert_array_equal(c.freeze(), [0.0, 1.0, 2.0])

    def test_second_write_rejected(self):
        c = ResultCollection(3)
        c.write(1, 5.0)
        with pytest.raises(SlotWriteError, match="already written") as exc_info:
            c.write(1, 6.0)
        assert exc_info.value.index == 1
        assert c.is_written(1)

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_out_of_range_rejected(self, index):
        c = ResultCollection(3)
        with pytest.raises(SlotWriteError, match="outside"):
            c.write(index, 1.0)

    def test_does_not_grow(self):
        c = ResultCollection(2)
        c.write(0, 1.0)
        c.write(1, 2.0)
        with pytest.raises(SlotWriteError):
            c.write(2, 3.0)
        assert len(c) == 2

    def test_scalar_slot_rejects_vector(self):
        c = ResultCollection(2)
        with pytest.raises(StatisticError, match=r"shape \(2,\)"):
            c.write(0, [1.0, 2.0])
        assert not c.is_written(0)

    def test_vector_slot_rejects_wrong_length(self):
        c = ResultCollection(2, width=2, statistic_name='mean_var')
        with pytest.raises(StatisticError, match="mean_var") as exc_info:
            c.write(0, [1.0, 2.0, 3.0])
        assert exc_info.value.expected_shape == (2,)
        assert exc_info.value.actual_shape == (3,)


class TestWriteBlock:

    def test_block_fills_range(self):
        c = ResultCollection(5)
        c.write_block(1, [10.0, 11.0, 12.0])
        c.write(0, 9.0)
        c.write(4, 13.0)
        np.testing.assert_array_equal(c.freeze(), [9.0, 10.0, 11.0, 12.0, 13.0])

    def test_block_overlapping_written_slot(self):
        c = ResultCollection(4)
        c.write(2, 1.0)
        with pytest.raises(SlotWriteError, match="slot 2 already written"):
            c.write_block(1, [0.0, 0.0])
        # Rejected block leaves the untouched slot unwritten
        assert not c.is_written(1)

    def test_block_past_end(self):
        c = ResultCollection(3)
        with pytest.raises(SlotWriteError, match="outside"):
            c.write_block(2, [1.0, 2.0])
        assert c.n_written == 0

    def test_block_shape_mismatch(self):
        c = ResultCollection(3, width=2)
        with pytest.raises(StatisticError):
            c.write_block(0, np.zeros((3, 3)))

    def test_scalar_block_rejected(self):
        c = ResultCollection(3)
        with pytest.raises(StatisticError, match="leading iteration axis"):
            c.write_block(0, 1.0)


class TestFreeze:

    def test_incomplete_rejected(self):
        c = ResultCollection(3)
        c.write(0, 1.0)
        with pytest.raises(SlotWriteError, match="2 of 3 slots unwritten") as exc_info:
            c.freeze()
        assert exc_info.value.index == 1

    def test_frozen_is_read_only(self):
        c = ResultCollection(1)
        c.write(0, 1.0)
        values = c.freeze()
        with pytest.raises(ValueError):
            values[0] = 2.0

    def test_no_writes_after_freeze(self):
        c = ResultCollection(0)
        c.freeze()
        with pytest.raises(SlotWriteError, match="frozen"):
            c.write_block(0, np.zeros(0))

    def test_repr(self):
        c = ResultCollection(4, width=2)
        assert "n=4" in repr(c)
        assert "written=0" in repr(c)
