"""
Tests for the sampling rules.
"""

import numpy as np
import pytest

from pyreplicate.core.exceptions import DimensionError, ValidationError
from pyreplicate.resampling.samplers import (
    GroupByKey,
    TakeAll,
    WithReplacement,
    WithoutReplacement,
    is_batchable,
    make_sampler,
)


# ═══════════════════════════════════════════════════════════════════════
# With replacement
# ═══════════════════════════════════════════════════════════════════════

class TestWithReplacement:

    def test_default_size_is_n(self, rng):
        idx = WithReplacement().draw(20, rng, 0)
        assert idx.shape == (20,)
        assert idx.min() >= 0 and idx.max() < 20

    def test_explicit_size(self, rng):
        idx = WithReplacement(size=7).draw(20, rng, 0)
        assert idx.shape == (7,)

    def test_repeats_occur(self, rng):
        # 1000 draws from 10 rows must repeat
        idx = WithReplacement(size=1000).draw(10, rng, 0)
        assert np.unique(idx).size <= 10

    def test_batch_shape(self, rng):
        idx = WithReplacement(size=5).draw_batch(12, rng, 30)
        assert idx.shape == (30, 5)
        assert idx.min() >= 0 and idx.max() < 12

    def test_strata_preserved(self, rng):
        strata = np.array([0, 0, 0, 1, 1, 2, 2, 2, 2, 2])
        s = WithReplacement(strata=strata)
        s.validate(10, 5)
        for i in range(5):
            idx = s.draw(10, rng, i)
            assert idx.shape == (10,)
            np.testing.assert_array_equal(strata[idx], strata)

    def test_strata_batch_preserved(self, rng):
        strata = np.array(['x', 'y', 'x', 'y', 'y'])
        idx = WithReplacement(strata=strata).draw_batch(5, rng, 20)
        assert idx.shape == (20, 5)
        for row in idx:
            np.testing.assert_array_equal(strata[row], strata)

    def test_strata_length_mismatch(self):
        with pytest.raises(DimensionError, match="strata length"):
            WithReplacement(strata=[0, 1, 0]).validate(4, 10)

    def test_strata_with_size_rejected(self):
        with pytest.raises(ValidationError, match="strata"):
            WithReplacement(size=3, strata=[0, 1, 0])

    @pytest.mark.parametrize("size", [0, -2, 2.5])
    def test_invalid_size(self, size):
        with pytest.raises(ValidationError):
            WithReplacement(size=size)


# ═══════════════════════════════════════════════════════════════════════
# Without replacement
# ═══════════════════════════════════════════════════════════════════════

class TestWithoutReplacement:

    def test_default_is_permutation(self, rng):
        idx = WithoutReplacement().draw(15, rng, 0)
        np.testing.assert_array_equal(np.sort(idx), np.arange(15))

    def test_subsample_unique(self, rng):
        idx = WithoutReplacement(size=6).draw(15, rng, 0)
        assert idx.shape == (6,)
        assert np.unique(idx).size == 6

    def test_batch_rows_are_unique(self, rng):
        idx = WithoutReplacement(size=4).draw_batch(10, rng, 50)
        assert idx.shape == (50, 4)
        for row in idx:
            assert np.unique(row).size == 4

    def test_batch_full_permutations(self, rng):
        idx = WithoutReplacement().draw_batch(8, rng, 10)
        np.testing.assert_array_equal(
            np.sort(idx, axis=1), np.tile(np.arange(8), (10, 1))
        )

    def test_size_larger_than_n(self):
        with pytest.raises(ValidationError, match="without replacement"):
            WithoutReplacement(size=11).validate(10, 1)

    def test_size_equal_n_allowed(self):
        WithoutReplacement(size=10).validate(10, 1)


# ═══════════════════════════════════════════════════════════════════════
# Group by key
# ═══════════════════════════════════════════════════════════════════════

class TestGroupByKey:

    def test_labels_in_first_appearance_order(self):
        g = GroupByKey(['z', 'a', 'z', 'm', 'a'])
        np.testing.assert_array_equal(g.labels, ['z', 'a', 'm'])
        assert g.n_groups == 3

    def test_draw_selects_group_rows(self, rng):
        g = GroupByKey([3, 1, 3, 2, 1, 3])
        np.testing.assert_array_equal(g.draw(6, rng, 0), [0, 2, 5])
        np.testing.assert_array_equal(g.draw(6, rng, 1), [1, 4])
        np.testing.assert_array_equal(g.draw(6, rng, 2), [3])

    def test_ragged_not_batchable(self):
        g = GroupByKey([0, 1])
        assert not is_batchable(g)
        assert g.sample_size(2) is None

    def test_too_many_iterations(self):
        with pytest.raises(ValidationError, match="only 2 groups"):
            GroupByKey(['a', 'b', 'a']).validate(3, 3)

    def test_fewer_iterations_allowed(self):
        GroupByKey(['a', 'b', 'a']).validate(3, 1)

    def test_length_mismatch(self):
        with pytest.raises(DimensionError, match="groups length"):
            GroupByKey(['a', 'b']).validate(3, 1)

    def test_2d_keys_rejected(self):
        with pytest.raises(DimensionError):
            GroupByKey([[1, 2], [3, 4]])

    def test_nan_keys_form_one_group(self, rng):
        g = GroupByKey([1.0, np.nan, 2.0, np.nan])
        assert g.n_groups == 3
        assert np.isnan(g.labels[1])
        np.testing.assert_array_equal(g.draw(4, rng, 1), [1, 3])
        np.testing.assert_array_equal(g.draw(4, rng, 2), [2])


# ═══════════════════════════════════════════════════════════════════════
# Take all and the rule factory
# ═══════════════════════════════════════════════════════════════════════

class TestTakeAll:

    def test_returns_every_row_in_order(self, rng):
        np.testing.assert_array_equal(TakeAll().draw(5, rng, 3), np.arange(5))

    def test_does_not_consume_generator(self):
        rng = np.random.default_rng(0)
        TakeAll().draw(5, rng, 0)
        assert rng.random() == np.random.default_rng(0).random()

    def test_batch(self, rng):
        idx = TakeAll().draw_batch(4, rng, 3)
        np.testing.assert_array_equal(idx, np.tile(np.arange(4), (3, 1)))


class TestMakeSampler:

    @pytest.mark.parametrize("rule,cls", [
        ('with_replacement', WithReplacement),
        ('without_replacement', WithoutReplacement),
        ('take_all', TakeAll),
    ])
    def test_rules(self, rule, cls):
        assert isinstance(make_sampler(rule), cls)

    def test_group_by_key(self):
        s = make_sampler('group_by_key', groups=[1, 2, 1])
        assert isinstance(s, GroupByKey)

    def test_group_by_key_requires_groups(self):
        with pytest.raises(ValidationError, match="groups: required"):
            make_sampler('group_by_key')

    def test_unknown_rule(self):
        with pytest.raises(ValidationError, match="rule"):
            make_sampler('jackknife')

    def test_groups_with_other_rule(self):
        with pytest.raises(ValidationError, match="groups"):
            make_sampler('with_replacement', groups=[1, 2])

    def test_strata_with_other_rule(self):
        with pytest.raises(ValidationError, match="strata"):
            make_sampler('without_replacement', strata=[1, 2])

    def test_size_with_take_all(self):
        with pytest.raises(ValidationError, match="size"):
            make_sampler('take_all', size=3)
