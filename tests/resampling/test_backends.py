"""
Tests for backend equivalence and backend selection.

The loop and parallel backends share per-iteration generators, so they
must agree bit for bit whatever the worker count or executor. The
vectorized backend draws one index matrix from a single generator; it is
checked against a direct numpy computation with the same seed.
"""

import numpy as np
import pytest

from pyreplicate.core.compute.tolerances import select_tolerance
from pyreplicate.core.exceptions import StatisticError, ValidationError
from pyreplicate.resampling import (
    Mean,
    Median,
    ResampleDesign,
    ReplicateDesign,
    Variance,
    as_statistic,
    replicate,
    resample,
)
from pyreplicate.resampling.backends import (
    CPUResampleBackend,
    ParallelResampleBackend,
    VectorizedResampleBackend,
)
from pyreplicate.resampling.solvers import select_backend


class Sequential:
    """Sampler whose iteration i takes row i (mod n)."""

    name = 'sequential'

    def draw(self, n, rng, iteration):
        return np.array([iteration % n])


class Boom(Exception):
    pass


def _design(data, statistic=None, n_iter=100, **kwargs):
    kwargs.setdefault('seed', 12345)
    return ResampleDesign.for_resampling(data, statistic or Mean(), n_iter, **kwargs)


# ═══════════════════════════════════════════════════════════════════════
# Loop vs parallel
# ═══════════════════════════════════════════════════════════════════════

class TestParallelMatchesLoop:

    @pytest.mark.parametrize("n_workers", [1, 2, 3, 8])
    def test_thread_pool_identical(self, n_workers, normal_data):
        design = _design(normal_data, n_iter=101)
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(n_workers=n_workers).solve(design)
        np.testing.assert_array_equal(par.params.values, loop.params.values)
        np.testing.assert_array_equal(par.params.observed, loop.params.observed)

    @pytest.mark.parametrize("chunks_per_worker", [1, 5, 50])
    def test_chunking_does_not_matter(self, chunks_per_worker, normal_data):
        design = _design(normal_data, Median(), n_iter=60)
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(
            n_workers=3, chunks_per_worker=chunks_per_worker
        ).solve(design)
        np.testing.assert_array_equal(par.params.values, loop.params.values)

    def test_process_pool_identical(self, normal_data):
        design = _design(normal_data, Variance(), n_iter=40)
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(n_workers=2, executor='process').solve(design)
        np.testing.assert_array_equal(par.params.values, loop.params.values)
        assert par.backend_name == 'cpu_parallel_process'

    def test_slots_owned_by_iteration(self):
        design = _design(np.arange(50.0), n_iter=50, sampler=Sequential())
        par = ParallelResampleBackend(n_workers=4).solve(design)
        np.testing.assert_array_equal(par.params.values, np.arange(50.0))

    def test_2d_statistic(self, regression_data):
        design = _design(regression_data, n_iter=30)
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(n_workers=3).solve(design)
        assert par.params.values.shape == (30, 2)
        np.testing.assert_array_equal(par.params.values, loop.params.values)

    def test_group_by_key(self, grouped_data):
        values, labels = grouped_data
        design = _design(values, n_iter=3, rule='group_by_key', groups=labels)
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(n_workers=2).solve(design)
        np.testing.assert_array_equal(par.params.values, loop.params.values)
        np.testing.assert_array_equal(par.params.labels, ['b', 'a', 'c'])

    def test_replicate(self):
        design = ReplicateDesign.for_replication(
            lambda rng: rng.exponential(), 75, seed=3
        )
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(n_workers=4).solve(design)
        np.testing.assert_array_equal(par.params.values, loop.params.values)

    def test_replicate_entry_point(self):
        a = replicate(lambda rng: rng.normal(), 33, seed=1)
        b = replicate(lambda rng: rng.normal(), 33, seed=1, backend='parallel', n_workers=3)
        np.testing.assert_array_equal(a.values, b.values)

    @pytest.mark.parametrize("n_iter", [0, 1, 2])
    def test_small_n_iter(self, n_iter, normal_data):
        design = _design(normal_data, n_iter=n_iter)
        loop = CPUResampleBackend().solve(design)
        par = ParallelResampleBackend(n_workers=4).solve(design)
        assert par.params.values.shape == (n_iter,)
        np.testing.assert_array_equal(par.params.values, loop.params.values)

    def test_info(self, normal_data):
        par = ParallelResampleBackend(n_workers=2, chunks_per_worker=3).solve(
            _design(normal_data, n_iter=20)
        )
        assert par.info['n_workers'] == 2
        assert par.info['n_chunks'] == 6
        assert par.info['entropy'] == 12345
        assert par.info['tolerance'] == 'cpu_exact'
        assert 'replicates' in par.timing

    def test_worker_exception_propagates(self):
        def fails_on_seven(sample):
            if sample.size == 1 and sample[0] == 7.0:
                raise Boom("seven")
            return sample.mean()

        design = _design(np.arange(20.0), fails_on_seven, n_iter=20, sampler=Sequential())
        with pytest.raises(Boom, match="seven"):
            ParallelResampleBackend(n_workers=3).solve(design)

    def test_worker_shape_change_rejected(self):
        def ragged(sample):
            return np.repeat(sample[0], 1 if sample[0] < 10 else 2)

        design = _design(np.arange(20.0), ragged, n_iter=20, sampler=Sequential())
        with pytest.raises(StatisticError):
            ParallelResampleBackend(n_workers=2).solve(design)

    def test_invalid_executor(self):
        with pytest.raises(ValidationError, match="executor"):
            ParallelResampleBackend(executor='gevent')

    def test_invalid_n_workers(self):
        with pytest.raises(ValidationError, match="n_workers"):
            ParallelResampleBackend(n_workers=0)


# ═══════════════════════════════════════════════════════════════════════
# Vectorized
# ═══════════════════════════════════════════════════════════════════════

class TestVectorized:

    def test_matches_direct_numpy(self, normal_data):
        n = normal_data.shape[0]
        rng = np.random.default_rng(np.random.SeedSequence(99))
        idx = rng.integers(0, n, size=(200, n))
        expected = normal_data[idx].mean(axis=1)

        sol = resample(normal_data, Mean(), 200, seed=99, backend='vectorized')
        np.testing.assert_array_equal(sol.values, expected)
        assert sol.backend_name == 'cpu_vectorized'

    def test_reproducible(self, normal_data):
        a = resample(normal_data, Median(), 50, seed=4, backend='vectorized')
        b = resample(normal_data, Median(), 50, seed=4, backend='vectorized')
        np.testing.assert_array_equal(a.values, b.values)

    def test_take_all_matches_loop(self, normal_data):
        design = _design(normal_data, Variance(), n_iter=5, rule='take_all')
        loop = CPUResampleBackend().solve(design)
        vec = VectorizedResampleBackend().solve(design)
        tol = select_tolerance(vec.backend_name)
        np.testing.assert_allclose(
            vec.params.values, loop.params.values, rtol=tol.rtol, atol=tol.atol
        )

    def test_tolerance_tier_reported(self, normal_data):
        design = _design(normal_data, n_iter=10)
        loop = CPUResampleBackend().solve(design)
        vec = VectorizedResampleBackend().solve(design)
        assert loop.info['tolerance'] == 'cpu_exact'
        assert vec.info['tolerance'] == 'cpu_vectorized'

    def test_distribution_agrees_with_loop(self, normal_data):
        loop = resample(normal_data, Mean(), 3000, seed=1)
        vec = resample(normal_data, Mean(), 3000, seed=1, backend='vectorized')
        assert vec.mean == pytest.approx(loop.mean, abs=0.05)
        assert vec.se == pytest.approx(loop.se, rel=0.1)

    def test_without_replacement(self):
        data = np.arange(12.0)
        sol = resample(
            data, as_statistic(np.sum, batch=lambda s: s.sum(axis=1)), 20,
            rule='without_replacement', seed=0, backend='vectorized',
        )
        np.testing.assert_array_equal(sol.values, np.full(20, 66.0))

    def test_user_batch_form(self, normal_data):
        stat = as_statistic(
            lambda s: s.max() - s.min(),
            batch=lambda s: s.max(axis=1) - s.min(axis=1),
            name='range',
        )
        sol = resample(normal_data, stat, 40, seed=2, backend='vectorized')
        assert sol.values.shape == (40,)
        assert np.all(sol.values >= 0)
        assert sol.info['statistic'] == 'range'
        assert sol.info['sample_size'] == 50

    def test_2d_data(self, regression_data):
        sol = resample(regression_data, Mean(), 25, seed=0, backend='vectorized')
        assert sol.values.shape == (25, 2)

    def test_no_iterations(self, normal_data):
        sol = resample(normal_data, Mean(), 0, backend='vectorized')
        assert len(sol) == 0
        assert sol.observed is None

    def test_batch_shape_must_match_observed(self, normal_data):
        stat = as_statistic(
            np.mean, batch=lambda s: np.column_stack([s.mean(axis=1)] * 2)
        )
        with pytest.raises(StatisticError, match="full data"):
            resample(normal_data, stat, 10, seed=0, backend='vectorized')

    def test_ragged_sampler_rejected(self, grouped_data):
        values, labels = grouped_data
        with pytest.raises(ValidationError, match="ragged"):
            resample(values, Mean(), 3, rule='group_by_key', groups=labels,
                     backend='vectorized')

    def test_statistic_without_batch_rejected(self, normal_data):
        with pytest.raises(ValidationError, match=r"batch\(\)"):
            resample(normal_data, np.mean, 10, backend='vectorized')

    def test_replication_rejected(self):
        design = ReplicateDesign.for_replication(lambda rng: rng.normal(), 5)
        with pytest.raises(ValidationError, match="replication"):
            VectorizedResampleBackend().solve(design)


# ═══════════════════════════════════════════════════════════════════════
# Backend selection
# ═══════════════════════════════════════════════════════════════════════

class TestSelectBackend:

    def test_default_is_loop(self, normal_data):
        assert resample(normal_data, Mean(), 3, seed=0).backend_name == 'cpu_loop'

    def test_auto_vectorizes_batchable(self, normal_data):
        sol = resample(normal_data, Mean(), 3, seed=0, backend='auto')
        assert sol.backend_name == 'cpu_vectorized'

    def test_auto_loops_plain_function(self, normal_data):
        sol = resample(normal_data, np.mean, 3, seed=0, backend='auto')
        assert sol.backend_name == 'cpu_loop'

    def test_auto_loops_ragged_sampler(self, grouped_data):
        values, labels = grouped_data
        sol = resample(values, Mean(), 3, rule='group_by_key', groups=labels,
                       backend='auto')
        assert sol.backend_name == 'cpu_loop'

    def test_auto_loops_replication(self):
        design = ReplicateDesign.for_replication(lambda rng: rng.normal(), 3)
        assert isinstance(select_backend('auto', design), CPUResampleBackend)

    def test_parallel_options(self, normal_data):
        design = _design(normal_data)
        be = select_backend('parallel', design, n_workers=5, executor='process')
        assert isinstance(be, ParallelResampleBackend)
        assert be.n_workers == 5
        assert be.name == 'cpu_parallel_process'

    def test_unknown(self, normal_data):
        with pytest.raises(ValidationError, match="Unknown backend"):
            select_backend('quantum', _design(normal_data))
