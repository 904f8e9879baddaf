"""
Solver dispatch for resampling.

resample() is the general entry point. bootstrap(), subsample(),
permute() and by_group() fix the sampling rule; replicate() runs a
data-free Monte Carlo loop with the same Result Collection semantics.
"""

from __future__ import annotations

import warnings
from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import ArrayLike

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.resampling.backends.cpu import (
    CPUResampleBackend,
    VectorizedResampleBackend,
)
from pyreplicate.resampling.backends.parallel import ParallelResampleBackend
from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign
from pyreplicate.resampling.samplers import Sampler, GroupByKey
from pyreplicate.resampling.samplers import is_batchable as sampler_batchable
from pyreplicate.resampling.solution import ResampleSolution
from pyreplicate.resampling.statistics import is_batchable as statistic_batchable


BackendChoice = Literal['auto', 'cpu', 'parallel', 'vectorized', 'gpu']
ExecutorChoice = Literal['thread', 'process']


def select_backend(
    backend: BackendChoice,
    design: ResampleDesign | ReplicateDesign,
    *,
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
):
    """Select backend based on preference and what the design supports."""
    if backend == 'cpu':
        return CPUResampleBackend()

    if backend == 'parallel':
        return ParallelResampleBackend(n_workers=n_workers, executor=executor)

    if backend == 'vectorized':
        return VectorizedResampleBackend()

    if backend == 'gpu':
        from pyreplicate.resampling.backends.gpu import GPUResampleBackend
        return GPUResampleBackend()

    if backend == 'auto':
        # GPU is never chosen implicitly: float32 devices would make the
        # replicates depend on the machine.
        if (
            isinstance(design, ResampleDesign)
            and sampler_batchable(design.sampler)
            and statistic_batchable(design.statistic)
        ):
            return VectorizedResampleBackend()
        return CPUResampleBackend()

    raise ValidationError(f"Unknown backend: {backend!r}")


def _solve(
    design: ResampleDesign | ReplicateDesign,
    backend: BackendChoice,
    n_workers: int | None,
    executor: ExecutorChoice,
) -> ResampleSolution:
    be = select_backend(backend, design, n_workers=n_workers, executor=executor)
    result = be.solve(design)
    for w in result.warnings:
        warnings.warn(w, RuntimeWarning, stacklevel=3)
    return ResampleSolution(_result=result, _design=design)


def resample(
    data: ArrayLike,
    statistic: Callable,
    n_iter: int,
    *,
    rule: str = 'with_replacement',
    size: int | None = None,
    groups: ArrayLike | None = None,
    strata: ArrayLike | None = None,
    sampler: Sampler | None = None,
    seed: int | None = None,
    backend: BackendChoice = 'cpu',
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
) -> ResampleSolution:
    """
    Draw n_iter samples, apply statistic to each, collect the results.

    Parameters
    ----------
    data : array-like
        1D or 2D numeric data; rows are observations.
    statistic : callable
        Statistic object or fn(sample) -> scalar or 1D array.
    n_iter : int
        Number of iterations. n_iter <= 0 returns an empty collection.
    rule : str
        'with_replacement', 'without_replacement', 'group_by_key' or
        'take_all'.
    size : int, optional
        Sample length for the random rules (default: n).
    groups : array-like, optional
        Group labels for 'group_by_key'.
    strata : array-like, optional
        Stratum labels for 'with_replacement'.
    sampler : Sampler, optional
        Custom sampler; replaces rule, size, groups and strata.
    seed : int, optional
        Root seed. Loop and parallel backends give identical results for
        the same seed.
    backend : str
        'cpu' (loop), 'parallel', 'vectorized', 'gpu' or 'auto'.
    n_workers : int, optional
        Pool size for backend='parallel'.
    executor : str
        'thread' or 'process' for backend='parallel'.

    Returns
    -------
    ResampleSolution

    Raises
    ------
    EmptyInputError
        If data has no observations; raised before any iteration runs.
    """
    design = ResampleDesign.for_resampling(
        data, statistic, n_iter,
        rule=rule, size=size, groups=groups, strata=strata,
        sampler=sampler, seed=seed,
    )
    return _solve(design, backend, n_workers, executor)


def bootstrap(
    data: ArrayLike,
    statistic: Callable,
    n_iter: int = 999,
    *,
    strata: ArrayLike | None = None,
    seed: int | None = None,
    backend: BackendChoice = 'cpu',
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
) -> ResampleSolution:
    """
    Ordinary nonparametric bootstrap: samples of size n with replacement.

    With strata, rows are resampled within each stratum.
    """
    return resample(
        data, statistic, n_iter,
        rule='with_replacement', strata=strata, seed=seed,
        backend=backend, n_workers=n_workers, executor=executor,
    )


def subsample(
    data: ArrayLike,
    statistic: Callable,
    n_iter: int,
    size: int,
    *,
    seed: int | None = None,
    backend: BackendChoice = 'cpu',
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
) -> ResampleSolution:
    """Samples of `size` rows drawn without replacement."""
    return resample(
        data, statistic, n_iter,
        rule='without_replacement', size=size, seed=seed,
        backend=backend, n_workers=n_workers, executor=executor,
    )


def permute(
    data: ArrayLike,
    statistic: Callable,
    n_iter: int = 999,
    *,
    seed: int | None = None,
    backend: BackendChoice = 'cpu',
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
) -> ResampleSolution:
    """
    Random permutations of the rows.

    Useful for permutation simulation, e.g. shuffling one column of a 2D
    data set by having the statistic combine it with a fixed reference.
    """
    return resample(
        data, statistic, n_iter,
        rule='without_replacement', seed=seed,
        backend=backend, n_workers=n_workers, executor=executor,
    )


def by_group(
    data: ArrayLike,
    groups: ArrayLike,
    statistic: Callable,
    *,
    backend: BackendChoice = 'cpu',
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
) -> ResampleSolution:
    """
    Apply statistic to every group's rows; one iteration per group.

    Groups are ordered by first appearance; solution.labels gives the key
    of each row of solution.values.
    """
    n_groups = GroupByKey(groups).n_groups
    return resample(
        data, statistic, n_groups,
        rule='group_by_key', groups=groups,
        backend=backend, n_workers=n_workers, executor=executor,
    )


def replicate(
    fn: Callable[[np.random.Generator], Any],
    n_iter: int,
    *,
    seed: int | None = None,
    backend: Literal['cpu', 'parallel'] = 'cpu',
    n_workers: int | None = None,
    executor: ExecutorChoice = 'thread',
) -> ResampleSolution:
    """
    Data-free Monte Carlo: call fn(rng) n_iter times and collect results.

    Every call receives its own generator spawned from seed.
    """
    if backend not in ('cpu', 'parallel'):
        raise ValidationError(
            f"backend: replicate() supports 'cpu' or 'parallel', got {backend!r}"
        )
    design = ReplicateDesign.for_replication(fn, n_iter, seed=seed)
    return _solve(design, backend, n_workers, executor)
