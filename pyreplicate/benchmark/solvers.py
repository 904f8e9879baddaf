"""
Solver dispatch for benchmarks.

benchmark() times arbitrary zero-argument callables. compare_backends()
times one resampling design under several backends, the usual way to see
what vectorizing or parallelising a loop actually buys.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Sequence

from numpy.typing import ArrayLike

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.benchmark.backends.cpu import CPUBenchmarkBackend
from pyreplicate.benchmark.design import BenchmarkDesign
from pyreplicate.benchmark.solution import BenchmarkSolution
from pyreplicate.resampling.design import ResampleDesign
from pyreplicate.resampling.solvers import select_backend


def benchmark(
    exprs: Mapping[str, Callable[[], Any]] | Iterable[Callable[[], Any]],
    times: int = 100,
    *,
    order: str = 'random',
    warmup: int = 2,
    seed: int | None = None,
) -> BenchmarkSolution:
    """
    Time each expression `times` times.

    Parameters
    ----------
    exprs : mapping or iterable
        name -> zero-argument callable, or callables named by __name__.
    times : int
        Timed evaluations per expression.
    order : str
        'random' (seeded interleaving), 'inorder' or 'block'.
    warmup : int
        Untimed evaluations per expression first.
    seed : int, optional
        Seed for the random schedule.

    Returns
    -------
    BenchmarkSolution
    """
    design = BenchmarkDesign.for_benchmark(
        exprs, times, order=order, warmup=warmup, seed=seed,
    )
    result = CPUBenchmarkBackend().solve(design)
    for w in result.warnings:
        warnings.warn(w, RuntimeWarning, stacklevel=2)
    return BenchmarkSolution(_result=result, _design=design)


def compare_backends(
    data: ArrayLike,
    statistic: Callable,
    n_iter: int,
    backends: Sequence[str] = ('cpu', 'vectorized'),
    times: int = 10,
    *,
    rule: str = 'with_replacement',
    size: int | None = None,
    seed: int | None = 0,
    n_workers: int | None = None,
    executor: str = 'thread',
    order: str = 'random',
    warmup: int = 1,
) -> BenchmarkSolution:
    """
    Benchmark one resampling design under several backends.

    The design is validated and every backend constructed up front. A
    backend that cannot run the design (e.g. 'vectorized' with a statistic
    lacking batch()) raises on its first evaluation, a warmup by default.
    """
    design = ResampleDesign.for_resampling(
        data, statistic, n_iter, rule=rule, size=size, seed=seed,
    )
    exprs = {}
    for name in backends:
        be = select_backend(name, design, n_workers=n_workers, executor=executor)
        if be.name in exprs:
            raise ValidationError(
                f"backends: {name!r} resolves to {be.name!r}, which is already listed"
            )
        exprs[be.name] = _bind(be, design)

    return benchmark(exprs, times, order=order, warmup=warmup, seed=seed)


def _bind(backend, design: ResampleDesign) -> Callable[[], Any]:
    def run():
        return backend.solve(design)
    return run
