"""
CPU backend for micro-benchmarks.

Every evaluation is timed on its own with perf_counter_ns and stored in a
pre-allocated (n_exprs, times) array. Exceptions raised by an expression
abort the run and propagate.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyreplicate.core.result import Result
from pyreplicate.core.compute.timing import Timer, time_call
from pyreplicate.benchmark._common import BenchmarkParams
from pyreplicate.benchmark.design import BenchmarkDesign


def build_schedule(
    n_exprs: int, times: int, order: str, rng: np.random.Generator
) -> NDArray[np.intp]:
    """Expression index for every timed evaluation, in run order."""
    if order == 'block':
        return np.repeat(np.arange(n_exprs), times)
    round_robin = np.tile(np.arange(n_exprs), times)
    if order == 'inorder':
        return round_robin
    return rng.permutation(round_robin)


class CPUBenchmarkBackend:
    """Wall-clock benchmark backend."""

    @property
    def name(self) -> str:
        return 'cpu_timer'

    def solve(self, design: BenchmarkDesign) -> Result[BenchmarkParams]:
        """Run warmups, then the timed schedule; return Result[BenchmarkParams]."""
        timer = Timer()
        timer.start()

        n_exprs = len(design.exprs)
        rng = np.random.default_rng(design.seed)
        schedule = build_schedule(n_exprs, design.times, design.order, rng)

        with timer.section('warmup'):
            for fn in design.exprs:
                for _ in range(design.warmup):
                    fn()

        timings = np.empty((n_exprs, design.times), dtype=np.float64)
        counts = np.zeros(n_exprs, dtype=np.intp)

        with timer.section('timed_evaluations'):
            for i in schedule:
                timings[i, counts[i]] = time_call(design.exprs[i])
                counts[i] += 1

        timer.stop()

        warnings_list: list[str] = []
        if np.any(timings == 0.0):
            warnings_list.append(
                "some evaluations timed at 0 ns; the clock resolution is "
                "coarser than the expression"
            )

        params = BenchmarkParams(
            names=design.names,
            timings=timings,
            schedule=schedule,
        )

        return Result(
            params=params,
            info=dict(design.metadata),
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
