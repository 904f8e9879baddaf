"""
Parallel CPU backend for resampling.

Iterations are independent, so range(n_iter) is cut into disjoint
contiguous chunks and each chunk runs in a worker. A worker returns its
chunk as a private block; the calling thread writes the block into the
pre-allocated collection at the chunk's offset. Every iteration keeps its
own spawned SeedSequence, so the output does not depend on the number of
workers or on completion order.
"""

from __future__ import annotations

from concurrent.futures import (
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)

import numpy as np

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.core.result import Result
from pyreplicate.core.compute.device import get_cpu_info
from pyreplicate.core.compute.timing import Timer
from pyreplicate.resampling._common import (
    ResampleParams,
    build_result,
    iteration_seeds,
    observed_value,
    root_sequence,
    run_chunk,
    run_iteration,
    start_collection,
)
from pyreplicate.resampling.collection import ResultCollection
from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign

EXECUTORS = ('thread', 'process')


class ParallelResampleBackend:
    """
    Worker-pool backend.

    Args:
        n_workers: Pool size; defaults to the number of usable CPU cores.
        executor: 'thread' (numpy releases the GIL in most reductions) or
            'process' (statistic, sampler and data must be picklable).
        chunks_per_worker: Chunks submitted per worker, for load balance.
    """

    def __init__(
        self,
        n_workers: int | None = None,
        executor: str = 'thread',
        chunks_per_worker: int = 4,
    ):
        if executor not in EXECUTORS:
            raise ValidationError(
                f"executor: must be one of {EXECUTORS}, got {executor!r}"
            )
        if n_workers is None:
            n_workers = get_cpu_info().cores or 1
        if n_workers < 1:
            raise ValidationError(f"n_workers: must be >= 1, got {n_workers}")
        if chunks_per_worker < 1:
            raise ValidationError(
                f"chunks_per_worker: must be >= 1, got {chunks_per_worker}"
            )
        self._n_workers = int(n_workers)
        self._executor = executor
        self._chunks_per_worker = int(chunks_per_worker)

    @property
    def name(self) -> str:
        return f'cpu_parallel_{self._executor}'

    @property
    def n_workers(self) -> int:
        return self._n_workers

    def _make_pool(self) -> Executor:
        if self._executor == 'process':
            return ProcessPoolExecutor(max_workers=self._n_workers)
        return ThreadPoolExecutor(max_workers=self._n_workers)

    def solve(self, design: ResampleDesign | ReplicateDesign) -> Result[ResampleParams]:
        """Run the iterations on the pool and return Result[ResampleParams]."""
        timer = Timer()
        timer.start()

        n_iter = design.n_iter
        root = root_sequence(design.seed)
        observed = None
        n_chunks = 0

        if n_iter == 0:
            collection = ResultCollection(0)
        else:
            with timer.section('observed'):
                observed = observed_value(design)

            with timer.section('spawn_seeds'):
                seeds = iteration_seeds(root, n_iter)

            # Iteration 0 runs here to fix the slot shape before any worker starts
            with timer.section('replicates'):
                collection = start_collection(
                    design, run_iteration(design, seeds[0], 0), observed
                )

                rest = np.arange(1, n_iter)
                n_chunks = min(rest.size, self._n_workers * self._chunks_per_worker)
                if n_chunks > 0:
                    bounds = [
                        (int(c[0]), int(c[-1]) + 1)
                        for c in np.array_split(rest, n_chunks)
                    ]
                    with self._make_pool() as pool:
                        futures = {
                            pool.submit(
                                run_chunk, design, seeds[start:stop], start,
                                collection.slot_shape,
                            ): start
                            for start, stop in bounds
                        }
                        for future in as_completed(futures):
                            collection.write_block(futures[future], future.result())

        timer.stop()
        return build_result(
            design, root, collection, observed, timer.result(), self.name,
            extra_info={'n_workers': self._n_workers, 'n_chunks': n_chunks},
        )
