"""
CPU backends for resampling.

CPUResampleBackend: one Python-level iteration per replicate, each with its
    own generator spawned from the root seed.
VectorizedResampleBackend: draws the whole (n_iter, m) index matrix in one
    call and evaluates the statistic's batch form on the stacked samples.
"""

from __future__ import annotations

import numpy as np

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.core.result import Result
from pyreplicate.core.compute.timing import Timer
from pyreplicate.resampling._common import (
    ResampleParams,
    build_result,
    check_observed_shape,
    iteration_seeds,
    observed_value,
    root_sequence,
    run_iteration,
    start_collection,
    width_of,
)
from pyreplicate.resampling.collection import ResultCollection
from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign
from pyreplicate.resampling.samplers import is_batchable as sampler_batchable
from pyreplicate.resampling.statistics import (
    evaluate_batch,
    is_batchable as statistic_batchable,
)


class CPUResampleBackend:
    """
    Sequential loop backend.

    Iteration i always uses the i-th child of the root SeedSequence, so
    results are identical to the parallel backend for the same seed.
    """

    @property
    def name(self) -> str:
        return 'cpu_loop'

    def solve(self, design: ResampleDesign | ReplicateDesign) -> Result[ResampleParams]:
        """Run the loop and return Result[ResampleParams]."""
        timer = Timer()
        timer.start()

        n_iter = design.n_iter
        root = root_sequence(design.seed)
        observed = None

        if n_iter == 0:
            collection = ResultCollection(0)
        else:
            with timer.section('observed'):
                observed = observed_value(design)

            with timer.section('spawn_seeds'):
                seeds = iteration_seeds(root, n_iter)

            with timer.section('replicates'):
                collection = start_collection(
                    design, run_iteration(design, seeds[0], 0), observed
                )
                for i in range(1, n_iter):
                    collection.write(i, run_iteration(design, seeds[i], i))

        timer.stop()
        return build_result(
            design, root, collection, observed, timer.result(), self.name,
        )


class VectorizedResampleBackend:
    """
    Whole-matrix backend.

    Requires a sampler with draw_batch() and a statistic with batch().
    A single generator seeded from the root sequence draws every index at
    once, so the replicates differ from the loop backends' for the same
    seed but are reproducible among vectorized and GPU runs.
    """

    @property
    def name(self) -> str:
        return 'cpu_vectorized'

    def solve(self, design: ResampleDesign | ReplicateDesign) -> Result[ResampleParams]:
        """Draw all samples at once and return Result[ResampleParams]."""
        check_vectorizable(design, self.name)

        timer = Timer()
        timer.start()

        n_iter = design.n_iter
        root = root_sequence(design.seed)
        observed = None

        if n_iter == 0:
            collection = ResultCollection(0)
        else:
            n = design.data.shape[0]
            rng = np.random.default_rng(root)

            with timer.section('observed'):
                observed = observed_value(design)

            with timer.section('draw_indices'):
                indices = design.sampler.draw_batch(n, rng, n_iter)

            with timer.section('gather'):
                samples = design.data[indices]

            with timer.section('replicates'):
                values = evaluate_batch(design.statistic, samples, n_iter)

            check_observed_shape(observed, values.shape[1:], design)
            collection = ResultCollection(
                n_iter, width_of(values[0]), design.statistic.name
            )
            collection.write_block(0, values)

        timer.stop()
        return build_result(
            design, root, collection, observed, timer.result(), self.name,
            extra_info={'sample_size': design.sampler.sample_size(design.data.shape[0])},
        )


def check_vectorizable(design: ResampleDesign | ReplicateDesign, backend_name: str) -> None:
    """
    Raises:
        ValidationError: If the design has no batch form.
    """
    if isinstance(design, ReplicateDesign):
        raise ValidationError(
            f"{backend_name}: replication has no batch form; "
            f"use backend='cpu' or 'parallel'"
        )
    if not sampler_batchable(design.sampler):
        raise ValidationError(
            f"{backend_name}: sampler {design.sampler.name!r} draws ragged "
            f"samples and cannot be batched"
        )
    if not statistic_batchable(design.statistic):
        raise ValidationError(
            f"{backend_name}: statistic {design.statistic.name!r} has no "
            f"batch() form"
        )
