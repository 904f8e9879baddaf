"""
Common data structures and iteration helpers for resampling.

ResampleParams is the payload wrapped by Result[P] and exposed through
ResampleSolution. The helpers below are shared by the loop and parallel
backends so that both run exactly the same per-iteration code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyreplicate.core.exceptions import StatisticError
from pyreplicate.core.compute.tolerances import select_tolerance
from pyreplicate.core.result import Result
from pyreplicate.resampling.collection import ResultCollection
from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign
from pyreplicate.resampling.samplers import GroupByKey
from pyreplicate.resampling.statistics import evaluate


@dataclass(frozen=True)
class ResampleParams:
    """
    Parameter payload for resampling results.

    - values: the frozen Result Collection, one slot per iteration
    - observed: statistic on the full data (None for replication, group-by-key or n_iter=0)
    - labels: group key per iteration for group-by-key sampling
    """
    values: NDArray[np.floating[Any]]          # shape (n_iter,) or (n_iter, k)
    observed: NDArray[np.floating[Any]] | None  # shape () or (k,)
    n_iter: int
    labels: NDArray | None = None


def root_sequence(seed: int | None) -> np.random.SeedSequence:
    return np.random.SeedSequence(seed)


def iteration_seeds(root: np.random.SeedSequence, n_iter: int) -> list[np.random.SeedSequence]:
    """One independent child sequence per iteration, addressed by index."""
    return root.spawn(n_iter)


def run_iteration(
    design: ResampleDesign | ReplicateDesign,
    seed_seq: np.random.SeedSequence,
    iteration: int,
) -> NDArray[np.floating[Any]]:
    """Draw one Sample and apply the statistic; failures propagate."""
    rng = np.random.default_rng(seed_seq)
    if isinstance(design, ReplicateDesign):
        return evaluate(design.fn, rng)
    indices = design.sampler.draw(design.data.shape[0], rng, iteration)
    return evaluate(design.statistic, design.data[indices])


def run_chunk(
    design: ResampleDesign | ReplicateDesign,
    seeds: list[np.random.SeedSequence],
    start: int,
    slot_shape: tuple[int, ...],
) -> NDArray[np.floating[Any]]:
    """
    Run iterations start .. start + len(seeds) - 1 into a private block.

    Module-level so that process pools can pickle it.
    """
    block = np.empty((len(seeds),) + slot_shape, dtype=np.float64)
    for offset, seed_seq in enumerate(seeds):
        value = run_iteration(design, seed_seq, start + offset)
        if value.shape != slot_shape:
            name = _statistic_name(design)
            raise StatisticError(
                f"{name}: returned shape {value.shape}, expected {slot_shape}",
                statistic_name=name,
                expected_shape=slot_shape,
                actual_shape=value.shape,
            )
        block[offset] = value
    return block


def observed_value(design: ResampleDesign | ReplicateDesign) -> NDArray | None:
    """
    Statistic on the full data, in row order.

    None for replication and for group-by-key, whose iterations are
    per-group values rather than estimates of a pooled statistic.
    """
    if isinstance(design, ReplicateDesign) or isinstance(design.sampler, GroupByKey):
        return None
    return evaluate(design.statistic, design.data.copy())


def check_observed_shape(
    observed: NDArray | None,
    slot_shape: tuple[int, ...],
    design: ResampleDesign | ReplicateDesign,
) -> None:
    if observed is not None and observed.shape != slot_shape:
        name = _statistic_name(design)
        raise StatisticError(
            f"{name}: returned shape {slot_shape} on a sample but "
            f"{observed.shape} on the full data",
            statistic_name=name,
            expected_shape=observed.shape,
            actual_shape=slot_shape,
        )


def width_of(value: NDArray) -> int | None:
    """Collection width for a statistic output: None for scalars."""
    return None if value.ndim == 0 else value.shape[0]


def labels_of(design: ResampleDesign | ReplicateDesign) -> NDArray | None:
    if isinstance(design, ResampleDesign):
        labels = getattr(design.sampler, 'labels', None)
        if labels is not None:
            return labels[:design.n_iter]
    return None


def nonfinite_warnings(values: NDArray) -> list[str]:
    """Describe iterations whose statistic came out NaN or infinite."""
    if values.size == 0:
        return []
    bad = ~np.isfinite(values)
    if bad.ndim == 2:
        bad = bad.any(axis=1)
    n_bad = int(bad.sum())
    if n_bad == 0:
        return []
    first = int(np.flatnonzero(bad)[0])
    return [
        f"statistic returned non-finite values in {n_bad} of "
        f"{values.shape[0]} iterations (first at iteration {first})"
    ]


def _statistic_name(design: ResampleDesign | ReplicateDesign) -> str:
    if isinstance(design, ReplicateDesign):
        return design.fn.name
    return design.statistic.name


def start_collection(
    design: ResampleDesign | ReplicateDesign,
    first: NDArray,
    observed: NDArray | None,
) -> ResultCollection:
    """Size the collection from iteration 0's output and store it in slot 0."""
    check_observed_shape(observed, first.shape, design)
    collection = ResultCollection(
        design.n_iter, width_of(first), statistic_name=_statistic_name(design)
    )
    collection.write(0, first)
    return collection


def build_result(
    design: ResampleDesign | ReplicateDesign,
    root: np.random.SeedSequence,
    collection: ResultCollection,
    observed: NDArray | None,
    timing: dict[str, float],
    backend_name: str,
    extra_info: dict[str, Any] | None = None,
    extra_warnings: list[str] | None = None,
) -> Result[ResampleParams]:
    """Freeze the collection and wrap it in the Result envelope."""
    values = collection.freeze()
    params = ResampleParams(
        values=values,
        observed=observed,
        n_iter=design.n_iter,
        labels=labels_of(design),
    )
    info = dict(design.metadata)
    info['entropy'] = root.entropy
    # agreement tier of these values against the per-sample loop
    info['tolerance'] = select_tolerance(backend_name).name
    if extra_info:
        info.update(extra_info)
    warnings_list = list(extra_warnings or []) + nonfinite_warnings(values)
    return Result(
        params=params,
        info=info,
        timing=timing,
        backend_name=backend_name,
        warnings=tuple(warnings_list),
    )
