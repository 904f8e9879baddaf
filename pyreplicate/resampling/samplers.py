"""
Sampling rules.

A sampler turns (n, rng, iteration) into the row indices of one Sample;
the Sample itself is data[indices]. Samplers that produce equal-length
samples also implement draw_batch(), which draws the index matrix for
every iteration at once for the vectorized and GPU backends.

Rules:
    with_replacement     simple random draw with replacement (bootstrap),
                         optionally within strata
    without_replacement  simple random draw without replacement
                         (subsampling; a permutation when size == n)
    group_by_key         iteration i selects the rows of the i-th group
    take_all             deterministic stub: every row, in order
"""

from __future__ import annotations

from typing import Any, Literal, Protocol, runtime_checkable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyreplicate.core.exceptions import ValidationError, DimensionError
from pyreplicate.core.validation import check_1d, check_positive_int

SamplingRule = Literal[
    'with_replacement', 'without_replacement', 'group_by_key', 'take_all'
]

SAMPLING_RULES = (
    'with_replacement', 'without_replacement', 'group_by_key', 'take_all'
)


@runtime_checkable
class Sampler(Protocol):
    """Structural interface for samplers."""

    name: str

    def draw(
        self, n: int, rng: np.random.Generator, iteration: int
    ) -> NDArray[np.intp]:
        ...


def is_batchable(sampler: Any) -> bool:
    """True if the sampler can draw every iteration's indices at once."""
    return callable(getattr(sampler, 'draw_batch', None))


class WithReplacement:
    """
    Simple random sampling with replacement.

    Args:
        size: Sample length; defaults to n.
        strata: Optional length-n labels. Rows are resampled within each
            stratum so every sample keeps the stratum sizes of the data.
    """

    name = 'with_replacement'

    def __init__(self, size: int | None = None, strata: ArrayLike | None = None):
        if size is not None:
            size = check_positive_int(size, 'size')
        if strata is not None and size is not None:
            raise ValidationError(
                "size: cannot be combined with strata "
                "(stratified samples keep the stratum sizes)"
            )
        self.size = size
        if strata is not None:
            strata = np.asarray(strata)
            check_1d(strata, 'strata')
        self.strata = strata

    def __repr__(self) -> str:
        return f"WithReplacement(size={self.size}, stratified={self.strata is not None})"

    def validate(self, n: int, n_iter: int) -> None:
        if self.strata is not None and self.strata.shape[0] != n:
            raise DimensionError(
                f"strata length ({self.strata.shape[0]}) must match "
                f"data rows ({n})"
            )

    def sample_size(self, n: int) -> int:
        return n if self.size is None else self.size

    def draw(self, n: int, rng: np.random.Generator, iteration: int) -> NDArray[np.intp]:
        if self.strata is not None:
            indices = np.empty(n, dtype=np.intp)
            for s in np.unique(self.strata):
                mask = self.strata == s
                s_indices = np.flatnonzero(mask)
                indices[mask] = rng.choice(s_indices, size=s_indices.size, replace=True)
            return indices
        return rng.integers(0, n, size=self.sample_size(n))

    def draw_batch(self, n: int, rng: np.random.Generator, n_iter: int) -> NDArray[np.intp]:
        if self.strata is not None:
            indices = np.empty((n_iter, n), dtype=np.intp)
            for s in np.unique(self.strata):
                mask = self.strata == s
                s_indices = np.flatnonzero(mask)
                indices[:, mask] = rng.choice(
                    s_indices, size=(n_iter, s_indices.size), replace=True
                )
            return indices
        return rng.integers(0, n, size=(n_iter, self.sample_size(n)))


class WithoutReplacement:
    """
    Simple random sampling without replacement.

    Args:
        size: Sample length; defaults to n, i.e. a random permutation.
    """

    name = 'without_replacement'

    def __init__(self, size: int | None = None):
        if size is not None:
            size = check_positive_int(size, 'size')
        self.size = size

    def __repr__(self) -> str:
        return f"WithoutReplacement(size={self.size})"

    def validate(self, n: int, n_iter: int) -> None:
        if self.size is not None and self.size > n:
            raise ValidationError(
                f"size: cannot draw {self.size} rows without replacement "
                f"from {n} observations"
            )

    def sample_size(self, n: int) -> int:
        return n if self.size is None else self.size

    def draw(self, n: int, rng: np.random.Generator, iteration: int) -> NDArray[np.intp]:
        return rng.permutation(n)[:self.sample_size(n)]

    def draw_batch(self, n: int, rng: np.random.Generator, n_iter: int) -> NDArray[np.intp]:
        rows = np.tile(np.arange(n), (n_iter, 1))
        return rng.permuted(rows, axis=1)[:, :self.sample_size(n)]


class GroupByKey:
    """
    Selection of a subgroup by key.

    Distinct keys are ordered by first appearance; iteration i selects
    every row whose key equals labels[i]. Samples are ragged, so there
    is no batch form.

    Args:
        keys: Length-n array of group labels (any hashable, sortable dtype).
    """

    name = 'group_by_key'

    def __init__(self, keys: ArrayLike):
        keys_arr = np.asarray(keys)
        check_1d(keys_arr, 'groups')
        # inverse codes keep NaN keys together; NaN != NaN under ==
        uniq, first, inverse = np.unique(
            keys_arr, return_index=True, return_inverse=True
        )
        inverse = inverse.ravel()
        order = np.argsort(first)
        self.keys = keys_arr
        self.labels = uniq[order]
        self._members = [np.flatnonzero(inverse == k) for k in order]

    def __repr__(self) -> str:
        return f"GroupByKey(n_groups={self.n_groups})"

    @property
    def n_groups(self) -> int:
        return len(self.labels)

    def validate(self, n: int, n_iter: int) -> None:
        if self.keys.shape[0] != n:
            raise DimensionError(
                f"groups length ({self.keys.shape[0]}) must match "
                f"data rows ({n})"
            )
        if n_iter > self.n_groups:
            raise ValidationError(
                f"n_iter: {n_iter} iterations requested but only "
                f"{self.n_groups} groups exist"
            )

    def sample_size(self, n: int) -> None:
        return None

    def draw(self, n: int, rng: np.random.Generator, iteration: int) -> NDArray[np.intp]:
        return self._members[iteration]


class TakeAll:
    """Every row in order, ignoring the generator. Deterministic stub."""

    name = 'take_all'

    def __repr__(self) -> str:
        return "TakeAll()"

    def sample_size(self, n: int) -> int:
        return n

    def draw(self, n: int, rng: np.random.Generator, iteration: int) -> NDArray[np.intp]:
        return np.arange(n)

    def draw_batch(self, n: int, rng: np.random.Generator, n_iter: int) -> NDArray[np.intp]:
        return np.tile(np.arange(n), (n_iter, 1))


def make_sampler(
    rule: str,
    *,
    size: int | None = None,
    groups: ArrayLike | None = None,
    strata: ArrayLike | None = None,
) -> Sampler:
    """
    Build the sampler for a named rule.

    Raises:
        ValidationError: For unknown rules or options the rule does not take.
    """
    if rule not in SAMPLING_RULES:
        raise ValidationError(
            f"rule: must be one of {SAMPLING_RULES}, got {rule!r}"
        )
    if groups is not None and rule != 'group_by_key':
        raise ValidationError(f"groups: only used with rule='group_by_key', got {rule!r}")
    if strata is not None and rule != 'with_replacement':
        raise ValidationError(f"strata: only used with rule='with_replacement', got {rule!r}")
    if size is not None and rule in ('group_by_key', 'take_all'):
        raise ValidationError(f"size: not used with rule={rule!r}")

    if rule == 'with_replacement':
        return WithReplacement(size=size, strata=strata)
    if rule == 'without_replacement':
        return WithoutReplacement(size=size)
    if rule == 'group_by_key':
        if groups is None:
            raise ValidationError("groups: required for rule='group_by_key'")
        return GroupByKey(groups)
    return TakeAll()
