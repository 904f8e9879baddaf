"""
Design classes for resampling and replication.

ResampleDesign and ReplicateDesign encapsulate all inputs needed by
backends to run the iteration loop. Immutable, validated at construction.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyreplicate.core.exceptions import ValidationError, DimensionError
from pyreplicate.core.validation import (
    check_array,
    check_consistent_length,
    check_not_empty,
    check_seed,
)
from pyreplicate.resampling.samplers import Sampler, make_sampler
from pyreplicate.resampling.statistics import Statistic, as_statistic


def _check_n_iter(n_iter: Any) -> int:
    """Integer iteration count; anything <= 0 means no iterations."""
    if isinstance(n_iter, bool) or not isinstance(n_iter, numbers.Integral):
        raise ValidationError(
            f"n_iter: expected an integer, got {type(n_iter).__name__} {n_iter!r}"
        )
    return max(int(n_iter), 0)


@dataclass(frozen=True)
class ResampleDesign:
    """
    Frozen design for the resample-then-aggregate loop.

    Attributes:
        data: Data source, shape (n,) or (n, p). Private copy.
        statistic: Statistic applied to every Sample.
        sampler: Sampling rule producing row indices per iteration.
        n_iter: Number of iterations (>= 0).
        seed: Root seed; None draws fresh OS entropy.
    """
    data: NDArray[np.floating[Any]]
    statistic: Statistic
    sampler: Sampler
    n_iter: int
    seed: int | None

    @property
    def n_observations(self) -> int:
        return self.data.shape[0]

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            'n': self.data.shape[0],
            'p': 1 if self.data.ndim == 1 else self.data.shape[1],
            'n_iter': self.n_iter,
            'sampler': self.sampler.name,
            'statistic': self.statistic.name,
        }

    @classmethod
    def for_resampling(
        cls,
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
    ) -> ResampleDesign:
        """
        Create a resampling design with validation.

        Args:
            data: 1D or 2D numeric array-like; rows are observations.
            statistic: Statistic object or plain callable fn(sample).
            n_iter: Number of iterations. Values <= 0 give no iterations.
            rule: 'with_replacement', 'without_replacement',
                'group_by_key' or 'take_all'. Ignored if sampler is given.
            size: Sample length for the random rules (default n).
            groups: Group labels, required for 'group_by_key'.
            strata: Stratum labels for 'with_replacement'.
            sampler: A custom Sampler; replaces rule and its options.
            seed: Root seed for reproducibility.

        Returns:
            Validated ResampleDesign.

        Raises:
            EmptyInputError: If data has no observations.
            DimensionError: If data is not 1D or 2D, or labels mismatch.
            ValidationError: If any other input is invalid.
        """
        data_arr = check_array(data, 'data')
        check_not_empty(data_arr, 'data')
        if data_arr.ndim not in (1, 2):
            raise DimensionError(
                f"data: must be 1D or 2D, got {data_arr.ndim}D"
            )
        data_arr = data_arr.copy()
        data_arr.flags.writeable = False
        n = data_arr.shape[0]

        n_iter = _check_n_iter(n_iter)
        seed = check_seed(seed)
        stat = as_statistic(statistic)

        if sampler is not None:
            if size is not None or groups is not None or strata is not None:
                raise ValidationError(
                    "sampler: size, groups and strata must be unset "
                    "when a custom sampler is supplied"
                )
            if not callable(getattr(sampler, 'draw', None)):
                raise ValidationError(
                    f"sampler: expected an object with draw(n, rng, iteration), "
                    f"got {type(sampler).__name__}"
                )
            smp = sampler
        else:
            smp = make_sampler(rule, size=size, groups=groups, strata=strata)
            for label_name, labels in (('groups', groups), ('strata', strata)):
                if labels is not None:
                    check_consistent_length(
                        data_arr, np.asarray(labels), names=('data', label_name)
                    )

        check = getattr(smp, 'validate', None)
        if callable(check):
            check(n, n_iter)

        return cls(
            data=data_arr,
            statistic=stat,
            sampler=smp,
            n_iter=n_iter,
            seed=seed,
        )


@dataclass(frozen=True)
class ReplicateDesign:
    """
    Frozen design for data-free Monte Carlo replication.

    Attributes:
        fn: fn(rng) -> scalar or 1D array, called once per iteration with
            that iteration's own generator.
        n_iter: Number of iterations (>= 0).
        seed: Root seed.
    """
    fn: Statistic
    n_iter: int
    seed: int | None

    @property
    def n_observations(self) -> int:
        return 0

    @property
    def metadata(self) -> dict[str, Any]:
        return {'n_iter': self.n_iter, 'statistic': self.fn.name}

    @classmethod
    def for_replication(
        cls,
        fn: Callable[[np.random.Generator], Any],
        n_iter: int,
        *,
        seed: int | None = None,
    ) -> ReplicateDesign:
        """Create a replication design with validation."""
        return cls(
            fn=as_statistic(fn),
            n_iter=_check_n_iter(n_iter),
            seed=check_seed(seed),
        )
