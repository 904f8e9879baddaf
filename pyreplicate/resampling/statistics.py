"""
Statistic interface and built-in statistics.

A statistic maps one Sample (shape (m,) or (m, p)) to a scalar or a
1D array of fixed length. Statistics may also provide

    batch(samples)        samples stacked as (N, m) or (N, m, p) -> (N,) or (N, k)
    batch_torch(tensor)   the same on a torch tensor

which the vectorized and GPU backends use instead of a Python loop.
Plain callables are wrapped by as_statistic(); outputs are checked at the
call boundary by evaluate() and evaluate_batch().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray
from scipy import stats as sp_stats

from pyreplicate.core.exceptions import (
    StatisticError,
    SingularMatrixError,
    ValidationError,
    DimensionError,
)
from pyreplicate.core.validation import check_1d, check_2d, check_min_samples

# linregress adds this to keep the t-statistic finite when |r| == 1
_TINY = 1.0e-20


@runtime_checkable
class Statistic(Protocol):
    """Structural interface for statistics."""

    name: str

    def __call__(self, sample: NDArray) -> float | NDArray:
        ...


def is_batchable(statistic: Any) -> bool:
    """True if the statistic has a numpy batch form."""
    return callable(getattr(statistic, 'batch', None))


def is_torch_batchable(statistic: Any) -> bool:
    """True if the statistic has a torch batch form."""
    return callable(getattr(statistic, 'batch_torch', None))


@dataclass(frozen=True)
class FunctionStatistic:
    """
    Wraps a plain callable as a Statistic.

    Attributes:
        fn: fn(sample) -> scalar or 1D array.
        name: Display name, defaults to fn.__name__.
        batch: Optional fn(samples) over stacked samples.
    """
    fn: Callable[[NDArray], Any]
    name: str = 'statistic'
    batch: Callable[[NDArray], Any] | None = None

    def __call__(self, sample: NDArray) -> Any:
        return self.fn(sample)


def as_statistic(
    statistic: Any,
    *,
    batch: Callable[[NDArray], Any] | None = None,
    name: str | None = None,
) -> Statistic:
    """
    Return statistic as a Statistic, wrapping plain callables.

    Objects that already carry a `name` and are callable pass through
    unchanged, unless a batch form or name is supplied.

    Raises:
        ValidationError: If statistic is not callable.
    """
    if not callable(statistic):
        raise ValidationError(
            f"statistic: expected a callable, got {type(statistic).__name__}"
        )
    if isinstance(statistic, Statistic) and batch is None and name is None:
        return statistic
    label = name or getattr(statistic, 'name', None) or getattr(
        statistic, '__name__', 'statistic'
    )
    return FunctionStatistic(fn=statistic, name=str(label), batch=batch)


def _coerce(value: Any, name: str, max_ndim: int) -> NDArray[np.floating[Any]]:
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise StatisticError(
            f"{name}: returned non-numeric output of type {type(value).__name__}",
            statistic_name=name,
        ) from e
    if arr.ndim > max_ndim:
        raise StatisticError(
            f"{name}: returned {arr.ndim}D output with shape {arr.shape}, "
            f"expected at most {max_ndim}D",
            statistic_name=name,
            actual_shape=arr.shape,
        )
    return arr


def evaluate(statistic: Statistic, sample: NDArray) -> NDArray[np.floating[Any]]:
    """
    Apply statistic to one sample and check the output.

    Exceptions raised by the statistic itself propagate unchanged.

    Returns:
        0-D or 1-D float64 array.
    """
    return _coerce(statistic(sample), statistic.name, max_ndim=1)


def evaluate_batch(
    statistic: Statistic,
    samples: NDArray,
    n_iter: int,
) -> NDArray[np.floating[Any]]:
    """Apply statistic.batch to stacked samples and check the output."""
    arr = _coerce(statistic.batch(samples), statistic.name, max_ndim=2)
    if arr.ndim == 0 or arr.shape[0] != n_iter:
        raise StatisticError(
            f"{statistic.name}: batch returned shape {arr.shape}, "
            f"expected leading dimension {n_iter}",
            statistic_name=statistic.name,
            expected_shape=(n_iter,),
            actual_shape=arr.shape,
        )
    return arr


# ---------------------------------------------------------------------------
# Location and scale
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Mean:
    """Arithmetic mean; column means for 2D samples."""
    name: str = 'mean'

    def __call__(self, sample: NDArray) -> NDArray:
        return np.mean(sample, axis=0)

    def batch(self, samples: NDArray) -> NDArray:
        return np.mean(samples, axis=1)

    def batch_torch(self, samples):
        return samples.mean(dim=1)


@dataclass(frozen=True)
class Median:
    """Median (average of the two middle values for even sizes)."""
    name: str = 'median'

    def __call__(self, sample: NDArray) -> NDArray:
        return np.median(sample, axis=0)

    def batch(self, samples: NDArray) -> NDArray:
        return np.median(samples, axis=1)

    def batch_torch(self, samples):
        import torch
        # torch.median returns the lower middle value
        return torch.quantile(samples, 0.5, dim=1)


@dataclass(frozen=True)
class Variance:
    """Variance with ddof degrees-of-freedom correction (default 1, as R's var)."""
    ddof: int = 1
    name: str = 'var'

    def __call__(self, sample: NDArray) -> NDArray:
        return np.var(sample, axis=0, ddof=self.ddof)

    def batch(self, samples: NDArray) -> NDArray:
        return np.var(samples, axis=1, ddof=self.ddof)

    def batch_torch(self, samples):
        return samples.var(dim=1, correction=self.ddof)


@dataclass(frozen=True)
class StdDev:
    """Standard deviation with ddof correction (default 1)."""
    ddof: int = 1
    name: str = 'sd'

    def __call__(self, sample: NDArray) -> NDArray:
        return np.std(sample, axis=0, ddof=self.ddof)

    def batch(self, samples: NDArray) -> NDArray:
        return np.std(samples, axis=1, ddof=self.ddof)

    def batch_torch(self, samples):
        return samples.std(dim=1, correction=self.ddof)


@dataclass(frozen=True)
class Quantile:
    """Sample quantile at probability q (numpy's default linear interpolation)."""
    q: float = 0.5
    name: str = 'quantile'

    def __post_init__(self):
        if not 0.0 <= self.q <= 1.0:
            raise ValidationError(f"q: must be in [0, 1], got {self.q}")

    def __call__(self, sample: NDArray) -> NDArray:
        return np.quantile(sample, self.q, axis=0)

    def batch(self, samples: NDArray) -> NDArray:
        return np.quantile(samples, self.q, axis=1)

    def batch_torch(self, samples):
        import torch
        return torch.quantile(samples, self.q, dim=1)


# ---------------------------------------------------------------------------
# One-sample t-test
# ---------------------------------------------------------------------------

_ALTERNATIVES = ('two-sided', 'less', 'greater')


def _check_1d_sample(sample: NDArray, name: str) -> None:
    check_1d(sample, name)
    check_min_samples(sample, 2, name)


@dataclass(frozen=True)
class TStatistic:
    """One-sample t-statistic against mu (scipy.stats.ttest_1samp)."""
    mu: float = 0.0
    name: str = 't'

    def __call__(self, sample: NDArray) -> float:
        _check_1d_sample(sample, self.name)
        return sp_stats.ttest_1samp(sample, self.mu).statistic

    def batch(self, samples: NDArray) -> NDArray:
        return sp_stats.ttest_1samp(samples, self.mu, axis=1).statistic


@dataclass(frozen=True)
class TTestPValue:
    """One-sample t-test p-value against mu."""
    mu: float = 0.0
    alternative: str = 'two-sided'
    name: str = 'p_value'

    def __post_init__(self):
        if self.alternative not in _ALTERNATIVES:
            raise ValidationError(
                f"alternative: must be one of {_ALTERNATIVES}, "
                f"got {self.alternative!r}"
            )

    def __call__(self, sample: NDArray) -> float:
        _check_1d_sample(sample, self.name)
        return sp_stats.ttest_1samp(
            sample, self.mu, alternative=self.alternative
        ).pvalue

    def batch(self, samples: NDArray) -> NDArray:
        return sp_stats.ttest_1samp(
            samples, self.mu, axis=1, alternative=self.alternative
        ).pvalue


# ---------------------------------------------------------------------------
# Simple linear regression of column 1 on column 0
# ---------------------------------------------------------------------------

def _split_xy(sample: NDArray, name: str) -> tuple[NDArray, NDArray]:
    if sample.ndim < 2 or sample.shape[-1] != 2:
        raise DimensionError(
            f"{name}: expected samples with 2 columns (x, y), "
            f"got shape {sample.shape}"
        )
    return sample[..., 0], sample[..., 1]


def _constant_regressor(name: str, n_bad: int = 1) -> SingularMatrixError:
    return SingularMatrixError(
        f"{name}: regressor x is constant in {n_bad} sample(s); "
        f"slope is not identifiable",
        matrix_name='X',
        rank=1,
        expected_rank=2,
    )


def _linregress(sample: NDArray, name: str):
    check_2d(sample, name)
    check_min_samples(sample, 3, name)
    x, y = _split_xy(sample, name)
    if np.ptp(x) == 0:
        raise _constant_regressor(name)
    return sp_stats.linregress(x, y)


def _batch_r(samples: NDArray, name: str) -> NDArray:
    """Pearson r per sample, with r = 0 where y is constant (as linregress)."""
    x, y = _split_xy(samples, name)
    check_min_samples(x.T, 3, name)
    xc = x - x.mean(axis=1, keepdims=True)
    yc = y - y.mean(axis=1, keepdims=True)
    sxx = np.sum(xc * xc, axis=1)
    syy = np.sum(yc * yc, axis=1)
    sxy = np.sum(xc * yc, axis=1)
    bad = sxx == 0
    if np.any(bad):
        raise _constant_regressor(name, int(bad.sum()))
    with np.errstate(invalid='ignore', divide='ignore'):
        r = np.where(syy == 0, 0.0, sxy / np.sqrt(sxx * syy))
    return np.clip(r, -1.0, 1.0)


@dataclass(frozen=True)
class RSquared:
    """R-squared of y ~ x for a sample with columns (x, y)."""
    name: str = 'r_squared'

    def __call__(self, sample: NDArray) -> float:
        return _linregress(sample, self.name).rvalue ** 2

    def batch(self, samples: NDArray) -> NDArray:
        return _batch_r(samples, self.name) ** 2


@dataclass(frozen=True)
class SlopePValue:
    """Two-sided p-value for the slope of y ~ x."""
    name: str = 'slope_p_value'

    def __call__(self, sample: NDArray) -> float:
        return _linregress(sample, self.name).pvalue

    def batch(self, samples: NDArray) -> NDArray:
        r = _batch_r(samples, self.name)
        df = samples.shape[1] - 2
        t = r * np.sqrt(df / ((1.0 - r + _TINY) * (1.0 + r + _TINY)))
        return 2.0 * sp_stats.t.sf(np.abs(t), df)
