"""
Solution wrapper for resampling results.

ResampleSolution wraps Result[ResampleParams] and provides the summaries a
caller typically wants from a Result Collection: mean, standard error,
bias, quantiles, percentile interval, histogram counts and a printable
summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.core.result import Result
from pyreplicate.core.validation import check_finite
from pyreplicate.resampling._common import ResampleParams

if TYPE_CHECKING:
    from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign


@dataclass
class ResampleSolution:
    """
    User-facing resampling results.

    values has one row per iteration, in iteration order, and is read-only.
    """
    _result: Result[ResampleParams]
    _design: 'ResampleDesign | ReplicateDesign'

    # --- Core fields ---

    @property
    def values(self) -> NDArray[np.floating[Any]]:
        """Result Collection, shape (n_iter,) or (n_iter, k)."""
        return self._result.params.values

    @property
    def observed(self) -> NDArray[np.floating[Any]] | None:
        """Statistic on the full data; None for replication or n_iter=0."""
        return self._result.params.observed

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def labels(self) -> NDArray | None:
        """Group key of each iteration for group-by-key sampling."""
        return self._result.params.labels

    def __len__(self) -> int:
        return self.n_iter

    # --- Summaries ---

    def _require_values(self, min_iter: int = 1) -> NDArray:
        if self.n_iter < min_iter:
            raise ValidationError(
                f"requires at least {min_iter} iteration(s), got n_iter={self.n_iter}"
            )
        return self.values

    @property
    def mean(self) -> NDArray[np.floating[Any]]:
        """Mean over iterations, shape () or (k,)."""
        return np.mean(self._require_values(), axis=0)

    @property
    def se(self) -> NDArray[np.floating[Any]]:
        """Standard deviation over iterations (ddof=1), the bootstrap SE."""
        return np.std(self._require_values(2), axis=0, ddof=1)

    @property
    def bias(self) -> NDArray[np.floating[Any]] | None:
        """mean(values) - observed, or None without an observed statistic."""
        if self.observed is None:
            return None
        return self.mean - self.observed

    def quantile(self, probs: ArrayLike) -> NDArray[np.floating[Any]]:
        """Quantiles over iterations (numpy's linear interpolation, R type 7)."""
        probs_arr = np.asarray(probs, dtype=np.float64)
        check_finite(probs_arr, 'probs')
        if np.any((probs_arr < 0) | (probs_arr > 1)):
            raise ValidationError(f"probs: must be in [0, 1], got {probs!r}")
        return np.quantile(self._require_values(), probs_arr, axis=0)

    def percentile_interval(
        self, conf_level: float = 0.95
    ) -> NDArray[np.floating[Any]]:
        """
        Percentile interval (alpha/2, 1 - alpha/2) of the replicates.

        Returns:
            shape (2,) for scalar statistics, (k, 2) otherwise.
        """
        if not 0.0 < conf_level < 1.0:
            raise ValidationError(
                f"conf_level: must be in (0, 1), got {conf_level}"
            )
        alpha = 1.0 - conf_level
        q = self.quantile([alpha / 2.0, 1.0 - alpha / 2.0])
        return q if q.ndim == 1 else q.T

    def histogram(
        self, bins: int | ArrayLike = 10, column: int | None = None
    ) -> tuple[NDArray, NDArray]:
        """
        Histogram counts and bin edges of the replicates (np.histogram).

        column selects the statistic for multi-valued results.
        """
        values = self._require_values()
        if values.ndim == 2:
            if column is None:
                raise ValidationError(
                    f"column: required for a statistic with {values.shape[1]} values"
                )
            values = values[:, column]
        return np.histogram(values, bins=bins)

    # --- Metadata ---

    @property
    def data(self) -> NDArray | None:
        """Original data, or None for replication."""
        return getattr(self._design, 'data', None)

    @property
    def sampler(self) -> str | None:
        sampler = getattr(self._design, 'sampler', None)
        return None if sampler is None else sampler.name

    @property
    def seed(self) -> int | None:
        return self._design.seed

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Display ---

    def summary(self) -> str:
        """
        Printable summary in the style of R's print.boot.

        Produces:
            RESAMPLING (with_replacement)

            Statistic: mean    Iterations: 999    Backend: cpu_loop

                     original       bias    std. error
            t1*       5.50000    0.01234       0.95120
        """
        lines = []
        title = f"RESAMPLING ({self.sampler})" if self.sampler else "REPLICATION"
        lines.append(f"\n{title}\n")
        lines.append(
            f"Statistic: {self.info.get('statistic')}    "
            f"Iterations: {self.n_iter}    Backend: {self.backend_name}"
        )
        lines.append("")

        if self.n_iter == 0:
            lines.append("No iterations run.")
            return "\n".join(lines)

        mean = np.atleast_1d(self.mean)
        se = np.atleast_1d(self.se) if self.n_iter >= 2 else np.full(mean.shape, np.nan)
        if self.observed is not None:
            observed = np.atleast_1d(self.observed)
            bias = np.atleast_1d(self.bias)
            lines.append(
                f"{'':>8s} {'original':>14s} {'bias':>14s} {'std. error':>14s}"
            )
            for i in range(len(mean)):
                lines.append(
                    f"{f't{i+1}*':>8s} {observed[i]:14.5f} {bias[i]:14.5f} "
                    f"{se[i]:14.5f}"
                )
        else:
            lines.append(f"{'':>8s} {'mean':>14s} {'std. error':>14s}")
            for i in range(len(mean)):
                lines.append(
                    f"{f't{i+1}*':>8s} {mean[i]:14.5f} {se[i]:14.5f}"
                )

        for w in self.warnings:
            lines.append(f"Warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ResampleSolution(n_iter={self.n_iter}, "
            f"sampler={self.sampler!r}, backend={self.backend_name!r})"
        )
