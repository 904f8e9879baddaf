"""
Solution wrapper for benchmark results.

BenchmarkSolution summarises each expression's timings the way R's
microbenchmark prints them: min, lower quartile, mean, median, upper
quartile, max and number of evaluations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.core.result import Result
from pyreplicate.benchmark._common import (
    BenchmarkParams,
    UNITS,
    UNIT_NAMES,
    auto_unit,
)

if TYPE_CHECKING:
    from pyreplicate.benchmark.design import BenchmarkDesign

STAT_COLUMNS = ('min', 'lq', 'mean', 'median', 'uq', 'max')


@dataclass
class BenchmarkSolution:
    """User-facing benchmark results."""
    _result: Result[BenchmarkParams]
    _design: 'BenchmarkDesign'

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def timings(self) -> NDArray[np.floating[Any]]:
        """Seconds per evaluation, shape (n_exprs, times)."""
        return self._result.params.timings

    @property
    def schedule(self) -> NDArray[np.intp]:
        return self._result.params.schedule

    @property
    def times(self) -> int:
        return self._design.times

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

    def _scale(self, unit: str) -> float:
        if unit == 'auto':
            unit = auto_unit(float(np.min(np.median(self.timings, axis=1))))
        if unit not in UNITS:
            raise ValidationError(
                f"unit: must be 'auto' or one of {tuple(UNITS)}, got {unit!r}"
            )
        return UNITS[unit]

    def stats(self, unit: str = 's') -> dict[str, dict[str, float]]:
        """
        Per-expression summary: min, lq, mean, median, uq, max, neval.

        Times are expressed in `unit` ('s', 'ms', 'us', 'ns' or 'auto').
        """
        scale = self._scale(unit)
        out: dict[str, dict[str, float]] = {}
        for name, row in zip(self.names, self.timings):
            t = row / scale
            lq, median, uq = np.quantile(t, [0.25, 0.5, 0.75])
            out[name] = {
                'min': float(t.min()),
                'lq': float(lq),
                'mean': float(t.mean()),
                'median': float(median),
                'uq': float(uq),
                'max': float(t.max()),
                'neval': len(t),
            }
        return out

    @property
    def medians(self) -> NDArray[np.floating[Any]]:
        """Median seconds per expression."""
        return np.median(self.timings, axis=1)

    @property
    def fastest(self) -> str:
        """Name of the expression with the smallest median time."""
        return self.names[int(np.argmin(self.medians))]

    def relative(self) -> dict[str, float]:
        """Median time of each expression divided by the fastest median."""
        medians = self.medians
        best = medians.min()
        if best == 0.0:
            raise ValidationError(
                "relative: fastest median is 0 ns; increase the work per evaluation"
            )
        return {name: float(m / best) for name, m in zip(self.names, medians)}

    def summary(self, unit: str = 'auto') -> str:
        """
        microbenchmark-style table.

        Produces:
            Unit: microseconds
                  expr        min         lq       mean     median         uq        max neval
                  loop   812.3410   830.1120   851.0020   842.7710   861.2080   990.1250   100
            vectorized    40.1200    41.0020    43.9970    42.2210    44.8880    70.0150   100
        """
        if unit == 'auto':
            unit = auto_unit(float(np.min(self.medians)))
        stats = self.stats(unit)
        width = max(4, max(len(n) for n in self.names))
        lines = [f"Unit: {UNIT_NAMES[unit]}"]
        header = f"{'expr':>{width}s}" + "".join(
            f" {col:>10s}" for col in STAT_COLUMNS
        ) + " neval"
        lines.append(header)
        for name in self.names:
            row = stats[name]
            lines.append(
                f"{name:>{width}s}"
                + "".join(f" {row[col]:10.4f}" for col in STAT_COLUMNS)
                + f" {row['neval']:5d}"
            )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"BenchmarkSolution(exprs={list(self.names)}, times={self.times}, "
            f"fastest={self.fastest!r})"
        )
