"""
Common data structures for benchmarks.

BenchmarkParams is the payload wrapped by Result[P] and exposed through
BenchmarkSolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class BenchmarkParams:
    """
    Parameter payload for benchmark results.

    - timings[i, j]: seconds for the j-th timed evaluation of expression i
    - schedule: expression index of every timed evaluation, in run order
    """
    names: tuple[str, ...]
    timings: NDArray[np.floating[Any]]          # shape (n_exprs, times)
    schedule: NDArray[np.intp]                  # shape (n_exprs * times,)


# Seconds per unit
UNITS = {
    's': 1.0,
    'ms': 1e-3,
    'us': 1e-6,
    'ns': 1e-9,
}

UNIT_NAMES = {
    's': 'seconds',
    'ms': 'milliseconds',
    'us': 'microseconds',
    'ns': 'nanoseconds',
}


def auto_unit(seconds: float) -> str:
    """Largest unit in which `seconds` is at least 1."""
    for unit in ('s', 'ms', 'us'):
        if seconds >= UNITS[unit]:
            return unit
    return 'ns'
