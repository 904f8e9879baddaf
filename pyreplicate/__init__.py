"""
PyReplicate: resampling loops, their vectorized forms, and timing them.

Submodules:
    resampling: bootstrap, subsampling, permutation, per-group and
        Monte Carlo loops over a pre-allocated Result Collection
    benchmark: micro-benchmarks of loop vs vectorized computations
    core: exceptions, Result envelope, validation, timing, devices
"""

__version__ = "0.1.0"

from pyreplicate import resampling
from pyreplicate import benchmark

__all__ = [
    "__version__",
    "resampling",
    "benchmark",
]
