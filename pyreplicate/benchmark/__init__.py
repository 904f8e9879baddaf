"""
PyReplicate micro-benchmarks.

Times competing renditions of the same computation (a Python loop vs a
vectorized expression, one backend vs another) and summarises the timings
in microbenchmark style.

Usage:
    from pyreplicate.benchmark import benchmark, compare_backends

    result = benchmark({'loop': f_loop, 'vectorized': f_vec}, times=100)
    print(result.summary())
    result.relative()

    compare_backends(data, Mean(), n_iter=2000,
                     backends=('cpu', 'vectorized', 'parallel'))
"""

from pyreplicate.benchmark.solvers import benchmark, compare_backends
from pyreplicate.benchmark.design import BenchmarkDesign
from pyreplicate.benchmark.solution import BenchmarkSolution
from pyreplicate.benchmark._common import BenchmarkParams

__all__ = [
    "benchmark",
    "compare_backends",
    "BenchmarkDesign",
    "BenchmarkSolution",
    "BenchmarkParams",
]
