"""
Benchmark backends.

Available backends:
    CPUBenchmarkBackend: wall-clock timing of each evaluation
"""

from pyreplicate.benchmark.backends.cpu import CPUBenchmarkBackend

__all__ = ["CPUBenchmarkBackend"]
