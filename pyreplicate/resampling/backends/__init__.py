"""
Resampling backends.

Available backends:
    CPUResampleBackend: sequential loop, reference implementation
    ParallelResampleBackend: thread or process pool over disjoint chunks
    VectorizedResampleBackend: whole index matrix, numpy batch statistics
    GPUResampleBackend: whole index matrix, torch batch statistics
        (import from pyreplicate.resampling.backends.gpu; needs torch)
"""

from pyreplicate.resampling.backends.cpu import (
    CPUResampleBackend,
    VectorizedResampleBackend,
)
from pyreplicate.resampling.backends.parallel import ParallelResampleBackend

__all__ = [
    "CPUResampleBackend",
    "ParallelResampleBackend",
    "VectorizedResampleBackend",
]
