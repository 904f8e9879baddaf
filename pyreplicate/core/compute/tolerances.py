"""
Tolerance tiers for comparing replicate values across backends.

The loop and parallel backends evaluate the same statistic on the same
samples and agree bit for bit. The vectorized and GPU backends reduce a
stacked array in one call, so summation order (and, on consumer GPUs,
precision) differs from the per-sample reference:

- CPU loop (reference): exact
- CPU vectorized: float64, different reduction order
- GPU FP64: same as CPU vectorized
- GPU FP32 / MPS FP32: relaxed for single-precision arithmetic
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """rtol/atol pair for comparing one compute path against another."""
    rtol: float
    atol: float
    name: str
    description: str


CPU_EXACT = ToleranceTier(
    rtol=0.0,
    atol=0.0,
    name='cpu_exact',
    description='CPU loop or parallel, same per-iteration streams',
)

CPU_VECTORIZED = ToleranceTier(
    rtol=1e-12,
    atol=1e-12,
    name='cpu_vectorized',
    description='CPU double precision, batched reduction order',
)

GPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='gpu_fp64',
    description='GPU double precision, matches CPU vectorized',
)

# Consumer GPUs and Apple Silicon default to float32
GPU_FP32 = ToleranceTier(
    rtol=1e-4,
    atol=1e-5,
    name='gpu_fp32',
    description='GPU single precision, statistically equivalent',
)

MPS_FP32 = GPU_FP32


def select_tolerance(backend_name: str, use_fp64: bool = True) -> ToleranceTier:
    """Select appropriate tolerance tier for a given backend."""
    if backend_name.startswith('gpu'):
        if 'mps' in backend_name or 'fp32' in backend_name or not use_fp64:
            return GPU_FP32
        return GPU_FP64
    if 'vectorized' in backend_name:
        return CPU_VECTORIZED
    return CPU_EXACT
