"""
Core protocols for PyReplicate.

These define structural interfaces that domain-specific implementations must satisfy.
We use Protocol (structural typing) rather than ABC (nominal typing) so that
user-supplied samplers and statistics never need to inherit from anything.

Design Principles:
    - Minimal contracts: prescribe only what's truly universal
    - Type-safe: use generics to preserve type information through pipelines
"""

from typing import Protocol, TypeVar, Any, runtime_checkable

# Type variables for generic payloads
P = TypeVar('P')  # Parameter payload type
D = TypeVar('D')  # DataSource type


@runtime_checkable
class DataSource(Protocol):
    """
    Minimal protocol for any data container used in a computation.

    Designs (ResampleDesign, BenchmarkDesign) implement this protocol and
    add their own fields for domain-specific access.
    """

    @property
    def n_observations(self) -> int:
        """Number of statistical units (rows, expressions, etc.)."""
        ...

    @property
    def metadata(self) -> dict[str, Any]:
        """
        Domain-specific metadata.

        Examples:
            Resampling: {'n': 100, 'p': 1, 'n_iter': 999, 'sampler': 'with_replacement'}
            Benchmark: {'n_exprs': 2, 'times': 100, 'order': 'random'}
        """
        ...


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    Protocol for computational backends.

    Each backend knows how to take a design and produce a parameter
    payload. Backends are stateless: all configuration is passed via the
    design or at construction time.

    Type Parameters:
        D: The design type this backend accepts
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_loop', 'cpu_parallel', 'cpu_vectorized', 'gpu_cuda_vectorized'
        """
        ...

    def solve(self, design: D) -> 'Result[P]':
        """
        Execute the computation.

        Args:
            design: Domain-specific data container implementing DataSource

        Returns:
            Result envelope containing parameter payload and metadata

        Raises:
            ValidationError: If design is invalid for this backend
        """
        ...
