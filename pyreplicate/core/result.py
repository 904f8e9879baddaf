"""
Generic result container for all PyReplicate computations.

The Result class provides a standardized envelope that all domain-specific
results use. Timing, warnings and metadata travel with the payload so that
every run can be inspected after the fact.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (sampler, iteration count, workers)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for resampling and timing computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (replicate values, timings, etc.)
        info: Structured metadata (sampler, statistic, worker count)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=ResampleParams(values=t, observed=t0, n_iter=999),
        ...     info={'sampler': 'with_replacement', 'n': 50},
        ...     timing={'total_seconds': 0.01, 'replicates': 0.009},
        ...     backend_name='cpu_loop'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
