"""
Design class for micro-benchmarks.

BenchmarkDesign captures the expressions to time and the evaluation
schedule. Immutable, validated at construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from pyreplicate.core.exceptions import ValidationError
from pyreplicate.core.validation import check_positive_int, check_seed

ORDERS = ('random', 'inorder', 'block')


@dataclass(frozen=True)
class BenchmarkDesign:
    """
    Frozen design for timing a set of expressions.

    Attributes:
        names: Expression labels, in input order.
        exprs: Zero-argument callables, aligned with names.
        times: Timed evaluations per expression.
        order: 'random' (seeded interleaving), 'inorder' (round robin)
            or 'block' (all evaluations of one expression, then the next).
        warmup: Untimed evaluations per expression before timing starts.
        seed: Seed for the 'random' schedule.
    """
    names: tuple[str, ...]
    exprs: tuple[Callable[[], Any], ...]
    times: int
    order: str
    warmup: int
    seed: int | None

    @property
    def n_observations(self) -> int:
        return len(self.exprs) * self.times

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            'n_exprs': len(self.exprs),
            'times': self.times,
            'order': self.order,
            'warmup': self.warmup,
        }

    @classmethod
    def for_benchmark(
        cls,
        exprs: Mapping[str, Callable[[], Any]] | Iterable[Callable[[], Any]],
        times: int = 100,
        *,
        order: str = 'random',
        warmup: int = 2,
        seed: int | None = None,
    ) -> BenchmarkDesign:
        """
        Create a benchmark design with validation.

        Args:
            exprs: Mapping of name -> callable, or callables named by __name__.
            times: Timed evaluations per expression, >= 1.
            order: 'random', 'inorder' or 'block'.
            warmup: Untimed evaluations per expression, >= 0.
            seed: Seed for the random schedule.

        Raises:
            ValidationError: If inputs are invalid.
        """
        if isinstance(exprs, Mapping):
            pairs = [(str(k), v) for k, v in exprs.items()]
        else:
            pairs = [(getattr(fn, '__name__', f'expr{i + 1}'), fn)
                     for i, fn in enumerate(exprs)]

        if not pairs:
            raise ValidationError("exprs: at least one expression is required")
        for name, fn in pairs:
            if not callable(fn):
                raise ValidationError(
                    f"exprs: {name!r} is not callable ({type(fn).__name__})"
                )
        names = [name for name, _ in pairs]
        if len(set(names)) != len(names):
            raise ValidationError(f"exprs: duplicate names in {names}")

        times = check_positive_int(times, 'times')
        if order not in ORDERS:
            raise ValidationError(
                f"order: must be one of {ORDERS}, got {order!r}"
            )
        if isinstance(warmup, bool) or not isinstance(warmup, int) or warmup < 0:
            raise ValidationError(f"warmup: must be an integer >= 0, got {warmup!r}")

        return cls(
            names=tuple(names),
            exprs=tuple(fn for _, fn in pairs),
            times=times,
            order=order,
            warmup=warmup,
            seed=check_seed(seed),
        )
