"""
Execution timing utilities.

Timer accumulates named sections of a backend run into the timing dict
carried by Result. time_call measures one evaluation for the benchmark
module. GPU work is asynchronous, so both can synchronise a torch device
before reading the clock.
"""

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator


def _synchronize(device_type: str | None) -> None:
    if device_type == 'cuda':
        import torch
        torch.cuda.synchronize()
    elif device_type == 'mps':
        import torch
        torch.mps.synchronize()


class Timer:
    """
    Accumulating timer with optional device synchronisation.

    Usage:
        timer = Timer()
        timer.start()

        with timer.section('draw_indices'):
            idx = rng.integers(0, n, size=(R, n))

        with timer.section('replicates'):
            t = statistic.batch(data[idx])

        timer.stop()
        timer.result()
        # {'total_seconds': 0.05, 'draw_indices': 0.01, 'replicates': 0.04}
    """

    def __init__(self, sync_device: str | None = None):
        """
        Args:
            sync_device: 'cuda' or 'mps' to synchronise that device before
                every clock read; None for CPU-only timing.
        """
        self._sync_device = sync_device
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        """Start the overall timer."""
        _synchronize(self._sync_device)
        self._start_time = time.perf_counter()

    def stop(self) -> None:
        """Stop the overall timer."""
        _synchronize(self._sync_device)
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """
        Time a named section. Repeated sections with the same name accumulate.

        Sections can overlap with each other and with the total time.
        """
        _synchronize(self._sync_device)
        start = time.perf_counter()
        try:
            yield
        finally:
            _synchronize(self._sync_device)
            elapsed = time.perf_counter() - start
            self._sections[name] = self._sections.get(name, 0.0) + elapsed

    def result(self) -> dict[str, float]:
        """
        Get timing results.

        Returns:
            Dictionary with 'total_seconds' and all section timings

        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")

        result = {'total_seconds': self._total}
        result.update(self._sections)
        return result


@contextmanager
def timed(sync_device: str | None = None) -> Iterator[Timer]:
    """
    Context manager for simple timing.

    Usage:
        with timed() as timer:
            result = expensive_computation()
        print(f"Took {timer.result()['total_seconds']:.3f}s")
    """
    timer = Timer(sync_device=sync_device)
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()


def time_call(fn: Callable[[], Any]) -> float:
    """Wall-clock seconds for a single call of fn. Exceptions propagate."""
    start = time.perf_counter_ns()
    fn()
    return (time.perf_counter_ns() - start) * 1e-9
