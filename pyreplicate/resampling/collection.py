"""
Pre-allocated, write-once result buffer.

A ResultCollection is sized once, before the first iteration runs. Each
slot belongs to exactly one iteration and may be written exactly once;
the finished buffer is handed out read-only. Backends that run iterations
concurrently write disjoint slots, so no locking is needed.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyreplicate.core.exceptions import SlotWriteError, StatisticError


class ResultCollection:
    """
    Fixed-length buffer with one write-once slot per iteration.

    Args:
        n: Number of slots. Negative values give an empty collection.
        width: None for scalar statistics (buffer shape (n,)), or k for
            statistics returning k values (buffer shape (n, k)).
        statistic_name: Used in shape-mismatch error messages.
    """

    def __init__(
        self,
        n: int,
        width: int | None = None,
        statistic_name: str = 'statistic',
    ):
        n = max(int(n), 0)
        self._slot_shape: tuple[int, ...] = () if width is None else (int(width),)
        self._values = np.full((n,) + self._slot_shape, np.nan, dtype=np.float64)
        self._written = np.zeros(n, dtype=bool)
        self._frozen = False
        self._statistic_name = statistic_name

    def __len__(self) -> int:
        return self._written.shape[0]

    def __repr__(self) -> str:
        return (
            f"ResultCollection(n={len(self)}, slot_shape={self._slot_shape}, "
            f"written={self.n_written})"
        )

    @property
    def slot_shape(self) -> tuple[int, ...]:
        """Shape of a single slot: () or (k,)."""
        return self._slot_shape

    @property
    def n_written(self) -> int:
        return int(self._written.sum())

    @property
    def is_complete(self) -> bool:
        return bool(self._written.all())

    def is_written(self, index: int) -> bool:
        self._check_index(index)
        return bool(self._written[index])

    def write(self, index: int, value: ArrayLike) -> None:
        """
        Store one iteration's result in its slot.

        Raises:
            SlotWriteError: If the index is out of range, the slot was
                already written, or the collection is frozen.
            StatisticError: If the value's shape does not match the slot.
        """
        self._check_writable()
        self._check_index(index)
        if self._written[index]:
            raise SlotWriteError(
                f"slot {index} already written", index=index, length=len(self)
            )
        arr = self._check_shape(np.asarray(value, dtype=np.float64), self._slot_shape)
        self._values[index] = arr
        self._written[index] = True

    def write_block(self, start: int, values: ArrayLike) -> None:
        """
        Store consecutive iterations' results starting at slot `start`.

        The block is validated as a whole before anything is stored, so a
        rejected block leaves every slot untouched.
        """
        self._check_writable()
        arr = np.asarray(values, dtype=np.float64)
        if arr.ndim == 0:
            raise StatisticError(
                f"{self._statistic_name}: block of results must have a leading "
                f"iteration axis, got a scalar",
                statistic_name=self._statistic_name,
                expected_shape=(None,) + self._slot_shape,
                actual_shape=(),
            )
        stop = start + arr.shape[0]
        if start < 0 or stop > len(self):
            raise SlotWriteError(
                f"block [{start}, {stop}) outside collection of length {len(self)}",
                index=start,
                length=len(self),
            )
        self._check_shape(arr, (arr.shape[0],) + self._slot_shape)
        already = np.flatnonzero(self._written[start:stop])
        if already.size:
            first = int(start + already[0])
            raise SlotWriteError(
                f"slot {first} already written ({already.size} slots in block)",
                index=first,
                length=len(self),
            )
        self._values[start:stop] = arr
        self._written[start:stop] = True

    def freeze(self) -> NDArray[np.floating[Any]]:
        """
        Return the finished buffer as a read-only array.

        Raises:
            SlotWriteError: If any slot has not been written.
        """
        if not self.is_complete:
            missing = np.flatnonzero(~self._written)
            raise SlotWriteError(
                f"{missing.size} of {len(self)} slots unwritten "
                f"(first: {int(missing[0])})",
                index=int(missing[0]),
                length=len(self),
            )
        self._frozen = True
        self._values.flags.writeable = False
        return self._values

    def _check_writable(self) -> None:
        if self._frozen:
            raise SlotWriteError("collection is frozen", length=len(self))

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self):
            raise SlotWriteError(
                f"index {index} outside collection of length {len(self)}",
                index=index,
                length=len(self),
            )

    def _check_shape(self, arr: NDArray, expected: tuple[int, ...]) -> NDArray:
        if arr.shape != expected:
            raise StatisticError(
                f"{self._statistic_name}: returned shape {arr.shape}, "
                f"expected {expected}",
                statistic_name=self._statistic_name,
                expected_shape=expected,
                actual_shape=arr.shape,
            )
        return arr
