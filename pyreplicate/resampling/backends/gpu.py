"""
GPU backend for resampling.

Indices are drawn on the CPU with the same generator and call as the
vectorized backend, so both backends see identical samples for a given
seed. The gather and the statistic's torch batch form run on the device.
User statistics without batch_torch() cannot run here.

Skipped if no GPU (CUDA or MPS) is available.
"""

from __future__ import annotations

import numpy as np

from pyreplicate.core.exceptions import StatisticError, ValidationError
from pyreplicate.core.result import Result
from pyreplicate.core.compute.device import select_device
from pyreplicate.core.compute.timing import Timer
from pyreplicate.resampling._common import (
    ResampleParams,
    build_result,
    check_observed_shape,
    observed_value,
    root_sequence,
    width_of,
)
from pyreplicate.resampling.backends.cpu import check_vectorizable
from pyreplicate.resampling.collection import ResultCollection
from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign
from pyreplicate.resampling.statistics import is_torch_batchable


class GPUResampleBackend:
    """
    Torch backend for batchable statistics.

    Args:
        device: 'auto', 'cuda' or 'mps'.
        use_fp64: Compute in float64 where the device supports it (not MPS).
    """

    def __init__(self, device: str = 'auto', use_fp64: bool = True):
        import torch

        self._torch = torch
        info = select_device('gpu')
        if device not in ('auto', info.device_type):
            raise RuntimeError(
                f"GPU device {device!r} requested but {info.device_type!r} "
                f"is the available device"
            )
        self._info = info
        self._device = torch.device(info.torch_device)
        self._fp64 = use_fp64 and info.supports_fp64
        self._dtype = torch.float64 if self._fp64 else torch.float32

    @property
    def name(self) -> str:
        precision = 'fp64' if self._fp64 else 'fp32'
        return f'gpu_{self._info.device_type}_{precision}_vectorized'

    def solve(self, design: ResampleDesign | ReplicateDesign) -> Result[ResampleParams]:
        """Gather and reduce on the device; return Result[ResampleParams]."""
        check_vectorizable(design, self.name)
        if not is_torch_batchable(design.statistic):
            raise ValidationError(
                f"{self.name}: statistic {design.statistic.name!r} has no "
                f"batch_torch() form"
            )
        torch = self._torch

        timer = Timer(sync_device=self._info.device_type)
        timer.start()

        n_iter = design.n_iter
        root = root_sequence(design.seed)
        observed = None
        warnings_list: list[str] = []

        if n_iter == 0:
            collection = ResultCollection(0)
        else:
            n = design.data.shape[0]
            rng = np.random.default_rng(root)

            with timer.section('observed'):
                observed = observed_value(design)

            with timer.section('draw_indices'):
                indices = design.sampler.draw_batch(n, rng, n_iter)

            with timer.section('transfer_to_device'):
                data_t = torch.from_numpy(design.data.copy()).to(
                    device=self._device, dtype=self._dtype
                )
                idx_t = torch.from_numpy(indices.astype(np.int64)).to(self._device)

            with timer.section('replicates'):
                out = design.statistic.batch_torch(data_t[idx_t])

            with timer.section('transfer_to_host'):
                values = out.detach().cpu().numpy().astype(np.float64)

            if values.ndim == 0 or values.shape[0] != n_iter or values.ndim > 2:
                raise StatisticError(
                    f"{design.statistic.name}: batch_torch returned shape "
                    f"{values.shape}, expected leading dimension {n_iter}",
                    statistic_name=design.statistic.name,
                    expected_shape=(n_iter,),
                    actual_shape=values.shape,
                )
            check_observed_shape(observed, values.shape[1:], design)
            collection = ResultCollection(
                n_iter, width_of(values[0]), design.statistic.name
            )
            collection.write_block(0, values)

            if not self._fp64:
                warnings_list.append(
                    f"replicates computed in float32 on {self._info.device_type}"
                )

        timer.stop()
        return build_result(
            design, root, collection, observed, timer.result(), self.name,
            extra_info={'device': str(self._info)},
            extra_warnings=warnings_list,
        )
