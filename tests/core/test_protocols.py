"""
Structural conformance of designs and backends to the core protocols.
"""

import numpy as np
import pytest

from pyreplicate.core.protocols import Backend, DataSource
from pyreplicate.benchmark import BenchmarkDesign
from pyreplicate.benchmark.backends import CPUBenchmarkBackend
from pyreplicate.resampling import Mean, ReplicateDesign, ResampleDesign
from pyreplicate.resampling.backends import (
    CPUResampleBackend,
    ParallelResampleBackend,
    VectorizedResampleBackend,
)


class TestDataSource:

    def test_resample_design(self):
        design = ResampleDesign.for_resampling(np.arange(4.0), Mean(), 3)
        assert isinstance(design, DataSource)
        assert design.n_observations == 4

    def test_replicate_design(self):
        design = ReplicateDesign.for_replication(lambda rng: rng.normal(), 3)
        assert isinstance(design, DataSource)
        assert design.n_observations == 0
        assert design.metadata == {'n_iter': 3, 'statistic': '<lambda>'}

    def test_benchmark_design(self):
        design = BenchmarkDesign.for_benchmark({'a': lambda: None}, 5)
        assert isinstance(design, DataSource)
        assert design.n_observations == 5

    def test_plain_object_is_not_a_data_source(self):
        assert not isinstance(object(), DataSource)


class TestBackend:

    @pytest.mark.parametrize("backend", [
        CPUResampleBackend(),
        ParallelResampleBackend(n_workers=1),
        VectorizedResampleBackend(),
        CPUBenchmarkBackend(),
    ], ids=lambda b: b.name)
    def test_backends_conform(self, backend):
        assert isinstance(backend, Backend)
        assert backend.name.startswith('cpu_')
