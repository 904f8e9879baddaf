"""
PyReplicate resampling: the resample-then-aggregate loop.

Draws a Sample per iteration (with replacement, without replacement, by
group key, or via a custom sampler), applies a statistic, and stores each
result in its own slot of a pre-allocated, write-once Result Collection.

Usage:
    from pyreplicate.resampling import bootstrap, resample, Mean

    result = bootstrap(data, Mean(), n_iter=999, seed=42)
    result.se, result.percentile_interval(0.95)

    # Same design, loop vs vectorized vs worker pool
    resample(data, Mean(), 999, seed=42, backend='vectorized')
    resample(data, Mean(), 999, seed=42, backend='parallel', n_workers=4)
"""

from pyreplicate.resampling.solvers import (
    resample,
    bootstrap,
    subsample,
    permute,
    by_group,
    replicate,
)
from pyreplicate.resampling.collection import ResultCollection
from pyreplicate.resampling.design import ResampleDesign, ReplicateDesign
from pyreplicate.resampling.solution import ResampleSolution
from pyreplicate.resampling._common import ResampleParams
from pyreplicate.resampling.samplers import (
    Sampler,
    WithReplacement,
    WithoutReplacement,
    GroupByKey,
    TakeAll,
    make_sampler,
)
from pyreplicate.resampling.statistics import (
    Statistic,
    FunctionStatistic,
    as_statistic,
    Mean,
    Median,
    Variance,
    StdDev,
    Quantile,
    TStatistic,
    TTestPValue,
    RSquared,
    SlopePValue,
)

__all__ = [
    # Solvers
    "resample",
    "bootstrap",
    "subsample",
    "permute",
    "by_group",
    "replicate",
    # Containers
    "ResultCollection",
    "ResampleDesign",
    "ReplicateDesign",
    "ResampleSolution",
    "ResampleParams",
    # Samplers
    "Sampler",
    "WithReplacement",
    "WithoutReplacement",
    "GroupByKey",
    "TakeAll",
    "make_sampler",
    # Statistics
    "Statistic",
    "FunctionStatistic",
    "as_statistic",
    "Mean",
    "Median",
    "Variance",
    "StdDev",
    "Quantile",
    "TStatistic",
    "TTestPValue",
    "RSquared",
    "SlopePValue",
]
