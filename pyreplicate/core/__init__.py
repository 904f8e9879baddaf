"""
Core infrastructure for PyReplicate.

Shared abstractions and utilities used by the resampling and benchmark
submodules.

Key components:
    protocols: DataSource, Backend protocols
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Hardware detection, timing, tolerances
"""

from pyreplicate.core.protocols import DataSource, Backend
from pyreplicate.core.result import Result
from pyreplicate.core.exceptions import (
    PyReplicateError,
    ValidationError,
    DimensionError,
    EmptyInputError,
    StatisticError,
    SlotWriteError,
    NumericalError,
    SingularMatrixError,
)

__all__ = [
    # Protocols
    "DataSource",
    "Backend",
    # Result
    "Result",
    # Exceptions
    "PyReplicateError",
    "ValidationError",
    "DimensionError",
    "EmptyInputError",
    "StatisticError",
    "SlotWriteError",
    "NumericalError",
    "SingularMatrixError",
]
